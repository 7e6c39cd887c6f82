"""Tests for environment configuration."""

from pathlib import Path

import pytest

from cv_email_server.config import (
    MAX_BODY_BYTES,
    ServerConfig,
    SmtpConfig,
    load_env_file,
    parse_origins,
)


class TestServerConfig:
    """Test ServerConfig.from_env."""

    def test_defaults(self):
        config = ServerConfig.from_env({})

        assert config.host == "127.0.0.1"
        assert config.port == 8787
        assert config.allowed_origins == ["http://localhost:3000"]
        assert config.resume_path == Path("data/resume.json")
        assert config.keepalive_seconds == 15.0
        assert config.log_level == "INFO"
        assert config.max_body_bytes == MAX_BODY_BYTES

    def test_overrides(self):
        config = ServerConfig.from_env(
            {
                "HOST": "0.0.0.0",
                "PORT": "9000",
                "ALLOWED_ORIGINS": "https://a.example, https://b.example,",
                "RESUME_PATH": "/srv/resume.json",
                "CV_SERVER_KEEPALIVE_SECONDS": "2.5",
                "CV_SERVER_LOG_LEVEL": "debug",
            }
        )

        assert config.host == "0.0.0.0"
        assert config.port == 9000
        assert config.allowed_origins == ["https://a.example", "https://b.example"]
        assert config.resume_path == Path("/srv/resume.json")
        assert config.keepalive_seconds == 2.5
        assert config.log_level == "DEBUG"

    def test_empty_origins_fall_back_to_default(self):
        config = ServerConfig.from_env({"ALLOWED_ORIGINS": ""})

        assert config.allowed_origins == ["http://localhost:3000"]

    @pytest.mark.parametrize("value", ["0", "-1", "-0.5"])
    def test_keepalive_must_be_positive(self, value):
        with pytest.raises(ValueError, match="CV_SERVER_KEEPALIVE_SECONDS"):
            ServerConfig.from_env({"CV_SERVER_KEEPALIVE_SECONDS": value})

    def test_bad_port(self):
        with pytest.raises(ValueError, match="PORT"):
            ServerConfig.from_env({"PORT": "eighty"})

    def test_reads_os_environ_by_default(self, monkeypatch):
        monkeypatch.setenv("PORT", "1234")

        assert ServerConfig.from_env().port == 1234


class TestSmtpConfig:
    def test_defaults(self):
        smtp = SmtpConfig.from_env({})

        assert smtp.host is None
        assert smtp.port == 587
        assert smtp.from_address == "no-reply@example.com"
        assert smtp.timeout == 30.0

    def test_values(self):
        smtp = SmtpConfig.from_env(
            {
                "SMTP_HOST": "mail.example.com",
                "SMTP_PORT": "465",
                "SMTP_USER": "bot",
                "SMTP_PASS": "hunter2",
                "SMTP_FROM": "cv@example.com",
                "SMTP_TIMEOUT": "5",
            }
        )

        assert smtp.host == "mail.example.com"
        assert smtp.port == 465
        assert smtp.user == "bot"
        assert smtp.password == "hunter2"
        assert smtp.from_address == "cv@example.com"
        assert smtp.timeout == 5.0

    def test_password_not_in_repr(self):
        assert "hunter2" not in repr(SmtpConfig(password="hunter2"))


def test_parse_origins():
    assert parse_origins(None) == []
    assert parse_origins(" a , ,b ") == ["a", "b"]


class TestEnvFile:
    """Test loading a .env file from the working directory."""

    @pytest.fixture
    def clean_env(self, monkeypatch):
        # Register the variables so monkeypatch restores them after load_dotenv writes
        for key in ("SMTP_HOST", "PORT", "SMTP_FROM"):
            monkeypatch.setenv(key, "unset")
            monkeypatch.delenv(key)
        return monkeypatch

    def test_loads_dotenv_from_cwd(self, tmp_path, clean_env):
        (tmp_path / ".env").write_text(
            "SMTP_HOST=mail.from-dotenv.example\nPORT=9100\nSMTP_FROM=dotenv@example.com\n"
        )
        clean_env.chdir(tmp_path)
        clean_env.setenv("SMTP_FROM", "env@example.com")

        assert load_env_file() is True
        config = ServerConfig.from_env()

        assert config.smtp.host == "mail.from-dotenv.example"
        assert config.port == 9100
        assert config.smtp.from_address == "env@example.com"

    def test_explicit_path(self, tmp_path, clean_env):
        env_file = tmp_path / "settings.env"
        env_file.write_text("PORT=9200\n")

        assert load_env_file(env_file) is True
        assert ServerConfig.from_env().port == 9200

    def test_no_dotenv_file(self, tmp_path, clean_env):
        clean_env.chdir(tmp_path)

        assert load_env_file(tmp_path / "missing.env") is False
        assert ServerConfig.from_env().port == 8787
