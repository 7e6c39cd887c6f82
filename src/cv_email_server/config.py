"""Server configuration loaded from environment variables.

Variables:
    PORT, HOST                  - listen address (default 127.0.0.1:8787)
    ALLOWED_ORIGINS             - comma-separated CORS origins
    RESUME_PATH                 - resume JSON file
    SMTP_HOST, SMTP_PORT        - outbound mail relay
    SMTP_USER, SMTP_PASS        - relay credentials (optional)
    SMTP_FROM                   - sender address
    SMTP_TIMEOUT                - seconds per delivery attempt
    CV_SERVER_KEEPALIVE_SECONDS - keep-alive interval on event streams
    CV_SERVER_LOG_LEVEL         - logging level name

A .env file in the working directory is loaded by load_env_file(); variables
already set in the process environment take precedence.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

DEFAULT_PORT = 8787
DEFAULT_ORIGINS = "http://localhost:3000"
DEFAULT_RESUME_PATH = "data/resume.json"
DEFAULT_FROM = "no-reply@example.com"

# Request bodies larger than this are refused
MAX_BODY_BYTES = 2 * 1024 * 1024


def parse_origins(value: str | None) -> list[str]:
    """Split a comma-separated origin list, dropping blanks."""
    if not value:
        return []
    return [origin.strip() for origin in value.split(",") if origin.strip()]


def load_env_file(path: str | Path | None = None) -> bool:
    """Load variables from a .env file into os.environ.

    Searches upward from the working directory when no path is given.
    Existing environment variables are not overridden.

    Returns:
        True if a file was found and loaded
    """
    dotenv_path = path if path is not None else find_dotenv(usecwd=True)
    if not dotenv_path:
        return False
    return load_dotenv(dotenv_path, override=False)


def _int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{key} must be an integer, got {raw!r}") from e


def _float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{key} must be a number, got {raw!r}") from e


def _positive_float(env: Mapping[str, str], key: str, default: float) -> float:
    value = _float(env, key, default)
    if value <= 0:
        raise ValueError(f"{key} must be greater than zero, got {env.get(key)!r}")
    return value


@dataclass
class SmtpConfig:
    """Outbound mail relay settings."""

    host: str | None = None
    port: int = 587
    user: str | None = None
    password: str | None = field(default=None, repr=False)
    from_address: str = DEFAULT_FROM
    timeout: float = 30.0

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> SmtpConfig:
        env = os.environ if environ is None else environ
        return cls(
            host=env.get("SMTP_HOST") or None,
            port=_int(env, "SMTP_PORT", 587),
            user=env.get("SMTP_USER") or None,
            password=env.get("SMTP_PASS") or None,
            from_address=env.get("SMTP_FROM") or DEFAULT_FROM,
            timeout=_float(env, "SMTP_TIMEOUT", 30.0),
        )


@dataclass
class ServerConfig:
    """Everything the application factory needs."""

    host: str = "127.0.0.1"
    port: int = DEFAULT_PORT
    allowed_origins: list[str] = field(default_factory=lambda: [DEFAULT_ORIGINS])
    resume_path: Path = field(default_factory=lambda: Path(DEFAULT_RESUME_PATH))
    smtp: SmtpConfig = field(default_factory=SmtpConfig)
    keepalive_seconds: float = 15.0
    log_level: str = "INFO"
    max_body_bytes: int = MAX_BODY_BYTES

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ServerConfig:
        """Build configuration from environment variables.

        Raises:
            ValueError: If a numeric variable does not parse, or the
                keep-alive interval is not positive
        """
        env = os.environ if environ is None else environ
        return cls(
            host=env.get("HOST") or "127.0.0.1",
            port=_int(env, "PORT", DEFAULT_PORT),
            allowed_origins=parse_origins(env.get("ALLOWED_ORIGINS") or DEFAULT_ORIGINS),
            resume_path=Path(env.get("RESUME_PATH") or DEFAULT_RESUME_PATH),
            smtp=SmtpConfig.from_env(env),
            keepalive_seconds=_positive_float(env, "CV_SERVER_KEEPALIVE_SECONDS", 15.0),
            log_level=(env.get("CV_SERVER_LOG_LEVEL") or "INFO").upper(),
        )
