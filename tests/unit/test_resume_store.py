"""Tests for resume persistence."""

import json
from unittest.mock import patch

import pytest

from cv_email_server.resume_store import (
    ResumeDocument,
    ResumePersistError,
    ResumeStore,
    default_resume,
)


class TestLoad:
    """Test loading from disk."""

    def test_load_existing(self, store, sample_resume):
        assert store.get() == sample_resume

    def test_missing_file_gives_default(self, tmp_path):
        store = ResumeStore(tmp_path / "missing.json")

        assert store.load() == default_resume()

    def test_corrupt_file_gives_default(self, tmp_path):
        path = tmp_path / "resume.json"
        path.write_text("{not json", encoding="utf-8")

        assert ResumeStore(path).load() == default_resume()

    def test_non_object_gives_default(self, tmp_path):
        path = tmp_path / "resume.json"
        path.write_text("[1, 2, 3]", encoding="utf-8")

        assert ResumeStore(path).load() == default_resume()

    def test_get_returns_a_copy(self, store):
        store.get()["basics"]["name"] = "Mallory"

        assert store.get()["basics"]["name"] == "Jane Doe"


class TestReplace:
    """Test whole-document replacement."""

    @pytest.mark.asyncio
    async def test_replace_then_get(self, store):
        document = {"basics": {"name": "New Name"}, "custom": {"x": 1}}

        await store.replace(document)

        assert store.get() == document

    @pytest.mark.asyncio
    async def test_replace_survives_reload(self, store, resume_path):
        document = {"basics": {"name": "Persisted"}, "work": []}

        await store.replace(document)

        assert json.loads(resume_path.read_text(encoding="utf-8")) == document
        assert ResumeStore(resume_path).load() == document

    @pytest.mark.asyncio
    async def test_replace_creates_parent_directory(self, tmp_path):
        store = ResumeStore(tmp_path / "nested" / "dir" / "resume.json")

        await store.replace({"basics": {}})

        assert (tmp_path / "nested" / "dir" / "resume.json").exists()

    @pytest.mark.asyncio
    async def test_replace_rejects_non_object(self, store):
        with pytest.raises(ValueError):
            await store.replace(["not", "a", "resume"])

    @pytest.mark.asyncio
    async def test_failed_write_keeps_old_document(self, store, sample_resume, resume_path):
        with patch("cv_email_server.resume_store.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(ResumePersistError):
                await store.replace({"basics": {"name": "Lost"}})

        assert store.get() == sample_resume
        assert json.loads(resume_path.read_text(encoding="utf-8")) == sample_resume
        assert list(resume_path.parent.glob("*.tmp")) == []

    @pytest.mark.asyncio
    async def test_caller_mutation_after_replace_is_isolated(self, store):
        document = {"basics": {"name": "Original"}}

        await store.replace(document)
        document["basics"]["name"] = "Mutated"

        assert store.get()["basics"]["name"] == "Original"


class TestResumeDocument:
    """Test the lenient typed view."""

    def test_last_role(self, sample_resume):
        view = ResumeDocument.from_raw(sample_resume)

        assert view.last_role.position == "Staff Engineer"
        assert view.last_role.endDate is None

    def test_tolerates_wrong_types(self):
        view = ResumeDocument.from_raw({"basics": [], "work": {"a": 1}})

        assert view.basics.name is None
        assert view.last_role is None

    def test_keeps_unknown_fields(self):
        view = ResumeDocument.from_raw({"basics": {"name": "A", "phone": "123"}})

        assert view.basics.model_extra == {"phone": "123"}
