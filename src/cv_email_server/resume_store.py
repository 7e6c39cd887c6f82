"""Resume persistence.

Storage: one JSON file (``RESUME_PATH``, default ./data/resume.json).

Contract:
- load(): read the file; a missing or corrupt file yields the default document
- get(): the current document, exactly as last stored
- replace(doc): persist first, then swap the in-memory copy
- Errors: ResumePersistError when the write fails; memory is left untouched
"""

from __future__ import annotations

import asyncio
import copy
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


def default_resume() -> dict[str, Any]:
    """The empty document used when nothing usable is on disk."""
    return {"basics": {}, "work": [], "projects": [], "skills": []}


class ResumePersistError(Exception):
    """Writing the resume to disk failed."""


class ResumeModel(BaseModel):
    """Lenient base: unknown keys are kept, missing keys get empty defaults."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class Basics(ResumeModel):
    name: Any = None
    label: Any = None
    email: Any = None
    location: Any = None


class WorkEntry(ResumeModel):
    position: Any = None
    name: Any = None
    startDate: Any = None
    endDate: Any = None


class ResumeDocument(ResumeModel):
    """Typed read-only view over a raw resume dict.

    Any field may be absent; absence degrades to an empty value.
    """

    basics: Basics = Field(default_factory=Basics)
    work: list[WorkEntry] = Field(default_factory=list)
    projects: Any = None
    skills: Any = None

    @classmethod
    def from_raw(cls, raw: Any) -> ResumeDocument:
        """Build a view, tolerating wrongly-typed sections."""
        if not isinstance(raw, dict):
            return cls()
        data = dict(raw)
        if not isinstance(data.get("basics"), dict):
            data.pop("basics", None)
        work = data.get("work")
        if isinstance(work, list):
            data["work"] = [entry for entry in work if isinstance(entry, dict)]
        else:
            data.pop("work", None)
        return cls.model_validate(data)

    @property
    def last_role(self) -> WorkEntry | None:
        """The most recent work entry (last in the list)."""
        return self.work[-1] if self.work else None


class ResumeStore:
    """Owns the in-memory resume and its on-disk copy.

    Single writer, many readers: replace() is serialized by a lock and swaps
    the document reference only after the file write succeeded, so a reader
    sees either the old document or the new one.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._document: dict[str, Any] = default_resume()
        self._write_lock = asyncio.Lock()

    def load(self) -> dict[str, Any]:
        """Load the document from disk, falling back to the default."""
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.info(f"No resume at {self.path}, starting with an empty document")
            data = default_resume()
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to load resume from {self.path}: {e}")
            data = default_resume()

        if not isinstance(data, dict):
            logger.warning(f"Resume at {self.path} is not a JSON object, ignoring it")
            data = default_resume()

        self._document = data
        return copy.deepcopy(data)

    def get(self) -> dict[str, Any]:
        """Return a copy of the current document."""
        return copy.deepcopy(self._document)

    async def replace(self, document: dict[str, Any]) -> None:
        """Replace the whole document, persisting before publishing.

        Raises:
            ValueError: If the document is not a JSON object
            ResumePersistError: If the write fails
        """
        if not isinstance(document, dict):
            raise ValueError("Resume must be a JSON object")

        snapshot = copy.deepcopy(document)
        async with self._write_lock:
            try:
                await asyncio.to_thread(self._write, snapshot)
            except (OSError, TypeError, ValueError) as e:
                raise ResumePersistError(f"Failed to write resume to {self.path}: {e}") from e
            self._document = snapshot

        logger.info(f"Resume replaced and saved to {self.path}")

    def _write(self, document: dict[str, Any]) -> None:
        """Write atomically: temp file in the same directory, then rename."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        content = json.dumps(document, indent=2, ensure_ascii=False)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
