"""Keyword-based question answering over the resume.

Rules are evaluated in order against the lower-cased question. Every rule
whose pattern matches (and whose data is present) contributes labeled
lines. With no rule hit, a plain substring search over the serialized
document decides between dumping the document and a fixed hint.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .resume_store import ResumeDocument

NO_MATCH_MESSAGE = "No direct match. Try asking about last role, skills, or projects."
FOUND_IN_DOCUMENT_MESSAGE = "I found matches in the resume. Here is the resume JSON to inspect."

Answer = tuple[str, Any]


def _present(value: Any) -> bool:
    """Truthiness where empty containers still count as present."""
    if isinstance(value, list | dict):
        return True
    return bool(value)


def _compact_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def format_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return _compact_json(value)


@dataclass(frozen=True)
class CvRule:
    """One (pattern, extractor) pair.

    The extractor returns the labeled values to append; an empty list means
    the data the rule needs is missing.
    """

    name: str
    pattern: re.Pattern[str]
    extract: Callable[[ResumeDocument], list[Answer]]

    def apply(self, question: str, document: ResumeDocument) -> list[Answer]:
        if not self.pattern.search(question):
            return []
        return self.extract(document)


def _last_role(doc: ResumeDocument) -> list[Answer]:
    role = doc.last_role
    if role is None:
        return []
    start = format_value(role.startDate)
    end = format_value(role.endDate) or "present"
    return [
        ("last_position", role.position),
        ("last_company", role.name),
        ("last_dates", f"{start} – {end}"),
    ]


def _field(
    label: str, getter: Callable[[ResumeDocument], Any]
) -> Callable[[ResumeDocument], list[Answer]]:
    def extract(doc: ResumeDocument) -> list[Answer]:
        value = getter(doc)
        return [(label, value)] if _present(value) else []

    return extract


def _last_role_attr(attr: str) -> Callable[[ResumeDocument], Any]:
    def getter(doc: ResumeDocument) -> Any:
        role = doc.last_role
        return getattr(role, attr) if role is not None else None

    return getter


CV_RULES: tuple[CvRule, ...] = (
    CvRule("last_role", re.compile(r"(last|previous|most recent)"), _last_role),
    CvRule("name", re.compile(r"name"), _field("name", lambda d: d.basics.name)),
    CvRule(
        "position",
        re.compile(r"(role|position|title)"),
        _field("position", _last_role_attr("position")),
    ),
    CvRule(
        "company",
        re.compile(r"(company|employer|organization)"),
        _field("company", _last_role_attr("name")),
    ),
    CvRule(
        "location",
        re.compile(r"(city|location)"),
        _field("location", lambda d: d.basics.location),
    ),
    CvRule("skills", re.compile(r"(skills?|tech|stack)"), _field("skills", lambda d: d.skills)),
    CvRule(
        "projects",
        re.compile(r"(project|built|app)"),
        _field("projects", lambda d: d.projects),
    ),
)


def answer_question(
    question: str,
    raw_document: dict[str, Any],
    rules: tuple[CvRule, ...] = CV_RULES,
) -> str:
    """Answer a question about the resume.

    Args:
        question: Free-text question
        raw_document: The resume exactly as stored
        rules: Ordered rule set (defaults to CV_RULES)

    Returns:
        Newline-joined answer text; identical input gives identical output
    """
    q = question.lower()
    document = ResumeDocument.from_raw(raw_document)

    lines: list[str] = []
    for rule in rules:
        for label, value in rule.apply(q, document):
            lines.append(f"• {label}: {format_value(value)}")

    if not lines and q in _compact_json(raw_document).lower():
        lines.append(FOUND_IN_DOCUMENT_MESSAGE)
        lines.append(json.dumps(raw_document, indent=2, ensure_ascii=False))

    if not lines:
        lines.append(NO_MATCH_MESSAGE)

    return "\n".join(lines)
