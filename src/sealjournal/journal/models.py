"""Core data models for the journal document.

A journal is one JSON-shaped document: a title and a mapping from ISO date
to a day, where a day holds a free-text summary and the entries written
that day in append order.
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import Any

from sealjournal.core.exceptions import PasswordRequiredError, ValidationError

DEFAULT_TITLE = "Journal"

_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def new_entry_id() -> str:
    """Fresh, never-reused entry id."""
    return uuid.uuid4().hex


def format_timestamp(dt: datetime) -> str:
    """Render an aware datetime as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    return dt.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def now_timestamp() -> str:
    return format_timestamp(datetime.now(UTC))


def parse_timestamp(value: Any) -> str:
    """Validate an ISO-8601 instant and return it normalized to UTC.

    Naive values are taken as UTC.

    Raises:
        ValidationError: if ``value`` is not a parseable timestamp.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Invalid timestamp")
    try:
        dt = datetime.fromisoformat(value.strip())
    except ValueError as e:
        raise ValidationError(f"Invalid timestamp: {value!r}") from e
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return format_timestamp(dt)


def validate_date(value: Any) -> str:
    """Validate a ``YYYY-MM-DD`` calendar date and return it unchanged."""
    if not isinstance(value, str) or not _DATE_RE.fullmatch(value):
        raise ValidationError(f"Invalid date: {value!r}")
    try:
        date.fromisoformat(value)
    except ValueError as e:
        raise ValidationError(f"Invalid date: {value!r}") from e
    return value


def require_password(password: Any) -> str:
    if not password:
        raise PasswordRequiredError()
    return password


def require_text(value: Any, name: str) -> str:
    """Reject missing or empty text fields."""
    if not isinstance(value, str) or not value:
        raise ValidationError(f"{name} required")
    return value


@dataclass
class Entry:
    """A single timestamped journal entry.

    Attributes:
        id: Unique across the whole journal.
        timestamp: ISO-8601 instant; assigned at creation, editable.
        content: Non-empty text.
    """

    id: str
    timestamp: str
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "timestamp": self.timestamp, "content": self.content}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Entry:
        return cls(
            id=str(raw.get("id", "")),
            timestamp=str(raw.get("timestamp", "")),
            content=str(raw.get("content", "")),
        )


@dataclass
class Day:
    """A day's summary and its entries in append order."""

    summary: str = ""
    entries: list[Entry] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"summary": self.summary, "entries": [e.to_dict() for e in self.entries]}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Day:
        return cls(
            summary=str(raw.get("summary") or ""),
            entries=[Entry.from_dict(e) for e in raw.get("entries") or [] if isinstance(e, dict)],
        )


@dataclass
class Journal:
    """Root document."""

    title: str = DEFAULT_TITLE
    days: dict[str, Day] = field(default_factory=dict)

    @classmethod
    def empty(cls, title: str = DEFAULT_TITLE) -> Journal:
        return cls(title=title, days={})

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "days": {d: day.to_dict() for d, day in self.days.items()}}

    @classmethod
    def from_dict(cls, raw: Any) -> Journal:
        # A payload without "days" loads as a journal with no days
        if not isinstance(raw, dict):
            raise ValidationError("Journal payload must be an object")
        days = raw.get("days") or {}
        if not isinstance(days, dict):
            raise ValidationError("Journal days must be an object")
        return cls(
            title=str(raw.get("title") or DEFAULT_TITLE),
            days={str(d): Day.from_dict(day) for d, day in days.items() if isinstance(day, dict)},
        )

    def get_day(self, day: str) -> Day:
        """Return the day, or a detached empty one if nothing was recorded."""
        return self.days.get(day) or Day()

    def ensure_day(self, day: str) -> Day:
        """Return the day, creating it with an empty summary if absent."""
        if day not in self.days:
            self.days[day] = Day()
        return self.days[day]

    def find_entry(self, entry_id: str) -> tuple[str, Entry] | None:
        for day_key, day in self.days.items():
            for entry in day.entries:
                if entry.id == entry_id:
                    return day_key, entry
        return None

    def entry_ids(self) -> set[str]:
        return {entry.id for day in self.days.values() for entry in day.entries}
