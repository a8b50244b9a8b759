"""Contact note codec.

A stored note is a single string ``"[<timestamp>] <author>: <content>"``. The
backend stamps timestamp and author when a note is appended; the client only
ever sends plain content and decodes what comes back.

There is no escaping. The timestamp ends at the first ``]`` and the author at
the first ``:`` followed by whitespace, so an author name containing ``": "``
is split early. Content must be a single line: a note with a line break does
not match and decodes through the Unknown fallback, raw text intact. Stored
notes depend on this, so it is left as is.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import UTC, datetime

from founderdesk.errors import ValidationFailure
from founderdesk.models import Annotation

UNKNOWN_AUTHOR = "Unknown"

_NOTE_RE = re.compile(r"^\[(.*?)\]\s+(.*?):\s+(.*)\Z")


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def decode(raw: str) -> Annotation:
    """Parse a raw note. Strings that do not match the grammar fall back to an Unknown author."""
    match = _NOTE_RE.match(raw)
    if match is None:
        return Annotation(timestamp=_now_iso(), author=UNKNOWN_AUTHOR, content=raw, legacy=True)
    timestamp, author, content = match.groups()
    return Annotation(timestamp=timestamp, author=author, content=content)


def encode(note: Annotation) -> str:
    return f"[{note.timestamp}] {note.author}: {note.content}"


def decode_all(raw_notes: Iterable[str]) -> list[Annotation]:
    """Decode notes in the order the backend returned them."""
    return [decode(raw) for raw in raw_notes]


def parse_timestamp(note: Annotation) -> datetime | None:
    """The note timestamp as an aware datetime, or None when it is not ISO-8601."""
    value = note.timestamp
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def prepare_note(text: str) -> str:
    """Validate new note content before it is sent."""
    if not text or not text.strip():
        raise ValidationFailure("Note cannot be empty")
    return text
