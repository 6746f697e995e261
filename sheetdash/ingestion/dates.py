"""Date parsing and canonical display formatting for spreadsheet values.

The query endpoint emits dates in several encodings depending on the cell
type and the sheet locale:

* ``Date(2026,1,4)`` for typed date cells, with a zero-based month
  (optionally followed by hour, minute and second for date-time cells);
* ISO-like ``2026-02-04`` or ``2026/02/04`` when the value was typed as text;
* day-first ``4/2/2026`` or ``04-02-26`` for hand-entered Spanish dates.

``parse_to_date`` recovers a comparable ``datetime`` from any of these, while
``format_canonical`` rewrites them into the ``DD/MM/YYYY`` display form. The
formatter works on the text alone and never builds a ``datetime``.
"""
from __future__ import annotations

import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional

SHEETS_DATE_RE = re.compile(
    r"Date\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)"
    r"(?:\s*,\s*(\d+)(?:\s*,\s*(\d+)(?:\s*,\s*(\d+))?)?)?[^)]*\)"
)
ISO_PREFIX_RE = re.compile(r"^\s*(\d{4})[-/](\d{1,2})[-/](\d{1,2})")
DAY_FIRST_RE = re.compile(r"^\s*(\d{1,2})[/-](\d{1,2})[/-](\d{1,4})(?!\d)")
TIME_SUFFIX_RE = re.compile(r"^(?:[T\s]+|,\s*)(\d{1,2}):(\d{2})(?::(\d{2}))?")
CANONICAL_RE = re.compile(r"^\d{1,2}/\d{1,2}/\d{4}$")

FALLBACK_FORMATS = [
    "%d %B %Y",
    "%d %b %Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%d.%m.%Y",
    "%Y%m%d",
]


def _build(year: int, month: int, day: int, hour: int = 0, minute: int = 0, second: int = 0) -> Optional[datetime]:
    try:
        return datetime(year, month, day, hour, minute, second)
    except ValueError:
        return None


def _time_after(text: str, end: int) -> tuple[int, int, int]:
    """Read an optional ``HH:MM[:SS]`` suffix; callers fall back to midnight if it is out of range."""

    match = TIME_SUFFIX_RE.match(text[end:])
    if not match:
        return 0, 0, 0
    hour, minute, second = match.groups()
    return int(hour), int(minute), int(second or 0)


def _fallback_parse(text: str) -> Optional[datetime]:
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        parsed = None

    if parsed is None:
        try:
            parsed = parsedate_to_datetime(text)
        except (TypeError, ValueError, IndexError):
            parsed = None

    if parsed is None:
        for fmt in FALLBACK_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue

    if parsed is None:
        return None
    if parsed.tzinfo:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_to_date(text: Optional[str]) -> Optional[datetime]:
    """Parse any supported date encoding; return ``None`` when nothing matches."""

    if not text:
        return None
    text = text.strip()
    if not text:
        return None

    match = SHEETS_DATE_RE.search(text)
    if match:
        year, month, day = (int(part) for part in match.groups()[:3])
        hour, minute, second = (int(part or 0) for part in match.groups()[3:])
        return _build(year, month + 1, day, hour, minute, second) or _build(year, month + 1, day)

    match = ISO_PREFIX_RE.match(text)
    if match:
        year, month, day = (int(part) for part in match.groups())
        return _build(year, month, day, *_time_after(text, match.end())) or _build(year, month, day)

    match = DAY_FIRST_RE.match(text)
    if match:
        day, month, year = (int(part) for part in match.groups())
        if year < 100:
            year += 2000
        return _build(year, month, day, *_time_after(text, match.end())) or _build(year, month, day)

    return _fallback_parse(text)


def format_canonical(text: Optional[str]) -> str:
    """Rewrite ``Date(...)`` and ISO-prefixed values as ``DD/MM/YYYY``.

    Values already in ``D/M/YYYY`` form and anything unrecognized pass through
    unchanged, which makes the function idempotent.
    """

    if not text:
        return ""

    if CANONICAL_RE.match(text):
        return text

    match = SHEETS_DATE_RE.search(text)
    if match:
        year, month, day = (int(part) for part in match.groups()[:3])
        return f"{day:02d}/{month + 1:02d}/{year:04d}"

    match = ISO_PREFIX_RE.match(text)
    if match:
        year, month, day = (int(part) for part in match.groups())
        return f"{day:02d}/{month:02d}/{year:04d}"

    return text
