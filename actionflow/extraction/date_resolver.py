"""
Due Date Resolver

Turns relative and explicit date phrases into absolute datetimes.

Relative phrases are resolved against ``now``; any other phrase is parsed
against a fixed list of formats and kept only if it lands in the future.
Unparseable phrases resolve to None, never raise.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Optional

FRIDAY = 4

# Tried in order; formats without a year take the current one
DATE_FORMATS = [
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%m/%d/%y",
    "%m/%d",
    "%B %d %Y",
    "%B %d, %Y",
    "%b %d %Y",
    "%b %d, %Y",
    "%d %B %Y",
    "%d %b %Y",
    "%B %d",
    "%b %d",
    "%d %B",
    "%d %b",
]

_DUE_PHRASE = re.compile(r"\b(?:by|before|until|due)\s+([^.;!?\n]+)", re.IGNORECASE)
_ORDINAL_SUFFIX = re.compile(r"(\d+)(?:st|nd|rd|th)\b", re.IGNORECASE)

MAX_PHRASE_WORDS = 6


def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.now(timezone.utc)


def next_friday(now: datetime) -> datetime:
    """Upcoming Friday; a week out when today is already Friday"""
    days = (FRIDAY - now.weekday()) % 7
    return now + timedelta(days=days or 7)


def _parse_explicit(phrase: str, now: datetime) -> Optional[datetime]:
    cleaned = _ORDINAL_SUFFIX.sub(r"\1", phrase.strip().rstrip(","))
    try:
        parsed = datetime.fromisoformat(cleaned)
    except ValueError:
        parsed = None

    if parsed is None:
        for fmt in DATE_FORMATS:
            value = cleaned
            if "%Y" not in fmt and "%y" not in fmt:
                value, fmt = f"{cleaned} {now.year}", f"{fmt} %Y"
            try:
                parsed = datetime.strptime(value, fmt)
            except ValueError:
                continue
            break

    if parsed is None:
        return None
    if parsed.tzinfo is None and now.tzinfo is not None:
        parsed = parsed.replace(tzinfo=now.tzinfo)
    return parsed


def resolve_due_date(phrase: Optional[str], now: Optional[datetime] = None) -> Optional[datetime]:
    """
    Resolve a date phrase to an absolute datetime.

    Args:
        phrase: e.g. "tomorrow", "by Friday", "2026-03-01"
        now: Reference instant (default: current UTC time)

    Returns:
        Resolved datetime, or None when the phrase is unparseable or past
    """
    if not phrase or not phrase.strip():
        return None

    now = _now(now)
    lowered = phrase.lower().strip()

    if "today" in lowered:
        return now
    if "tomorrow" in lowered:
        return now + timedelta(days=1)
    if "next week" in lowered:
        return now + timedelta(days=7)
    if "end of week" in lowered or "friday" in lowered:
        return next_friday(now)

    parsed = _parse_explicit(phrase, now)
    if parsed is not None and parsed > now:
        return parsed
    return None


def extract_due_date_from_text(text: str, now: Optional[datetime] = None) -> Optional[datetime]:
    """
    Find a ``by|before|until|due <phrase>`` in free text and resolve it.

    The words after the keyword are tried longest prefix first, so trailing
    words ("by March 5 to the team") do not defeat the parse.
    """
    if not text:
        return None

    now = _now(now)
    for match in _DUE_PHRASE.finditer(text):
        words = match.group(1).split()[:MAX_PHRASE_WORDS]
        for size in range(len(words), 0, -1):
            resolved = resolve_due_date(" ".join(words[:size]), now)
            if resolved is not None:
                return resolved
    return None
