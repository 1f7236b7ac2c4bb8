"""Publish-date normalization for scraped search results.

Search surfaces print dates in whatever form suits them ("3 minutes ago",
"今天 14:20", "2024年1月2日", an ISO attribute...). `normalize_date` turns
these into absolute datetimes relative to the crawl time.

Policy: anything we cannot read resolves to the reference instant. The
article is kept; only its recency may be off.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional


_MINUTES_AGO = re.compile(r"^(\d+)\s*(?:minutes?|mins?|m|分钟)\s*(?:ago|前)?$")
_HOURS_AGO = re.compile(r"^(\d+)\s*(?:hours?|hrs?|h|小时)\s*(?:ago|前)?$")
_DAYS_AGO = re.compile(r"^(\d+)\s*(?:days?|d|天)\s*(?:ago|前)?$")
_TODAY = re.compile(r"^(?:today|今天)\s*(\d{1,2}):(\d{2})$")
_YESTERDAY = re.compile(r"^(?:yesterday|昨天)\s*(\d{1,2}):(\d{2})$")
_ISO_DATE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})(?:[ t](\d{1,2}):(\d{2})(?::(\d{2}))?)?$")
_CJK_DATE = re.compile(r"^(\d{4})年(\d{1,2})月(\d{1,2})日(?:\s*(\d{1,2}):(\d{2})(?::(\d{2}))?)?")
_ISO_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}[t ]")
_MONTH_NAME_DATE = re.compile(r"^([A-Za-z]{3,9})\.?\s+(\d{1,2}),\s*(\d{4})$")

_MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}


def _relative(pattern: "re.Pattern[str]", unit: str) -> Callable[[str, datetime], Optional[datetime]]:
    def parse(text: str, ref: datetime) -> Optional[datetime]:
        m = pattern.match(text)
        if not m:
            return None
        return ref - timedelta(**{unit: int(m.group(1))})

    return parse


def _time_of_day(pattern: "re.Pattern[str]", days_back: int) -> Callable[[str, datetime], Optional[datetime]]:
    def parse(text: str, ref: datetime) -> Optional[datetime]:
        m = pattern.match(text)
        if not m:
            return None
        day = ref - timedelta(days=days_back)
        return day.replace(hour=int(m.group(1)), minute=int(m.group(2)), second=0, microsecond=0)

    return parse


def _ymd(pattern: "re.Pattern[str]") -> Callable[[str, datetime], Optional[datetime]]:
    def parse(text: str, ref: datetime) -> Optional[datetime]:
        m = pattern.match(text)
        if not m:
            return None
        hour, minute, second = (int(g or 0) for g in m.group(4, 5, 6))
        return datetime(int(m.group(1)), int(m.group(2)), int(m.group(3)), hour, minute, second, tzinfo=ref.tzinfo)

    return parse


def _month_name(text: str, ref: datetime) -> Optional[datetime]:
    m = _MONTH_NAME_DATE.match(text)
    if not m:
        return None
    month = _MONTHS.get(m.group(1)[:3].lower())
    if month is None:
        return None
    return datetime(int(m.group(3)), month, int(m.group(2)), tzinfo=ref.tzinfo)


def _iso_timestamp(text: str, ref: datetime) -> Optional[datetime]:
    # <time datetime="..."> attributes, "T" or space separated
    if not _ISO_PREFIX.match(text):
        return None
    parsed = datetime.fromisoformat(text.upper().replace("Z", "+00:00"))
    if parsed.tzinfo is None and ref.tzinfo is not None:
        parsed = parsed.replace(tzinfo=ref.tzinfo)
    elif parsed.tzinfo is not None and ref.tzinfo is None:
        parsed = parsed.replace(tzinfo=None)
    return parsed


# Order matters: first match wins.
_PARSERS: List[Callable[[str, datetime], Optional[datetime]]] = [
    _relative(_MINUTES_AGO, "minutes"),
    _relative(_HOURS_AGO, "hours"),
    _time_of_day(_TODAY, 0),
    _time_of_day(_YESTERDAY, 1),
    _relative(_DAYS_AGO, "days"),
    _ymd(_ISO_DATE),
    _ymd(_CJK_DATE),
    _month_name,
    _iso_timestamp,
]


def normalize_date(raw: Optional[str], reference: Optional[datetime] = None) -> datetime:
    """Parse a human-readable publish date; fall back to `reference`.

    Never raises. `reference` defaults to the current UTC time.
    """
    ref = reference or datetime.now(timezone.utc)
    text = re.sub(r"\s+", " ", (raw or "")).strip().lower()
    if not text:
        return ref
    for parser in _PARSERS:
        try:
            parsed = parser(text, ref)
        except (ValueError, OverflowError):
            # e.g. "2024-13-45", "today 25:99"
            return ref
        if parsed is not None:
            return parsed
    return ref
