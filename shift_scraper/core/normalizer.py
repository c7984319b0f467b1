"""
Normalization utilities for rota table text.

Handles:
- Free-text posting dates ("Today", "Dec 20, 2025 at 3:30pm EST", "12/20")
- Date heading and time-range row recognition
- Whitespace cleanup
"""

import re
from datetime import date, datetime, timedelta
from typing import Optional

import structlog
from dateutil import parser as date_parser

logger = structlog.get_logger(__name__)

UNPARSEABLE = "unparseable"

WHITESPACE_RE = re.compile(r"\s+")

# Row recognition
WEEKDAY_PREFIX_RE = re.compile(
    r"^(?:mon(?:day)?|tue(?:s(?:day)?)?|wed(?:nesday)?|thu(?:r(?:s(?:day)?)?)?"
    r"|fri(?:day)?|sat(?:urday)?|sun(?:day)?)\b\.?",
    re.IGNORECASE,
)
TIME_RANGE_RE = re.compile(r"\b\d{1,2}:\d{2}\s*[-–—]\s*\d{1,2}:\d{2}\b")

# Relative terms
TODAY_RE = re.compile(r"\btoday\b", re.IGNORECASE)
YESTERDAY_RE = re.compile(r"\byesterday\b", re.IGNORECASE)

# Stripping rules, applied in order
AT_RE = re.compile(r"\bat\s+", re.IGNORECASE)
TIMEZONE_RE = re.compile(r"\b(?:(?i:GMT|UTC)(?:[+-]\d{1,2}(?::?\d{2})?)?|[A-Z]{2,5})\b")
CLOCK_TIME_RE = re.compile(r"\b\d{1,2}:\d{2}(?::\d{2})?\s?(?:am|pm)?\b", re.IGNORECASE)
BARE_HOUR_RE = re.compile(r"\b\d{1,2}\s?(?:am|pm)\b", re.IGNORECASE)
MILITARY_TIME_RE = re.compile(r"\b\d{3,4}hrs?\b", re.IGNORECASE)
FULL_CLOCK_RE = re.compile(r"\b\d{2}:\d{2}:\d{2}\b")
CONNECTOR_RE = re.compile(r"^\s*posted(?:\s+on)?\s*:?\s*", re.IGNORECASE)
SEPARATOR_RE = re.compile(r"[|–—•]")

MONTH_RE = re.compile(
    r"\b(?:jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?"
    r"|aug(?:ust)?|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)\b",
    re.IGNORECASE,
)
LEFTOVER_TIME_RE = re.compile(r":\d{2}")
NUMERIC_DATE_RE = re.compile(r"\b(\d{1,2})[/-](\d{1,2})(?:[/-](\d{2,4}))?\b")
DIGIT_RE = re.compile(r"\d")


def collapse_whitespace(text: Optional[str]) -> str:
    """Collapse runs of whitespace to single spaces and trim."""
    if not text:
        return ""
    return WHITESPACE_RE.sub(" ", text).strip()


def is_time_range(text: Optional[str]) -> bool:
    """True for cells such as ``09:00 - 17:30``."""
    return bool(text) and TIME_RANGE_RE.search(text) is not None


def is_date_heading(text: Optional[str]) -> bool:
    """
    True for day headings such as ``Mon 1 Jan`` or ``Wednesday 3rd``.

    A cell that also carries a time range is an event row, not a heading.
    """
    if not text:
        return False
    text = text.strip()
    return WEEKDAY_PREFIX_RE.match(text) is not None and not is_time_range(text)


def strip_time_range(text: Optional[str]) -> str:
    """Remove time-range fragments from an event cell."""
    return collapse_whitespace(TIME_RANGE_RE.sub(" ", text or ""))


def strip_time_and_noise(text: str) -> str:
    """
    Remove time-of-day, timezone and connector noise around a date.

    Args:
        text: Whitespace-collapsed date text

    Returns:
        Remaining date text, trimmed
    """
    stripped = AT_RE.sub(" ", text, count=1)
    stripped = TIMEZONE_RE.sub("", stripped)
    stripped = CLOCK_TIME_RE.sub("", stripped)
    stripped = BARE_HOUR_RE.sub("", stripped)
    stripped = MILITARY_TIME_RE.sub("", stripped)
    stripped = FULL_CLOCK_RE.sub("", stripped)
    stripped = CONNECTOR_RE.sub("", stripped)
    stripped = SEPARATOR_RE.sub(" ", stripped)
    return collapse_whitespace(stripped)


def parse_flexible_date(text: str, reference: datetime) -> Optional[date]:
    """
    Parse free text with dateutil, retrying with the reference year appended.

    Args:
        text: Date text without time-of-day noise
        reference: Supplies defaults for missing fields

    Returns:
        Parsed date or None
    """
    if not text:
        return None

    default = datetime(reference.year, reference.month, reference.day)
    for candidate in (text, f"{text} {reference.year}"):
        try:
            return date_parser.parse(candidate, default=default).date()
        except (ValueError, OverflowError):
            continue

    return None


def parse_numeric_date(text: str, reference: datetime) -> Optional[date]:
    """
    Parse ``M/D`` or ``M-D`` with an optional 2- or 4-digit year.

    Month-first only. The reference year fills in a missing year.
    """
    match = NUMERIC_DATE_RE.search(text)
    if not match:
        return None

    month, day = int(match.group(1)), int(match.group(2))
    year_text = match.group(3)
    if year_text is None:
        year = reference.year
    elif len(year_text) == 2:
        year = 2000 + int(year_text)
    else:
        year = int(year_text)

    if not (1 <= month <= 12 and 1 <= day <= 31):
        return None

    try:
        return date(year, month, day)
    except ValueError as e:
        logger.debug("invalid_numeric_date", text=text, error=str(e))
        return None


def normalize_date(raw_text, reference: Optional[datetime] = None) -> str:
    """
    Normalize free-text date into a canonical date string.

    Rules, first match wins:
    1. Empty or non-text input -> "unparseable"
    2. "today" / "yesterday" -> ISO date relative to the reference calendar day
    3. Strip time-of-day, timezones, connectors and separators
    4. Text naming a month is returned as-is ("Dec 20, 2025"), never forced to ISO
    5. Remaining text without any digit -> "unparseable"
    6. General parse, then parse with the reference year appended -> ISO
    7. Numeric ``M/D[/Y]`` -> ISO
    8. Otherwise "unparseable"

    Args:
        raw_text: Date text as found on the page
        reference: Instant used for relative terms and missing years
            (defaults to now)

    Returns:
        ISO date, preserved month-form text, or "unparseable"
    """
    if not isinstance(raw_text, str) or not raw_text.strip():
        return UNPARSEABLE

    reference = reference or datetime.now()

    try:
        text = collapse_whitespace(raw_text)

        if TODAY_RE.search(text):
            return reference.date().isoformat()
        if YESTERDAY_RE.search(text):
            return (reference.date() - timedelta(days=1)).isoformat()

        text = strip_time_and_noise(text)
        if not text:
            return UNPARSEABLE

        if MONTH_RE.search(text):
            human = text.rstrip(",").strip()
            if not LEFTOVER_TIME_RE.search(human):
                return human

        # Text without a digit or month name carries no date.
        if not DIGIT_RE.search(text):
            return UNPARSEABLE

        parsed = parse_flexible_date(text, reference)
        if parsed:
            return parsed.isoformat()

        parsed = parse_numeric_date(text, reference)
        if parsed:
            return parsed.isoformat()

    except Exception as e:
        logger.warning("date_normalization_failed", text=raw_text, error=str(e))

    return UNPARSEABLE
