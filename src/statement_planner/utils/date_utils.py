"""Date parsing, normalization and month arithmetic utilities."""

import re
from datetime import date, datetime
from typing import Optional

# Statement dates arrive as day-first text, often with Spanish month
# abbreviations ("15-mar-24", "15/03/2024"). Two-digit years always map to
# 20YY.
SPANISH_MONTHS = {
    "ene": 1,
    "feb": 2,
    "mar": 3,
    "abr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "ago": 8,
    "sep": 9,
    "oct": 10,
    "nov": 11,
    "dic": 12,
}

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]

# Generic fallback patterns, tried after the day-first heuristic
DATE_PATTERNS = [
    (r"^(\d{4})-(\d{1,2})-(\d{1,2})$", "%Y-%m-%d"),
    (r"^(\d{4})/(\d{1,2})/(\d{1,2})$", "%Y/%m/%d"),
    (r"^(\d{1,2})/(\d{1,2})/(\d{4})$", "%m/%d/%Y"),
    (r"^(\d{1,2})-(\w{3})-(\d{4})$", "%d-%b-%Y"),
    (r"^(\d{1,2})-(\w{3})-(\d{2})$", "%d-%b-%y"),
    (r"^(\w{3})\s+(\d{1,2}),?\s+(\d{4})$", "%b %d, %Y"),
    (r"^(\w+)\s+(\d{1,2}),?\s+(\d{4})$", "%B %d, %Y"),
    (r"^(\d{1,2})\s+(\w+)\s+(\d{4})$", "%d %B %Y"),
    (r"^(\d{8})$", "%Y%m%d"),
]

COMPILED_PATTERNS = [(re.compile(pattern), fmt) for pattern, fmt in DATE_PATTERNS]

_NON_ALNUM = re.compile(r"[^a-z0-9]")
_PERIOD_PATTERN = re.compile(r"^(\d{4})-(\d{2})")


def normalize_date(value: object) -> str:
    """Normalize a free-form statement date to ISO YYYY-MM-DD.

    Handles:
    - Day-first with Spanish months: 15-mar-24, 15 Mar 2024, 05/ENE/2024
    - Day-first numeric: 15/03/2024, 15.03.24
    - Anything the generic parser accepts (ISO, ISO datetime, US
      month-first 03/15/2024 when day-first is impossible, Jan 15, 2024)

    Never raises. Unparseable input comes back trimmed so callers can
    degrade instead of failing; empty or non-string input returns "".

    Args:
        value: The raw date text.

    Returns:
        ISO date string, or the trimmed original when it cannot be parsed.
    """
    if not value or not isinstance(value, str):
        return ""

    trimmed = value.strip()
    if not trimmed:
        return ""

    parts = [p for p in _NON_ALNUM.sub("-", trimmed.lower()).split("-") if p]
    if len(parts) == 3:
        iso = _day_first_to_iso(*parts)
        if iso:
            return iso

    try:
        return parse_date(trimmed).isoformat()
    except ValueError:
        return trimmed


def _day_first_to_iso(day_part: str, month_part: str, year_part: str) -> Optional[str]:
    """Interpret three date components as day, month, year."""
    month = SPANISH_MONTHS.get(month_part)
    if month is None:
        if not month_part.isdigit():
            return None
        month = int(month_part)

    if not day_part.isdigit() or not year_part.isdigit():
        return None

    if len(year_part) == 2:
        year_part = "20" + year_part
    if len(year_part) != 4:
        return None

    try:
        return date(int(year_part), month, int(day_part)).isoformat()
    except ValueError:
        return None


def parse_date(raw_date: str) -> date:
    """Parse a raw date string into a date object.

    Args:
        raw_date: The raw date string to parse.

    Returns:
        Parsed date object.

    Raises:
        ValueError: If the date cannot be parsed.
    """
    if not raw_date:
        raise ValueError("Empty date string")

    date_str = raw_date.strip()
    if not date_str:
        raise ValueError("Empty date string after stripping whitespace")

    for pattern, fmt in COMPILED_PATTERNS:
        if pattern.match(date_str):
            try:
                return datetime.strptime(date_str, fmt).date()
            except ValueError:
                # Pattern matched but format didn't work, try next
                continue

    # ISO datetimes, e.g. values written back by spreadsheets
    try:
        return datetime.fromisoformat(date_str.replace("Z", "+00:00")).date()
    except ValueError:
        pass

    raise ValueError(f"Cannot parse date: '{raw_date}'")


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """Parse the date part of an ISO string, returning None on failure."""
    if not value or not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def period_key(d: date) -> str:
    """Format a date's year-month as a period key (YYYY-MM)."""
    return f"{d.year:04d}-{d.month:02d}"


def parse_period(key: str) -> Optional[tuple[int, int]]:
    """Parse a period key (or anything starting with one) into (year, month)."""
    if not key:
        return None
    match = _PERIOD_PATTERN.match(key)
    if not match:
        return None
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        return None
    return year, month


def add_months(d: date, months: int) -> date:
    """Shift a date by whole calendar months, clamping the day to the month end.

    Args:
        d: Date to shift.
        months: Number of months (may be negative).

    Returns:
        The shifted date.
    """
    index = d.year * 12 + (d.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    return date(year, month, min(d.day, _days_in_month(year, month)))


def _days_in_month(year: int, month: int) -> int:
    if month == 12:
        return 31
    return (date(year, month + 1, 1) - date(year, month, 1)).days


def shift_period(key: str, months: int) -> str:
    """Shift a period key by whole months.

    Raises:
        ValueError: If the key is not a period.
    """
    parsed = parse_period(key)
    if parsed is None:
        raise ValueError(f"Invalid period key: '{key}'")
    return period_key(add_months(date(parsed[0], parsed[1], 1), months))


def month_difference(start: str, end: str) -> Optional[int]:
    """Number of calendar months from one period key to another.

    Returns:
        end minus start in months, or None if either key is invalid.
    """
    a = parse_period(start)
    b = parse_period(end)
    if a is None or b is None:
        return None
    return (b[0] - a[0]) * 12 + (b[1] - a[1])


def format_month_year(key: str) -> str:
    """Human label for a period key, e.g. "2024-06" -> "June 2024"."""
    parsed = parse_period(key)
    if parsed is None:
        return key
    return f"{MONTH_NAMES[parsed[1] - 1]} {parsed[0]}"


def format_day_month(iso_date: str) -> str:
    """Short label for an ISO date, e.g. "2024-04-10" -> "10 April"."""
    d = parse_iso_date(iso_date)
    if d is None:
        return iso_date
    return f"{d.day:02d} {MONTH_NAMES[d.month - 1]}"


def generate_period_range(start: str, count: int) -> list[str]:
    """Generate consecutive period keys starting at (and including) start."""
    return [shift_period(start, i) for i in range(count)]
