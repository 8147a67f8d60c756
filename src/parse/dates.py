"""Draw date parsing for UK competition sites.

All results are timezone-aware in Europe/London. Functions that resolve
relative text ("tomorrow", "Sat 14th Feb") take an optional ``now``.
Absolute dates are located with a regex and handed to dateutil; relative
phrasing is resolved here.
"""
import re
from datetime import date, datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from dateutil import parser as date_parser

UK_TZ = ZoneInfo("Europe/London")

MONTH_NAMES = (
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
)
WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

_MONTH_ALT = "|".join(MONTH_NAMES)
_ABBR_ALT = "|".join(name[:3] for name in MONTH_NAMES)

ORDINAL_RE = re.compile(r"(\d+)(?:st|nd|rd|th)\b", re.IGNORECASE)
LONG_DATE_RE = re.compile(
    r"(\d{1,2})\s+(?:%s)(?:,?\s+(\d{4}))?(?:\s+at\s+\d{1,2}(?::\d{2})?\s*(?:am|pm))?" % _MONTH_ALT,
    re.IGNORECASE,
)
NUMERIC_DATE_RE = re.compile(r"\d{1,2}[/\-]\d{1,2}[/\-]\d{4}")
DAY_MONTH_RE = re.compile(r"\d{1,2}(?:st|nd|rd|th)?\s+(?:%s)[a-z]*" % _ABBR_ALT, re.IGNORECASE)
MONTH_DAY_RE = re.compile(r"\b(?:%s)[a-z]*\s+\d{1,2}\b" % _ABBR_ALT, re.IGNORECASE)
TODAY_TIME_RE = re.compile(r"TODAY\s+(\d{1,2}):(\d{2})", re.IGNORECASE)
ENDS_IN_DAYS_RE = re.compile(r"ends?\s+in\s+(\d+)\s*day", re.IGNORECASE)


def uk_now() -> datetime:
    return datetime.now(UK_TZ)


def _local(now: Optional[datetime]) -> datetime:
    return (now or uk_now()).astimezone(UK_TZ)


def at_time(day: date, hour: int, minute: int = 0) -> datetime:
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=UK_TZ)


def _parse_span(span: str, year: int, hour: int, minute: int = 0) -> Optional[datetime]:
    """dateutil parse of an isolated date span; missing parts come from the defaults."""
    default = datetime(year, 1, 1, hour, minute)
    try:
        parsed = date_parser.parse(span, dayfirst=True, fuzzy=True, default=default)
    except (ValueError, OverflowError):
        return None
    return parsed.replace(tzinfo=UK_TZ)


def _roll_forward(span: str, hour: int, minute: int, now: datetime) -> Optional[datetime]:
    """Date in the current year, or next year if it has already passed."""
    candidate = _parse_span(span, now.year, hour, minute)
    if candidate is not None and candidate < now:
        candidate = _parse_span(span, now.year + 1, hour, minute)
    return candidate


def parse_long_date(text: Optional[str], default_hour: int = 21,
                    now: Optional[datetime] = None) -> Optional[datetime]:
    """
    Parse long-form draw dates.

    "Wednesday 11th February 2026 at 9pm", "Friday 30th January @ 10:00pm",
    "27 December 2025". A missing year rolls forward from ``now``.
    """
    if not text:
        return None
    cleaned = ORDINAL_RE.sub(r"\1", text.strip()).replace("@", "at")
    match = LONG_DATE_RE.search(cleaned)
    if not match:
        return None
    if match.group(2):
        return _parse_span(match.group(0), int(match.group(2)), default_hour)
    return _roll_forward(match.group(0), default_hour, 0, _local(now))


def parse_numeric_date(text: Optional[str], hour: int = 21, minute: int = 0) -> Optional[datetime]:
    """dd/mm/yyyy or dd-mm-yyyy at a fixed time of day."""
    if not text:
        return None
    match = NUMERIC_DATE_RE.search(text)
    if not match:
        return None
    return _parse_span(match.group(0), 1970, hour, minute)


def parse_day_month(text: Optional[str], hour: int = 21, minute: int = 0,
                    now: Optional[datetime] = None) -> Optional[datetime]:
    """Short dates without a year: "Mon 29th Dec", "14 FEB", "FEB 14"."""
    if not text:
        return None
    match = DAY_MONTH_RE.search(text) or MONTH_DAY_RE.search(text)
    if not match:
        return None
    span = ORDINAL_RE.sub(r"\1", match.group(0))
    return _roll_forward(span, hour, minute, _local(now))


def parse_relative_day(text: Optional[str], hour: int = 21, minute: int = 0,
                       now: Optional[datetime] = None,
                       weekdays: bool = True) -> Optional[datetime]:
    """
    "today"/"tonight", "tomorrow" and bare weekday names.

    A weekday always means its next occurrence, never today.
    """
    if not text:
        return None
    lower = text.lower()
    local_now = _local(now)
    today = local_now.date()

    if "tonight" in lower or "today" in lower:
        return at_time(today, hour, minute)
    if "tomorrow" in lower:
        return at_time(today + timedelta(days=1), hour, minute)
    if weekdays:
        for index, name in enumerate(WEEKDAYS):
            if name in lower:
                days_until = index - today.weekday()
                if days_until <= 0:
                    days_until += 7
                return at_time(today + timedelta(days=days_until), hour, minute)
    return None


def parse_ends_in_days(text: Optional[str], hour: int = 21,
                       now: Optional[datetime] = None) -> Optional[datetime]:
    """"Ends in 3 days" -> that day at ``hour``."""
    if not text:
        return None
    match = ENDS_IN_DAYS_RE.search(text)
    if not match:
        return None
    target = _local(now).date() + timedelta(days=int(match.group(1)))
    return at_time(target, hour)


def parse_today_time(text: Optional[str], now: Optional[datetime] = None) -> Optional[datetime]:
    """"ENDS TODAY 23:00" -> today at 23:00."""
    if not text:
        return None
    match = TODAY_TIME_RE.search(text)
    if not match:
        return None
    return _safe_datetime_today(_local(now), int(match.group(1)), int(match.group(2)))


def _safe_datetime_today(now: datetime, hour: int, minute: int) -> Optional[datetime]:
    if hour > 23 or minute > 59:
        return None
    return at_time(now.date(), hour, minute)


def from_countdown(days: int, hours: int, now: Optional[datetime] = None) -> datetime:
    """End date from a "D days H hours" countdown."""
    return _local(now) + timedelta(days=days, hours=hours)
