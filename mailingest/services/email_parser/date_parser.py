"""Parse header date strings into date records."""

import re
from datetime import datetime, timedelta

import structlog

from .constants import MONTHS, TIMEZONE_OFFSETS

logger = structlog.get_logger()

_MONTH = r"(?P<month>Jan|JAN|Feb|FEB|Mar|MAR|Apr|APR|May|MAY|Jun|JUN|Jul|JUL|Aug|AUG|Sep|SEP|Oct|OCT|Nov|NOV|Dec|DEC)"
_TAIL = (
    r"(?:\s+(?P<offset>(?:\+|-){sign}[0-9]{{4}}))?"
    r"(?:\s+\(?(?P<zone>[A-Z ]+|\?\?\?)\)?)?"
    r"(?:\s+(?P<late_offset>(?:\+|-)?[0-9]{{4}}))?"
    r".*$"
)

# Tue, 10 Jan 2017 10:28:56 -0800 / 13 Jun 2003 16:49:20 -0400 (EDT)
_DAY_MONTH_YEAR_TIME = re.compile(
    r"^(?:...,?\s+)?"
    r"(?P<day>0?[1-9]|[12][0-9]|3[01])"
    r"\s+" + _MONTH + r"\s+(?P<year>[0-9]{2,4}),?"
    r"\s+(?P<time>(?:[0-9]|[01][0-9]|2[0-3]):[0-5][0-9](?::[0-5][0-9])?)"
    + _TAIL.format(sign="")
)

# Mon, Aug 26 1996 14:16:01 MDT
_MONTH_DAY_YEAR_TIME = re.compile(
    r"^(?:...,?\s+)?"
    + _MONTH
    + r"\s+(?P<day>0?[1-9]|[12][0-9]|3[01])"
    r"\s+(?P<year>[0-9]{2,4})"
    r"\s+(?P<time>(?:[01][0-9]|2[0-3]|[0-9]):[0-5][0-9](?::[0-5][0-9])?)"
    + _TAIL.format(sign="?")
)

# 25.11.2003
_DOTTED = re.compile(r"^(?P<day>0[1-9]|[12][0-9]|3[01])\.(?P<month>0[0-9]|1[0-2])\.(?P<year>[0-9]{4})$")

# 03 Dec 96
_DAY_MONTH_YEAR = re.compile(
    r"^(?P<day>0[1-9]|[12][0-9]|3[01])\s+"
    r"(?P<month>Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)\s+"
    r"(?P<year>[0-9]{2,4})$"
)

_DEFAULT_TIME = "12:00:00"


def _expand_year(year: int) -> int:
    """Map two-digit shorthand years: 0-9 to the 2000s, 80-99 to the 1900s."""
    if 0 <= year <= 9:
        return year + 2000
    if 80 <= year <= 99:
        return year + 1900
    return year


def _normalize_time(value: str) -> str:
    if value.count(":") == 1:
        value += ":00"
    return value.zfill(8)


def _format_date(value: datetime) -> str:
    # strftime does not zero-pad years below 1000 on every platform
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def _utc_shift(offset: str, zone_name: str) -> timedelta:
    """Delta to add to local time to reach UTC."""
    if offset:
        digits = offset[-4:]
        minutes = int(digits[:2]) * 60 + int(digits[2:])
        return timedelta(minutes=minutes if offset.startswith("-") else -minutes)

    if zone_name in TIMEZONE_OFFSETS:
        return timedelta(minutes=-TIMEZONE_OFFSETS[zone_name])

    return timedelta(0)


def parse_date(text: str) -> dict[str, str]:
    """
    Parse a header date into a date record.

    Recognized shapes, tried in order:

    - ``[Wkd,] D Mon YYYY hh:mm[:ss] [+hhmm] [(ZONE)] [+hhmm]``
    - ``[Wkd,] Mon D YYYY hh:mm[:ss] [+hhmm] [(ZONE)] [+hhmm]``
    - ``DD.MM.YYYY`` (time defaults to noon)
    - ``DD Mon YY`` (time defaults to noon)

    Two-digit years 0-9 are read as 2000-2009 and 80-99 as 1980-1999.

    Args:
        text: Raw header value

    Returns:
        Mapping with 'date', 'time', 'timezone', optional 'timezone name',
        'date UTC' and 'time UTC'; empty if the text could not be interpreted

    Examples:
        >>> parse_date("Tue, 10 Jan 2017 19:28:58 +0100")["time UTC"]
        '18:28:58'
    """
    value = text.strip()
    offset = ""
    zone_name = ""

    match = _DAY_MONTH_YEAR_TIME.match(value) or _MONTH_DAY_YEAR_TIME.match(value)
    if match:
        day = match.group("day").zfill(2)
        month = MONTHS[match.group("month").lower()]
        year = _expand_year(int(match.group("year")))
        time = _normalize_time(match.group("time"))
        offset = match.group("offset") or match.group("late_offset") or ""
        zone_name = (match.group("zone") or "").strip()
        if zone_name == "???":
            zone_name = ""
    else:
        match = _DOTTED.match(value)
        if match:
            day, month = match.group("day"), match.group("month")
            year = int(match.group("year"))
            time = _DEFAULT_TIME
        else:
            match = _DAY_MONTH_YEAR.match(value)
            if not match:
                logger.warning("unknown_date_format", date=text)
                return {}
            day = match.group("day")
            month = MONTHS[match.group("month").lower()]
            year = _expand_year(int(match.group("year")))
            time = _DEFAULT_TIME

    try:
        local = datetime.strptime(f"{year:04d}-{month}-{day} {time}", "%Y-%m-%d %H:%M:%S")
    except ValueError:
        logger.warning("invalid_calendar_date", date=text)
        return {}

    record = {
        "date": _format_date(local),
        "time": local.strftime("%H:%M:%S"),
        "timezone": "0000" if offset == "+0000" else offset,
    }
    if zone_name:
        record["timezone name"] = zone_name

    try:
        utc = local + _utc_shift(offset, zone_name)
    except OverflowError:
        utc = local
    record["date UTC"] = _format_date(utc)
    record["time UTC"] = utc.strftime("%H:%M:%S")
    return record
