"""
Calendar -- Jalali / Gregorian date parsing at the input boundary.

Responsibility:
    Turn the date representations found in invoice sources into a single
    type, ``datetime.date``. Source documents carry Solar Hijri (Jalali)
    dates as ``YYYY/MM/DD`` strings, sometimes written with Persian digits;
    exports and APIs carry ISO ``YYYY-MM-DD`` Gregorian dates. Engines only
    ever see ``datetime.date``.

Architecture position:
    Kernel > Domain -- pure conversion helpers, zero I/O.

Invariants enforced:
    - Calendar conversion happens here and nowhere else.
    - ``parse_date`` never raises for bad input; it returns ``None`` and the
      caller decides the fallback.

Failure modes:
    - ``normalize_as_of`` raises TypeError for values that are not a date.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any

import jdatetime

from aging_kernel.logging_config import get_logger

logger = get_logger("domain.calendar")

# Years below this are read as Solar Hijri; Jalali years are currently ~1400.
JALALI_YEAR_CEILING = 1700
JALALI_YEAR_FLOOR = 1200

_DIGITS = str.maketrans(
    "۰۱۲۳۴۵۶۷۸۹٠١٢٣٤٥٦٧٨٩",
    "01234567890123456789",
)

_DATE_PATTERN = re.compile(r"^(\d{4})[/\-.](\d{1,2})[/\-.](\d{1,2})(?:[ T].*)?$")


def normalize_digits(value: str) -> str:
    """Replace Persian and Arabic-Indic digits with ASCII digits."""
    return value.translate(_DIGITS)


def is_jalali_year(year: int) -> bool:
    return JALALI_YEAR_FLOOR <= year < JALALI_YEAR_CEILING


def parse_date(value: Any) -> date | None:
    """
    Parse a document date.

    Accepts ``date``, ``datetime`` (time of day dropped), and strings of the
    form ``Y/M/D``, ``Y-M-D`` or ``Y.M.D`` in ASCII or Persian digits. Years
    in the Jalali range are converted to Gregorian.

    Returns:
        The Gregorian ``date``, or ``None`` if the value cannot be read.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        logger.warning("date_unparseable", extra={
            "value": repr(value),
            "reason": "unsupported_type",
        })
        return None

    text = normalize_digits(value.strip())
    match = _DATE_PATTERN.match(text)
    if match is None:
        logger.warning("date_unparseable", extra={
            "value": value,
            "reason": "unrecognized_format",
        })
        return None

    year, month, day = (int(part) for part in match.groups())
    try:
        if is_jalali_year(year):
            return jdatetime.date(year, month, day).togregorian()
        return date(year, month, day)
    except ValueError:
        logger.warning("date_unparseable", extra={
            "value": value,
            "reason": "out_of_range",
        })
        return None


def to_jalali_string(value: date) -> str:
    """Format a Gregorian date as a Jalali ``YYYY/MM/DD`` string."""
    jd = jdatetime.date.fromgregorian(date=value)
    return f"{jd.year:04d}/{jd.month:02d}/{jd.day:02d}"


def normalize_as_of(value: date | datetime | str) -> date:
    """
    Normalize a report as-of date to a calendar day.

    ``datetime`` values lose their time of day so bucketing is stable within
    a day regardless of wall-clock time. Strings go through ``parse_date``.

    Raises:
        TypeError: If the value is not a date and cannot be parsed as one.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        parsed = parse_date(value)
        if parsed is not None:
            return parsed
    raise TypeError(f"as_of_date must be a date, got {value!r}")
