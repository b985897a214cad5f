"""
Pure domain layer.

Value objects and boundary helpers with NO dependencies on:
- Files or network
- Wall-clock time (except ``SystemClock``)

All value objects are immutable and deterministic.
"""

from aging_kernel.domain.calendar import (
    normalize_as_of,
    parse_date,
    to_jalali_string,
)
from aging_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from aging_kernel.domain.currency import CurrencyInfo, CurrencyRegistry
from aging_kernel.domain.values import Currency, Money

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "CurrencyInfo",
    "CurrencyRegistry",
    "Currency",
    "Money",
    "normalize_as_of",
    "parse_date",
    "to_jalali_string",
]
