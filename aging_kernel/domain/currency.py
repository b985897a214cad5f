"""
Currency precision table for aging reports.

A remaining balance at or below one minor unit of the report currency is
treated as settled, so every currency an invoice export can carry needs a
known number of decimal places. Lenient lookups fall back to two places
for codes outside the table; ``validate`` does not.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import ClassVar

DEFAULT_DECIMAL_PLACES = 2


@dataclass(frozen=True)
class CurrencyInfo:
    """Precision and display name of one ISO 4217 currency."""

    code: str
    decimal_places: int
    name: str

    @property
    def rounding_tolerance(self) -> Decimal:
        """One minor unit: 0.01 for two places, 1 for zero places."""
        return Decimal(1).scaleb(-self.decimal_places)


# (code, decimal places, name); ISO 4217
_TABLE: tuple[tuple[str, int, str], ...] = (
    ("IRR", 2, "Iranian Rial"),
    ("AED", 2, "UAE Dirham"),
    ("AFN", 2, "Afghan Afghani"),
    ("AMD", 2, "Armenian Dram"),
    ("AZN", 2, "Azerbaijan Manat"),
    ("IQD", 3, "Iraqi Dinar"),
    ("KWD", 3, "Kuwaiti Dinar"),
    ("BHD", 3, "Bahraini Dinar"),
    ("OMR", 3, "Omani Rial"),
    ("QAR", 2, "Qatari Riyal"),
    ("SAR", 2, "Saudi Riyal"),
    ("TRY", 2, "Turkish Lira"),
    ("PKR", 2, "Pakistani Rupee"),
    ("CNY", 2, "Chinese Yuan"),
    ("RUB", 2, "Russian Ruble"),
    ("INR", 2, "Indian Rupee"),
    ("USD", 2, "US Dollar"),
    ("EUR", 2, "Euro"),
    ("GBP", 2, "Pound Sterling"),
    ("CHF", 2, "Swiss Franc"),
    ("JPY", 0, "Japanese Yen"),
    ("KRW", 0, "South Korean Won"),
)


def _normalize(code: object) -> str:
    return code.strip().upper() if isinstance(code, str) else ""


class CurrencyRegistry:
    """Lookups over the currency table."""

    _CURRENCIES: ClassVar[dict[str, CurrencyInfo]] = {
        code: CurrencyInfo(code, places, name) for code, places, name in _TABLE
    }

    @classmethod
    def is_valid(cls, code: str) -> bool:
        return _normalize(code) in cls._CURRENCIES

    @classmethod
    def get_info(cls, code: str) -> CurrencyInfo | None:
        return cls._CURRENCIES.get(_normalize(code))

    @classmethod
    def get_decimal_places(cls, code: str) -> int:
        info = cls.get_info(code)
        return info.decimal_places if info else DEFAULT_DECIMAL_PLACES

    @classmethod
    def get_rounding_tolerance(cls, code: str) -> Decimal:
        """Settlement tolerance for ``code``; unknown codes get 0.01."""
        return Decimal(1).scaleb(-cls.get_decimal_places(code))

    @classmethod
    def validate(cls, code: str) -> str:
        """
        Normalized code.

        Raises:
            ValueError: If the code is not three letters or not in the table.
        """
        normalized = _normalize(code)
        if len(normalized) != 3:
            raise ValueError(f"Currency code must be 3 characters: {code!r}")
        if normalized not in cls._CURRENCIES:
            raise ValueError(f"Invalid ISO 4217 currency code: {code!r}")
        return normalized

    @classmethod
    def all_codes(cls) -> frozenset[str]:
        return frozenset(cls._CURRENCIES)

    @classmethod
    def format_amount(cls, amount: Decimal, code: str) -> str:
        """Grouped amount at the currency's precision: ``1,250,000.00``."""
        places = cls.get_decimal_places(code)
        return f"{amount:,.{places}f}"
