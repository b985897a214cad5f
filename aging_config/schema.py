"""
AgingConfig schema.

The runtime configuration of the aging reports. YAML files are parsed into
this frozen dataclass by ``aging_config.loader``; callers obtain it through
``aging_config.get_active_config()``.

Statuses are stored as enum member *names* (``"SENT"``, ``"PARTIALLY_PAID"``)
so the YAML stays ASCII; ``aging_modules`` resolves them to its status enums.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from aging_engines.aging import STANDARD_BUCKETS, AgeBucket

DEFAULT_RECEIVABLE_OPEN_STATUSES: frozenset[str] = frozenset({
    "POSTED",
    "SENT",
    "PARTIALLY_PAID",
    "OVERDUE",
})

DEFAULT_PAYABLE_OPEN_STATUSES: frozenset[str] = frozenset({
    "REGISTERED",
    "PARTIALLY_PAID",
})


@dataclass(frozen=True)
class AgingConfig:
    """
    Configuration for AR and AP aging.

    Field defaults match the dunning report of the ERP front-end:
    five buckets (current, 1-30, 31-60, 61-90, over90), rial amounts, and
    a settlement tolerance derived from the currency's precision.
    """

    currency: str = "IRR"
    buckets: tuple[AgeBucket, ...] = STANDARD_BUCKETS
    receivable_open_statuses: frozenset[str] = DEFAULT_RECEIVABLE_OPEN_STATUSES
    payable_open_statuses: frozenset[str] = DEFAULT_PAYABLE_OPEN_STATUSES
    # None = derive from the currency's decimal places
    settlement_tolerance: Decimal | None = None
    use_due_date: bool = True
    checksum: str | None = None
    source: str | None = None
