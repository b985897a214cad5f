"""
Accounts Payable Domain Models (``aging_modules.payables.models``).

Responsibility
--------------
The supplier invoice as the payables aging report reads it, and its status
lifecycle in the ERP front-end.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from aging_modules._aging_helpers import parse_status


class SupplierInvoiceStatus(Enum):
    """Supplier invoice lifecycle states (values as stored by the ERP)."""
    DRAFT = "پیش‌نویس"
    REGISTERED = "ثبت شده"
    PARTIALLY_PAID = "پرداخت قسمتی"
    PAID = "پرداخت شده"
    CANCELLED = "لغو شده"

    @classmethod
    def parse(cls, value: Any) -> SupplierInvoiceStatus | None:
        return parse_status(cls, value)


@dataclass(frozen=True)
class SupplierInvoice:
    """A supplier invoice as read by the payables aging report."""
    supplier_id: str
    supplier_name: str
    invoice_date: date | str | None
    due_date: date | str | None
    total_amount: Decimal
    paid_amount: Decimal
    status: SupplierInvoiceStatus | None
    invoice_id: str = ""
    invoice_number: str | None = None  # supplier's own number
    purchase_order_id: str | None = None
