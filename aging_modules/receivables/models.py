"""
Accounts Receivable Domain Models (``aging_modules.receivables.models``).

Responsibility
--------------
The customer invoice as the aging report reads it, and the invoice status
lifecycle of the ERP front-end.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.

Invariants enforced
-------------------
* Models are ``frozen=True``.
* Monetary fields are ``Decimal``.
* Dates are accepted as given (``date``, Jalali / ISO string, or ``None``);
  conversion happens in the service through the calendar boundary.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from aging_modules._aging_helpers import coerce_amount, parse_status


class InvoiceStatus(Enum):
    """Customer invoice lifecycle states (values as stored by the ERP)."""
    DRAFT = "پیش‌نویس"
    POSTED = "ثبت نهایی"
    SENT = "ارسال شده"
    PARTIALLY_PAID = "پرداخت قسمتی"
    PAID = "پرداخت شده"
    CANCELLED = "لغو شده"
    OVERDUE = "معوق"

    @classmethod
    def parse(cls, value: Any) -> InvoiceStatus | None:
        """Status from a member, member name, or stored value; None if unknown."""
        return parse_status(cls, value)


@dataclass(frozen=True)
class Invoice:
    """A customer invoice as read by the receivables aging report."""
    customer_id: str
    customer_name: str
    issue_date: date | str | None
    due_date: date | str | None
    total: Decimal
    paid_amount: Decimal
    status: InvoiceStatus | None
    invoice_id: str = ""
    invoice_number: str | None = None

    @property
    def remaining(self) -> Decimal:
        """Total minus paid; negative when overpaid. Unreadable amounts count as 0."""
        doc = self.invoice_number or self.invoice_id
        return (
            coerce_amount(self.total, "total", doc)
            - coerce_amount(self.paid_amount, "paid_amount", doc)
        )
