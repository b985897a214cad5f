"""
Pytest fixtures for the aging test suite.

Provides:
- Structured logging setup and a JSON log capture fixture
- A deterministic clock
- Invoice / supplier invoice factories with sensible defaults
"""

import json
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from io import StringIO

import pytest

from aging_kernel.domain.clock import DeterministicClock
from aging_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from aging_modules.payables.models import SupplierInvoice, SupplierInvoiceStatus
from aging_modules.receivables.models import Invoice, InvoiceStatus

AS_OF = date(2024, 6, 1)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture aging_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            compute_aging(invoices, AS_OF)
            logs = captured_logs()
            assert any(r["message"] == "aging_aggregate_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("aging_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Clock fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock():
    """Clock fixed at the suite's as-of date."""
    return DeterministicClock(datetime(2024, 6, 1, 9, 30, tzinfo=timezone.utc))


# =============================================================================
# Invoice factories
# =============================================================================


@pytest.fixture
def make_invoice():
    """
    Build a customer Invoice; ``days_overdue`` sets the due date relative
    to AS_OF (issue date is 30 days before the due date).
    """
    counter = {"n": 0}

    def _make(
        customer_id: str = "C-1",
        total: str = "1000",
        paid: str = "0",
        days_overdue: int = 0,
        status: InvoiceStatus | str | None = InvoiceStatus.SENT,
        customer_name: str | None = None,
        **overrides,
    ) -> Invoice:
        counter["n"] += 1
        due = date.fromordinal(AS_OF.toordinal() - days_overdue)
        fields = dict(
            customer_id=customer_id,
            customer_name=customer_name or f"Customer {customer_id}",
            issue_date=date.fromordinal(due.toordinal() - 30),
            due_date=due,
            total=Decimal(total),
            paid_amount=Decimal(paid),
            status=status,
            invoice_id=f"INV-{counter['n']:04d}",
            invoice_number=f"F-{counter['n']}",
        )
        fields.update(overrides)
        return Invoice(**fields)

    return _make


@pytest.fixture
def make_supplier_invoice():
    """Build a SupplierInvoice; same conventions as ``make_invoice``."""
    counter = {"n": 0}

    def _make(
        supplier_id: str = "S-1",
        total: str = "1000",
        paid: str = "0",
        days_overdue: int = 0,
        status: SupplierInvoiceStatus | str | None = SupplierInvoiceStatus.REGISTERED,
        **overrides,
    ) -> SupplierInvoice:
        counter["n"] += 1
        due = date.fromordinal(AS_OF.toordinal() - days_overdue)
        fields = dict(
            supplier_id=supplier_id,
            supplier_name=f"Supplier {supplier_id}",
            invoice_date=date.fromordinal(due.toordinal() - 30),
            due_date=due,
            total_amount=Decimal(total),
            paid_amount=Decimal(paid),
            status=status,
            invoice_id=f"BILL-{counter['n']:04d}",
        )
        fields.update(overrides)
        return SupplierInvoice(**fields)

    return _make
