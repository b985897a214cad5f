"""
Accounts Receivable Aging Service -- customer invoices into dunning rows.

Thin glue layer that:
1. Filters invoices to the open statuses from configuration
2. Converts each invoice into an ``OpenItem`` (remaining balance, dates
   through the calendar boundary)
3. Calls AgingCalculator for bucketing and per-customer aggregation

All computation lives in the engine. The module functions are pure: when
no config is passed they use ``AgingConfig()`` defaults and read no files.
``ReceivablesAgingService`` loads the active configuration once and reads
"today" from an injected Clock when no as-of date is given.

Usage:
    rows = compute_aging(invoices, date(2024, 6, 1))
    rows[0].to_dict(id_key="customer_id", name_key="customer_name")
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Sequence

from aging_config.schema import AgingConfig
from aging_engines.aging import (
    AgingCalculator,
    AgingReport,
    AgingRow,
    DrillDownLine,
    OpenItem,
)
from aging_kernel.domain.calendar import normalize_as_of
from aging_kernel.domain.clock import Clock, SystemClock
from aging_kernel.logging_config import get_logger
from aging_modules._aging_helpers import build_open_item, resolve_statuses
from aging_modules.receivables.models import Invoice, InvoiceStatus

logger = get_logger("modules.receivables.service")

_calculator = AgingCalculator()


def open_items_from_invoices(
    invoices: Iterable[Invoice],
    as_of_date: date,
    config: AgingConfig,
) -> list[OpenItem]:
    """
    Open items for every invoice in an open status.

    Issue-date qualification and the settlement tolerance are applied by the
    engine; this step only filters on status and normalizes fields.
    """
    open_statuses = resolve_statuses(config.receivable_open_statuses, InvoiceStatus)
    items: list[OpenItem] = []
    skipped = 0

    for index, invoice in enumerate(invoices):
        status = InvoiceStatus.parse(invoice.status)
        if status not in open_statuses:
            skipped += 1
            continue
        document_id = invoice.invoice_id or invoice.invoice_number or f"{invoice.customer_id}#{index}"
        items.append(build_open_item(
            document_id=document_id,
            counterparty_id=invoice.customer_id,
            counterparty_name=invoice.customer_name,
            document_date=invoice.issue_date,
            due_date=invoice.due_date,
            total=invoice.total,
            paid_amount=invoice.paid_amount,
            currency=config.currency,
            as_of_date=as_of_date,
            reference=invoice.invoice_number,
        ))

    logger.debug("receivables_open_items_built", extra={
        "open_count": len(items),
        "skipped_status_count": skipped,
    })
    return items


def compute_aging(
    invoices: Iterable[Invoice],
    as_of_date: date | datetime,
    config: AgingConfig | None = None,
) -> list[AgingRow]:
    """
    Per-customer aging rows for the given invoices.

    Args:
        invoices: Customer invoices, any order, may be empty
        as_of_date: Report date; a datetime loses its time of day
        config: Aging configuration (defaults to ``AgingConfig()``)

    Returns:
        Rows with a positive outstanding balance, largest total first
    """
    config = config or AgingConfig()
    as_of = normalize_as_of(as_of_date)
    items = open_items_from_invoices(invoices, as_of, config)
    rows = _calculator.aggregate(
        items=items,
        as_of_date=as_of,
        buckets=config.buckets,
        tolerance=config.settlement_tolerance,
        currency=config.currency,
        use_due_date=config.use_due_date,
    )
    return list(rows)


def build_report(
    invoices: Iterable[Invoice],
    as_of_date: date | datetime,
    config: AgingConfig | None = None,
) -> AgingReport:
    """Full AR aging report (rows plus bucket totals)."""
    config = config or AgingConfig()
    as_of = normalize_as_of(as_of_date)
    items = open_items_from_invoices(invoices, as_of, config)
    return _calculator.generate_report(
        items=items,
        as_of_date=as_of,
        currency=config.currency,
        buckets=config.buckets,
        tolerance=config.settlement_tolerance,
        report_type="AR",
        use_due_date=config.use_due_date,
    )


def customer_drill_down(
    invoices: Iterable[Invoice],
    customer_id: str,
    as_of_date: date | datetime,
    config: AgingConfig | None = None,
) -> tuple[DrillDownLine, ...]:
    """Outstanding invoices of one customer, most overdue first."""
    config = config or AgingConfig()
    as_of = normalize_as_of(as_of_date)
    own = [inv for inv in invoices if inv.customer_id == customer_id]
    items = open_items_from_invoices(own, as_of, config)
    return _calculator.drill_down(
        items=items,
        counterparty_id=customer_id,
        as_of_date=as_of,
        buckets=config.buckets,
        tolerance=config.settlement_tolerance,
        currency=config.currency,
        use_due_date=config.use_due_date,
    )


class ReceivablesAgingService:
    """
    Receivables aging with configuration and clock injected.

    The as-of date defaults to the clock's today; everything else delegates
    to the module functions.
    """

    def __init__(
        self,
        config: AgingConfig | None = None,
        clock: Clock | None = None,
    ):
        if config is None:
            from aging_config import get_active_config

            config = get_active_config()
        self._config = config
        self._clock = clock or SystemClock()

    @property
    def config(self) -> AgingConfig:
        return self._config

    def _as_of(self, as_of_date: date | datetime | None) -> date:
        return normalize_as_of(as_of_date if as_of_date is not None else self._clock.today())

    def aging(
        self,
        invoices: Sequence[Invoice],
        as_of_date: date | datetime | None = None,
    ) -> list[AgingRow]:
        as_of = self._as_of(as_of_date)
        logger.info("ar_aging_started", extra={
            "as_of_date": as_of.isoformat(),
            "invoice_count": len(invoices),
        })
        rows = compute_aging(invoices, as_of, self._config)
        logger.info("ar_aging_completed", extra={
            "as_of_date": as_of.isoformat(),
            "row_count": len(rows),
        })
        return rows

    def report(
        self,
        invoices: Sequence[Invoice],
        as_of_date: date | datetime | None = None,
    ) -> AgingReport:
        return build_report(invoices, self._as_of(as_of_date), self._config)

    def drill_down(
        self,
        invoices: Sequence[Invoice],
        customer_id: str,
        as_of_date: date | datetime | None = None,
    ) -> tuple[DrillDownLine, ...]:
        return customer_drill_down(invoices, customer_id, self._as_of(as_of_date), self._config)
