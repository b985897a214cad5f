"""
Accounts Payable Aging Service -- supplier invoices into aging rows.

Mirrors the receivables service for the supplier side: registered and
partially-paid supplier invoices are aged by due date and aggregated per
supplier by the shared AgingCalculator.

Usage:
    rows = compute_payables_aging(supplier_invoices, date(2024, 6, 1))
    rows[0].to_dict(id_key="supplier_id", name_key="supplier_name")
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
from aging_modules.payables.models import SupplierInvoice, SupplierInvoiceStatus

logger = get_logger("modules.payables.service")

_calculator = AgingCalculator()


def open_items_from_supplier_invoices(
    invoices: Iterable[SupplierInvoice],
    as_of_date: date,
    config: AgingConfig,
) -> list[OpenItem]:
    """Open items for every supplier invoice in an open status."""
    open_statuses = resolve_statuses(config.payable_open_statuses, SupplierInvoiceStatus)
    items: list[OpenItem] = []

    for index, invoice in enumerate(invoices):
        if SupplierInvoiceStatus.parse(invoice.status) not in open_statuses:
            continue
        document_id = invoice.invoice_id or invoice.invoice_number or f"{invoice.supplier_id}#{index}"
        items.append(build_open_item(
            document_id=document_id,
            counterparty_id=invoice.supplier_id,
            counterparty_name=invoice.supplier_name,
            document_date=invoice.invoice_date,
            due_date=invoice.due_date,
            total=invoice.total_amount,
            paid_amount=invoice.paid_amount,
            currency=config.currency,
            as_of_date=as_of_date,
            reference=invoice.invoice_number,
            document_type="supplier_invoice",
        ))
    return items


def compute_payables_aging(
    invoices: Iterable[SupplierInvoice],
    as_of_date: date | datetime,
    config: AgingConfig | None = None,
) -> list[AgingRow]:
    """Per-supplier aging rows, largest total first."""
    config = config or AgingConfig()
    as_of = normalize_as_of(as_of_date)
    rows = _calculator.aggregate(
        items=open_items_from_supplier_invoices(invoices, as_of, config),
        as_of_date=as_of,
        buckets=config.buckets,
        tolerance=config.settlement_tolerance,
        currency=config.currency,
        use_due_date=config.use_due_date,
    )
    return list(rows)


def build_payables_report(
    invoices: Iterable[SupplierInvoice],
    as_of_date: date | datetime,
    config: AgingConfig | None = None,
) -> AgingReport:
    config = config or AgingConfig()
    as_of = normalize_as_of(as_of_date)
    return _calculator.generate_report(
        items=open_items_from_supplier_invoices(invoices, as_of, config),
        as_of_date=as_of,
        currency=config.currency,
        buckets=config.buckets,
        tolerance=config.settlement_tolerance,
        report_type="AP",
        use_due_date=config.use_due_date,
    )


def supplier_drill_down(
    invoices: Iterable[SupplierInvoice],
    supplier_id: str,
    as_of_date: date | datetime,
    config: AgingConfig | None = None,
) -> tuple[DrillDownLine, ...]:
    config = config or AgingConfig()
    as_of = normalize_as_of(as_of_date)
    own = [inv for inv in invoices if inv.supplier_id == supplier_id]
    return _calculator.drill_down(
        items=open_items_from_supplier_invoices(own, as_of, config),
        counterparty_id=supplier_id,
        as_of_date=as_of,
        buckets=config.buckets,
        tolerance=config.settlement_tolerance,
        currency=config.currency,
        use_due_date=config.use_due_date,
    )


class PayablesAgingService:
    """Payables aging with configuration and clock injected."""

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
        invoices: Sequence[SupplierInvoice],
        as_of_date: date | datetime | None = None,
    ) -> list[AgingRow]:
        as_of = self._as_of(as_of_date)
        logger.info("ap_aging_started", extra={
            "as_of_date": as_of.isoformat(),
            "invoice_count": len(invoices),
        })
        return compute_payables_aging(invoices, as_of, self._config)

    def report(
        self,
        invoices: Sequence[SupplierInvoice],
        as_of_date: date | datetime | None = None,
    ) -> AgingReport:
        return build_payables_report(invoices, self._as_of(as_of_date), self._config)

    def drill_down(
        self,
        invoices: Sequence[SupplierInvoice],
        supplier_id: str,
        as_of_date: date | datetime | None = None,
    ) -> tuple[DrillDownLine, ...]:
        return supplier_drill_down(invoices, supplier_id, self._as_of(as_of_date), self._config)
