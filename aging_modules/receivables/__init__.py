"""
Accounts Receivable Aging Module.

Customer invoices into per-customer dunning rows and drill-down lines.
Bucketing and aggregation come from the shared aging engine.
"""

from aging_modules.receivables.models import Invoice, InvoiceStatus
from aging_modules.receivables.service import (
    ReceivablesAgingService,
    build_report,
    compute_aging,
    customer_drill_down,
    open_items_from_invoices,
)

__all__ = [
    "Invoice",
    "InvoiceStatus",
    "ReceivablesAgingService",
    "build_report",
    "compute_aging",
    "customer_drill_down",
    "open_items_from_invoices",
]
