"""
Accounts Payable Aging Module.

Supplier invoices into per-supplier aging rows and drill-down lines.
"""

from aging_modules.payables.models import SupplierInvoice, SupplierInvoiceStatus
from aging_modules.payables.service import (
    PayablesAgingService,
    build_payables_report,
    compute_payables_aging,
    open_items_from_supplier_invoices,
    supplier_drill_down,
)

__all__ = [
    "SupplierInvoice",
    "SupplierInvoiceStatus",
    "PayablesAgingService",
    "build_payables_report",
    "compute_payables_aging",
    "open_items_from_supplier_invoices",
    "supplier_drill_down",
]
