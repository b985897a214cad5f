"""
Record mapping: source dicts to ``Invoice`` / ``SupplierInvoice``.

Exports disagree on column naming (``customerId``, ``customer_id``,
``Customer ID``, ``مشتری``). Keys are normalized by lowercasing and
dropping spaces, underscores, hyphens and ZWNJ, then looked up against a
short alias list per field.

Mapping never raises on data quality:
  - amounts may use Persian digits and thousands separators; a missing
    amount reads as 0, an unreadable one becomes 0 with a warning;
  - dates are kept as given and parsed later by the aging service;
  - an unrecognized status becomes ``None`` and the invoice never
    qualifies for aging.
A record with no counterparty id cannot be attributed to a row and is
skipped (``None`` returned, warning logged).
"""

from __future__ import annotations

import re
from decimal import Decimal
from typing import Any

from aging_kernel.domain.calendar import normalize_digits
from aging_kernel.logging_config import get_logger
from aging_modules._aging_helpers import coerce_amount
from aging_modules.payables.models import SupplierInvoice, SupplierInvoiceStatus
from aging_modules.receivables.models import Invoice, InvoiceStatus

logger = get_logger("ingestion.mapping")

_KEY_NOISE = re.compile(r"[\s_\-\u200c]+")
# Thousands separators: ASCII comma, Arabic thousands separator, Arabic comma
_GROUPING = re.compile(r"[,\u066c\u060c\s]")

_INVOICE_FIELDS: dict[str, tuple[str, ...]] = {
    "invoice_id": ("invoiceid", "id"),
    "invoice_number": ("invoicenumber", "invoiceno", "number", "شمارهفاکتور"),
    "customer_id": ("customerid", "customer", "شناسهمشتری", "مشتری"),
    "customer_name": ("customername", "name", "ناممشتری"),
    "issue_date": ("issuedate", "invoicedate", "date", "تاریخ", "تاریخصدور"),
    "due_date": ("duedate", "سررسید", "تاریخسررسید"),
    "total": ("total", "totalamount", "amount", "مبلغ", "مبلغکل"),
    "paid_amount": ("paidamount", "paid", "پرداختشده", "مبلغپرداختی"),
    "status": ("status", "وضعیت"),
}

_SUPPLIER_INVOICE_FIELDS: dict[str, tuple[str, ...]] = {
    "invoice_id": ("invoiceid", "id"),
    "invoice_number": ("invoicenumber", "invoiceno", "number", "شمارهفاکتور"),
    "supplier_id": ("supplierid", "vendorid", "supplier", "شناسهتامینکننده", "تامینکننده"),
    "supplier_name": ("suppliername", "vendorname", "name", "نامتامینکننده"),
    "invoice_date": ("invoicedate", "issuedate", "date", "تاریخ", "تاریخفاکتور"),
    "due_date": ("duedate", "سررسید", "تاریخسررسید"),
    "total_amount": ("totalamount", "total", "amount", "مبلغ", "مبلغکل"),
    "paid_amount": ("paidamount", "paid", "پرداختشده", "مبلغپرداختی"),
    "status": ("status", "وضعیت"),
    "purchase_order_id": ("purchaseorderid", "poid", "purchaseorder"),
}


def normalize_key(key: Any) -> str:
    """``"Customer ID"``, ``"customer_id"`` and ``"customerId"`` all give ``"customerid"``."""
    return _KEY_NOISE.sub("", str(key)).lower()


def _pick(record: dict[str, Any], fields: dict[str, tuple[str, ...]]) -> dict[str, Any]:
    normalized = {normalize_key(k): v for k, v in record.items()}
    picked: dict[str, Any] = {}
    for field_name, aliases in fields.items():
        for alias in aliases:
            value = normalized.get(alias)
            if value is not None and value != "":
                picked[field_name] = value
                break
    return picked


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _amount(value: Any, field_name: str, document_id: str) -> Decimal:
    """Amount with localized digits and grouping removed, then coerced."""
    if isinstance(value, str):
        value = _GROUPING.sub("", normalize_digits(value)).replace("\u066b", ".")
    return coerce_amount(value, field_name, document_id)


def _status(enum_cls: Any, raw: Any, document_id: str) -> Any:
    status = enum_cls.parse(raw)
    if status is None and raw is not None:
        logger.warning("ingestion_status_unrecognized", extra={
            "document_id": document_id,
            "value": repr(raw),
        })
    return status


def invoice_from_record(record: dict[str, Any], index: int = 0) -> Invoice | None:
    """
    Build a customer ``Invoice`` from one source record.

    Args:
        record: Raw record from a source adapter
        index: Position in the source, used in log entries when the record
            carries no invoice id or number

    Returns:
        The invoice, or None when the record has no customer id
    """
    f = _pick(record, _INVOICE_FIELDS)
    invoice_id = _text(f.get("invoice_id")) or ""
    invoice_number = _text(f.get("invoice_number"))
    document_id = invoice_id or invoice_number or f"record#{index}"

    customer_id = _text(f.get("customer_id"))
    if customer_id is None:
        logger.warning("ingestion_record_skipped", extra={
            "document_id": document_id,
            "reason": "missing customer id",
        })
        return None

    return Invoice(
        customer_id=customer_id,
        customer_name=_text(f.get("customer_name")) or customer_id,
        issue_date=f.get("issue_date"),
        due_date=f.get("due_date"),
        total=_amount(f.get("total"), "total", document_id),
        paid_amount=_amount(f.get("paid_amount"), "paid_amount", document_id),
        status=_status(InvoiceStatus, f.get("status"), document_id),
        invoice_id=invoice_id,
        invoice_number=invoice_number,
    )


def supplier_invoice_from_record(record: dict[str, Any], index: int = 0) -> SupplierInvoice | None:
    """Build a ``SupplierInvoice`` from one source record; None without a supplier id."""
    f = _pick(record, _SUPPLIER_INVOICE_FIELDS)
    invoice_id = _text(f.get("invoice_id")) or ""
    invoice_number = _text(f.get("invoice_number"))
    document_id = invoice_id or invoice_number or f"record#{index}"

    supplier_id = _text(f.get("supplier_id"))
    if supplier_id is None:
        logger.warning("ingestion_record_skipped", extra={
            "document_id": document_id,
            "reason": "missing supplier id",
        })
        return None

    return SupplierInvoice(
        supplier_id=supplier_id,
        supplier_name=_text(f.get("supplier_name")) or supplier_id,
        invoice_date=f.get("invoice_date"),
        due_date=f.get("due_date"),
        total_amount=_amount(f.get("total_amount"), "total_amount", document_id),
        paid_amount=_amount(f.get("paid_amount"), "paid_amount", document_id),
        status=_status(SupplierInvoiceStatus, f.get("status"), document_id),
        invoice_id=invoice_id,
        invoice_number=invoice_number,
        purchase_order_id=_text(f.get("purchase_order_id")),
    )
