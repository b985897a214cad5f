"""
aging_ingestion -- invoice lists from exported files.

Reads CSV, JSON / JSON Lines and XLSX exports through a source adapter and
maps each record to an ``Invoice`` (receivables) or ``SupplierInvoice``
(payables). Records that cannot be attributed to a counterparty are
skipped with a warning; everything else reaches the aging service, which
owns the remaining data-quality rules.

Architecture:
    aging_ingestion/ is a top-level package. Nothing in kernel/, engines/
    or modules/ imports from ingestion.

Usage:
    invoices = load_invoices(Path("invoices.csv"))
    bills = load_invoices(Path("bills.jsonl"), kind="ap")
"""

from __future__ import annotations

import json
import zipfile
from pathlib import Path
from typing import Any

from aging_ingestion.adapters import (
    CsvSourceAdapter,
    JsonSourceAdapter,
    SourceAdapter,
    SourceProbe,
    XlsxSourceAdapter,
)
from aging_ingestion.mapping import invoice_from_record, supplier_invoice_from_record
from aging_kernel.exceptions import SourceError, UnsupportedSourceFormatError
from aging_kernel.logging_config import get_logger

logger = get_logger("ingestion")

__all__ = [
    "KINDS",
    "adapter_for",
    "invoice_from_record",
    "load_invoices",
    "probe_source",
    "supplier_invoice_from_record",
]

KINDS = ("ar", "ap")

_MAPPERS = {
    "ar": invoice_from_record,
    "ap": supplier_invoice_from_record,
}


def adapter_for(path: Path, options: dict[str, Any]) -> tuple[SourceAdapter, dict[str, Any]]:
    """
    Adapter for the file's suffix, with the options it needs.

    ``.jsonl`` / ``.ndjson`` select the JSON adapter in JSON Lines mode.

    Raises:
        UnsupportedSourceFormatError: If no adapter handles the suffix.
    """
    suffix = path.suffix.lower()
    if suffix in (".csv", ".txt"):
        return CsvSourceAdapter(), options
    if suffix == ".json":
        return JsonSourceAdapter(), options
    if suffix in (".jsonl", ".ndjson"):
        return JsonSourceAdapter(), {**options, "format": "jsonl"}
    if suffix == ".xlsx":
        return XlsxSourceAdapter(), options
    raise UnsupportedSourceFormatError(str(path), suffix)


def load_invoices(
    path: Path | str,
    kind: str = "ar",
    options: dict[str, Any] | None = None,
) -> list[Any]:
    """
    Read an invoice export and map it to invoice models.

    Args:
        path: Source file (.csv, .txt, .json, .jsonl, .ndjson or .xlsx)
        kind: "ar" for customer invoices, "ap" for supplier invoices
        options: Adapter options (delimiter, encoding, json_path, sheet, ...)

    Returns:
        ``Invoice`` objects for "ar", ``SupplierInvoice`` objects for "ap",
        in source order

    Raises:
        ValueError: If ``kind`` is not "ar" or "ap".
        UnsupportedSourceFormatError: If the suffix has no adapter.
        SourceError: If the file is missing or cannot be decoded.
    """
    if kind not in _MAPPERS:
        raise ValueError(f"kind must be one of {KINDS}, got {kind!r}")
    path = Path(path)
    adapter, opts = adapter_for(path, dict(options or {}))
    if not path.is_file():
        raise SourceError(str(path), "file not found")

    mapper = _MAPPERS[kind]
    invoices: list[Any] = []
    skipped = 0
    try:
        for index, record in enumerate(adapter.read(path, opts)):
            mapped = mapper(record, index)
            if mapped is None:
                skipped += 1
            else:
                invoices.append(mapped)
    except (UnicodeDecodeError, json.JSONDecodeError, zipfile.BadZipFile) as e:
        raise SourceError(str(path), str(e)) from e

    logger.info("invoices_loaded", extra={
        "source": str(path),
        "kind": kind,
        "loaded_count": len(invoices),
        "skipped_count": skipped,
    })
    return invoices


def probe_source(path: Path | str, options: dict[str, Any] | None = None) -> SourceProbe:
    """Row count, columns and sample rows of a source file."""
    path = Path(path)
    adapter, opts = adapter_for(path, dict(options or {}))
    if not path.is_file():
        raise SourceError(str(path), "file not found")
    return adapter.probe(path, opts)
