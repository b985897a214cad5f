"""
XLSX source adapter for invoice lists exported from spreadsheets.

Options:
  sheet: 0-based sheet index (int) or sheet name (str). Default: active sheet.
  skip_rows: rows to skip at the top of the sheet before the header.
  header_row: 0-based row index (after skip_rows) holding the column names.
    When omitted, the first of the top 15 rows that names at least two
    invoice columns (customer, due date, total, status, ...) is used.

Cells keep their workbook types: dates stay ``datetime``, whole floats
become ``int``, text is stripped, empty cells become "".
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Iterator

import openpyxl

from aging_ingestion.adapters.base import SourceProbe
from aging_kernel.exceptions import SourceError

# Normalized (lowercase, no separators) header names that mark an invoice table
_HEADER_KEYWORDS = frozenset({
    "customer", "customerid", "customername", "supplier", "supplierid", "suppliername",
    "invoice", "invoiceid", "invoicenumber", "issuedate", "invoicedate", "date",
    "duedate", "total", "totalamount", "amount", "paid", "paidamount", "status",
    "مشتری", "تامینکننده", "تاریخ", "سررسید", "مبلغ", "وضعیت",
})

_MAX_HEADER_SEARCH = 15
_SAMPLE_SIZE = 5


def _keyword(value: Any) -> str:
    return re.sub(r"[\s_\-\u200c]+", "", str(value)).lower()


def _cell_value(cell: Any) -> Any:
    v = getattr(cell, "value", None)
    if v is None:
        return ""
    if isinstance(v, float) and v.is_integer():
        return int(v)
    if isinstance(v, str):
        return v.strip()
    return v


def _detect_header_row(rows: list[tuple[Any, ...]]) -> int:
    """0-based index of the first row naming at least two invoice columns."""
    for i, row in enumerate(rows[:_MAX_HEADER_SEARCH]):
        hits = {_keyword(v) for v in row if v != ""} & _HEADER_KEYWORDS
        if len(hits) >= 2:
            return i
    return 0


def _headers(row: tuple[Any, ...]) -> list[str]:
    headers: list[str] = []
    for c, v in enumerate(row):
        key = re.sub(r"\s+", " ", str(v)).strip() or f"Column_{c + 1}"
        base, n = key, 0
        while key in headers:
            n += 1
            key = f"{base}_{n}"
        headers.append(key)
    # Trailing unnamed columns carry no data
    while headers and headers[-1].startswith("Column_") and not str(row[len(headers) - 1]).strip():
        headers.pop()
    return headers


class XlsxSourceAdapter:
    """Read .xlsx files as one dict per row under the detected header."""

    def _table(self, source_path: Path, options: dict[str, Any]) -> tuple[list[str], list[tuple[Any, ...]]]:
        wb = openpyxl.load_workbook(source_path, read_only=True, data_only=True)
        try:
            sheet = self._get_sheet(wb, source_path, options)
            skip_rows = int(options.get("skip_rows", 0))
            rows = [
                tuple(_cell_value(c) for c in row)
                for row in sheet.iter_rows(min_row=1 + skip_rows)
            ]
        finally:
            wb.close()
        if not rows:
            return [], []

        header_row = options.get("header_row")
        hi = int(header_row) if header_row is not None else _detect_header_row(rows)
        if not 0 <= hi < len(rows):
            raise SourceError(
                str(source_path), f"header row {hi} is outside the sheet ({len(rows)} rows)"
            )
        headers = _headers(rows[hi])
        body = [r for r in rows[hi + 1:] if any(v != "" for v in r[:len(headers)])]
        return headers, body

    def _get_sheet(self, wb: Any, source_path: Path, options: dict[str, Any]) -> Any:
        sheet_ref = options.get("sheet")
        if sheet_ref is None:
            return wb.active
        if isinstance(sheet_ref, int):
            if not 0 <= sheet_ref < len(wb.worksheets):
                raise SourceError(
                    str(source_path),
                    f"sheet index {sheet_ref} not found ({len(wb.worksheets)} sheets)",
                )
            return wb.worksheets[sheet_ref]
        if sheet_ref not in wb.sheetnames:
            raise SourceError(
                str(source_path),
                f"sheet {sheet_ref!r} not found; sheets are {wb.sheetnames}",
            )
        return wb[sheet_ref]

    def read(self, source_path: Path, options: dict[str, Any]) -> Iterator[dict[str, Any]]:
        headers, body = self._table(source_path, options)
        for row in body:
            yield dict(zip(headers, row))

    def probe(self, source_path: Path, options: dict[str, Any]) -> SourceProbe:
        headers, body = self._table(source_path, options)
        return SourceProbe(
            row_count=len(body),
            columns=tuple(headers),
            sample_rows=tuple(dict(zip(headers, r)) for r in body[:_SAMPLE_SIZE]),
            encoding=None,
            detected_delimiter=None,
        )
