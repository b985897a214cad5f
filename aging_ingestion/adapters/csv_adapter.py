"""
CSV source adapter for invoice list exports.

Uses csv.DictReader. Options: delimiter, encoding, skip_rows, quoting, and
``columns`` for header-less files. A utf-8 file is read as utf-8-sig so the
BOM that spreadsheet exports prepend does not leak into the first column
name. Fully blank lines are skipped.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Any, Iterator

from aging_ingestion.adapters.base import SourceProbe

_QUOTING = {
    "minimal": csv.QUOTE_MINIMAL,
    "all": csv.QUOTE_ALL,
    "nonnumeric": csv.QUOTE_NONNUMERIC,
    "none": csv.QUOTE_NONE,
}

_SAMPLE_SIZE = 5


def _get_encoding(options: dict[str, Any]) -> str:
    enc = options.get("encoding", "utf-8")
    if enc.lower() in ("utf-8", "utf8"):
        return "utf-8-sig"
    return enc


def _get_quoting(options: dict[str, Any]) -> int:
    q = options.get("quoting", "minimal")
    if isinstance(q, int):
        return q
    return _QUOTING.get(str(q).lower(), csv.QUOTE_MINIMAL)


def _is_blank(row: dict[str, Any]) -> bool:
    return all(v is None or not str(v).strip() for v in row.values())


class CsvSourceAdapter:
    """Read CSV files as one dict per row."""

    def _records(self, f: Any, options: dict[str, Any]) -> Iterator[dict[str, Any]]:
        delimiter = options.get("delimiter", ",")
        quoting = _get_quoting(options)
        for _ in range(int(options.get("skip_rows", 0))):
            next(f, None)

        columns = options.get("columns")
        if columns:
            reader = csv.DictReader(f, fieldnames=list(columns), delimiter=delimiter, quoting=quoting)
        else:
            reader = csv.DictReader(f, delimiter=delimiter, quoting=quoting)
        for row in reader:
            # DictReader puts surplus cells under the None key
            row.pop(None, None)
            if _is_blank(row):
                continue
            yield {k.strip(): v for k, v in row.items()}

    def read(self, source_path: Path, options: dict[str, Any]) -> Iterator[dict[str, Any]]:
        with source_path.open("r", encoding=_get_encoding(options), newline="") as f:
            yield from self._records(f, options)

    def probe(self, source_path: Path, options: dict[str, Any]) -> SourceProbe:
        encoding = _get_encoding(options)
        sample: list[dict[str, Any]] = []
        count = 0
        with source_path.open("r", encoding=encoding, newline="") as f:
            for row in self._records(f, options):
                count += 1
                if len(sample) < _SAMPLE_SIZE:
                    sample.append(row)

        columns: tuple[str, ...] = tuple(options.get("columns") or ())
        if not columns and sample:
            columns = tuple(sample[0].keys())
        return SourceProbe(
            row_count=count,
            columns=columns,
            sample_rows=tuple(sample),
            encoding=encoding,
            detected_delimiter=options.get("delimiter", ","),
        )
