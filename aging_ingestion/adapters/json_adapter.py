"""
JSON source adapter for invoice list exports.

Handles a JSON array (``[{...}, {...}]``), an array nested inside an API
envelope (``json_path`` such as ``"data.invoices"``) and JSON Lines (one
object per line, ``format: "jsonl"``). Non-object entries are skipped.
Keys are passed through unchanged; the record mapping matches them
regardless of casing or separator style.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterator

from aging_ingestion.adapters.base import SourceProbe

_SAMPLE_SIZE = 5


def _get_nested(data: Any, path: str) -> Any:
    """Follow dot-separated path into dict/list. Returns None if key missing."""
    if not path.strip():
        return data
    for key in path.split("."):
        key = key.strip()
        if not key:
            continue
        if isinstance(data, list):
            try:
                data = data[int(key)]
            except (ValueError, IndexError):
                return None
        elif isinstance(data, dict) and key in data:
            data = data[key]
        else:
            return None
    return data


def _all_keys(rows: list[dict[str, Any]]) -> tuple[str, ...]:
    """Union of keys from the sample rows, sorted."""
    seen: set[str] = set()
    for row in rows:
        seen.update(str(k) for k in row.keys())
    return tuple(sorted(seen))


class JsonSourceAdapter:
    """Read JSON array or JSON Lines files as one dict per record."""

    def _objects(self, source_path: Path, options: dict[str, Any]) -> Iterator[Any]:
        encoding = options.get("encoding", "utf-8")
        if options.get("format", "array") == "jsonl":
            with source_path.open("r", encoding=encoding) as f:
                for line in f:
                    line = line.strip()
                    if line:
                        yield json.loads(line)
            return

        with source_path.open("r", encoding=encoding) as f:
            data = json.load(f)
        json_path = options.get("json_path")
        root = _get_nested(data, json_path) if json_path else data
        if isinstance(root, list):
            yield from root

    def read(self, source_path: Path, options: dict[str, Any]) -> Iterator[dict[str, Any]]:
        for item in self._objects(source_path, options):
            if isinstance(item, dict):
                yield item

    def probe(self, source_path: Path, options: dict[str, Any]) -> SourceProbe:
        sample: list[dict[str, Any]] = []
        count = 0
        for row in self.read(source_path, options):
            count += 1
            if len(sample) < _SAMPLE_SIZE:
                sample.append(row)
        return SourceProbe(
            row_count=count,
            columns=_all_keys(sample),
            sample_rows=tuple(sample),
            encoding=options.get("encoding", "utf-8"),
            detected_delimiter=None,
        )
