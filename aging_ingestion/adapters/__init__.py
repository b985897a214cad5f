"""Source adapters: CSV, JSON and XLSX invoice exports to record dicts."""

from aging_ingestion.adapters.base import SourceAdapter, SourceProbe
from aging_ingestion.adapters.csv_adapter import CsvSourceAdapter
from aging_ingestion.adapters.json_adapter import JsonSourceAdapter
from aging_ingestion.adapters.xlsx_adapter import XlsxSourceAdapter

__all__ = [
    "SourceAdapter",
    "SourceProbe",
    "CsvSourceAdapter",
    "JsonSourceAdapter",
    "XlsxSourceAdapter",
]
