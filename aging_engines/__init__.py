"""
Module: aging_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines. This is the canonical import surface for higher
    layers (aging_modules, scripts).

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import aging_kernel/domain (and sibling engine modules).
    MUST NOT import aging_modules, aging_config or aging_ingestion.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
      The as-of date is always passed in by the caller.
    - Decimal-only arithmetic for monetary amounts.
    - Determinism: identical inputs always produce identical outputs.

Usage:
    from aging_engines import AgingCalculator, OpenItem, STANDARD_BUCKETS
"""

from aging_engines.aging import (
    STANDARD_BUCKETS,
    WEEKLY_BUCKETS,
    AgeBucket,
    AgedItem,
    AgingCalculator,
    AgingReport,
    AgingRow,
    DrillDownLine,
    OpenItem,
    summarize_buckets,
    validate_buckets,
)
from aging_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    "AgingCalculator",
    "AgeBucket",
    "AgedItem",
    "AgingReport",
    "AgingRow",
    "DrillDownLine",
    "OpenItem",
    "STANDARD_BUCKETS",
    "WEEKLY_BUCKETS",
    "summarize_buckets",
    "validate_buckets",
    "traced_engine",
    "compute_input_fingerprint",
]
