"""
Configuration Loader (``aging_config.loader``).

Responsibility
--------------
Loads a YAML aging configuration file and parses it into the
``aging_config.schema.AgingConfig`` frozen dataclass. Runtime callers go
through ``aging_config.get_active_config()``; this module is its
implementation and is used directly only by tests.

Invariants enforced
-------------------
* Every parse error is raised as ``ConfigurationError`` (or a subclass)
  with a descriptive reason; required keys have no silent defaults.
* Bucket sets are validated with ``aging_engines.aging.validate_buckets``.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML / invalid keys  -> ``ConfigurationError``.
* Unknown currency  -> ``InvalidCurrencyError``.
* Bad bucket set  -> ``InvalidBucketSetError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from aging_config.schema import (
    DEFAULT_PAYABLE_OPEN_STATUSES,
    DEFAULT_RECEIVABLE_OPEN_STATUSES,
    AgingConfig,
)
from aging_engines.aging import STANDARD_BUCKETS, AgeBucket, validate_buckets
from aging_kernel.domain.currency import CurrencyRegistry
from aging_kernel.exceptions import ConfigurationError, InvalidCurrencyError


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Postconditions:
        - Returns a ``dict`` (empty if the YAML is empty).
    Raises:
        FileNotFoundError: if the file does not exist.
        ConfigurationError: if the file is not valid YAML or its top level
            is not a mapping.
    """
    with open(path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"invalid YAML: {e}", source=str(path)) from e
    if not isinstance(data, dict):
        raise ConfigurationError("top level must be a mapping", source=str(path))
    return data


def parse_bucket(data: dict[str, Any]) -> AgeBucket:
    """Parse one bucket definition (``name``, ``min_days``, ``max_days``, ``label``)."""
    try:
        max_days = data.get("max_days")
        return AgeBucket(
            name=str(data["name"]),
            min_days=int(data["min_days"]),
            max_days=int(max_days) if max_days is not None else None,
            label=data.get("label"),
        )
    except KeyError as e:
        raise ConfigurationError(f"bucket is missing key {e.args[0]!r}") from e
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"invalid bucket {data!r}: {e}") from e


def parse_statuses(value: Any, key: str) -> frozenset[str]:
    if not isinstance(value, (list, tuple)) or not value:
        raise ConfigurationError(f"{key} must be a non-empty list of status names")
    names = []
    for item in value:
        if not isinstance(item, str) or not item.strip():
            raise ConfigurationError(f"{key} contains an invalid status name {item!r}")
        names.append(item.strip().upper())
    return frozenset(names)


def parse_tolerance(value: Any) -> Decimal | None:
    if value is None:
        return None
    try:
        tolerance = Decimal(str(value))
    except InvalidOperation as e:
        raise ConfigurationError(f"settlement_tolerance is not a number: {value!r}") from e
    if not tolerance.is_finite():
        raise ConfigurationError(f"settlement_tolerance must be finite: {value!r}")
    if tolerance < 0:
        raise ConfigurationError("settlement_tolerance cannot be negative")
    return tolerance


def parse_aging_config(data: dict[str, Any], source: str | None = None) -> AgingConfig:
    """
    Parse an ``AgingConfig`` from a dict.

    Every key is optional; a missing key takes the ``AgingConfig`` default.

    Raises:
        ConfigurationError: on invalid values.
        InvalidCurrencyError: if ``currency`` is not a known ISO 4217 code.
        InvalidBucketSetError: if ``buckets`` do not cover every age once.
    """
    currency = str(data.get("currency", "IRR")).upper().strip()
    if not CurrencyRegistry.is_valid(currency):
        raise InvalidCurrencyError(currency)

    raw_buckets = data.get("buckets")
    if raw_buckets is None:
        buckets = STANDARD_BUCKETS
    else:
        if not isinstance(raw_buckets, list):
            raise ConfigurationError("buckets must be a list", source=source)
        buckets = validate_buckets(tuple(parse_bucket(b) for b in raw_buckets))

    receivable = data.get("receivable_open_statuses")
    payable = data.get("payable_open_statuses")

    use_due_date = data.get("use_due_date", True)
    if not isinstance(use_due_date, bool):
        raise ConfigurationError("use_due_date must be true or false", source=source)

    return AgingConfig(
        currency=currency,
        buckets=buckets,
        receivable_open_statuses=(
            parse_statuses(receivable, "receivable_open_statuses")
            if receivable is not None else DEFAULT_RECEIVABLE_OPEN_STATUSES
        ),
        payable_open_statuses=(
            parse_statuses(payable, "payable_open_statuses")
            if payable is not None else DEFAULT_PAYABLE_OPEN_STATUSES
        ),
        settlement_tolerance=parse_tolerance(data.get("settlement_tolerance")),
        use_due_date=use_due_date,
        checksum=compute_checksum(data),
        source=source,
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Postconditions:
        - Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
