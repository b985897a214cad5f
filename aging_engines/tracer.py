"""
aging_engines.tracer -- AGING_ENGINE_TRACE records for engine calls.

``@traced_engine`` wraps a keyword-only engine method and, after it
returns, logs one record with the engine name and version, a fingerprint
of selected keyword arguments, the duration, and the size of the result.
Two runs over the same invoices on the same as-of date carry the same
fingerprint, which is how a report in the logs is matched to its input.

Fingerprints are SHA-256 over a canonical text form, truncated to 16 hex
characters:
    - dict keys are sorted; list and tuple order is kept
    - Decimal is normalized, so 800 and 800.00 hash alike
    - Money renders as "<amount> <code>", dates as ISO
    - dataclasses render field by field, enums by member name
    - a field missing from the call is "null"
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import time
from collections.abc import Callable
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from aging_kernel.domain.values import Currency, Money
from aging_kernel.logging_config import get_logger

_logger = get_logger("engines.tracer")

TRACE_TYPE = "AGING_ENGINE_TRACE"


def _canonicalize(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Decimal):
        return format(value.normalize(), "f") if value.is_finite() else str(value)
    if isinstance(value, (int, float, str)):
        return str(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Money):
        return f"{_canonicalize(value.amount)} {value.currency.code}"
    if isinstance(value, Currency):
        return value.code
    if isinstance(value, Enum):
        return value.name
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        body = ",".join(
            f"{f.name}={_canonicalize(getattr(value, f.name))}"
            for f in dataclasses.fields(value)
        )
        return f"{type(value).__name__}({body})"
    if isinstance(value, dict):
        items = sorted(value.items(), key=lambda kv: str(kv[0]))
        return "{" + ",".join(f"{k}:{_canonicalize(v)}" for k, v in items) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_canonicalize(v) for v in value) + "]"
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    kwargs: dict[str, Any],
) -> str:
    """16-hex-char SHA-256 prefix over the canonical form of the named kwargs."""
    canonical = "|".join(
        f"{name}={_canonicalize(kwargs.get(name))}" for name in fingerprint_fields
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """
    Decorator that logs an AGING_ENGINE_TRACE record per call.

    Args:
        engine_name: Engine identifier ("aging")
        engine_version: Engine version ("1.0")
        fingerprint_fields: Keyword argument names hashed into
            ``input_fingerprint``
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fingerprint = (
                compute_input_fingerprint(fingerprint_fields, kwargs)
                if fingerprint_fields else ""
            )
            started = time.monotonic()
            result = func(*args, **kwargs)
            duration_ms = round((time.monotonic() - started) * 1000, 2)

            extra: dict[str, Any] = {
                "trace_type": TRACE_TYPE,
                "engine_name": engine_name,
                "engine_version": engine_version,
                "input_fingerprint": fingerprint,
                "duration_ms": duration_ms,
                "function": func.__qualname__,
            }
            if isinstance(result, (list, tuple)):
                extra["result_count"] = len(result)
            _logger.info(TRACE_TYPE, extra=extra)
            return result

        return wrapper

    return decorator
