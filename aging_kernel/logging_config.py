"""
Structured logging for aging reports.

Every record under the ``aging_kernel`` logger carries the report context
bound with ``LogContext`` (report id, source file, ...) plus any ``extra``
fields of the call. ``StructuredFormatter`` writes one JSON object per
line; ``ConsoleFormatter`` writes the same fields as ``key=value`` text for
a terminal.

Usage:
    configure_logging(level=logging.INFO)
    with LogContext.bind(report_id=str(uuid4()), source="invoices.csv"):
        get_logger("modules.receivables").info("aging_started", extra={"count": 12})
"""

__all__ = [
    "ConsoleFormatter",
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping
from uuid import UUID

_LOGGER_PREFIX = "aging_kernel"

# ---------------------------------------------------------------------------
# Report context
# ---------------------------------------------------------------------------

_EMPTY: Mapping[str, str] = MappingProxyType({})
_context: ContextVar[Mapping[str, str]] = ContextVar("aging_log_context", default=_EMPTY)


class LogContext:
    """
    Report-scoped fields added to every record.

    Held in a single ContextVar, so threads and asyncio tasks each see
    their own report. Only the names in ``FIELDS`` are accepted.
    """

    FIELDS = ("correlation_id", "report_id", "actor_id", "source", "trace_id")

    @classmethod
    def _merged(cls, fields: dict[str, str | None]) -> Mapping[str, str]:
        unknown = set(fields) - set(cls.FIELDS)
        if unknown:
            raise TypeError(f"unknown log context field(s): {sorted(unknown)}")
        merged = dict(_context.get())
        merged.update({k: v for k, v in fields.items() if v is not None})
        return MappingProxyType(merged)

    @classmethod
    def set(cls, **fields: str | None) -> None:
        """Add or replace fields; None values leave a field unchanged."""
        _context.set(cls._merged(fields))

    @classmethod
    def get_all(cls) -> dict[str, str]:
        current = _context.get()
        return {name: current[name] for name in cls.FIELDS if name in current}

    @classmethod
    def clear(cls) -> None:
        _context.set(_EMPTY)

    @classmethod
    @contextmanager
    def bind(cls, **fields: str | None) -> Iterator[type["LogContext"]]:
        """Set fields for the duration of a ``with`` block, then restore."""
        token = _context.set(cls._merged(fields))
        try:
            yield cls
        finally:
            _context.reset(token)


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------

_STDLIB_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _plain(value: Any) -> Any:
    """JSON-safe form of values that show up in aging log payloads."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    if isinstance(value, Enum):
        return value.name
    if isinstance(value, (set, frozenset)):
        return sorted(str(v) for v in value)
    return str(value)


def _record_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Context fields, then the call's ``extra`` fields, then exception fields."""
    fields: dict[str, Any] = dict(LogContext.get_all())
    for key, val in vars(record).items():
        if key not in _STDLIB_KEYS and key not in fields:
            fields[key] = val

    if record.exc_info and record.exc_info[1] is not None:
        exc = record.exc_info[1]
        fields["exc_type"] = type(exc).__name__
        fields["exc_message"] = str(exc)
        code = getattr(exc, "code", None)
        if code is not None:
            fields["exc_code"] = code
        # AgingError subclasses keep their context as attributes
        for k, v in vars(exc).items():
            if not k.startswith("_") and k != "args":
                fields[f"exc_{k}"] = v
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, val in _record_fields(record).items():
            payload.setdefault(key, val)
        if record.exc_info and record.exc_info[1] is not None:
            payload["traceback"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=_plain)


class ConsoleFormatter(logging.Formatter):
    """``HH:MM:SS LEVEL logger message key=value ...`` for terminals."""

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created, tz=UTC).strftime("%H:%M:%S")
        name = record.name.removeprefix(f"{_LOGGER_PREFIX}.")
        parts = [stamp, f"{record.levelname:<7}", name, record.getMessage()]
        for key, val in _record_fields(record).items():
            text = val if isinstance(val, str) else json.dumps(val, ensure_ascii=False, default=_plain)
            parts.append(f"{key}={text}")
        line = " ".join(parts)
        if record.exc_info and record.exc_info[1] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


def get_logger(name: str) -> logging.Logger:
    """Logger under the aging_kernel namespace."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


_configured = False
_lock = threading.Lock()


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
    json_format: bool = True,
) -> None:
    """
    Attach one handler to the aging_kernel logger (idempotent).

    Args:
        level: Logger level
        stream: Stream for the default handler (stderr)
        handler: Handler to use instead of a StreamHandler
        json_format: StructuredFormatter if True, ConsoleFormatter otherwise
    """
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    root = logging.getLogger(_LOGGER_PREFIX)
    root.setLevel(level)
    root.propagate = False

    h = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
    h.setFormatter(StructuredFormatter() if json_format else ConsoleFormatter())
    root.addHandler(h)


def reset_logging() -> None:
    """Undo configure_logging. For tests."""
    global _configured
    with _lock:
        _configured = False
    root = logging.getLogger(_LOGGER_PREFIX)
    root.handlers.clear()
    root.setLevel(logging.WARNING)
    root.propagate = True
