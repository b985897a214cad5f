"""
Shared helpers for the AR and AP aging modules.

Turns loosely-typed invoice fields into the engine's ``OpenItem``: dates go
through the calendar boundary, amounts become non-negative Decimals, and
status names from configuration are resolved against each module's enum.

Data-quality problems never raise here. Unreadable dates fall back to the
as-of date and bad or negative amounts to zero, each with a warning, so a
single malformed document cannot block the rest of the report.

Architecture: Modules layer. Imports only from aging_kernel and aging_engines.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Iterable, TypeVar

from aging_engines.aging import OpenItem
from aging_kernel.domain.calendar import parse_date
from aging_kernel.domain.values import Money
from aging_kernel.exceptions import ConfigurationError
from aging_kernel.logging_config import get_logger

logger = get_logger("modules.aging_helpers")

E = TypeVar("E", bound=Enum)


def coerce_amount(value: Any, field_name: str, document_id: str) -> Decimal:
    """Non-negative Decimal from a raw amount; bad or negative values become 0."""
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value).strip()) if value is not None else Decimal("0")
        except InvalidOperation:
            logger.warning("aging_amount_unparseable", extra={
                "document_id": document_id,
                "field": field_name,
                "value": repr(value),
            })
            return Decimal("0")

    if not amount.is_finite():
        logger.warning("aging_amount_unparseable", extra={
            "document_id": document_id,
            "field": field_name,
            "value": str(amount),
        })
        return Decimal("0")
    if amount < 0:
        logger.warning("aging_amount_clamped", extra={
            "document_id": document_id,
            "field": field_name,
            "value": str(amount),
        })
        return Decimal("0")
    return amount


def coerce_date(value: Any, field_name: str, document_id: str, as_of_date: date) -> date:
    """Parsed document date, or the as-of date when the value is unreadable."""
    parsed = parse_date(value)
    if parsed is None:
        logger.warning("aging_date_defaulted", extra={
            "document_id": document_id,
            "field": field_name,
            "value": repr(value),
            "defaulted_to": as_of_date.isoformat(),
        })
        return as_of_date
    return parsed


def resolve_statuses(names: Iterable[str], enum_cls: type[E]) -> frozenset[E]:
    """
    Map configured status names to enum members.

    Raises:
        ConfigurationError: If a name is not a member of ``enum_cls``.
    """
    resolved = set()
    for name in names:
        try:
            resolved.add(enum_cls[name])
        except KeyError as e:
            raise ConfigurationError(
                f"unknown {enum_cls.__name__} name {name!r}; "
                f"expected one of {sorted(m.name for m in enum_cls)}"
            ) from e
    return frozenset(resolved)


def build_open_item(
    *,
    document_id: str,
    counterparty_id: str,
    counterparty_name: str,
    document_date: Any,
    due_date: Any,
    total: Any,
    paid_amount: Any,
    currency: str,
    as_of_date: date,
    reference: str | None = None,
    document_type: str = "invoice",
) -> OpenItem:
    """Build an ``OpenItem`` whose amount is the remaining balance."""
    remaining = (
        coerce_amount(total, "total", document_id)
        - coerce_amount(paid_amount, "paid_amount", document_id)
    )
    return OpenItem(
        document_id=document_id,
        counterparty_id=counterparty_id,
        counterparty_name=counterparty_name,
        document_date=coerce_date(document_date, "document_date", document_id, as_of_date),
        due_date=coerce_date(due_date, "due_date", document_id, as_of_date),
        amount=Money.of(remaining, currency),
        reference=reference,
        document_type=document_type,
    )


def parse_status(enum_cls: type[E], value: Any) -> E | None:
    """
    Status from a member, member name, or stored value; None if unknown.

    Member names match case-insensitively ("sent", "PARTIALLY_PAID").
    Stored values also match with spaces and ZWNJ removed, since exports
    often drop the ZWNJ ("پیش نویس", "پیشنویس").
    """
    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    for member in enum_cls:
        if text == member.value or text.upper() == member.name:
            return member
    squashed = _squash(text)
    for member in enum_cls:
        if squashed == _squash(member.value):
            return member
    return None


def _squash(text: str) -> str:
    return text.replace("\u200c", "").replace(" ", "")
