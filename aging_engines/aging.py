"""
Module: aging_engines.aging
Responsibility:
    Calculate document aging, classify documents into configurable aging
    buckets, and aggregate outstanding balances per counterparty. Used for
    AR aging (dunning) and AP aging.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import aging_kernel/domain and aging_kernel/exceptions.

Invariants enforced:
    - Purity: no clock access, no I/O. The as-of date is always a parameter.
    - Decimal-only arithmetic for all monetary amounts.
    - Conservation: the sum of every row total equals the sum of the
      remaining balances of all qualifying items.
    - Exclusivity: each qualifying item lands in exactly one bucket of
      exactly one row.
    - Deterministic output, including row order, for identical inputs.

Failure modes:
    - ValueError when an age does not fall into any configured bucket.
    - InvalidBucketSetError from ``validate_buckets`` for bucket sets with
      gaps, overlaps, or an unbounded bucket before the last one.
    - ValueError from Money when items mix currencies.

Usage:
    from datetime import date
    from aging_engines.aging import AgingCalculator, OpenItem
    from aging_kernel.domain.values import Money

    calculator = AgingCalculator()
    rows = calculator.aggregate(
        items=[
            OpenItem(
                document_id="INV-1",
                counterparty_id="C-1",
                counterparty_name="Acme",
                document_date=date(2024, 1, 1),
                due_date=date(2024, 1, 31),
                amount=Money.of("800", "IRR"),
            ),
        ],
        as_of_date=date(2024, 3, 16),
    )
    rows[0].amount_in("31-60")  # Money("800", "IRR")
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Sequence

from aging_kernel.domain.values import Currency, Money
from aging_kernel.exceptions import InvalidBucketSetError
from aging_kernel.logging_config import get_logger
from aging_engines.tracer import traced_engine

logger = get_logger("engines.aging")


@dataclass(frozen=True)
class AgeBucket:
    """
    Definition of an aging bucket.

    Contract:
        Frozen dataclass representing a contiguous range of days.
    Guarantees:
        - min_days >= 0.
        - max_days >= min_days (when bounded).
    Non-goals:
        - Does not enforce mutual exclusion across a bucket *set*; see
          ``validate_buckets``.
    """

    name: str
    min_days: int
    max_days: int | None  # None = unbounded (e.g., over90)
    label: str | None = None

    def __post_init__(self) -> None:
        if self.min_days < 0:
            raise ValueError("min_days cannot be negative")
        if self.max_days is not None and self.max_days < self.min_days:
            raise ValueError("max_days cannot be less than min_days")

    def contains(self, age_days: int) -> bool:
        """Check if age falls within this bucket."""
        if age_days < self.min_days:
            return False
        if self.max_days is None:
            return True
        return age_days <= self.max_days

    @property
    def is_unbounded(self) -> bool:
        """True if bucket has no upper limit."""
        return self.max_days is None

    @property
    def display_name(self) -> str:
        return self.label or self.name


# Standard dunning buckets used across AR/AP
STANDARD_BUCKETS: tuple[AgeBucket, ...] = (
    AgeBucket("current", 0, 0, "جاری"),
    AgeBucket("1-30", 1, 30, "۱-۳۰ روز"),
    AgeBucket("31-60", 31, 60, "۳۱-۶۰ روز"),
    AgeBucket("61-90", 61, 90, "۶۱-۹۰ روز"),
    AgeBucket("over90", 91, None, "> ۹۰ روز"),
)

# Alternative weekly buckets for short-term collection follow-up
WEEKLY_BUCKETS: tuple[AgeBucket, ...] = (
    AgeBucket("current", 0, 0),
    AgeBucket("1-7", 1, 7),
    AgeBucket("8-14", 8, 14),
    AgeBucket("15-21", 15, 21),
    AgeBucket("22-30", 22, 30),
    AgeBucket("over30", 31, None),
)


def validate_buckets(buckets: Sequence[AgeBucket]) -> tuple[AgeBucket, ...]:
    """
    Check that a bucket sequence covers every non-negative age exactly once.

    Postconditions:
        - Returns the buckets as a tuple, in the given order.
    Raises:
        InvalidBucketSetError: empty set, duplicate names, first bucket not
            starting at 0, a gap or overlap between neighbours, or a last
            bucket with an upper bound.
    """
    names = tuple(b.name for b in buckets)
    if not buckets:
        raise InvalidBucketSetError("bucket set is empty")
    if len(set(names)) != len(names):
        raise InvalidBucketSetError("bucket names must be unique", names)
    if buckets[0].min_days != 0:
        raise InvalidBucketSetError("first bucket must start at 0 days", names)

    for previous, bucket in zip(buckets, buckets[1:]):
        if previous.is_unbounded:
            raise InvalidBucketSetError(
                f"bucket {previous.name!r} is unbounded but is not the last bucket",
                names,
            )
        if bucket.min_days != previous.max_days + 1:
            raise InvalidBucketSetError(
                f"bucket {bucket.name!r} must start at {previous.max_days + 1} days",
                names,
            )

    if not buckets[-1].is_unbounded:
        raise InvalidBucketSetError("last bucket must be unbounded", names)

    return tuple(buckets)


@dataclass(frozen=True)
class OpenItem:
    """
    A document with an outstanding balance, ready to be aged.

    Contract:
        ``amount`` is the remaining balance (total minus paid), not the
        document total. ``document_date`` is the issue date used to decide
        whether the document exists as of the report date.
    """

    document_id: str
    counterparty_id: str
    counterparty_name: str
    document_date: date
    due_date: date | None
    amount: Money
    reference: str | None = None
    document_type: str = "invoice"


@dataclass(frozen=True)
class AgedItem:
    """
    An item with its age classification.

    Guarantees:
        - ``age_days`` and ``bucket`` are consistent (bucket.contains(age_days)
          or age_days < 0 mapped to the current bucket).
    """

    document_id: str
    document_type: str
    document_date: date
    due_date: date | None
    amount: Money
    age_days: int
    bucket: AgeBucket
    counterparty_id: str | None = None
    counterparty_name: str | None = None
    reference: str | None = None


@dataclass(frozen=True)
class AgingRow:
    """
    Outstanding balance of one counterparty, split by bucket.

    Contract:
        ``amounts`` maps every bucket name of the report to a non-negative
        Money, in bucket order.
    Guarantees:
        - ``total`` equals the sum of ``amounts``.
    """

    counterparty_id: str
    counterparty_name: str
    amounts: dict[str, Money]
    total: Money

    def amount_in(self, bucket_name: str) -> Money:
        """Amount in a bucket; KeyError for a bucket the report doesn't have."""
        return self.amounts[bucket_name]

    def to_dict(
        self,
        id_key: str = "counterparty_id",
        name_key: str = "counterparty_name",
    ) -> dict[str, Any]:
        """Flat mapping of ids, bucket amounts, and total (amounts as Decimal)."""
        result: dict[str, Any] = {
            id_key: self.counterparty_id,
            name_key: self.counterparty_name,
        }
        for name, amount in self.amounts.items():
            result[name] = amount.amount
        result["total"] = self.total.amount
        return result


@dataclass(frozen=True)
class DrillDownLine:
    """One outstanding document in a counterparty's drill-down."""

    document_id: str
    reference: str | None
    due_date: date | None
    days_overdue: int
    remaining: Money
    bucket_name: str


def summarize_buckets(
    rows: Sequence[AgingRow],
    buckets: Sequence[AgeBucket],
    currency: str | Currency,
) -> dict[str, Money]:
    """
    Sum bucket amounts across rows.

    Returns:
        Dict mapping every bucket name (in bucket order) to its total;
        zero for buckets no row uses.
    """
    totals = {b.name: Money.zero(currency) for b in buckets}
    for row in rows:
        for name, amount in row.amounts.items():
            totals[name] = totals[name] + amount
    return totals


@dataclass(frozen=True)
class AgingReport:
    """
    Complete aging report.

    Guarantees:
        - ``rows`` are sorted by total, largest first.
        - ``grand_total()`` equals the sum of all row totals.
    """

    as_of_date: date
    buckets: tuple[AgeBucket, ...]
    rows: tuple[AgingRow, ...]
    currency: str
    report_type: str = "standard"  # "AR", "AP"

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def grand_total(self) -> Money:
        return Money.total((row.total for row in self.rows), self.currency)

    def bucket_totals(self) -> dict[str, Money]:
        return summarize_buckets(self.rows, self.buckets, self.currency)

    def row_for(self, counterparty_id: str) -> AgingRow | None:
        for row in self.rows:
            if row.counterparty_id == counterparty_id:
                return row
        return None


class AgingCalculator:
    """
    Calculate aging for any dated documents.

    Contract:
        Pure functions -- no I/O, no clock access.
        All dates and data passed as parameters.
    Guarantees:
        - ``calculate_age`` returns a deterministic integer for any
          (document_date, as_of_date) pair.
        - ``classify`` maps every age to exactly one bucket of a validated
          bucket sequence.
        - ``aggregate`` honours conservation and exclusivity over the
          qualifying items.
    Non-goals:
        - Does not decide which document statuses are open; callers filter
          before building ``OpenItem`` values.
    """

    DEFAULT_BUCKETS = STANDARD_BUCKETS

    def calculate_age(
        self,
        document_date: date,
        as_of_date: date,
        due_date: date | None = None,
        use_due_date: bool = True,
    ) -> int:
        """
        Calculate age in days.

        Args:
            document_date: Date of the document
            as_of_date: Date to calculate age as of
            due_date: Optional due date (used if use_due_date=True)
            use_due_date: If True and due_date provided, age from due_date

        Returns:
            Age in days (negative if not yet due)
        """
        reference_date = document_date
        if use_due_date and due_date is not None:
            reference_date = due_date

        age_days = (as_of_date - reference_date).days
        logger.debug("age_calculated", extra={
            "document_date": document_date.isoformat(),
            "reference_date": reference_date.isoformat(),
            "as_of_date": as_of_date.isoformat(),
            "age_days": age_days,
            "used_due_date": use_due_date and due_date is not None,
        })

        return age_days

    def classify(
        self,
        age_days: int,
        buckets: Sequence[AgeBucket] | None = None,
    ) -> AgeBucket:
        """
        Classify age into a bucket.

        Postconditions:
            - Returns exactly one ``AgeBucket`` whose range contains
              ``age_days`` (negative ages map to the current bucket).
        Raises:
            ValueError: If age doesn't fit any bucket.
        """
        if buckets is None:
            buckets = self.DEFAULT_BUCKETS

        # Not yet due
        if age_days < 0:
            for bucket in buckets:
                if bucket.min_days == 0:
                    return bucket
            return buckets[0]

        for bucket in buckets:
            if bucket.contains(age_days):
                return bucket

        logger.warning("age_classification_no_bucket", extra={
            "age_days": age_days,
            "bucket_count": len(buckets),
        })
        raise ValueError(f"Age {age_days} does not fit any bucket")

    def age_item(
        self,
        item: OpenItem,
        as_of_date: date,
        buckets: Sequence[AgeBucket] | None = None,
        use_due_date: bool = True,
    ) -> AgedItem:
        """Age and classify a single open item."""
        age_days = self.calculate_age(
            document_date=item.document_date,
            as_of_date=as_of_date,
            due_date=item.due_date,
            use_due_date=use_due_date,
        )
        bucket = self.classify(age_days, buckets)

        return AgedItem(
            document_id=item.document_id,
            document_type=item.document_type,
            document_date=item.document_date,
            due_date=item.due_date,
            amount=item.amount,
            age_days=age_days,
            bucket=bucket,
            counterparty_id=item.counterparty_id,
            counterparty_name=item.counterparty_name,
            reference=item.reference,
        )

    @staticmethod
    def resolve_tolerance(
        items: Sequence[OpenItem],
        tolerance: Decimal | None,
        currency: str | Currency | None = None,
    ) -> Decimal:
        """Explicit tolerance, else the rounding tolerance of the report currency."""
        if tolerance is not None:
            return tolerance
        if currency is not None:
            if isinstance(currency, str):
                currency = Currency(currency)
            return currency.rounding_tolerance
        if items:
            return items[0].amount.currency.rounding_tolerance
        return Decimal("0.01")

    def qualifying_items(
        self,
        items: Iterable[OpenItem],
        as_of_date: date,
        tolerance: Decimal,
    ) -> list[OpenItem]:
        """
        Items issued on or before the as-of date with a balance above tolerance.

        Settled items (remaining <= tolerance, including negative balances
        from overpayment) contribute nothing.
        """
        qualifying: list[OpenItem] = []
        for item in items:
            if item.document_date > as_of_date:
                logger.debug("aging_item_not_yet_issued", extra={
                    "document_id": item.document_id,
                    "document_date": item.document_date.isoformat(),
                })
                continue
            if item.amount.amount <= tolerance:
                logger.debug("aging_item_settled", extra={
                    "document_id": item.document_id,
                    "remaining": str(item.amount.amount),
                })
                continue
            qualifying.append(item)
        return qualifying

    @traced_engine("aging", "1.0", fingerprint_fields=("items", "as_of_date", "tolerance"))
    def aggregate(
        self,
        *,
        items: Sequence[OpenItem],
        as_of_date: date,
        buckets: Sequence[AgeBucket] | None = None,
        tolerance: Decimal | None = None,
        currency: str | Currency | None = None,
        use_due_date: bool = True,
    ) -> tuple[AgingRow, ...]:
        """
        Aggregate remaining balances per counterparty and bucket.

        Rows are created in first-encounter order, rows whose total is at or
        below tolerance are dropped, and the rest are sorted by total,
        largest first. Ties keep first-encounter order.

        Args:
            items: Open items (remaining balances), any order, may be empty
            as_of_date: Report date
            buckets: Buckets for classification (validated)
            tolerance: Settlement tolerance; defaults to the currency's
            currency: Report currency, used for tolerance and zero amounts
            use_due_date: Age from the due date when one is present

        Returns:
            Tuple of AgingRow
        """
        buckets = validate_buckets(buckets if buckets is not None else self.DEFAULT_BUCKETS)
        tolerance = self.resolve_tolerance(items, tolerance, currency)

        qualifying = self.qualifying_items(items, as_of_date, tolerance)
        if not qualifying:
            logger.info("aging_aggregate_empty", extra={
                "as_of_date": as_of_date.isoformat(),
                "item_count": len(items),
            })
            return ()

        row_currency = qualifying[0].amount.currency
        names: dict[str, str] = {}
        accumulated: dict[str, dict[str, Money]] = {}

        for item in qualifying:
            aged = self.age_item(item, as_of_date, buckets, use_due_date)
            amounts = accumulated.get(item.counterparty_id)
            if amounts is None:
                amounts = {b.name: Money.zero(row_currency) for b in buckets}
                accumulated[item.counterparty_id] = amounts
                names[item.counterparty_id] = item.counterparty_name
            amounts[aged.bucket.name] = amounts[aged.bucket.name] + item.amount

        rows: list[AgingRow] = []
        for counterparty_id, amounts in accumulated.items():
            total = Money.total(amounts.values(), row_currency)
            if total.amount <= tolerance:
                continue
            rows.append(AgingRow(
                counterparty_id=counterparty_id,
                counterparty_name=names[counterparty_id],
                amounts=amounts,
                total=total,
            ))

        rows.sort(key=lambda r: r.total.amount, reverse=True)

        logger.info("aging_aggregate_completed", extra={
            "as_of_date": as_of_date.isoformat(),
            "item_count": len(items),
            "qualifying_count": len(qualifying),
            "row_count": len(rows),
            "tolerance": str(tolerance),
        })
        return tuple(rows)

    @traced_engine("aging", "1.0", fingerprint_fields=("items", "as_of_date", "report_type"))
    def generate_report(
        self,
        *,
        items: Sequence[OpenItem],
        as_of_date: date,
        currency: str,
        buckets: Sequence[AgeBucket] | None = None,
        tolerance: Decimal | None = None,
        report_type: str = "standard",
        use_due_date: bool = True,
    ) -> AgingReport:
        """
        Generate a complete aging report.

        Args:
            items: Open items to age
            as_of_date: Report date
            currency: Report currency
            buckets: Buckets for the report
            tolerance: Settlement tolerance; defaults to the currency's
            report_type: Type identifier for the report ("AR", "AP")
            use_due_date: Age from the due date when one is present

        Returns:
            AgingReport with rows sorted by total
        """
        t0 = time.monotonic()
        buckets = validate_buckets(buckets if buckets is not None else self.DEFAULT_BUCKETS)

        rows = self.aggregate(
            items=items,
            as_of_date=as_of_date,
            buckets=buckets,
            tolerance=tolerance,
            currency=currency,
            use_due_date=use_due_date,
        )

        duration_ms = round((time.monotonic() - t0) * 1000, 2)
        logger.info("aging_report_generated", extra={
            "as_of_date": as_of_date.isoformat(),
            "report_type": report_type,
            "item_count": len(items),
            "row_count": len(rows),
            "bucket_count": len(buckets),
            "currency": currency,
            "duration_ms": duration_ms,
        })

        return AgingReport(
            as_of_date=as_of_date,
            buckets=buckets,
            rows=rows,
            currency=currency,
            report_type=report_type,
        )

    def drill_down(
        self,
        *,
        items: Sequence[OpenItem],
        counterparty_id: str,
        as_of_date: date,
        buckets: Sequence[AgeBucket] | None = None,
        tolerance: Decimal | None = None,
        currency: str | Currency | None = None,
        use_due_date: bool = True,
    ) -> tuple[DrillDownLine, ...]:
        """
        Outstanding documents of one counterparty, most overdue first.

        Uses the same qualification as ``aggregate``, so the lines of a
        counterparty always sum to its row total.
        """
        buckets = validate_buckets(buckets if buckets is not None else self.DEFAULT_BUCKETS)
        tolerance = self.resolve_tolerance(items, tolerance, currency)
        own = [i for i in items if i.counterparty_id == counterparty_id]

        lines: list[DrillDownLine] = []
        for item in self.qualifying_items(own, as_of_date, tolerance):
            aged = self.age_item(item, as_of_date, buckets, use_due_date)
            lines.append(DrillDownLine(
                document_id=item.document_id,
                reference=item.reference,
                due_date=item.due_date,
                days_overdue=aged.age_days,
                remaining=item.amount,
                bucket_name=aged.bucket.name,
            ))

        lines.sort(key=lambda line: line.days_overdue, reverse=True)

        logger.debug("aging_drill_down", extra={
            "counterparty_id": counterparty_id,
            "line_count": len(lines),
        })
        return tuple(lines)
