"""
Tests for Aging Calculator.

Covers:
- Age calculation
- Bucket classification and bucket-set validation
- Per-counterparty aggregation (boundaries, settlement, ordering)
- Drill-down lines
- Aging report generation
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from aging_engines.aging import (
    STANDARD_BUCKETS,
    WEEKLY_BUCKETS,
    AgeBucket,
    AgingCalculator,
    AgingReport,
    AgingRow,
    OpenItem,
    summarize_buckets,
    validate_buckets,
)
from aging_kernel.domain.values import Money
from aging_kernel.exceptions import InvalidBucketSetError

AS_OF = date(2024, 6, 1)


def _item(
    counterparty_id: str = "C-1",
    amount: str = "100",
    days_overdue: int = 0,
    document_id: str | None = None,
    document_date: date | None = None,
    currency: str = "IRR",
) -> OpenItem:
    due = AS_OF - timedelta(days=days_overdue)
    return OpenItem(
        document_id=document_id or f"{counterparty_id}-{amount}-{days_overdue}",
        counterparty_id=counterparty_id,
        counterparty_name=f"Name {counterparty_id}",
        document_date=document_date or due - timedelta(days=30),
        due_date=due,
        amount=Money.of(amount, currency),
    )


class TestAgeCalculation:
    """Tests for age calculation."""

    def setup_method(self):
        self.calculator = AgingCalculator()

    def test_age_from_document_date(self):
        """Calculates age from document date."""
        age = self.calculator.calculate_age(
            document_date=date(2024, 1, 1),
            as_of_date=date(2024, 1, 31),
        )

        assert age == 30

    def test_age_from_due_date(self):
        """Uses due date when provided and use_due_date=True."""
        age = self.calculator.calculate_age(
            document_date=date(2024, 1, 1),
            as_of_date=date(2024, 2, 15),
            due_date=date(2024, 1, 31),
            use_due_date=True,
        )

        assert age == 15

    def test_age_ignores_due_date_when_disabled(self):
        """Uses document date when use_due_date=False."""
        age = self.calculator.calculate_age(
            document_date=date(2024, 1, 1),
            as_of_date=date(2024, 2, 15),
            due_date=date(2024, 1, 31),
            use_due_date=False,
        )

        assert age == 45

    def test_negative_age_not_yet_due(self):
        """Negative age when not yet due."""
        age = self.calculator.calculate_age(
            document_date=date(2024, 1, 1),
            as_of_date=date(2024, 1, 15),
            due_date=date(2024, 1, 31),
        )

        assert age == -16

    def test_age_across_leap_day(self):
        age = self.calculator.calculate_age(
            document_date=date(2024, 2, 28),
            as_of_date=date(2024, 3, 1),
        )

        assert age == 2


class TestBucketClassification:
    """Tests for bucket classification."""

    def setup_method(self):
        self.calculator = AgingCalculator()

    @pytest.mark.parametrize(
        "age,expected",
        [
            (0, "current"),
            (1, "1-30"),
            (30, "1-30"),
            (31, "31-60"),
            (60, "31-60"),
            (61, "61-90"),
            (90, "61-90"),
            (91, "over90"),
            (3650, "over90"),
        ],
    )
    def test_standard_bucket_edges(self, age, expected):
        assert self.calculator.classify(age).name == expected

    def test_classify_negative_age(self):
        """Negative ages go to the current bucket."""
        assert self.calculator.classify(-10).name == "current"

    def test_classify_weekly_buckets(self):
        assert self.calculator.classify(10, WEEKLY_BUCKETS).name == "8-14"
        assert self.calculator.classify(31, WEEKLY_BUCKETS).name == "over30"

    def test_classify_no_matching_bucket_raises(self):
        buckets = (AgeBucket("current", 0, 0), AgeBucket("1-30", 1, 30))

        with pytest.raises(ValueError, match="does not fit any bucket"):
            self.calculator.classify(45, buckets)


class TestAgeBucket:
    """Tests for AgeBucket and bucket-set validation."""

    def test_contains_bounded(self):
        bucket = AgeBucket("31-60", 31, 60)

        assert bucket.contains(31)
        assert bucket.contains(60)
        assert not bucket.contains(30)
        assert not bucket.contains(61)

    def test_contains_unbounded(self):
        bucket = AgeBucket("over90", 91, None)

        assert bucket.is_unbounded
        assert bucket.contains(10_000)

    def test_display_name_prefers_label(self):
        assert STANDARD_BUCKETS[0].display_name == "جاری"
        assert AgeBucket("x", 0, None).display_name == "x"

    def test_standard_buckets_are_valid(self):
        assert validate_buckets(STANDARD_BUCKETS) == STANDARD_BUCKETS
        assert [b.name for b in STANDARD_BUCKETS] == ["current", "1-30", "31-60", "61-90", "over90"]

    def test_weekly_buckets_are_valid(self):
        assert validate_buckets(WEEKLY_BUCKETS) == WEEKLY_BUCKETS

    def test_empty_bucket_set_rejected(self):
        with pytest.raises(InvalidBucketSetError):
            validate_buckets(())

    def test_gap_rejected(self):
        buckets = (AgeBucket("current", 0, 0), AgeBucket("2+", 2, None))

        with pytest.raises(InvalidBucketSetError, match="must start at 1"):
            validate_buckets(buckets)

    def test_overlap_rejected(self):
        buckets = (
            AgeBucket("current", 0, 0),
            AgeBucket("1-30", 1, 30),
            AgeBucket("30+", 30, None),
        )

        with pytest.raises(InvalidBucketSetError):
            validate_buckets(buckets)

    def test_duplicate_names_rejected(self):
        buckets = (AgeBucket("a", 0, 0), AgeBucket("a", 1, None))

        with pytest.raises(InvalidBucketSetError, match="unique"):
            validate_buckets(buckets)

    def test_bounded_last_bucket_rejected(self):
        buckets = (AgeBucket("current", 0, 0), AgeBucket("1-30", 1, 30))

        with pytest.raises(InvalidBucketSetError, match="unbounded"):
            validate_buckets(buckets)

    def test_unbounded_bucket_must_be_last(self):
        buckets = (AgeBucket("current", 0, None), AgeBucket("1+", 1, None))

        with pytest.raises(InvalidBucketSetError, match="not the last"):
            validate_buckets(buckets)

    def test_first_bucket_must_start_at_zero(self):
        buckets = (AgeBucket("1+", 1, None),)

        with pytest.raises(InvalidBucketSetError, match="start at 0"):
            validate_buckets(buckets)

    def test_error_carries_code_and_names(self):
        with pytest.raises(InvalidBucketSetError) as exc_info:
            validate_buckets((AgeBucket("a", 0, 0), AgeBucket("a", 1, None)))

        assert exc_info.value.code == "INVALID_BUCKET_SET"
        assert exc_info.value.bucket_names == ("a", "a")


class TestAggregate:
    """Tests for per-counterparty aggregation."""

    def setup_method(self):
        self.calculator = AgingCalculator()

    def _rows(self, items, **kwargs) -> tuple[AgingRow, ...]:
        return self.calculator.aggregate(items=items, as_of_date=AS_OF, **kwargs)

    def test_empty_input_gives_no_rows(self):
        assert self._rows([]) == ()

    def test_partial_payment_45_days_overdue(self):
        """1000 total, 200 paid, 45 days past due: 800 in 31-60."""
        rows = self._rows([_item(amount="800", days_overdue=45)])

        assert len(rows) == 1
        assert rows[0].amount_in("31-60") == Money.of("800", "IRR")
        assert rows[0].total == Money.of("800", "IRR")
        for name in ("current", "1-30", "61-90", "over90"):
            assert rows[0].amount_in(name).is_zero

    def test_due_today_is_current(self):
        rows = self._rows([_item(days_overdue=0)])

        assert rows[0].amount_in("current").amount == Decimal("100")

    def test_30_days_is_1_30(self):
        rows = self._rows([_item(days_overdue=30)])

        assert rows[0].amount_in("1-30").amount == Decimal("100")

    def test_31_days_is_31_60(self):
        rows = self._rows([_item(days_overdue=31)])

        assert rows[0].amount_in("31-60").amount == Decimal("100")

    def test_not_yet_due_is_current(self):
        rows = self._rows([_item(days_overdue=-20)])

        assert rows[0].amount_in("current").amount == Decimal("100")

    def test_settled_item_contributes_nothing(self):
        """A settled item and one 300 balance 10 days overdue: single row."""
        rows = self._rows([
            _item(amount="0", days_overdue=50, document_id="paid"),
            _item(amount="300", days_overdue=10, document_id="open"),
        ])

        assert len(rows) == 1
        assert rows[0].amount_in("1-30").amount == Decimal("300")
        assert rows[0].total.amount == Decimal("300")

    def test_balance_at_tolerance_is_settled(self):
        rows = self._rows([_item(amount="0.01")])

        assert rows == ()

    def test_balance_just_above_tolerance_is_open(self):
        rows = self._rows([_item(amount="0.02")])

        assert len(rows) == 1

    def test_overpaid_item_is_ignored(self):
        rows = self._rows([
            _item(amount="-500", document_id="over"),
            _item(amount="100", document_id="open"),
        ])

        assert rows[0].total.amount == Decimal("100")

    def test_explicit_tolerance(self):
        rows = self._rows([_item(amount="5")], tolerance=Decimal("10"))

        assert rows == ()

    def test_tolerance_follows_currency_precision(self):
        rows = self._rows([_item(amount="1", currency="JPY")], currency="JPY")

        assert rows == ()

    def test_future_issue_date_excluded(self):
        rows = self._rows([
            _item(amount="100", document_date=AS_OF + timedelta(days=1), days_overdue=-30),
        ])

        assert rows == ()

    def test_issued_on_as_of_date_included(self):
        rows = self._rows([_item(document_date=AS_OF, days_overdue=-30)])

        assert len(rows) == 1

    def test_rows_sorted_by_total_descending(self):
        rows = self._rows([
            _item("A", "100"),
            _item("B", "700"),
            _item("C", "300"),
        ])

        assert [r.counterparty_id for r in rows] == ["B", "C", "A"]

    def test_ties_keep_first_encounter_order(self):
        rows = self._rows([
            _item("B", "100"),
            _item("A", "100"),
            _item("C", "100"),
        ])

        assert [r.counterparty_id for r in rows] == ["B", "A", "C"]

    def test_items_of_one_counterparty_accumulate(self):
        rows = self._rows([
            _item("A", "100", days_overdue=0, document_id="1"),
            _item("A", "200", days_overdue=15, document_id="2"),
            _item("A", "50", days_overdue=15, document_id="3"),
            _item("A", "400", days_overdue=120, document_id="4"),
        ])

        row = rows[0]
        assert row.amount_in("current").amount == Decimal("100")
        assert row.amount_in("1-30").amount == Decimal("250")
        assert row.amount_in("over90").amount == Decimal("400")
        assert row.total.amount == Decimal("750")

    def test_row_carries_every_bucket_in_order(self):
        rows = self._rows([_item()])

        assert list(rows[0].amounts) == [b.name for b in STANDARD_BUCKETS]

    def test_row_name_from_first_item(self):
        first = _item("A", "100", document_id="1")
        second = OpenItem(
            document_id="2",
            counterparty_id="A",
            counterparty_name="Renamed",
            document_date=first.document_date,
            due_date=first.due_date,
            amount=Money.of("50", "IRR"),
        )

        rows = self._rows([first, second])

        assert rows[0].counterparty_name == "Name A"

    def test_custom_buckets(self):
        rows = self._rows([_item(days_overdue=10)], buckets=WEEKLY_BUCKETS)

        assert rows[0].amount_in("8-14").amount == Decimal("100")
        assert "1-30" not in rows[0].amounts

    def test_invalid_buckets_rejected(self):
        with pytest.raises(InvalidBucketSetError):
            self._rows([_item()], buckets=(AgeBucket("current", 0, 0),))

    def test_use_due_date_false_ages_from_document_date(self):
        rows = self._rows([_item(days_overdue=0)], use_due_date=False)

        # document date is 30 days before the due date
        assert rows[0].amount_in("1-30").amount == Decimal("100")

    def test_mixed_currencies_rejected(self):
        with pytest.raises(ValueError, match="different currencies"):
            self._rows([
                _item("A", "100", document_id="1"),
                _item("A", "100", document_id="2", currency="USD"),
            ])

    def test_to_dict(self):
        rows = self._rows([_item("A", "800", days_overdue=45)])

        data = rows[0].to_dict(id_key="customer_id", name_key="customer_name")

        assert data == {
            "customer_id": "A",
            "customer_name": "Name A",
            "current": Decimal("0"),
            "1-30": Decimal("0"),
            "31-60": Decimal("800"),
            "61-90": Decimal("0"),
            "over90": Decimal("0"),
            "total": Decimal("800"),
        }

    def test_aggregate_logs_completion(self, captured_logs):
        self._rows([_item()])

        messages = [r["message"] for r in captured_logs()]
        assert "aging_aggregate_completed" in messages
        assert "AGING_ENGINE_TRACE" in messages


class TestDrillDown:
    """Tests for per-counterparty drill-down lines."""

    def setup_method(self):
        self.calculator = AgingCalculator()

    def test_lines_sorted_most_overdue_first(self):
        items = [
            _item("A", "100", days_overdue=5, document_id="a"),
            _item("A", "200", days_overdue=95, document_id="b"),
            _item("A", "300", days_overdue=-3, document_id="c"),
            _item("B", "999", days_overdue=50, document_id="other"),
        ]

        lines = self.calculator.drill_down(items=items, counterparty_id="A", as_of_date=AS_OF)

        assert [line.document_id for line in lines] == ["b", "a", "c"]
        assert [line.days_overdue for line in lines] == [95, 5, -3]
        assert [line.bucket_name for line in lines] == ["over90", "1-30", "current"]

    def test_lines_sum_to_row_total(self):
        items = [
            _item("A", "100", days_overdue=5, document_id="a"),
            _item("A", "0.005", days_overdue=40, document_id="dust"),
            _item("A", "250", days_overdue=70, document_id="b"),
            _item("A", "80", document_date=AS_OF + timedelta(days=2), days_overdue=-40, document_id="future"),
        ]

        rows = self.calculator.aggregate(items=items, as_of_date=AS_OF)
        lines = self.calculator.drill_down(items=items, counterparty_id="A", as_of_date=AS_OF)

        assert sum(line.remaining.amount for line in lines) == rows[0].total.amount
        assert {line.document_id for line in lines} == {"a", "b"}

    def test_unknown_counterparty_gives_no_lines(self):
        lines = self.calculator.drill_down(items=[_item()], counterparty_id="nobody", as_of_date=AS_OF)

        assert lines == ()

    def test_gapped_buckets_rejected(self):
        gapped = (AgeBucket("current", 0, 0), AgeBucket("1-30", 1, 30), AgeBucket("over60", 61, None))

        with pytest.raises(InvalidBucketSetError):
            self.calculator.drill_down(
                items=[_item("A", days_overdue=45)],
                counterparty_id="A",
                as_of_date=AS_OF,
                buckets=gapped,
            )


class TestAgingReport:
    """Tests for report generation."""

    def setup_method(self):
        self.calculator = AgingCalculator()

    def _report(self, items) -> AgingReport:
        return self.calculator.generate_report(
            items=items,
            as_of_date=AS_OF,
            currency="IRR",
            report_type="AR",
        )

    def test_report_fields(self):
        report = self._report([_item("A", "100"), _item("B", "300", days_overdue=40)])

        assert report.as_of_date == AS_OF
        assert report.report_type == "AR"
        assert report.currency == "IRR"
        assert report.buckets == STANDARD_BUCKETS
        assert report.row_count == 2

    def test_grand_total_and_bucket_totals(self):
        report = self._report([
            _item("A", "100"),
            _item("B", "300", days_overdue=40),
            _item("B", "50", days_overdue=100),
        ])

        assert report.grand_total() == Money.of("450", "IRR")
        totals = report.bucket_totals()
        assert totals["current"].amount == Decimal("100")
        assert totals["31-60"].amount == Decimal("300")
        assert totals["over90"].amount == Decimal("50")
        assert totals["1-30"].is_zero

    def test_empty_report(self):
        report = self._report([])

        assert report.rows == ()
        assert report.grand_total().is_zero
        assert all(m.is_zero for m in report.bucket_totals().values())

    def test_row_for(self):
        report = self._report([_item("A", "100")])

        assert report.row_for("A").total.amount == Decimal("100")
        assert report.row_for("missing") is None

    def test_summarize_buckets_matches_report(self):
        report = self._report([_item("A", "100"), _item("B", "7", days_overdue=61)])

        assert summarize_buckets(report.rows, report.buckets, "IRR") == report.bucket_totals()
