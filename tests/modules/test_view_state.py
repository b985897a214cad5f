"""Tests for drill-down view state."""

from decimal import Decimal

from aging_engines.aging import AgingRow
from aging_kernel.domain.values import Money
from aging_modules.view_state import DrillDownState


def _row(counterparty_id: str) -> AgingRow:
    amount = Money.of(Decimal("10"), "IRR")
    return AgingRow(
        counterparty_id=counterparty_id,
        counterparty_name=counterparty_id,
        amounts={"current": amount},
        total=amount,
    )


class TestDrillDownState:
    """Expansion bookkeeping lives outside the calculator."""

    def test_starts_collapsed(self):
        state = DrillDownState()

        assert len(state) == 0
        assert not state.is_expanded("A")

    def test_toggle(self):
        state = DrillDownState()

        assert state.toggle("A") is True
        assert state.is_expanded("A")
        assert state.toggle("A") is False
        assert not state.is_expanded("A")

    def test_expand_and_collapse_are_idempotent(self):
        state = DrillDownState()

        state.expand("A")
        state.expand("A")
        assert state.expanded_ids == frozenset({"A"})
        state.collapse("A")
        state.collapse("A")
        assert state.expanded_ids == frozenset()

    def test_retain_drops_vanished_rows(self):
        state = DrillDownState(["A", "B", "C"])

        dropped = state.retain([_row("A"), _row("C"), _row("D")])

        assert dropped == frozenset({"B"})
        assert state.expanded_ids == frozenset({"A", "C"})

    def test_expanded_rows_in_table_order(self):
        state = DrillDownState(["C", "A"])
        rows = [_row("A"), _row("B"), _row("C")]

        assert [r.counterparty_id for r in state.expanded_rows(rows)] == ["A", "C"]

    def test_expanded_ids_is_a_snapshot(self):
        state = DrillDownState(["A"])
        snapshot = state.expanded_ids

        state.expand("B")

        assert snapshot == frozenset({"A"})
