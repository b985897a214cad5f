"""
Drill-down view state for aging tables.

The aging report table lets the user expand a counterparty's row to see its
outstanding documents. Which rows are expanded is presentation state: it
lives here, owned by whatever renders the table, and never inside the
calculator. Rows are recomputed on every as-of change; ``retain`` drops
expansions whose counterparty no longer has a row.
"""

from __future__ import annotations

from typing import Iterable

from aging_engines.aging import AgingRow


class DrillDownState:
    """Set of expanded counterparty IDs."""

    def __init__(self, expanded: Iterable[str] = ()):
        self._expanded: set[str] = set(expanded)

    @property
    def expanded_ids(self) -> frozenset[str]:
        return frozenset(self._expanded)

    def is_expanded(self, counterparty_id: str) -> bool:
        return counterparty_id in self._expanded

    def expand(self, counterparty_id: str) -> None:
        self._expanded.add(counterparty_id)

    def collapse(self, counterparty_id: str) -> None:
        self._expanded.discard(counterparty_id)

    def toggle(self, counterparty_id: str) -> bool:
        """Flip one row; returns True if it is now expanded."""
        if counterparty_id in self._expanded:
            self._expanded.remove(counterparty_id)
            return False
        self._expanded.add(counterparty_id)
        return True

    def retain(self, rows: Iterable[AgingRow]) -> frozenset[str]:
        """Keep only expansions that still have a row; returns the dropped IDs."""
        present = {row.counterparty_id for row in rows}
        dropped = frozenset(self._expanded - present)
        self._expanded &= present
        return dropped

    def expanded_rows(self, rows: Iterable[AgingRow]) -> list[AgingRow]:
        """Rows currently expanded, in table order."""
        return [row for row in rows if row.counterparty_id in self._expanded]

    def __len__(self) -> int:
        return len(self._expanded)
