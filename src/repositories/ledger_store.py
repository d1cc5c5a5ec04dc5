"""
Ledger Store contract.

The core services only talk to this interface. Implementations own id and
timestamp assignment and must translate backend failures into
StoreUnavailableError.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

Row = Dict[str, Any]


class LedgerStore(ABC):
    """Per-table CRUD primitives used by the engagement ledger."""

    @abstractmethod
    def insert(self, table: str, values: Row) -> Row:
        """Insert one row and return it with generated id and timestamps."""

    @abstractmethod
    def insert_many(
        self, table: str, rows: Sequence[Row], ignore_conflicts: bool = False
    ) -> List[Row]:
        """Insert several rows; with ignore_conflicts, rows hitting a unique key are skipped."""

    @abstractmethod
    def select(
        self,
        table: str,
        equals: Optional[Row] = None,
        between: Optional[Tuple[str, Any, Any]] = None,
        order_by: Iterable[Tuple[str, bool]] = (),
    ) -> List[Row]:
        """
        Select rows matching all equality filters.

        `between` is (column, low, high), inclusive on both ends.
        `order_by` is a sequence of (column, descending) pairs.
        """

    @abstractmethod
    def update(self, table: str, equals: Row, values: Row) -> List[Row]:
        """Update matching rows and return them as stored."""

    @abstractmethod
    def upsert(self, table: str, values: Row, conflict_keys: Sequence[str]) -> Row:
        """Insert, or overwrite the row sharing `conflict_keys`; returns the stored row."""

    @abstractmethod
    def record_purchase(self, values: Row) -> Row:
        """
        Insert a purchase and add its points_earned to the customer's total_points.

        Both writes commit together or not at all. The increment is applied
        store-side (total_points = total_points + delta) so concurrent
        purchases do not lose updates.
        """

    def select_one(self, table: str, equals: Row) -> Optional[Row]:
        """Convenience wrapper returning the first match or None."""
        rows = self.select(table, equals=equals)
        return rows[0] if rows else None
