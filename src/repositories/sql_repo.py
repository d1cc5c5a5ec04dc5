"""SQL implementation of the Ledger Store using SQLAlchemy Core."""

from contextlib import contextmanager
from typing import Any, Iterable, Iterator, List, Optional, Sequence, Tuple

from sqlalchemy import Table, and_, insert, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from repositories.ledger_store import LedgerStore, Row
from repositories.schema import CUSTOMERS, PURCHASES, metadata, utcnow
from utils.error_handling import NotFoundError, StoreUnavailableError
from utils.logging_config import get_logger

logger = get_logger(__name__)

_DIALECT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class SqlLedgerStore(LedgerStore):
    """Thin wrapper to keep SQL organized and parameterized."""

    def __init__(self, engine: Engine):
        self.engine = engine

    @contextmanager
    def _translate_errors(self, operation: str, table: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            logger.error(
                "Store operation failed",
                extra={"operation": operation, "table": table, "error": str(exc)},
            )
            raise StoreUnavailableError(str(exc)) from exc

    @staticmethod
    def _table(name: str) -> Table:
        try:
            return metadata.tables[name]
        except KeyError:
            raise ValueError(f"Unknown table: {name}") from None

    def _conflict_insert(self, table: Table):
        dialect = self.engine.dialect.name
        factory = _DIALECT_INSERTS.get(dialect)
        if factory is None:
            raise StoreUnavailableError(f"Upsert is not supported on {dialect}")
        return factory(table)

    @staticmethod
    def _where(table: Table, equals: Optional[Row]):
        clauses = [table.c[column] == value for column, value in (equals or {}).items()]
        return and_(*clauses) if clauses else None

    def insert(self, table: str, values: Row) -> Row:
        """Insert one row and return it as stored."""
        tbl = self._table(table)
        stmt = insert(tbl).values(**values).returning(*tbl.c)
        with self._translate_errors("insert", table), self.engine.begin() as conn:
            return dict(conn.execute(stmt).mappings().one())

    def insert_many(
        self, table: str, rows: Sequence[Row], ignore_conflicts: bool = False
    ) -> List[Row]:
        """Insert rows in one transaction; skipped duplicates are not returned."""
        tbl = self._table(table)
        stored: List[Row] = []
        if not rows:
            return stored
        with self._translate_errors("insert_many", table), self.engine.begin() as conn:
            for values in rows:
                if ignore_conflicts:
                    stmt = self._conflict_insert(tbl).values(**values).on_conflict_do_nothing()
                else:
                    stmt = insert(tbl).values(**values)
                row = conn.execute(stmt.returning(*tbl.c)).mappings().first()
                if row is not None:
                    stored.append(dict(row))
        return stored

    def select(
        self,
        table: str,
        equals: Optional[Row] = None,
        between: Optional[Tuple[str, Any, Any]] = None,
        order_by: Iterable[Tuple[str, bool]] = (),
    ) -> List[Row]:
        """Execute a filtered SELECT and return rows as dicts."""
        tbl = self._table(table)
        stmt = select(tbl)
        where = self._where(tbl, equals)
        if where is not None:
            stmt = stmt.where(where)
        if between is not None:
            column, low, high = between
            stmt = stmt.where(tbl.c[column].between(low, high))
        for column, descending in order_by:
            stmt = stmt.order_by(tbl.c[column].desc() if descending else tbl.c[column].asc())
        with self._translate_errors("select", table), self.engine.connect() as conn:
            return [dict(row) for row in conn.execute(stmt).mappings()]

    def update(self, table: str, equals: Row, values: Row) -> List[Row]:
        """Update matching rows; updated_at is refreshed by the column default."""
        tbl = self._table(table)
        stmt = update(tbl).where(self._where(tbl, equals)).values(**values).returning(*tbl.c)
        with self._translate_errors("update", table), self.engine.begin() as conn:
            return [dict(row) for row in conn.execute(stmt).mappings()]

    def upsert(self, table: str, values: Row, conflict_keys: Sequence[str]) -> Row:
        """INSERT ... ON CONFLICT (conflict_keys) DO UPDATE, returning the stored row."""
        tbl = self._table(table)
        stmt = self._conflict_insert(tbl).values(**values)
        overwrite = {
            column: stmt.excluded[column]
            for column in values
            if column not in conflict_keys and column != "id"
        }
        # ON CONFLICT DO UPDATE skips Python-side onupdate defaults.
        if "updated_at" in tbl.c:
            overwrite["updated_at"] = utcnow()
        stmt = stmt.on_conflict_do_update(index_elements=list(conflict_keys), set_=overwrite)
        with self._translate_errors("upsert", table), self.engine.begin() as conn:
            return dict(conn.execute(stmt.returning(*tbl.c)).mappings().one())

    def record_purchase(self, values: Row) -> Row:
        """Insert the purchase and increment the customer balance in one transaction."""
        purchases = self._table(PURCHASES)
        customers = self._table(CUSTOMERS)
        increment = (
            update(customers)
            .where(
                customers.c.id == values["customer_id"],
                customers.c.store_id == values["store_id"],
            )
            .values(total_points=customers.c.total_points + values["points_earned"])
        )
        with self._translate_errors("record_purchase", PURCHASES), self.engine.begin() as conn:
            # The row lock taken by the increment serializes concurrent purchases.
            if conn.execute(increment).rowcount != 1:
                raise NotFoundError("Customer not found")
            purchase = conn.execute(
                insert(purchases).values(**values).returning(*purchases.c)
            ).mappings().one()
            return dict(purchase)
