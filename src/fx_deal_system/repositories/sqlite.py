"""SQLite implementations of repository interfaces."""

from __future__ import annotations

import contextlib
import sqlite3
import threading
from collections.abc import Iterable, Iterator
from dataclasses import replace
from datetime import UTC, datetime
from decimal import Decimal
from pathlib import Path

from fx_deal_system.domain.deals import Deal
from fx_deal_system.exceptions import IntegrityError
from fx_deal_system.repositories.interfaces import DealRepository, TransactionManager


class SQLiteDatabase:
    """SQLite database connection manager.

    Writes issued by repositories commit immediately unless they run inside a
    ``transaction()`` scope, in which case the scope decides.

    One connection is shared by every thread. ``lock`` serializes access to
    it, and a scope holds the lock until it commits or rolls back, so a
    scope opened by one thread never absorbs another thread's writes.
    """

    def __init__(
        self, path: str | Path = ":memory:", check_same_thread: bool = True
    ) -> None:
        self._path = str(path)
        self._check_same_thread = check_same_thread
        self._connection: sqlite3.Connection | None = None
        self._lock = threading.RLock()
        self._local = threading.local()

    @property
    def path(self) -> str:
        return self._path

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def get_connection(self) -> sqlite3.Connection:
        """Get or create the database connection."""
        with self._lock:
            if self._connection is None:
                self._connection = sqlite3.connect(
                    self._path, check_same_thread=self._check_same_thread
                )
                self._connection.row_factory = sqlite3.Row
            return self._connection

    def initialize(self) -> None:
        """Create all database tables."""
        with self._lock:
            conn = self.get_connection()
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS deals (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    deal_unique_id TEXT NOT NULL UNIQUE,
                    from_currency_iso_code TEXT NOT NULL,
                    to_currency_iso_code TEXT NOT NULL,
                    deal_timestamp TEXT NOT NULL,
                    deal_amount TEXT NOT NULL,
                    created_at TEXT NOT NULL
                );
                CREATE UNIQUE INDEX IF NOT EXISTS idx_deal_unique_id ON deals(deal_unique_id);
                """
            )
            conn.commit()

    @property
    def _scope_depth(self) -> int:
        return getattr(self._local, "depth", 0)

    @_scope_depth.setter
    def _scope_depth(self, value: int) -> None:
        self._local.depth = value

    @property
    def in_transaction_scope(self) -> bool:
        """Whether the calling thread has a scope open."""
        return self._scope_depth > 0

    def commit(self) -> None:
        if not self.in_transaction_scope:
            self.get_connection().commit()

    def rollback(self) -> None:
        if not self.in_transaction_scope:
            self.get_connection().rollback()

    @contextlib.contextmanager
    def transaction(self) -> Iterator[None]:
        """Run the enclosed writes as one unit.

        The outermost scope maps to BEGIN/COMMIT/ROLLBACK. A single connection
        cannot suspend an open transaction, so a nested scope on the same
        thread becomes a savepoint of the enclosing one.
        """
        with self._lock:
            conn = self.get_connection()
            savepoint = f"sp_{self._scope_depth}" if self._scope_depth else None
            if savepoint:
                conn.execute(f"SAVEPOINT {savepoint}")
            else:
                if conn.in_transaction:
                    conn.commit()
                conn.execute("BEGIN")
            self._scope_depth += 1
            try:
                yield
            except BaseException:
                self._scope_depth -= 1
                if savepoint:
                    conn.execute(f"ROLLBACK TO SAVEPOINT {savepoint}")
                    conn.execute(f"RELEASE SAVEPOINT {savepoint}")
                else:
                    conn.rollback()
                raise
            self._scope_depth -= 1
            if savepoint:
                conn.execute(f"RELEASE SAVEPOINT {savepoint}")
            else:
                conn.commit()

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None


class SQLiteTransactionManager(TransactionManager):
    """Transaction scopes backed by a SQLiteDatabase."""

    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def requires_new(self) -> contextlib.AbstractContextManager[None]:
        return self._db.transaction()


class SQLiteDealRepository(DealRepository):
    """SQLite implementation of DealRepository."""

    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def exists_by_deal_unique_id(self, deal_unique_id: str) -> bool:
        with self._db.lock:
            row = self._db.get_connection().execute(
                "SELECT 1 FROM deals WHERE deal_unique_id = ? LIMIT 1", (deal_unique_id,)
            ).fetchone()
        return row is not None

    def add(self, deal: Deal) -> Deal:
        created_at = deal.created_at or datetime.now(UTC)
        with self._db.lock:
            conn = self._db.get_connection()
            try:
                cursor = conn.execute(
                    """
                    INSERT INTO deals (deal_unique_id, from_currency_iso_code, to_currency_iso_code,
                                       deal_timestamp, deal_amount, created_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        deal.deal_unique_id,
                        deal.from_currency_iso_code,
                        deal.to_currency_iso_code,
                        deal.deal_timestamp.isoformat(),
                        str(deal.deal_amount),
                        created_at.isoformat(),
                    ),
                )
            except sqlite3.IntegrityError as e:
                self._db.rollback()
                raise IntegrityError(
                    str(e), is_unique_violation="UNIQUE constraint failed" in str(e)
                ) from e
            self._db.commit()
        return replace(deal, id=cursor.lastrowid, created_at=created_at)

    def get_by_deal_unique_id(self, deal_unique_id: str) -> Deal | None:
        with self._db.lock:
            row = self._db.get_connection().execute(
                "SELECT * FROM deals WHERE deal_unique_id = ?", (deal_unique_id,)
            ).fetchone()
        if row is None:
            return None
        return self._row_to_deal(row)

    def list_all(self) -> Iterable[Deal]:
        with self._db.lock:
            rows = self._db.get_connection().execute(
                "SELECT * FROM deals ORDER BY id"
            ).fetchall()
        return [self._row_to_deal(row) for row in rows]

    def count(self) -> int:
        with self._db.lock:
            return self._db.get_connection().execute(
                "SELECT COUNT(*) FROM deals"
            ).fetchone()[0]

    def _row_to_deal(self, row: sqlite3.Row) -> Deal:
        return Deal(
            id=row["id"],
            deal_unique_id=row["deal_unique_id"],
            from_currency_iso_code=row["from_currency_iso_code"],
            to_currency_iso_code=row["to_currency_iso_code"],
            deal_timestamp=datetime.fromisoformat(row["deal_timestamp"]),
            deal_amount=Decimal(row["deal_amount"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )
