"""PostgreSQL implementations of repository interfaces."""

from __future__ import annotations

import contextlib
import threading
from collections.abc import Iterable, Iterator
from dataclasses import replace
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

import psycopg2
import psycopg2.errorcodes
import psycopg2.extras

from fx_deal_system.domain.deals import Deal
from fx_deal_system.exceptions import IntegrityError
from fx_deal_system.repositories.interfaces import DealRepository, TransactionManager


class PostgresDatabase:
    """PostgreSQL database connection manager.

    The connection is shared between threads; ``lock`` is held by a
    transaction scope until it ends and by every repository call.
    """

    def __init__(self, connection_string: str) -> None:
        self._connection_string = connection_string
        self._connection: psycopg2.extensions.connection | None = None
        self._lock = threading.RLock()
        self._local = threading.local()

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def get_connection(self) -> psycopg2.extensions.connection:
        """Get or create the database connection."""
        with self._lock:
            if self._connection is None or self._connection.closed:
                self._connection = psycopg2.connect(
                    self._connection_string,
                    cursor_factory=psycopg2.extras.RealDictCursor,
                )
            return self._connection

    def initialize(self) -> None:
        """Create all database tables."""
        with self._lock:
            conn = self.get_connection()
            with conn.cursor() as cur:
                cur.execute(
                    """
                    CREATE TABLE IF NOT EXISTS deals (
                        id BIGSERIAL PRIMARY KEY,
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
        """Run the enclosed writes as one unit; nested scopes use savepoints."""
        with self._lock:
            conn = self.get_connection()
            savepoint = f"sp_{self._scope_depth}" if self._scope_depth else None
            if savepoint:
                with conn.cursor() as cur:
                    cur.execute(f"SAVEPOINT {savepoint}")
            else:
                # Reads outside a scope leave psycopg2's implicit transaction open.
                conn.commit()
            self._scope_depth += 1
            try:
                yield
            except BaseException:
                self._scope_depth -= 1
                if savepoint:
                    with conn.cursor() as cur:
                        cur.execute(f"ROLLBACK TO SAVEPOINT {savepoint}")
                else:
                    conn.rollback()
                raise
            self._scope_depth -= 1
            if savepoint:
                with conn.cursor() as cur:
                    cur.execute(f"RELEASE SAVEPOINT {savepoint}")
            else:
                conn.commit()

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self._connection is not None and not self._connection.closed:
                self._connection.close()
            self._connection = None


class PostgresTransactionManager(TransactionManager):
    """Transaction scopes backed by a PostgresDatabase."""

    def __init__(self, database: PostgresDatabase) -> None:
        self._db = database

    def requires_new(self) -> contextlib.AbstractContextManager[None]:
        return self._db.transaction()


class PostgresDealRepository(DealRepository):
    """PostgreSQL implementation of DealRepository."""

    def __init__(self, database: PostgresDatabase) -> None:
        self._db = database

    def exists_by_deal_unique_id(self, deal_unique_id: str) -> bool:
        with self._db.lock, self._db.get_connection().cursor() as cur:
            cur.execute(
                "SELECT 1 FROM deals WHERE deal_unique_id = %s LIMIT 1",
                (deal_unique_id,),
            )
            row = cur.fetchone()
        return row is not None

    def add(self, deal: Deal) -> Deal:
        created_at = deal.created_at or datetime.now(UTC)
        with self._db.lock:
            conn = self._db.get_connection()
            try:
                with conn.cursor() as cur:
                    cur.execute(
                        """
                        INSERT INTO deals (deal_unique_id, from_currency_iso_code, to_currency_iso_code,
                                           deal_timestamp, deal_amount, created_at)
                        VALUES (%s, %s, %s, %s, %s, %s)
                        RETURNING id
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
                    row = cur.fetchone()
            except psycopg2.IntegrityError as e:
                self._db.rollback()
                raise IntegrityError(
                    str(e),
                    is_unique_violation=e.pgcode == psycopg2.errorcodes.UNIQUE_VIOLATION,
                ) from e
            self._db.commit()
        return replace(deal, id=row["id"], created_at=created_at)

    def get_by_deal_unique_id(self, deal_unique_id: str) -> Deal | None:
        with self._db.lock, self._db.get_connection().cursor() as cur:
            cur.execute(
                "SELECT * FROM deals WHERE deal_unique_id = %s", (deal_unique_id,)
            )
            row = cur.fetchone()
        if row is None:
            return None
        return self._row_to_deal(row)

    def list_all(self) -> Iterable[Deal]:
        with self._db.lock, self._db.get_connection().cursor() as cur:
            cur.execute("SELECT * FROM deals ORDER BY id")
            rows = cur.fetchall()
        return [self._row_to_deal(row) for row in rows]

    def count(self) -> int:
        with self._db.lock, self._db.get_connection().cursor() as cur:
            cur.execute("SELECT COUNT(*) AS total FROM deals")
            row = cur.fetchone()
        return int(row["total"])

    def _row_to_deal(self, row: dict[str, Any]) -> Deal:
        return Deal(
            id=row["id"],
            deal_unique_id=row["deal_unique_id"],
            from_currency_iso_code=row["from_currency_iso_code"],
            to_currency_iso_code=row["to_currency_iso_code"],
            deal_timestamp=datetime.fromisoformat(row["deal_timestamp"]),
            deal_amount=Decimal(row["deal_amount"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )
