"""SQLite-backed entity store.

Design:
- One ``entities`` table keyed by (entity_type, id); the full entity is kept
  as JSON in ``payload`` and the filterable fields are copied into indexed
  columns so ``find`` can filter and paginate in SQL.
- WAL journal mode for concurrent readers (e.g. the CLI querying while an
  ingest runs).
- A single connection per store; ``transaction()`` wraps a handler's writes
  in one BEGIN/COMMIT so a failure leaves no partial state.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Generic

from accessindex.models.entities import (
    AccessControlEvent,
    Contract,
    ContractOwnership,
    RoleMembership,
)
from accessindex.models.query import EntityQuery
from accessindex.store.base import EntityStore, StoreError, T, index_fields

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# DDL
# ---------------------------------------------------------------------------

_CREATE_ENTITIES = """
CREATE TABLE IF NOT EXISTS entities (
    entity_type  TEXT NOT NULL,
    id           TEXT NOT NULL,
    network      TEXT NOT NULL,
    contract     TEXT NOT NULL,
    account      TEXT,
    role         TEXT,
    event_type   TEXT,
    sort_ts      TEXT NOT NULL,
    payload      TEXT NOT NULL,
    PRIMARY KEY (entity_type, id)
);
"""

_CREATE_IDX_CONTRACT = """
CREATE INDEX IF NOT EXISTS idx_entities_contract
    ON entities(entity_type, network, contract, sort_ts);
"""

_CREATE_IDX_ACCOUNT = """
CREATE INDEX IF NOT EXISTS idx_entities_account
    ON entities(entity_type, account, sort_ts);
"""


def _sort_key(ts: datetime) -> str:
    """Fixed-width UTC rendering so text comparison orders chronologically."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


class SqliteRepository(Generic[T]):
    """One entity type's view of the shared ``entities`` table."""

    def __init__(self, store: SqliteEntityStore, entity_type_name: str, model: type[T]) -> None:
        self._store = store
        self.entity_type_name = entity_type_name
        self._model = model

    def get(self, entity_id: str) -> T | None:
        row = self._store._connection.execute(
            "SELECT payload FROM entities WHERE entity_type = ? AND id = ?",
            (self.entity_type_name, entity_id),
        ).fetchone()
        return self._model.model_validate_json(row[0]) if row else None

    def put(self, entity_id: str, entity: T) -> None:
        fields = index_fields(entity)
        self._store._write(
            """
            INSERT OR REPLACE INTO entities
                (entity_type, id, network, contract, account, role,
                 event_type, sort_ts, payload)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                self.entity_type_name,
                entity_id,
                fields["network"],
                fields["contract"],
                fields["account"],
                fields["role"],
                fields["event_type"],
                _sort_key(fields["sort_ts"]),
                entity.model_dump_json(),
            ),
        )
        logger.debug("put %s %s", self.entity_type_name, entity_id)

    def delete(self, entity_id: str) -> None:
        self._store._write(
            "DELETE FROM entities WHERE entity_type = ? AND id = ?",
            (self.entity_type_name, entity_id),
        )
        logger.debug("delete %s %s", self.entity_type_name, entity_id)

    def find(self, query: EntityQuery) -> list[T]:
        clauses = ["entity_type = ?"]
        params: list[Any] = [self.entity_type_name]
        for name in ("network", "contract", "account", "role"):
            value = getattr(query, name)
            if value is not None:
                clauses.append(f"{name} = ?")
                params.append(value)
        if query.event_type is not None:
            clauses.append("event_type = ?")
            params.append(query.event_type.value)
        if query.since is not None:
            clauses.append("sort_ts >= ?")
            params.append(_sort_key(query.since))
        if query.until is not None:
            clauses.append("sort_ts <= ?")
            params.append(_sort_key(query.until))

        sql = (
            "SELECT payload FROM entities WHERE "
            + " AND ".join(clauses)
            + " ORDER BY sort_ts DESC, id DESC LIMIT ? OFFSET ?"
        )
        params.extend([query.first, query.offset])
        rows = self._store._connection.execute(sql, params).fetchall()
        return [self._model.model_validate_json(row[0]) for row in rows]


class SqliteEntityStore(EntityStore):
    """Persistent store for all four entity types.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file. Created (with parent directories)
        if it does not exist. ``":memory:"`` gives a throwaway database.
    """

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = str(db_path)
        if self._db_path != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        # isolation_level=None: autocommit unless inside transaction().
        self._conn: sqlite3.Connection | None = sqlite3.connect(
            self._db_path, check_same_thread=False, isolation_level=None
        )
        self._in_transaction = False
        self._init_schema()

        self.events = SqliteRepository(self, "AccessControlEvent", AccessControlEvent)
        self.memberships = SqliteRepository(self, "RoleMembership", RoleMembership)
        self.ownerships = SqliteRepository(self, "ContractOwnership", ContractOwnership)
        self.contracts = SqliteRepository(self, "Contract", Contract)

    @property
    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreError(f"Store at {self._db_path} is closed")
        return self._conn

    def _init_schema(self) -> None:
        conn = self._connection
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute(_CREATE_ENTITIES)
        conn.execute(_CREATE_IDX_CONTRACT)
        conn.execute(_CREATE_IDX_ACCOUNT)

    def _write(self, sql: str, params: tuple[Any, ...]) -> None:
        self._connection.execute(sql, params)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator[None]:
        conn = self._connection
        if self._in_transaction:
            # Nested scopes join the outer transaction.
            yield
            return
        conn.execute("BEGIN")
        self._in_transaction = True
        try:
            yield
        except BaseException:
            conn.execute("ROLLBACK")
            raise
        else:
            conn.execute("COMMIT")
        finally:
            self._in_transaction = False

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> SqliteEntityStore:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
