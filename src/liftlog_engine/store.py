"""Key-collection store port and its implementations.

The engine only needs per-collection get_all/get/set/set_many/delete/clear.
``PostgresStore`` keeps every collection in one jsonb table; ``InMemoryStore``
backs tests and embedded use.
"""

from __future__ import annotations

import copy
import json
import logging
from typing import Any, Protocol

import psycopg
from psycopg import sql
from psycopg.rows import dict_row

from .errors import StoreError

logger = logging.getLogger(__name__)


class Collections:
    EXERCISES = "exercises"
    WORKOUTS = "workouts"
    TEMPLATES = "templates"
    RECORDS_INDEX = "recordsIndex"

    ALL: tuple[str, ...] = (EXERCISES, WORKOUTS, TEMPLATES, RECORDS_INDEX)


class CollectionStore(Protocol):
    async def get_all(self, collection: str) -> list[dict[str, Any]]: ...

    async def get(self, collection: str, record_id: Any) -> dict[str, Any] | None: ...

    async def set(self, collection: str, record: dict[str, Any]) -> None: ...

    async def set_many(self, collection: str, records: list[dict[str, Any]]) -> None: ...

    async def delete(self, collection: str, record_id: Any) -> None: ...

    async def clear(self, collection: str) -> None: ...


def _record_id(collection: str, record: dict[str, Any]) -> Any:
    record_id = record.get("id") if isinstance(record, dict) else None
    if record_id is None:
        raise StoreError("set", collection, "record has no 'id'")
    return record_id


class InMemoryStore:
    """Dict-of-dicts store. Records are deep-copied in and out."""

    def __init__(self) -> None:
        self._collections: dict[str, dict[Any, dict[str, Any]]] = {}

    async def get_all(self, collection: str) -> list[dict[str, Any]]:
        return [copy.deepcopy(r) for r in self._collections.get(collection, {}).values()]

    async def get(self, collection: str, record_id: Any) -> dict[str, Any] | None:
        record = self._collections.get(collection, {}).get(record_id)
        return copy.deepcopy(record) if record is not None else None

    async def set(self, collection: str, record: dict[str, Any]) -> None:
        record_id = _record_id(collection, record)
        self._collections.setdefault(collection, {})[record_id] = copy.deepcopy(record)

    async def set_many(self, collection: str, records: list[dict[str, Any]]) -> None:
        for record in records:
            await self.set(collection, record)

    async def delete(self, collection: str, record_id: Any) -> None:
        self._collections.get(collection, {}).pop(record_id, None)

    async def clear(self, collection: str) -> None:
        self._collections.pop(collection, None)


class PostgresStore:
    """All collections in a single ``(collection, id, data jsonb)`` table.

    Ids are stored as text; the original typed id lives inside ``data``.
    """

    def __init__(self, conn: psycopg.AsyncConnection[Any], table: str = "collections") -> None:
        self._conn = conn
        self._table = sql.Identifier(table)

    async def ensure_schema(self) -> None:
        await self._execute(
            "ensure_schema",
            "*",
            sql.SQL(
                """
                CREATE TABLE IF NOT EXISTS {table} (
                    collection TEXT NOT NULL,
                    id TEXT NOT NULL,
                    data JSONB NOT NULL,
                    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                    PRIMARY KEY (collection, id)
                )
                """
            ).format(table=self._table),
            (),
        )

    async def _execute(self, operation: str, collection: str, query: sql.Composed, params: tuple) -> None:
        try:
            async with self._conn.cursor() as cur:
                await cur.execute(query, params)
        except psycopg.Error as exc:
            raise StoreError(operation, collection, str(exc)) from exc

    async def get_all(self, collection: str) -> list[dict[str, Any]]:
        query = sql.SQL(
            "SELECT data FROM {table} WHERE collection = %s ORDER BY id"
        ).format(table=self._table)
        try:
            async with self._conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(query, (collection,))
                rows = await cur.fetchall()
        except psycopg.Error as exc:
            raise StoreError("get_all", collection, str(exc)) from exc
        return [row["data"] for row in rows]

    async def get(self, collection: str, record_id: Any) -> dict[str, Any] | None:
        query = sql.SQL(
            "SELECT data FROM {table} WHERE collection = %s AND id = %s"
        ).format(table=self._table)
        try:
            async with self._conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(query, (collection, str(record_id)))
                row = await cur.fetchone()
        except psycopg.Error as exc:
            raise StoreError("get", collection, str(exc)) from exc
        return row["data"] if row is not None else None

    async def set(self, collection: str, record: dict[str, Any]) -> None:
        record_id = _record_id(collection, record)
        await self._execute(
            "set",
            collection,
            sql.SQL(
                """
                INSERT INTO {table} (collection, id, data, updated_at)
                VALUES (%s, %s, %s, NOW())
                ON CONFLICT (collection, id) DO UPDATE SET
                    data = EXCLUDED.data,
                    updated_at = NOW()
                """
            ).format(table=self._table),
            (collection, str(record_id), json.dumps(record, default=str)),
        )

    async def set_many(self, collection: str, records: list[dict[str, Any]]) -> None:
        if not records:
            return
        try:
            async with self._conn.transaction():
                for record in records:
                    await self.set(collection, record)
        except psycopg.Error as exc:
            raise StoreError("set_many", collection, str(exc)) from exc
        logger.debug("Upserted %d records into %s", len(records), collection)

    async def delete(self, collection: str, record_id: Any) -> None:
        await self._execute(
            "delete",
            collection,
            sql.SQL("DELETE FROM {table} WHERE collection = %s AND id = %s").format(table=self._table),
            (collection, str(record_id)),
        )

    async def clear(self, collection: str) -> None:
        await self._execute(
            "clear",
            collection,
            sql.SQL("DELETE FROM {table} WHERE collection = %s").format(table=self._table),
            (collection,),
        )
