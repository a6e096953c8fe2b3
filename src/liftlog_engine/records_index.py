"""Records index: an O(1) cache of per-exercise personal records.

The in-memory map is always updated first so ``get()`` is correct
immediately; the store write is awaited afterwards and may fail on its own
(logged, counted, never raised). A miss is always safe because callers fall
back to recomputing from history.

Callers own invalidation ordering: every path that mutates workout history
must follow up with ``update_one``/``update_many``/``rebuild_all``/``clear``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Iterable
from typing import Any

from .history import Records, get_exercise_records
from .metrics import (
    record_cache_hit,
    record_cache_miss,
    record_persist_failure,
    record_rebuild,
)
from .store import CollectionStore, Collections

logger = logging.getLogger(__name__)

RecordsFn = Callable[[Any, list[dict[str, Any]]], Records]


class RecordsIndex:
    def __init__(
        self,
        store: CollectionStore,
        *,
        collection: str = Collections.RECORDS_INDEX,
        compute: RecordsFn = get_exercise_records,
    ) -> None:
        self._store = store
        self._collection = collection
        self._compute = compute
        self._records: dict[Any, Records] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, exercise_id: Any) -> bool:
        return exercise_id in self._records

    def snapshot(self) -> dict[Any, Records]:
        return dict(self._records)

    async def load(self) -> int:
        """Read every persisted entry. A failed read leaves a cold (empty) cache."""
        try:
            rows = await self._store.get_all(self._collection)
        except Exception:
            logger.exception("Failed to load records index; starting cold")
            self._records = {}
            return 0

        loaded: dict[Any, Records] = {}
        for row in rows:
            if not isinstance(row, dict):
                continue
            exercise_id = row.get("exerciseId", row.get("id"))
            if exercise_id is None:
                continue
            loaded[exercise_id] = Records.from_dict(row.get("records"))
        self._records = loaded
        logger.info("Loaded records index (%d exercises)", len(loaded))
        return len(loaded)

    def get(self, exercise_id: Any) -> Records | None:
        """Cached records, or None meaning "not cached, recompute"."""
        records = self._records.get(exercise_id)
        if records is None:
            record_cache_miss()
        else:
            record_cache_hit()
        return records

    def lookup(self, exercise_id: Any, workouts: list[dict[str, Any]]) -> Records:
        """Cache hit, or the direct O(sessions) computation on a miss."""
        cached = self.get(exercise_id)
        if cached is not None:
            return cached
        return self._compute(exercise_id, workouts)

    async def _persist(self, exercise_id: Any, records: Records) -> bool:
        row = {"id": exercise_id, "exerciseId": exercise_id, "records": records.to_dict()}
        try:
            await self._store.set(self._collection, row)
        except Exception:
            record_persist_failure()
            logger.exception(
                "Failed to persist records for exercise %s",
                exercise_id,
                extra={"liftlog_exercise_id": exercise_id},
            )
            return False
        return True

    async def update_one(self, exercise_id: Any, workouts: list[dict[str, Any]]) -> Records | None:
        """Recompute one exercise after its sets changed (edit/toggle)."""
        if exercise_id is None:
            return None
        records = self._compute(exercise_id, workouts or [])
        self._records[exercise_id] = records
        await self._persist(exercise_id, records)
        return records

    async def update_many(
        self,
        exercise_ids: Iterable[Any],
        workouts: list[dict[str, Any]],
    ) -> dict[Any, Records]:
        """Batch ``update_one`` (after finishing a workout); writes run concurrently."""
        updates: dict[Any, Records] = {}
        for exercise_id in exercise_ids or []:
            if exercise_id is None or exercise_id in updates:
                continue
            updates[exercise_id] = self._compute(exercise_id, workouts or [])

        self._records.update(updates)
        await asyncio.gather(*(self._persist(ex_id, rec) for ex_id, rec in updates.items()))
        return updates

    async def rebuild_all(
        self,
        workouts: list[dict[str, Any]],
        catalog: list[dict[str, Any]],
    ) -> int:
        """Drop everything and recompute for every catalog exercise.

        O(exercises x sessions): reserved for import and integrity recovery.
        Each entry is written independently, so an interrupted rebuild leaves
        a partial but never incorrect cache.
        """
        started = time.monotonic()
        rebuilt: dict[Any, Records] = {}
        for entry in catalog or []:
            exercise_id = entry.get("id") if isinstance(entry, dict) else None
            if exercise_id is None:
                continue
            rebuilt[exercise_id] = self._compute(exercise_id, workouts or [])

        self._records = rebuilt
        try:
            await self._store.clear(self._collection)
        except Exception:
            record_persist_failure()
            logger.exception("Failed to clear persisted records index before rebuild")

        results = await asyncio.gather(*(self._persist(ex_id, rec) for ex_id, rec in rebuilt.items()))
        duration_ms = (time.monotonic() - started) * 1000
        record_rebuild(duration_ms, len(rebuilt))
        logger.info(
            "Rebuilt records index for %d exercises (%d persisted, %.1fms)",
            len(rebuilt),
            sum(1 for ok in results if ok),
            duration_ms,
            extra={"liftlog_duration_ms": round(duration_ms, 1)},
        )
        return len(rebuilt)

    async def clear(self) -> None:
        """Drop memory and persisted entries without recomputing (before a destructive import)."""
        self._records = {}
        try:
            await self._store.clear(self._collection)
        except Exception:
            record_persist_failure()
            logger.exception("Failed to clear persisted records index")
