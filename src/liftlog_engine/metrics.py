"""In-memory records-index metrics.

The engine is single-actor and asyncio is single-threaded, so plain dicts are
safe without locking.
"""

import time

_start_time = time.monotonic()

_metrics: dict = {
    "cache_hits": 0,
    "cache_misses": 0,
    "persist_failures": 0,
    "rebuilds": 0,
    "last_rebuild_ms": None,
    "last_rebuild_entries": 0,
}


def record_cache_hit() -> None:
    _metrics["cache_hits"] += 1


def record_cache_miss() -> None:
    _metrics["cache_misses"] += 1


def record_persist_failure() -> None:
    _metrics["persist_failures"] += 1


def record_rebuild(duration_ms: float, entries: int) -> None:
    _metrics["rebuilds"] += 1
    _metrics["last_rebuild_ms"] = round(duration_ms, 1)
    _metrics["last_rebuild_entries"] = entries


def get_metrics() -> dict:
    """Return a snapshot of current metrics."""
    return {
        "uptime_seconds": round(time.monotonic() - _start_time, 1),
        **_metrics,
    }


def reset_metrics() -> None:
    _metrics.update(
        cache_hits=0,
        cache_misses=0,
        persist_failures=0,
        rebuilds=0,
        last_rebuild_ms=None,
        last_rebuild_entries=0,
    )
