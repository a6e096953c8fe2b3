"""CLI entry point for running analytics and index maintenance against Postgres."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from typing import Any, Sequence

import psycopg

from .analytics import (
    PlateauOptions,
    VolumeLandmarkOptions,
    calculate_muscle_balance,
    calculate_readiness,
    compute_volume_landmarks,
    detect_plateau,
)
from .config import Config
from .ledger import WorkoutLedger
from .logging import setup_logging
from .metrics import get_metrics
from .selectors import create_exercise_map
from .store import PostgresStore
from .testdata import WorkoutGenerator

logger = logging.getLogger(__name__)


def _exercise_id(value: str) -> Any:
    """Catalog ids are ints in most exports; keep anything else as text."""
    return int(value) if value.lstrip("-").isdigit() else value


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="liftlog-engine",
        description="Training analytics and personal-record index maintenance.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser(
        "rebuild-index",
        help="Recompute the records index for every catalog exercise.",
    )
    sub.add_parser("readiness", help="Acute:chronic load readiness for today.")
    plateau = sub.add_parser("plateau", help="Plateau check for one exercise.")
    plateau.add_argument(
        "--exercise-id",
        required=True,
        type=_exercise_id,
        help="Catalog id of the exercise to check.",
    )
    plateau.add_argument(
        "--min-stagnation-exposures",
        default=3,
        type=int,
        help="Sessions without a new high before a metric counts as stagnant.",
    )
    sub.add_parser("balance", help="Push/pull, chest/back and quad/ham balance.")
    landmarks = sub.add_parser("landmarks", help="Per-muscle weekly set landmarks.")
    landmarks.add_argument(
        "--weeks-window",
        default=12,
        type=int,
        help="Trailing weeks of history to consider.",
    )
    seed = sub.add_parser(
        "seed-testdata",
        help="Replace stored history with seeded synthetic workouts (destructive).",
    )
    seed.add_argument("--count", default=500, type=int, help="Number of workouts to generate.")
    seed.add_argument("--seed", default=42, type=int, help="Random seed.")
    return parser


async def _execute(args: argparse.Namespace, ledger: WorkoutLedger) -> dict[str, Any]:
    if args.command == "rebuild-index":
        entries = await ledger.rebuild_index()
        return {"rebuilt": entries, "metrics": get_metrics()}

    if args.command == "seed-testdata":
        generator = WorkoutGenerator(args.seed)
        entries = await ledger.import_history(generator.workouts(args.count), generator.catalog())
        return {"workouts": len(ledger.workouts), "indexed": entries}

    workouts = ledger.workouts
    if args.command == "readiness":
        return calculate_readiness(workouts).to_dict()
    if args.command == "plateau":
        options = PlateauOptions(min_stagnation_exposures=args.min_stagnation_exposures)
        return detect_plateau(args.exercise_id, workouts, options).to_dict()
    if args.command == "balance":
        return calculate_muscle_balance(workouts, ledger.exercises).to_dict()
    if args.command == "landmarks":
        options = VolumeLandmarkOptions(
            weeks_window=args.weeks_window,
            exercise_map=create_exercise_map(ledger.exercises),
        )
        return compute_volume_landmarks(workouts, options).to_dict()
    raise ValueError(f"unknown command: {args.command}")


async def _run(args: argparse.Namespace) -> int:
    config = Config.from_env()
    setup_logging(config.log_format, config.log_level)

    async with await psycopg.AsyncConnection.connect(config.database_url, autocommit=True) as conn:
        store = PostgresStore(conn, table=config.collections_table)
        await store.ensure_schema()
        ledger = WorkoutLedger(store)
        await ledger.load()
        result = await _execute(args, ledger)

    print(json.dumps(result, indent=2, sort_keys=True, default=str))
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    raise SystemExit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
