"""Seeded synthetic workout history for load and consistency testing.

The same seed and reference date always produce the same history, so the
output can back deterministic tests as well as bulk imports.
"""

from __future__ import annotations

import random
from datetime import datetime
from typing import Any

from .utils import DAY, resolve_now

CATALOG: tuple[dict[str, Any], ...] = (
    {"id": 1, "name": "Bench Press", "category": "Push", "muscles": ["Chest", "Shoulders", "Triceps"]},
    {"id": 2, "name": "Squat", "category": "Legs", "muscles": ["Quads", "Glutes"]},
    {"id": 3, "name": "Deadlift", "category": "Pull", "muscles": ["Hamstrings", "Back", "Glutes"]},
    {"id": 4, "name": "Pull-ups", "category": "Pull", "muscles": ["Back", "Biceps"]},
    {"id": 5, "name": "Dumbbell Rows", "category": "Pull", "muscles": ["Back", "Biceps"]},
    {"id": 6, "name": "Leg Press", "category": "Legs", "muscles": ["Quads"]},
    {"id": 7, "name": "Overhead Press", "category": "Push", "muscles": ["Shoulders", "Triceps"]},
    {"id": 8, "name": "Barbell Curls", "category": "Pull", "muscles": ["Biceps"]},
)

WORKOUT_NAMES: tuple[str, ...] = (
    "Upper Body Day",
    "Lower Body Day",
    "Full Body",
    "Push Day",
    "Pull Day",
    "Leg Day",
    "Strength Focus",
    "Hypertrophy",
)

RISK_TAGS: tuple[str, ...] = ("#sleep-bad", "#stress", "#sick")


class WorkoutGenerator:
    """Random but reproducible workouts spread over a trailing window."""

    def __init__(self, seed: int = 42, *, now: datetime | None = None, days: int = 730):
        self.rng = random.Random(seed)
        self.now = resolve_now(now)
        self.days = days

    def catalog(self) -> list[dict[str, Any]]:
        return [dict(entry, muscles=list(entry["muscles"])) for entry in CATALOG]

    def _sets(self) -> list[dict[str, Any]]:
        rng = self.rng
        base_kg = 50 + rng.random() * 100
        sets = []
        for index in range(rng.randint(2, 5)):
            warmup = index == 0 and rng.random() > 0.6
            kg = base_kg * 0.6 if warmup else base_kg + (rng.random() - 0.3) * 5
            reps = 8 + rng.random() * 4 if warmup else 5 + rng.random() * 6
            sets.append({
                "kg": round(kg * 2) / 2,
                "reps": round(reps),
                "completed": rng.random() > 0.05,
                "warmup": warmup,
                "setType": "warmup" if warmup else "work",
            })
        return sets

    def workout(self, workout_id: int) -> dict[str, Any]:
        rng = self.rng
        date = self.now - rng.randrange(self.days) * DAY
        exercises = [
            {
                "exerciseId": entry["id"],
                "name": entry["name"],
                "category": entry["category"],
                "sets": self._sets(),
            }
            for entry in rng.sample(CATALOG, rng.randint(1, 5))
        ]
        tags = [rng.choice(RISK_TAGS)] if rng.random() > 0.9 else []
        return {
            "id": workout_id,
            "date": date.date().isoformat(),
            "name": rng.choice(WORKOUT_NAMES),
            "exercises": exercises,
            "duration": round(30 + rng.random() * 60),
            "tags": tags,
        }

    def workouts(self, count: int = 500) -> list[dict[str, Any]]:
        return [self.workout(i + 1) for i in range(count)]


def generate_test_workouts(count: int = 500, *, seed: int = 42, now: datetime | None = None) -> list[dict[str, Any]]:
    return WorkoutGenerator(seed, now=now).workouts(count)


def generate_test_exercises() -> list[dict[str, Any]]:
    return WorkoutGenerator().catalog()
