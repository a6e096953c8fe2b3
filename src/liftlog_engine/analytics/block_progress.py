"""Periodized training-block adherence for a template.

The block definition lives on the template (``template["block"]``) and is
validated with pydantic. A block that fails validation is reported exactly
like a template without one.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..selectors import template_workouts
from ..utils import DAY, as_number, parse_timestamp, resolve_now, round2, week_start_key

logger = logging.getLogger(__name__)


class WeekPlanEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    week_index: int = Field(default=0, alias="weekIndex")
    target_sessions: int = Field(default=1, alias="targetSessions")
    is_deload: bool = Field(default=False, alias="isDeload")

    @field_validator("week_index", mode="before")
    @classmethod
    def coerce_week_index(cls, value: Any) -> int:
        return max(0, int(as_number(value)))

    @field_validator("target_sessions", mode="before")
    @classmethod
    def coerce_target_sessions(cls, value: Any) -> int:
        # 0 / missing falls back to one session a week.
        return int(as_number(value)) or 1

    @field_validator("is_deload", mode="before")
    @classmethod
    def coerce_is_deload(cls, value: Any) -> bool:
        return bool(value)


class TrainingBlock(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    block_id: str | None = Field(default=None, alias="blockId")
    name: str | None = None
    start_date: datetime | None = Field(default=None, alias="startDate")
    duration_weeks: int = Field(default=0, alias="durationWeeks")
    current_week: int = Field(default=0, alias="currentWeek")
    week_plan: list[WeekPlanEntry] = Field(default_factory=list, alias="weekPlan")

    @field_validator("block_id", mode="before")
    @classmethod
    def coerce_block_id(cls, value: Any) -> str | None:
        if value is None or value == "":
            return None
        return str(value)

    @field_validator("start_date", mode="before")
    @classmethod
    def parse_start_date(cls, value: Any) -> datetime | None:
        return parse_timestamp(value)

    @field_validator("duration_weeks", "current_week", mode="before")
    @classmethod
    def coerce_week_count(cls, value: Any) -> int:
        return max(0, int(as_number(value)))

    @field_validator("week_plan", mode="before")
    @classmethod
    def default_week_plan(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def planned_weeks(self) -> int:
        return self.duration_weeks or len(self.week_plan)

    @property
    def deload_weeks(self) -> list[WeekPlanEntry]:
        return [week for week in self.week_plan if week.is_deload]


def parse_block(template: dict[str, Any] | None) -> TrainingBlock | None:
    """The template's block, or None when it has none or it does not validate."""
    if not isinstance(template, dict):
        return None
    raw = template.get("block")
    if not isinstance(raw, dict):
        return None
    try:
        return TrainingBlock.model_validate(raw)
    except ValidationError as exc:
        logger.warning(
            "Ignoring invalid training block on template %s: %s",
            template.get("id"),
            exc.errors()[0].get("msg") if exc.errors() else exc,
            extra={"liftlog_template_id": template.get("id")},
        )
        return None


@dataclass(frozen=True)
class BlockProgressOptions:
    strict_template_id_match: bool = True
    now: datetime | None = None


@dataclass(frozen=True)
class BlockProgress:
    is_in_block: bool
    weeks_completed: int
    planned_weeks: int
    adherence: float
    deload_compliance: float | None
    status: str  # ahead | on-track | behind
    completed_sessions: int = 0
    expected_sessions: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "isInBlock": self.is_in_block,
            "weeksCompleted": self.weeks_completed,
            "plannedWeeks": self.planned_weeks,
            "adherence": self.adherence,
            "deloadCompliance": self.deload_compliance,
            "status": self.status,
            "completedSessions": self.completed_sessions,
            "expectedSessions": self.expected_sessions,
        }


def elapsed_weeks(start: datetime, now: datetime) -> int:
    """Calendar weeks since ``start``, counting the start week as week 1."""
    if now < start:
        return 0
    return math.floor((now - start) / timedelta(weeks=1)) + 1


def expected_sessions(week_plan: list[WeekPlanEntry], weeks_scope: int) -> int:
    if not week_plan:
        return weeks_scope
    return sum(week.target_sessions for week in week_plan if week.week_index <= weeks_scope)


def _progress_status(adherence: float) -> str:
    if adherence > 1.05:
        return "ahead"
    if adherence < 0.8:
        return "behind"
    return "on-track"


def _deload_compliance(
    block: TrainingBlock,
    workouts: list[dict[str, Any]],
) -> float | None:
    deloads = block.deload_weeks
    if not deloads or block.start_date is None:
        return None

    timestamps = [ts for ts in (parse_timestamp(w.get("date")) for w in workouts) if ts is not None]
    compliant = 0
    for week in deloads:
        offset = max(0, (week.week_index or 1) - 1)
        week_start = block.start_date + offset * 7 * DAY
        week_end = week_start + 6 * DAY
        count = sum(1 for ts in timestamps if week_start <= ts <= week_end)
        if count <= week.target_sessions:
            compliant += 1
    return round2(compliant / len(deloads))


def calculate_block_progress(
    template: dict[str, Any] | None,
    workouts: list[dict[str, Any]],
    options: BlockProgressOptions | None = None,
) -> BlockProgress:
    options = options or BlockProgressOptions()
    block = parse_block(template)
    if block is None:
        return BlockProgress(
            is_in_block=False,
            weeks_completed=0,
            planned_weeks=0,
            adherence=0,
            deload_compliance=None,
            status="on-track",
        )

    reference = resolve_now(options.now)
    matched = template_workouts(
        workouts,
        template,
        strict_template_id_match=options.strict_template_id_match,
    )
    planned = block.planned_weeks
    if block.start_date is not None:
        elapsed = elapsed_weeks(block.start_date, reference)
    else:
        elapsed = block.current_week
    weeks_scope = min(elapsed, planned) if planned > 0 else elapsed

    week_keys: set[str] = set()
    for workout in matched:
        ts = parse_timestamp(workout.get("date"))
        if ts is None:
            continue
        if block.start_date is not None and ts < block.start_date:
            continue
        week_keys.add(week_start_key(ts))

    expected = expected_sessions(block.week_plan, weeks_scope)
    completed = len(matched)
    adherence = round2(completed / expected) if expected > 0 else 0.0

    return BlockProgress(
        is_in_block=weeks_scope <= planned if planned > 0 else True,
        weeks_completed=len(week_keys),
        planned_weeks=planned,
        adherence=adherence,
        deload_compliance=_deload_compliance(block, matched),
        status=_progress_status(adherence),
        completed_sessions=completed,
        expected_sessions=expected,
    )
