"""Tests for training-block adherence tracking."""

import pytest
from factories import NOW, workout

from liftlog_engine.analytics.block_progress import (
    BlockProgressOptions,
    TrainingBlock,
    calculate_block_progress,
    elapsed_weeks,
    parse_block,
)
from liftlog_engine.utils import parse_timestamp

OPTIONS = BlockProgressOptions(now=NOW)

FULL_BLOCK_DATES = [
    "2026-02-23", "2026-02-26",  # week 1
    "2026-03-02", "2026-03-05",  # week 2
    "2026-03-09", "2026-03-11",  # week 3
    "2026-03-16",  # week 4 (deload)
]


def _template(**block_overrides):
    block = {
        "blockId": "b1",
        "name": "Hypertrophy 1",
        "startDate": "2026-02-23",
        "durationWeeks": 4,
        "weekPlan": [
            {"weekIndex": 1, "targetSessions": 2},
            {"weekIndex": 2, "targetSessions": 2},
            {"weekIndex": 3, "targetSessions": 2},
            {"weekIndex": 4, "targetSessions": 1, "isDeload": True},
        ],
    }
    block.update(block_overrides)
    return {"id": "t1", "name": "Push A", "block": block}


def _logged(dates, **extra):
    return [workout(i, d, templateId="t1", **extra) for i, d in enumerate(dates)]


class TestTrainingBlockModel:
    def test_lenient_coercion(self):
        block = TrainingBlock.model_validate(
            {"durationWeeks": "6", "weekPlan": [{"weekIndex": "2", "targetSessions": 0}]}
        )
        assert block.duration_weeks == 6
        assert block.week_plan[0].week_index == 2
        assert block.week_plan[0].target_sessions == 1
        assert block.start_date is None

    def test_planned_weeks_falls_back_to_plan_length(self):
        block = TrainingBlock.model_validate({"weekPlan": [{}, {}, {}]})
        assert block.planned_weeks == 3

    def test_invalid_block_is_ignored(self):
        assert parse_block({"id": "t1", "block": {"weekPlan": "nope"}}) is None
        assert parse_block({"id": "t1", "block": {"weekPlan": ["x"]}}) is None
        assert parse_block({"id": "t1"}) is None
        assert parse_block(None) is None


class TestElapsedWeeks:
    def test_start_week_is_week_one(self):
        start = parse_timestamp("2026-03-16")
        assert elapsed_weeks(start, NOW) == 1

    def test_three_weeks_in(self):
        assert elapsed_weeks(parse_timestamp("2026-02-23"), NOW) == 4

    def test_before_start(self):
        assert elapsed_weeks(parse_timestamp("2026-04-01"), NOW) == 0


class TestCalculateBlockProgress:
    def test_on_track_block(self):
        result = calculate_block_progress(_template(), _logged(FULL_BLOCK_DATES), OPTIONS)
        assert result.is_in_block is True
        assert result.planned_weeks == 4
        assert result.weeks_completed == 4
        assert result.expected_sessions == 7
        assert result.adherence == 1.0
        assert result.status == "on-track"
        assert result.deload_compliance == 1.0

    def test_behind(self):
        result = calculate_block_progress(_template(), _logged(FULL_BLOCK_DATES[:3]), OPTIONS)
        assert result.adherence == 0.43
        assert result.status == "behind"

    def test_ahead(self):
        dates = FULL_BLOCK_DATES[:6] + ["2026-03-06", "2026-03-12"]
        result = calculate_block_progress(_template(), _logged(dates), OPTIONS)
        assert result.adherence == 1.14
        assert result.status == "ahead"
        # nothing logged in the deload week
        assert result.deload_compliance == 1.0

    def test_deload_overshoot_is_non_compliant(self):
        dates = FULL_BLOCK_DATES + ["2026-03-16"]
        result = calculate_block_progress(_template(), _logged(dates), OPTIONS)
        assert result.deload_compliance == 0.0

    def test_workouts_from_other_templates_do_not_count(self):
        workouts = _logged(FULL_BLOCK_DATES) + [workout(99, "2026-03-10", templateId="t2")]
        assert calculate_block_progress(_template(), workouts, OPTIONS).adherence == 1.0

    def test_weeks_before_start_are_not_completed_weeks(self):
        workouts = _logged(["2026-02-16", "2026-02-23"])
        assert calculate_block_progress(_template(), workouts, OPTIONS).weeks_completed == 1

    def test_no_block_is_neutral(self):
        result = calculate_block_progress({"id": "t1"}, _logged(FULL_BLOCK_DATES), OPTIONS)
        assert result.is_in_block is False
        assert result.adherence == 0
        assert result.status == "on-track"
        assert result.deload_compliance is None

    def test_invalid_block_is_neutral(self):
        template = {"id": "t1", "block": {"weekPlan": 7}}
        assert calculate_block_progress(template, [], OPTIONS).is_in_block is False

    def test_current_week_without_start_date(self):
        template = _template(startDate=None, currentWeek=2, weekPlan=None)
        result = calculate_block_progress(template, _logged(["2026-03-09", "2026-03-12"]), OPTIONS)
        assert result.is_in_block is True
        assert result.expected_sessions == 2
        assert result.adherence == 1.0
        assert result.deload_compliance is None

    def test_not_started_block_is_in_block(self):
        result = calculate_block_progress(_template(startDate="2026-04-06"), [], OPTIONS)
        assert result.is_in_block is True
        assert result.expected_sessions == 0
        assert result.adherence == 0

    def test_finished_block_is_capped_at_planned_weeks(self):
        result = calculate_block_progress(_template(startDate="2025-12-01"), [], OPTIONS)
        assert result.is_in_block is True
        assert result.expected_sessions == 7
        assert result.status == "behind"

    def test_week_zero_without_start_date_is_in_block(self):
        template = _template(startDate=None, currentWeek=0)
        result = calculate_block_progress(template, [], OPTIONS)
        assert result.is_in_block is True
        assert result.expected_sessions == 0

    def test_relaxed_matching_uses_block_ref(self):
        workouts = [workout(i, d, blockRef={"blockId": "b1"}) for i, d in enumerate(FULL_BLOCK_DATES)]
        strict = calculate_block_progress(_template(), workouts, OPTIONS)
        relaxed = calculate_block_progress(
            _template(),
            workouts,
            BlockProgressOptions(strict_template_id_match=False, now=NOW),
        )
        assert strict.adherence == 0
        assert relaxed.adherence == 1.0

    @pytest.mark.parametrize("template", [None, {}, {"block": None}])
    def test_missing_template(self, template):
        assert calculate_block_progress(template, [], OPTIONS).status == "on-track"

    def test_to_dict(self):
        data = calculate_block_progress(_template(), _logged(FULL_BLOCK_DATES), OPTIONS).to_dict()
        assert data["isInBlock"] is True
        assert data["deloadCompliance"] == 1.0
        assert data["plannedWeeks"] == 4
