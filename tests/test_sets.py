"""Tests for set-type resolution and storage normalization."""

from liftlog_engine.sets import (
    DEFAULT_PRIORITY,
    is_warmup_set,
    is_work_set,
    normalize_exercise_for_storage,
    normalize_set_for_storage,
    normalize_workout_for_storage,
    resolve_set_type,
    set_time_weight,
)


class TestResolveSetType:
    def test_explicit_type_wins(self):
        assert resolve_set_type({"setType": "drop", "warmup": True}) == "drop"

    def test_legacy_warmup_flag(self):
        assert resolve_set_type({"warmup": True}) == "warmup"

    def test_unknown_type_falls_back(self):
        assert resolve_set_type({"setType": "cluster"}) == "work"
        assert resolve_set_type({"setType": "cluster", "warmup": True}) == "warmup"

    def test_non_dict(self):
        assert resolve_set_type(None) == "work"


class TestWorkSet:
    def test_completed_work_set(self):
        assert is_work_set({"completed": True, "setType": "work"})

    def test_incomplete_set_is_not_work(self):
        assert not is_work_set({"completed": False, "setType": "work"})

    def test_warmup_is_not_work(self):
        s = {"completed": True, "warmup": True}
        assert is_warmup_set(s)
        assert not is_work_set(s)

    def test_drop_set_counts_as_work(self):
        assert is_work_set({"completed": True, "setType": "drop"})


class TestNormalizeSet:
    def test_defaults_are_filled(self):
        normalized = normalize_set_for_storage({"kg": 60, "reps": 8})
        assert normalized["setType"] == "work"
        assert normalized["warmup"] is False
        assert normalized["rir"] is None
        assert normalized["tempo"] is None
        assert normalized["pauseSec"] is None
        assert normalized["kg"] == 60

    def test_legacy_warmup_gets_type(self):
        normalized = normalize_set_for_storage({"kg": 40, "warmup": True})
        assert normalized["setType"] == "warmup"
        assert normalized["warmup"] is True

    def test_fallback_type_overrides(self):
        normalized = normalize_set_for_storage({"kg": 40, "warmup": True}, "drop")
        assert normalized["setType"] == "drop"
        assert normalized["warmup"] is False

    def test_input_not_mutated(self):
        raw = {"kg": 40}
        normalize_set_for_storage(raw)
        assert raw == {"kg": 40}


class TestNormalizeExercise:
    def test_defaults(self):
        normalized = normalize_exercise_for_storage({"name": "Row", "sets": [{"kg": 50}]})
        assert normalized["priority"] == DEFAULT_PRIORITY
        assert normalized["nonNegotiable"] is False
        assert normalized["estimatedSetSec"] is None
        assert "targetMuscles" not in normalized
        assert normalized["sets"][0]["setType"] == "work"

    def test_keeps_explicit_values(self):
        normalized = normalize_exercise_for_storage(
            {"name": "Squat", "priority": 1, "nonNegotiable": True, "targetMuscles": ["Quads"]}
        )
        assert normalized["priority"] == 1
        assert normalized["nonNegotiable"] is True
        assert normalized["targetMuscles"] == ["Quads"]
        assert normalized["sets"] == []

    def test_workout_normalization_drops_junk_exercises(self):
        normalized = normalize_workout_for_storage({"id": 1, "exercises": [None, {"name": "Row"}]})
        assert len(normalized["exercises"]) == 1
        assert normalized["tags"] == []


class TestSetTimeWeight:
    def test_weights(self):
        assert set_time_weight("warmup") == 0.65
        assert set_time_weight("drop") == 1.2
        assert set_time_weight("failure") == 1.2
        assert set_time_weight("tempo") == 1.35
        assert set_time_weight("pause") == 1.35
        assert set_time_weight("work") == 1.0
        assert set_time_weight() == 1.0
