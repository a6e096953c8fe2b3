"""Tests for PR detection and flag application."""

from factories import exercise, warmup_set, work_set, workout

from liftlog_engine.history import Records, get_exercise_records
from liftlog_engine.pr_detection import apply_pr_flags, detect_prs_in_workout, has_pr


def _session_1():
    return workout(1, "2026-03-01", exercise("bench", work_set(100, 5), name="Bench Press"))


def _session_2(kg=110, reps=5):
    return workout(2, "2026-03-08", exercise("bench", work_set(kg, reps), name="Bench Press"))


class TestDetect:
    def test_end_to_end_all_three_records(self):
        records = get_exercise_records("bench", [_session_1(), _session_2()])
        assert (records.best_1rm, records.max_weight, records.max_reps) == (128, 110, 5)

        detected = detect_prs_in_workout(_session_2(), [_session_1()])
        assert has_pr(detected)
        prs = detected["bench"]
        assert prs.exercise_name == "Bench Press"
        assert prs.record_types == {"best1RM", "bestSetVolume", "heaviestWeight"}
        assert prs.records_per_set == {0: ["best1RM", "bestSetVolume", "heaviestWeight"]}

    def test_first_exposure_is_a_baseline(self):
        heavy = workout(1, "2026-03-01", exercise("bench", work_set(300, 10)))
        assert detect_prs_in_workout(heavy, []) == {}
        assert not has_pr(detect_prs_in_workout(heavy, [workout(9, "2026-02-01")]))

    def test_prior_excludes_evaluated_workout(self):
        # Including the session itself in prior history would make it compete with itself.
        assert detect_prs_in_workout(_session_2(), [_session_1(), _session_2()]) == {}

    def test_volume_only_record(self):
        detected = detect_prs_in_workout(_session_2(kg=90, reps=10), [_session_1()])
        # 90 * (1 + 10/30) = 120 > 117, 900 > 500, 90 < 100
        assert detected["bench"].record_types == {"best1RM", "bestSetVolume"}

    def test_warmups_and_incomplete_sets_are_ignored(self):
        current = workout(
            2,
            "2026-03-08",
            exercise("bench", warmup_set(150, 3), work_set(150, 3, completed=False), work_set(90, 5)),
        )
        assert detect_prs_in_workout(current, [_session_1()]) == {}

    def test_zero_weight_set_is_ignored(self):
        current = workout(2, "2026-03-08", exercise("bench", work_set(0, 50)))
        assert detect_prs_in_workout(current, [_session_1()]) == {}

    def test_exercise_without_id_is_skipped(self):
        current = workout(2, "2026-03-08", exercise(None, work_set(500, 5)))
        assert detect_prs_in_workout(current, [_session_1()]) == {}

    def test_per_set_indices(self):
        current = workout(
            2,
            "2026-03-08",
            exercise("bench", warmup_set(60, 10), work_set(95, 5), work_set(105, 5)),
        )
        detected = detect_prs_in_workout(current, [_session_1()])
        assert list(detected["bench"].records_per_set) == [2]

    def test_custom_records_function(self):
        calls = []

        def fake_records(exercise_id, workouts):
            calls.append((exercise_id, len(workouts)))
            return Records(best_1rm=500, max_weight=500, max_reps=50, best_set_volume=10000)

        assert detect_prs_in_workout(_session_2(), [_session_1()], get_records=fake_records) == {}
        assert calls == [("bench", 1)]

    def test_does_not_mutate_input(self):
        current = _session_2()
        detect_prs_in_workout(current, [_session_1()])
        assert "isBest1RM" not in current["exercises"][0]["sets"][0]

    def test_to_dict(self):
        detected = detect_prs_in_workout(_session_2(), [_session_1()])
        assert detected["bench"].to_dict() == {
            "exerciseName": "Bench Press",
            "recordTypes": ["best1RM", "bestSetVolume", "heaviestWeight"],
            "recordsPerSet": {0: ["best1RM", "bestSetVolume", "heaviestWeight"]},
            "occurrences": {0: {0: ["best1RM", "bestSetVolume", "heaviestWeight"]}},
        }

    def test_repeated_exercise_keeps_every_occurrence(self):
        current = workout(
            2,
            "2026-03-08",
            exercise("bench", work_set(120, 5), name="Bench Press"),
            exercise("row", work_set(60, 10)),
            exercise("bench", work_set(60, 20), name="Bench Press"),
        )
        prs = detect_prs_in_workout(current, [_session_1()])["bench"]
        # 60 * 20 = 1200 > 500 volume, 60 * (1 + 20/30) = 100 < 117 1RM
        assert prs.occurrences == {
            0: {0: ["best1RM", "bestSetVolume", "heaviestWeight"]},
            2: {0: ["bestSetVolume"]},
        }
        assert prs.exercise_index == 0
        assert prs.record_types == {"best1RM", "bestSetVolume", "heaviestWeight"}

    def test_null_set_entries_keep_stored_positions(self):
        current = workout(2, "2026-03-08", exercise("bench", None, work_set(120, 5)))
        detected = detect_prs_in_workout(current, [_session_1()])
        assert list(detected["bench"].records_per_set) == [1]

    def test_null_exercise_entries_keep_stored_positions(self):
        current = _session_2()
        current["exercises"].insert(0, None)
        assert detect_prs_in_workout(current, [_session_1()])["bench"].exercise_index == 1


class TestApplyFlags:
    def test_flags_are_set_on_copy(self):
        current = _session_2()
        flagged = apply_pr_flags(current, detect_prs_in_workout(current, [_session_1()]))
        flagged_set = flagged["exercises"][0]["sets"][0]
        assert flagged_set["isBest1RM"] is True
        assert flagged_set["isBestSetVolume"] is True
        assert flagged_set["isHeaviestWeight"] is True
        assert "isBest1RM" not in current["exercises"][0]["sets"][0]

    def test_edit_revokes_flags(self):
        flagged = apply_pr_flags(_session_2(), detect_prs_in_workout(_session_2(), [_session_1()]))

        flagged["exercises"][0]["sets"][0]["kg"] = 50
        redetected = detect_prs_in_workout(flagged, [_session_1()])
        reflagged = apply_pr_flags(flagged, redetected)

        assert redetected == {}
        edited_set = reflagged["exercises"][0]["sets"][0]
        assert edited_set["isBest1RM"] is False
        assert edited_set["isBestSetVolume"] is False
        assert edited_set["isHeaviestWeight"] is False

    def test_edit_can_grant_flags(self):
        modest = _session_2(kg=90, reps=3)
        assert detect_prs_in_workout(modest, [_session_1()]) == {}

        modest["exercises"][0]["sets"][0]["kg"] = 120
        reflagged = apply_pr_flags(modest, detect_prs_in_workout(modest, [_session_1()]))
        assert reflagged["exercises"][0]["sets"][0]["isHeaviestWeight"] is True

    def test_sets_on_other_exercises_are_cleared(self):
        current = workout(
            2,
            "2026-03-08",
            exercise("bench", work_set(110, 5)),
            exercise("row", work_set(60, 10, isBest1RM=True)),
        )
        flagged = apply_pr_flags(current, detect_prs_in_workout(current, [_session_1()]))
        assert flagged["exercises"][1]["sets"][0]["isBest1RM"] is False

    def test_every_occurrence_of_an_exercise_is_flagged(self):
        current = workout(
            2,
            "2026-03-08",
            exercise("bench", work_set(120, 5)),
            exercise("bench", work_set(60, 10)),
        )
        flagged = apply_pr_flags(current, detect_prs_in_workout(current, [_session_1()]))
        first, second = (ex["sets"][0] for ex in flagged["exercises"])
        assert first["isHeaviestWeight"] is True
        assert first["isBest1RM"] is True
        # 600 > 500 volume only
        assert second["isBestSetVolume"] is True
        assert second["isHeaviestWeight"] is False

    def test_flag_lands_on_stored_set_after_null_entry(self):
        current = workout(2, "2026-03-08", exercise("bench", None, work_set(120, 5)))
        flagged = apply_pr_flags(current, detect_prs_in_workout(current, [_session_1()]))
        assert flagged["exercises"][0]["sets"][0] is None
        assert flagged["exercises"][0]["sets"][1]["isHeaviestWeight"] is True
