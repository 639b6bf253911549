"""
Integration tests for the session-queue pipeline.

Each test exercises part of the path: WorkoutTemplate + logs →
targets → planned sets → render items → superset rounds → flat queue.
Hand-computed expected values are included in comments.
"""

import pytest

from workout_engine.core.exercises.base import ExerciseDefinition, MuscleEngagement
from workout_engine.core.models import (
    LoggedSet,
    PlannedSet,
    ResolvedTargets,
    StandaloneItem,
    SupersetItem,
    SupersetMember,
    TemplateExercise,
    WorkoutTemplate,
)
from workout_engine.core.rounds import build_superset_rounds
from workout_engine.core.set_queue import build_render_items, flatten_sets, item_has_pending
from workout_engine.core.targets import (
    generate_planned_sets,
    get_rep_range,
    resolve_exercise_targets,
)


# ===========================================================================
# Helpers
# ===========================================================================


def _exercise(
    exercise_id: str,
    type_: str = "compound",
    tier: int = 1,
    muscles: dict[str, float] | None = None,
    **ranges,
) -> ExerciseDefinition:
    return ExerciseDefinition(
        exercise_id=exercise_id,
        display_name=exercise_id.replace("_", " ").title(),
        type=type_,  # type: ignore[arg-type]
        fatigue_tier=tier,
        muscles=tuple(MuscleEngagement(k, v) for k, v in (muscles or {}).items()),
        **ranges,
    )


SQUAT = _exercise(
    "back_squat", muscles={"quads": 1.0, "glutes": 0.8}, strength_reps_min=3, strength_reps_max=5
)
FRONT_SQUAT = _exercise("front_squat", muscles={"quads": 1.0, "glutes": 0.5})
BENCH = _exercise("bench_press", tier=2, muscles={"chest": 1.0, "triceps": 0.5})
CURL = _exercise("bicep_curl", "isolation", 4, {"biceps": 1.0})
PUSHDOWN = _exercise("tricep_pushdown", "isolation", 4, {"triceps": 1.0})
RAISE = _exercise("lateral_raise", "isolation", 4, {"side_delts": 1.0})


def _log(exercise_id: str, set_number: int, weight: float, reps: int, set_type: str = "working") -> LoggedSet:
    return LoggedSet(
        exercise_id=exercise_id,
        set_number=set_number,
        set_type=set_type,  # type: ignore[arg-type]
        weight_kg=weight,
        reps=reps,
    )


def _planned(n: int, set_type: str, weight: float = 20, reps: int = 10) -> PlannedSet:
    return PlannedSet(set_number=n, weight_kg=weight, reps=reps, set_type=set_type)  # type: ignore[arg-type]


# ===========================================================================
# Target resolution
# ===========================================================================


class TestRepRange:

    def test_explicit_strength_range(self):
        r = get_rep_range(SQUAT, "strength")
        assert (r.min, r.max) == (3, 5)

    def test_hypertrophy_derived_from_strength_max(self):
        # (strength_max, strength_max × 2) = (5, 10)
        r = get_rep_range(SQUAT, "hypertrophy")
        assert (r.min, r.max) == (5, 10)

    def test_compound_fallbacks(self):
        assert get_rep_range(BENCH, "strength").max == 5
        r = get_rep_range(BENCH, "hypertrophy")
        assert (r.min, r.max) == (8, 12)

    def test_isolation_fallback(self):
        r = get_rep_range(CURL, "strength")
        assert (r.min, r.max) == (10, 15)


class TestResolveTargets:

    def test_strength_defaults(self):
        # 5 sets, round(midpoint(3, 5)) = 4, no weight
        t = resolve_exercise_targets(TemplateExercise(SQUAT), "strength")
        assert t == ResolvedTargets(sets=5, reps=4, weight_kg=0.0)

    def test_midpoint_half_rounds_up(self):
        # midpoint(5, 10) = 7.5 → 8;  midpoint(10, 15) = 12.5 → 13
        assert resolve_exercise_targets(TemplateExercise(SQUAT), "hypertrophy").reps == 8
        assert resolve_exercise_targets(TemplateExercise(CURL), "hypertrophy").reps == 13

    def test_explicit_targets_win(self):
        te = TemplateExercise(SQUAT, target_sets=4, target_reps=6, target_weight=110)
        assert resolve_exercise_targets(te, "strength") == ResolvedTargets(4, 6, 110)


class TestGeneratePlannedSets:

    def test_working_mode(self):
        sets = generate_planned_sets("working", ResolvedTargets(3, 8, 60))
        assert [(s.set_number, s.weight_kg, s.reps, s.set_type) for s in sets] == [
            (1, 60, 8, "working"),
            (2, 60, 8, "working"),
            (3, 60, 8, "working"),
        ]

    def test_warmup_mode_prepends_ramp_and_marks_muscles(self):
        warmed: dict[str, float] = {}
        sets = generate_planned_sets("warmup", ResolvedTargets(3, 5, 100), SQUAT.muscles, warmed)

        assert [s.set_type for s in sets] == ["warmup"] * 3 + ["working"] * 3
        assert [s.weight_kg for s in sets[:3]] == [20, 50, 75]
        assert [s.set_number for s in sets] == [1, 2, 3, 4, 5, 6]
        assert warmed == {"quads": 1.0, "glutes": 0.8}

    def test_warmup_skipped_when_muscles_already_warm(self):
        # covered = min(1, 1) + min(0.5, 0.8) = 1.5 of 1.5 → skip
        warmed = {"quads": 1.0, "glutes": 0.8}
        sets = generate_planned_sets("warmup", ResolvedTargets(3, 5, 100), FRONT_SQUAT.muscles, warmed)
        assert [s.set_type for s in sets] == ["working"] * 3

    def test_backoff_mode_replaces_last_set(self):
        sets = generate_planned_sets("backoff", ResolvedTargets(4, 5, 100))
        assert [s.set_type for s in sets] == ["working"] * 3 + ["backoff"]
        assert (sets[-1].weight_kg, sets[-1].reps) == (80, 7)

    def test_backoff_mode_single_set_keeps_working(self):
        sets = generate_planned_sets("backoff", ResolvedTargets(1, 5, 100))
        assert [s.set_type for s in sets] == ["working"]

    def test_full_mode(self):
        sets = generate_planned_sets("full", ResolvedTargets(3, 5, 100), SQUAT.muscles, {})
        assert [s.set_type for s in sets] == ["warmup"] * 3 + ["working"] * 2 + ["backoff"]

    def test_no_target_weight(self):
        sets = generate_planned_sets(
            "full", ResolvedTargets(3, 10, 0.0), CURL.muscles, {}, has_target_weight=False
        )
        assert [s.set_type for s in sets] == ["working", "working", "backoff"]
        assert all(s.weight_kg is None for s in sets)
        assert sets[-1].reps == 12


# ===========================================================================
# Superset rounds
# ===========================================================================


def _members(a_logs=(), b_logs=()) -> list[SupersetMember]:
    """Curl: 1 warmup + 3 working; pushdown: 2 working + 1 backoff."""
    a = SupersetMember(
        exercise=CURL,
        logs=tuple(a_logs),
        planned=(
            _planned(1, "warmup"),
            _planned(2, "working"),
            _planned(3, "working"),
            _planned(4, "working"),
        ),
    )
    b = SupersetMember(
        exercise=PUSHDOWN,
        logs=tuple(b_logs),
        planned=(_planned(1, "working"), _planned(2, "working"), _planned(3, "backoff")),
    )
    return [a, b]


class TestSupersetRounds:

    def test_phase_order_and_round_shapes(self):
        result = build_superset_rounds(_members())

        # warmup: [A]; working: [A, B] [A, B] [A]; backoff: [B]
        assert [r.set_type for r in result.rounds] == [
            "warmup", "working", "working", "working", "backoff",
        ]
        assert [[s.exercise_id for s in r.sets] for r in result.rounds] == [
            ["bicep_curl"],
            ["bicep_curl", "tricep_pushdown"],
            ["bicep_curl", "tricep_pushdown"],
            ["bicep_curl"],
            ["tricep_pushdown"],
        ]
        assert [s.exercise_index for s in result.rounds[1].sets] == [0, 1]
        assert result.extra_logs == ()

    def test_logs_pair_with_same_phase(self):
        log = _log("bicep_curl", 1, 20, 10)
        result = build_superset_rounds(_members(a_logs=[log]))

        assert result.rounds[0].sets[0].log is None  # warmup not logged
        assert result.rounds[1].sets[0].log == log

    def test_unplanned_logs_become_extras(self):
        logs = [_log("bicep_curl", i, 20, 10) for i in range(1, 5)]
        result = build_superset_rounds(_members(a_logs=logs))

        assert len(result.extra_logs) == 1
        assert result.extra_logs[0].log == logs[3]
        assert result.extra_logs[0].exercise == CURL


# ===========================================================================
# Render items + flattening
# ===========================================================================


class TestFlattenSets:

    def _items(self):
        standalone = StandaloneItem(
            exercise=SQUAT,
            logs=(_log("back_squat", 1, 100, 5), _log("back_squat", 2, 100, 5)),
            planned=tuple(_planned(i, "working", 100, 5) for i in (1, 2, 3)),
        )
        superset = SupersetItem(
            group=1,
            members=tuple(_members(a_logs=[_log("bicep_curl", 1, 20, 10)])),
        )
        return [standalone, superset]

    def test_standalone_entries(self):
        flat = flatten_sets(self._items())[:3]

        assert [f.completed for f in flat] == [True, True, False]
        assert [f.set_number for f in flat] == [1, 2, 3]
        assert all(f.total_sets == 3 and not f.transition and f.item_index == 0 for f in flat)
        assert flat[0].exercise_name == "Back Squat"

    def test_superset_entries(self):
        flat = flatten_sets(self._items())[3:]

        assert [f.exercise_id for f in flat] == [
            "bicep_curl",
            "bicep_curl", "tricep_pushdown",
            "bicep_curl", "tricep_pushdown",
            "bicep_curl",
            "tricep_pushdown",
        ]
        # Only a mid-round set is a transition
        assert [f.transition for f in flat] == [False, True, False, True, False, False, False]
        assert [f.set_number for f in flat] == [1, 2, 3, 4, 5, 6, 7]
        assert all(f.total_sets == 7 and f.item_index == 1 for f in flat)
        assert [f.completed for f in flat] == [False, True, False, False, False, False, False]

    def test_flattening_is_deterministic(self):
        items = self._items()
        assert flatten_sets(items) == flatten_sets(items)

    def test_new_log_only_flips_completed(self):
        before = flatten_sets(self._items())
        items = self._items()
        items[0] = StandaloneItem(
            exercise=SQUAT,
            logs=items[0].logs + (_log("back_squat", 3, 100, 5),),
            planned=items[0].planned,
        )
        after = flatten_sets(items)

        assert len(after) == len(before)
        changed = [i for i, (a, b) in enumerate(zip(before, after)) if a != b]
        assert changed == [2]
        assert after[2].completed

    def test_unknown_item_raises(self):
        with pytest.raises(TypeError):
            flatten_sets([object()])  # type: ignore[list-item]


class TestBuildRenderItems:

    def test_superset_grouped_at_first_member(self):
        template = WorkoutTemplate(
            name="Arms + Legs",
            exercises=[
                TemplateExercise(CURL, target_sets=3, target_reps=12, target_weight=15, superset_group=1),
                TemplateExercise(SQUAT, target_sets=3, target_reps=5, target_weight=100),
                TemplateExercise(PUSHDOWN, target_sets=3, target_reps=12, target_weight=25, superset_group=1),
            ],
        )
        items = build_render_items(template, [])

        assert isinstance(items[0], SupersetItem)
        assert [m.exercise_id for m in items[0].members] == ["bicep_curl", "tricep_pushdown"]
        assert isinstance(items[1], StandaloneItem)
        assert items[1].exercise_id == "back_squat"

    def test_lonely_group_member_stays_standalone(self):
        template = WorkoutTemplate(
            name="Solo",
            exercises=[TemplateExercise(CURL, superset_group=2)],
        )
        items = build_render_items(template, [])
        assert len(items) == 1 and isinstance(items[0], StandaloneItem)

    def test_extra_logged_exercise_appended(self):
        template = WorkoutTemplate(name="Legs", exercises=[TemplateExercise(SQUAT)])
        logs = [_log("lateral_raise", 1, 10, 15)]

        items = build_render_items(template, logs, {"lateral_raise": RAISE})

        assert len(items) == 2
        extra = items[1]
        assert isinstance(extra, StandaloneItem)
        assert extra.planned == () and len(extra.logs) == 1
        assert not item_has_pending(extra)
        assert len(flatten_sets(items)) == len(flatten_sets(items[:1]))

    def test_unresolvable_extra_is_ignored(self):
        template = WorkoutTemplate(name="Legs", exercises=[TemplateExercise(SQUAT)])
        items = build_render_items(template, [_log("mystery", 1, 10, 10)])
        assert len(items) == 1

    def test_warmup_threaded_through_template(self):
        # Squat warms quads/glutes; the front squat then skips its ramp
        template = WorkoutTemplate(
            name="Legs",
            training_goal="strength",
            exercises=[
                TemplateExercise(SQUAT, target_weight=100, set_mode="warmup"),
                TemplateExercise(FRONT_SQUAT, target_weight=80, set_mode="warmup"),
            ],
        )
        items = build_render_items(template, [])

        assert [p.set_type for p in items[0].planned].count("warmup") == 3
        assert [p.set_type for p in items[1].planned].count("warmup") == 0
        # strength default: 5 sets
        assert len(items[1].planned) == 5

    def test_item_has_pending(self):
        template = WorkoutTemplate(
            name="Legs", exercises=[TemplateExercise(SQUAT, target_sets=1, target_weight=100)]
        )
        assert item_has_pending(build_render_items(template, [])[0])
        done = build_render_items(template, [_log("back_squat", 1, 100, 5)])
        assert not item_has_pending(done[0])
