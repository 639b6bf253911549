"""
Tests for the WorkoutRunner: deferred confirmation, rest durations,
undo semantics and sink interaction.
"""

import asyncio

import pytest

from workout_engine.core.exercises.base import ExerciseDefinition, MuscleEngagement
from workout_engine.core.models import LoggedSet, TemplateExercise, WorkoutTemplate
from workout_engine.core.runner import WorkoutRunner, rest_duration_for
from workout_engine.core.timer_state import is_finished, phase


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds * 1000


class FakeSink:
    def __init__(self, fail: bool = False):
        self.confirmed: list[tuple] = []
        self.removed: list[str] = []
        self.fail = fail

    def confirm_set(self, exercise_id, weight_kg, reps, set_type, transition):
        if self.fail:
            raise ConnectionError("store unavailable")
        self.confirmed.append((exercise_id, weight_kg, reps, set_type, transition))
        return f"log-{len(self.confirmed)}"

    def remove_set(self, log_id):
        self.removed.append(log_id)


SQUAT = ExerciseDefinition(
    "back_squat", "Back Squat", "compound", 1, (MuscleEngagement("quads", 1.0),),
    strength_reps_min=3, strength_reps_max=5,
)
CURL = ExerciseDefinition("bicep_curl", "Bicep Curl", "isolation", 4, (MuscleEngagement("biceps", 1.0),))
PUSHDOWN = ExerciseDefinition(
    "tricep_pushdown", "Tricep Pushdown", "isolation", 4, (MuscleEngagement("triceps", 1.0),)
)

TEMPLATE = WorkoutTemplate(
    name="Test Day",
    training_goal="strength",
    exercises=[
        TemplateExercise(SQUAT, target_sets=2, target_reps=5, target_weight=100),
        TemplateExercise(
            CURL, target_sets=1, target_reps=12, target_weight=15,
            superset_group=1, training_goal="hypertrophy",
        ),
        TemplateExercise(
            PUSHDOWN, target_sets=1, target_reps=12, target_weight=25,
            superset_group=1, training_goal="hypertrophy",
        ),
    ],
)


def _runner(logs=(), sink=None, **kwargs):
    clock = FakeClock()
    sink = sink or FakeSink()
    runner = WorkoutRunner.from_snapshot(TEMPLATE, list(logs), sink, clock=clock, **kwargs)
    return runner, sink, clock


class TestRestDuration:

    def test_tier_and_goal_from_template(self):
        rest = rest_duration_for(TEMPLATE)
        # 120 × 2 + 5 × 3 = 255
        assert rest("back_squat", 5, "working", False) == 255
        # 30 × 1 + 12 × 3 = 66
        assert rest("bicep_curl", 12, "working", False) == 66

    def test_transition_is_fixed(self):
        assert rest_duration_for(TEMPLATE)("bicep_curl", 12, "working", True) == 15

    def test_unknown_exercise_uses_tier_two_and_workout_goal(self):
        # 80 × 2 + 8 × 3 = 184
        assert rest_duration_for(TEMPLATE)("mystery", 8, "working", False) == 184


class TestConfirmFlow:

    def test_confirm_defers_until_rest_dismissed(self):
        runner, sink, clock = _runner()
        runner.start_set()
        pending = runner.confirm()

        assert pending is not None and pending.exercise_id == "back_squat"
        assert runner.is_resting
        assert runner.rest_remaining() == 255
        assert runner.state.current_index == 0
        assert sink.confirmed == []

        clock.advance(30)
        assert runner.dismiss_rest() == "log-1"
        assert sink.confirmed == [("back_squat", 100, 5, "working", False)]
        assert runner.state.current_index == 1
        assert not runner.is_resting
        assert phase(runner.state) == "idle"

    def test_edits_flow_into_sink(self):
        runner, sink, _ = _runner()
        runner.edit_weight("102.5")
        runner.edit_reps("4")
        runner.confirm()
        runner.dismiss_rest()
        assert sink.confirmed[0][1:3] == (102.5, 4)

    def test_invalid_edit_keeps_previous(self):
        runner, _, _ = _runner()
        runner.edit_weight("heavy")
        runner.edit_reps("-3")
        assert (runner.state.edit_weight, runner.state.edit_reps) == (100, 5)

    def test_confirm_while_resting_is_ignored(self):
        runner, _, _ = _runner()
        runner.confirm()
        assert runner.confirm() is None

    def test_superset_transition_rest(self):
        runner, sink, _ = _runner(logs=[
            LoggedSet("back_squat", 1, "working", 100, 5),
            LoggedSet("back_squat", 2, "working", 100, 5),
        ])
        assert runner.current.exercise_id == "bicep_curl"
        assert runner.current.transition
        runner.confirm()
        assert runner.rest_remaining() == 15
        assert runner.countdown.is_transition
        runner.dismiss_rest()
        assert sink.confirmed[0][4] is True
        assert runner.current.exercise_id == "tricep_pushdown"

    def test_full_session_finishes(self):
        runner, sink, _ = _runner()
        while not is_finished(runner.state):
            runner.confirm()
            runner.dismiss_rest()
        assert [c[0] for c in sink.confirmed] == [
            "back_squat", "back_squat", "bicep_curl", "tricep_pushdown",
        ]

    def test_cursor_locked_while_resting(self):
        runner, sink, _ = _runner()
        runner.confirm()
        runner.navigate(1)
        runner.edit_weight("200")
        runner.edit_reps("1")
        runner.stop_set()
        assert runner.current.exercise_id == "back_squat"
        assert runner.pending.queue_index == 0

        runner.dismiss_rest()
        assert sink.confirmed == [("back_squat", 100, 5, "working", False)]
        assert runner.state.locally_confirmed == (0,)
        assert runner.state.current_index == 1

        assert runner.undo() == 0
        assert sink.removed == ["log-1"]

    def test_navigation_resumes_after_rest(self):
        runner, _, _ = _runner()
        runner.confirm()
        runner.dismiss_rest()
        runner.navigate(1)
        assert runner.current.exercise_id == "bicep_curl"

    def test_sink_failure_propagates_after_advance(self):
        runner, _, _ = _runner(sink=FakeSink(fail=True))
        runner.confirm()
        with pytest.raises(ConnectionError):
            runner.dismiss_rest()
        assert runner.state.current_index == 1
        assert runner.state.locally_confirmed == (0,)


class TestUndo:

    def test_undo_during_rest_cancels_pending(self):
        runner, sink, _ = _runner()
        runner.confirm()
        assert runner.undo() is None
        assert not runner.is_resting
        assert runner.pending is None
        assert runner.state.current_index == 0
        assert sink.confirmed == [] and sink.removed == []

    def test_undo_after_confirm_removes_log(self):
        runner, sink, _ = _runner()
        runner.edit_reps("4")
        runner.confirm()
        runner.dismiss_rest()

        assert runner.undo() == 0
        assert sink.removed == ["log-1"]
        assert runner.state.current_index == 0
        assert runner.state.edit_reps == 4

    def test_undo_with_nothing_local_is_noop(self):
        runner, sink, _ = _runner(logs=[LoggedSet("back_squat", 1, "working", 100, 5)])
        assert runner.undo() is None
        assert sink.removed == []
        assert runner.state.current_index == 1


class TestTick:

    def test_auto_dismiss_at_zero_with_focus(self):
        runner, sink, clock = _runner()
        runner.confirm()
        clock.advance(254.5)
        runner.tick()
        assert runner.is_resting
        clock.advance(0.5)
        runner.tick()
        assert not runner.is_resting
        assert len(sink.confirmed) == 1

    def test_no_auto_dismiss_without_focus(self):
        clock = FakeClock()
        sink = FakeSink()
        runner = WorkoutRunner.from_snapshot(
            TEMPLATE, [], sink, clock=clock, has_focus=lambda: False
        )
        runner.confirm()
        clock.advance(300)
        runner.tick()
        assert runner.is_resting
        assert runner.rest_remaining() == -45
        assert sink.confirmed == []

    def test_on_tick_callback(self):
        seen = []
        runner, _, clock = _runner(on_tick=lambda r, now: seen.append(now))
        clock.advance(1)
        runner.tick()
        assert seen == [1000]

    def test_scheduler_follows_state(self):
        async def scenario():
            runner, _, _ = _runner(tick_interval=0.001)
            assert not runner.scheduler.is_running
            runner.start_set()
            running_during_set = runner.scheduler.is_running
            runner.stop_set()
            stopped = not runner.scheduler.is_running
            runner.confirm()
            running_during_rest = runner.scheduler.is_running
            runner.undo()
            return running_during_set, stopped, running_during_rest, runner.scheduler.is_running

        assert asyncio.run(scenario()) == (True, True, True, False)

    def test_auto_dismiss_failure_reaches_caller(self):
        errors = []

        async def scenario():
            clock = FakeClock()
            runner = WorkoutRunner.from_snapshot(
                TEMPLATE, [], FakeSink(fail=True), clock=clock, tick_interval=0.001,
                on_error=lambda r, e: errors.append(e),
            )
            runner.confirm()
            clock.advance(300)
            await asyncio.sleep(0.02)
            return runner

        runner = asyncio.run(scenario())
        assert len(errors) == 1
        assert isinstance(errors[0], ConnectionError)
        assert runner.last_error is errors[0]
        assert runner.scheduler.last_error is None
        assert not runner.is_resting
        assert runner.state.locally_confirmed == (0,)

    def test_auto_dismiss_failure_without_handler(self):
        runner, _, clock = _runner(sink=FakeSink(fail=True))
        runner.confirm()
        clock.advance(255)
        runner.tick()
        assert isinstance(runner.last_error, ConnectionError)
        assert runner.state.current_index == 1
