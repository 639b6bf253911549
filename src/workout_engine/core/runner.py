"""
Guided workout runner.

Drives the execution state machine together with the rest countdown
and the tick scheduler, and turns confirmations into calls on a
caller-supplied SetSink.  A confirmation is deferred: confirm() starts
the rest countdown and remembers what was performed, and only when the
rest is dismissed (by the user, or automatically at zero while the
consumer holds focus) does the cursor advance and the sink receive the
set.  The runner advances optimistically; a failing sink leaves the
cursor advanced and the caller decides whether to retry or undo.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Protocol, Sequence

from .config import DEFAULT_REST_MODEL, RestModel
from .formulas import calculate_rest
from .models import FlatSet, LoggedSet, SetType, WorkoutTemplate
from .rest_timer import DEFAULT_TICK_INTERVAL, RestCountdown, TickScheduler, needs_tick
from .set_queue import build_render_items, flatten_sets
from .timer_state import (
    INITIAL_STATE,
    Confirm,
    EditReps,
    EditWeight,
    Init,
    Navigate,
    Pause,
    Resume,
    StartSet,
    StopSet,
    TimerAction,
    TimerState,
    Undo,
    current_set,
    elapsed_ms,
    parse_reps_input,
    parse_weight_input,
    reduce,
)

logger = logging.getLogger(__name__)

DEFAULT_FATIGUE_TIER = 2

RestDurationFn = Callable[[str, int, SetType, bool], int]
Clock = Callable[[], float]


class SetSink(Protocol):
    """Receives confirm/remove intents; persistence is the sink's business."""

    def confirm_set(
        self,
        exercise_id: str,
        weight_kg: float,
        reps: int,
        set_type: SetType,
        transition: bool,
    ) -> str | None:
        """Persist a performed set; may return a log id usable for removal."""
        ...

    def remove_set(self, log_id: str) -> None:
        ...


@dataclass(frozen=True)
class PendingConfirmation:
    """What was performed, held while the rest countdown runs."""

    queue_index: int
    exercise_id: str
    weight_kg: float
    reps: int
    set_type: SetType
    transition: bool


def monotonic_ms() -> float:
    return time.monotonic() * 1000


def rest_duration_for(
    template: WorkoutTemplate,
    model: RestModel = DEFAULT_REST_MODEL,
) -> RestDurationFn:
    """
    Rest-duration function for a template.

    Transitions inside a superset round rest the fixed transition time.
    Otherwise the rest comes from calculate_rest with the exercise's
    fatigue tier and goal.  Exercises not in the template use tier 2 and
    the workout goal.
    """
    tiers = {te.exercise_id: te.exercise.fatigue_tier for te in template.exercises}
    goals = {te.exercise_id: template.goal_for(te) for te in template.exercises}

    def rest_duration(exercise_id: str, reps: int, set_type: SetType, transition: bool) -> int:
        if transition:
            return model.transition_seconds
        return calculate_rest(
            reps,
            tiers.get(exercise_id, DEFAULT_FATIGUE_TIER),
            goals.get(exercise_id, template.training_goal),
            set_type,
            model,
        )

    return rest_duration


class WorkoutRunner:
    """
    Interactive driver over one flattened session queue.

    Every state change recomputes whether the tick loop is needed and
    updates the scheduler (when one is attached).
    """

    def __init__(
        self,
        sink: SetSink,
        rest_duration: RestDurationFn,
        clock: Clock = monotonic_ms,
        has_focus: Callable[[], bool] = lambda: True,
        tick_interval: float | None = None,
        on_tick: Callable[["WorkoutRunner", float], None] | None = None,
        on_error: Callable[["WorkoutRunner", Exception], None] | None = None,
    ):
        """
        Args:
            sink: Receiver of confirm/remove intents
            rest_duration: (exercise_id, reps, set_type, transition) → seconds
            clock: Milliseconds clock
            has_focus: Whether the consumer is looking; gates auto-dismiss
            tick_interval: If given, attach an asyncio TickScheduler with
                this period (requires a running event loop once ticking)
            on_tick: Display callback invoked on every tick
            on_error: Receives a sink failure raised during an automatic
                dismiss inside tick(); the failure is also kept in last_error
        """
        self.sink = sink
        self.rest_duration = rest_duration
        self.clock = clock
        self.has_focus = has_focus
        self.on_tick = on_tick
        self.on_error = on_error
        self.last_error: Exception | None = None
        self.state: TimerState = INITIAL_STATE
        self.countdown = RestCountdown()
        self.scheduler: TickScheduler | None = (
            TickScheduler(self.tick, tick_interval) if tick_interval is not None else None
        )
        self._pending: PendingConfirmation | None = None
        self._log_ids: dict[int, str] = {}

    @classmethod
    def from_snapshot(
        cls,
        template: WorkoutTemplate,
        logs: Sequence[LoggedSet],
        sink: SetSink,
        model: RestModel = DEFAULT_REST_MODEL,
        **kwargs,
    ) -> "WorkoutRunner":
        """Build the session queue from a template + logs and initialize a runner on it."""
        runner = cls(sink, rest_duration_for(template, model), **kwargs)
        runner.init(flatten_sets(build_render_items(template, logs)))
        return runner

    # -------------------------------------------------------------------------
    # Read-only views
    # -------------------------------------------------------------------------

    @property
    def is_resting(self) -> bool:
        return self.countdown.is_active

    @property
    def pending(self) -> PendingConfirmation | None:
        return self._pending

    @property
    def current(self) -> FlatSet | None:
        return current_set(self.state)

    def elapsed_ms(self) -> float:
        return elapsed_ms(self.state, self.clock())

    def rest_remaining(self) -> int:
        return self.countdown.remaining_seconds(self.clock())

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def _dispatch(self, action: TimerAction) -> None:
        self.state = reduce(self.state, action)
        self._refresh()

    def _refresh(self) -> None:
        if self.scheduler is not None:
            self.scheduler.update(needs_tick(self.state, self.countdown))

    def init(self, sets: Sequence[FlatSet]) -> None:
        self._pending = None
        self._log_ids.clear()
        self.countdown.dismiss()
        self._dispatch(Init(sets))
        logger.debug("Runner initialized with %d sets", len(self.state.queue))

    def start_set(self) -> None:
        if self.is_resting:
            return
        self._dispatch(StartSet(self.clock()))

    def _cursor_locked(self, command: str) -> bool:
        # The cursor stays on the pending set until the rest is dismissed or undone
        if self._pending is None:
            return False
        logger.debug(
            "Ignoring %s while set %d awaits confirmation", command, self._pending.queue_index
        )
        return True

    def pause(self) -> None:
        self._dispatch(Pause(self.clock()))

    def resume(self) -> None:
        self._dispatch(Resume(self.clock()))

    def stop_set(self) -> None:
        if self._cursor_locked("stop"):
            return
        self._dispatch(StopSet())

    def navigate(self, direction: int) -> None:
        if self._cursor_locked("navigate"):
            return
        self._dispatch(Navigate(direction))  # type: ignore[arg-type]

    def edit_weight(self, text: str) -> None:
        if self._cursor_locked("weight edit"):
            return
        value = parse_weight_input(text, self.state.edit_weight)
        if value == self.state.edit_weight and text.strip():
            logger.debug("Ignoring weight input %r", text)
        self._dispatch(EditWeight(value))

    def edit_reps(self, text: str) -> None:
        if self._cursor_locked("reps edit"):
            return
        value = parse_reps_input(text, self.state.edit_reps)
        if value == self.state.edit_reps:
            logger.debug("Ignoring reps input %r", text)
        self._dispatch(EditReps(value))

    def confirm(self) -> PendingConfirmation | None:
        """
        Record the current set as performed and start the rest countdown.

        The cursor does not move yet; see dismiss_rest().  Until then it
        stays locked to the performed set, so navigation, edits and stop
        are ignored.  No-op while already resting or when every set is done.
        """
        flat = current_set(self.state)
        if flat is None or self.is_resting:
            return None

        pending = PendingConfirmation(
            queue_index=self.state.current_index,
            exercise_id=flat.exercise_id,
            weight_kg=self.state.edit_weight if self.state.edit_weight is not None else 0.0,
            reps=self.state.edit_reps,
            set_type=flat.set_type,
            transition=flat.transition,
        )
        self._pending = pending
        duration = self.rest_duration(
            flat.exercise_id, pending.reps, flat.set_type, flat.transition
        )
        self.countdown.start(duration, flat.set_type, flat.transition, self.clock())
        logger.info(
            "Set done: %s %s×%d, resting %ds",
            flat.exercise_id,
            pending.weight_kg,
            pending.reps,
            duration,
        )
        self._refresh()
        return pending

    def dismiss_rest(self) -> str | None:
        """
        End the rest: advance the cursor and hand the set to the sink.

        Returns:
            The log id returned by the sink, if any

        Raises:
            Whatever the sink raises; the cursor has already advanced
        """
        pending, self._pending = self._pending, None
        self.countdown.dismiss()
        if pending is None:
            self._refresh()
            return None

        self._dispatch(Confirm())
        try:
            log_id = self.sink.confirm_set(
                pending.exercise_id,
                pending.weight_kg,
                pending.reps,
                pending.set_type,
                pending.transition,
            )
        except Exception:
            logger.error("Sink rejected set for %s; cursor already advanced", pending.exercise_id)
            raise
        if log_id is not None:
            self._log_ids[pending.queue_index] = log_id
        return log_id

    def undo(self) -> int | None:
        """
        Undo the most recent confirmation.

        During rest this only cancels the pending confirmation (nothing
        reached the sink yet).  Otherwise the last local confirmation is
        popped and, if the sink gave it a log id, removal is requested.
        Sets that were already in the log before this session started
        are never touched.

        Returns:
            The queue index the cursor returned to, or None
        """
        if self._pending is not None:
            self._pending = None
            self.countdown.dismiss()
            self._refresh()
            logger.info("Pending set cancelled")
            return None

        if not self.state.locally_confirmed:
            return None

        index = self.state.locally_confirmed[-1]
        self.countdown.dismiss()
        self._dispatch(Undo())
        log_id = self._log_ids.pop(index, None)
        if log_id is not None:
            self.sink.remove_set(log_id)
        logger.info("Undid set at queue index %d", index)
        return index

    def tick(self) -> None:
        """
        Periodic refresh: auto-dismisses a finished rest while focused.

        A sink failure during the automatic dismiss does not escape into
        the scheduler task; it is stored in last_error and handed to
        on_error so the caller can retry or undo.
        """
        now = self.clock()
        if self.countdown.tick(now) and self.has_focus():
            try:
                self.dismiss_rest()
            except Exception as e:
                self.last_error = e
                if self.on_error is not None:
                    self.on_error(self, e)
        if self.on_tick is not None:
            self.on_tick(self, now)


__all__ = [
    "DEFAULT_TICK_INTERVAL",
    "PendingConfirmation",
    "SetSink",
    "WorkoutRunner",
    "monotonic_ms",
    "rest_duration_for",
]
