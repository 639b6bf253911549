"""
Execution state machine for guided workouts.

A cursor over the flat set queue plus a local confirm/undo stack,
editable weight/reps buffers, and a per-set stopwatch.  All transitions
go through the pure ``reduce(state, action)`` function; timestamps
(milliseconds) travel inside the actions so the reducer never reads a
clock.

Stopwatch phases:
    idle   : set_started_at is None
    running: set_started_at is set, not paused
    paused : set_started_at is set, paused_at holds the freeze time

``locally_confirmed`` is kept apart from ``queue[i].completed`` (which
mirrors the external log) so undo never has to touch the queue.
"""

from dataclasses import dataclass, replace
from typing import Literal, Sequence, Union

from .models import FlatSet

Phase = Literal["idle", "running", "paused"]

EditValues = tuple[Union[float, None], int]


@dataclass(frozen=True)
class TimerState:
    """Immutable execution state; -1 as current_index means all sets are done."""

    queue: tuple[FlatSet, ...] = ()
    locally_confirmed: tuple[int, ...] = ()
    current_index: int = -1
    edit_weight: float | None = None
    edit_reps: int = 0
    set_started_at: float | None = None
    is_paused: bool = False
    paused_at: float | None = None
    # Edit buffers captured at each local confirmation (parallel to locally_confirmed)
    confirmed_edits: tuple[EditValues, ...] = ()


INITIAL_STATE = TimerState()


# =============================================================================
# ACTIONS
# =============================================================================


@dataclass(frozen=True)
class Init:
    sets: Sequence[FlatSet]


@dataclass(frozen=True)
class Confirm:
    pass


@dataclass(frozen=True)
class Undo:
    pass


@dataclass(frozen=True)
class EditWeight:
    weight: float | None


@dataclass(frozen=True)
class EditReps:
    reps: int


@dataclass(frozen=True)
class StartSet:
    now: float


@dataclass(frozen=True)
class Pause:
    now: float


@dataclass(frozen=True)
class Resume:
    now: float


@dataclass(frozen=True)
class StopSet:
    pass


@dataclass(frozen=True)
class Navigate:
    direction: Literal[-1, 1]

    def __post_init__(self) -> None:
        if self.direction not in (-1, 1):
            raise ValueError(f"direction must be -1 or 1, got {self.direction}")


TimerAction = Union[
    Init, Confirm, Undo, EditWeight, EditReps, StartSet, Pause, Resume, StopSet, Navigate
]


# =============================================================================
# HELPERS
# =============================================================================


def _is_done(state_queue: Sequence[FlatSet], index: int, confirmed: Sequence[int]) -> bool:
    return state_queue[index].completed or index in confirmed


def find_next_pending(
    state_queue: Sequence[FlatSet],
    start: int,
    confirmed: Sequence[int],
) -> int:
    """First index ≥ start that is neither logged nor locally confirmed, else -1."""
    for i in range(start, len(state_queue)):
        if not _is_done(state_queue, i, confirmed):
            return i
    return -1


def _load_set(state_queue: Sequence[FlatSet], index: int) -> EditValues:
    if index < 0 or index >= len(state_queue):
        return (None, 0)
    return (state_queue[index].weight_kg, state_queue[index].reps)


def _navigate_target(state: TimerState, direction: int) -> int:
    """
    First pending set of the nearest item after (+1) or before (-1) the
    current one, or -1.  Landing on an item's first pending set makes
    +1 followed by -1 return to where the cursor started.
    """
    current_item = state.queue[state.current_index].item_index
    pending = [
        (i, entry.item_index)
        for i, entry in enumerate(state.queue)
        if not _is_done(state.queue, i, state.locally_confirmed)
    ]
    if direction == 1:
        candidates = [item for _, item in pending if item > current_item]
        target_item = min(candidates, default=None)
    else:
        candidates = [item for _, item in pending if item < current_item]
        target_item = max(candidates, default=None)
    if target_item is None:
        return -1
    return next(i for i, item in pending if item == target_item)


def _idle(**changes) -> dict:
    """Field overrides that return the stopwatch to idle."""
    return {"set_started_at": None, "is_paused": False, "paused_at": None, **changes}


def _move_to(state: TimerState, index: int, **changes) -> TimerState:
    weight, reps = _load_set(state.queue, index)
    return replace(
        state,
        **_idle(current_index=index, edit_weight=weight, edit_reps=reps, **changes),
    )


# =============================================================================
# REDUCER
# =============================================================================


def reduce(state: TimerState, action: TimerAction) -> TimerState:
    """
    Apply one action and return the next state.

    Actions that do not apply to the current phase (pausing an idle
    stopwatch, confirming when everything is done, undoing an empty
    stack, navigating past the last exercise) return the state unchanged.

    Raises:
        TypeError: If the action is not a known TimerAction
    """
    if isinstance(action, Init):
        sets = tuple(action.sets)
        cursor = find_next_pending(sets, 0, ())
        weight, reps = _load_set(sets, cursor)
        return TimerState(
            queue=sets,
            locally_confirmed=(),
            current_index=cursor,
            edit_weight=weight,
            edit_reps=reps,
        )

    if isinstance(action, Confirm):
        if state.current_index < 0:
            return state
        confirmed = state.locally_confirmed + (state.current_index,)
        edits = state.confirmed_edits + ((state.edit_weight, state.edit_reps),)
        nxt = find_next_pending(state.queue, 0, confirmed)
        return _move_to(state, nxt, locally_confirmed=confirmed, confirmed_edits=edits)

    if isinstance(action, Undo):
        if not state.locally_confirmed:
            return state
        restored = state.locally_confirmed[-1]
        weight, reps = state.confirmed_edits[-1]
        return replace(
            state,
            **_idle(
                locally_confirmed=state.locally_confirmed[:-1],
                confirmed_edits=state.confirmed_edits[:-1],
                current_index=restored,
                edit_weight=weight,
                edit_reps=reps,
            ),
        )

    if isinstance(action, EditWeight):
        return replace(state, edit_weight=action.weight)

    if isinstance(action, EditReps):
        return replace(state, edit_reps=action.reps)

    if isinstance(action, StartSet):
        if state.current_index < 0:
            return state
        return replace(state, set_started_at=action.now, is_paused=False, paused_at=None)

    if isinstance(action, Pause):
        if phase(state) != "running":
            return state
        return replace(state, is_paused=True, paused_at=action.now)

    if isinstance(action, Resume):
        if phase(state) != "paused":
            return state
        frozen = elapsed_ms(state, action.now)
        return replace(
            state, set_started_at=action.now - frozen, is_paused=False, paused_at=None
        )

    if isinstance(action, StopSet):
        return replace(state, **_idle())

    if isinstance(action, Navigate):
        if state.current_index < 0:
            return state
        target = _navigate_target(state, action.direction)
        if target < 0:
            return state
        return _move_to(state, target)

    raise TypeError(f"Unknown timer action: {type(action).__name__}")


# =============================================================================
# DERIVED VALUES
# =============================================================================


def phase(state: TimerState) -> Phase:
    """Stopwatch phase derived from the state fields."""
    if state.set_started_at is None:
        return "idle"
    return "paused" if state.is_paused else "running"


def elapsed_ms(state: TimerState, now: float) -> float:
    """Stopwatch reading: frozen while paused, 0 when idle."""
    if state.set_started_at is None:
        return 0.0
    if state.is_paused and state.paused_at is not None:
        return state.paused_at - state.set_started_at
    return now - state.set_started_at


def is_finished(state: TimerState) -> bool:
    """True once no pending entries remain (an empty queue counts as finished)."""
    return state.current_index < 0


def current_set(state: TimerState) -> FlatSet | None:
    if state.current_index < 0:
        return None
    return state.queue[state.current_index]


def next_pending_set(state: TimerState) -> FlatSet | None:
    """Preview of the pending set after the cursor (None at the end)."""
    if state.current_index < 0:
        return None
    idx = find_next_pending(state.queue, state.current_index + 1, state.locally_confirmed)
    return state.queue[idx] if idx >= 0 else None


def pending_count(state: TimerState) -> int:
    return sum(
        1
        for i in range(len(state.queue))
        if not _is_done(state.queue, i, state.locally_confirmed)
    )


# =============================================================================
# USER INPUT
# =============================================================================


def parse_weight_input(text: str, previous: float | None) -> float | None:
    """
    Parse a typed weight; keep the previous value if the text is not a valid weight.

    An empty string clears the weight (None).  Non-numeric, negative or
    non-finite input never raises.
    """
    text = text.strip().replace(",", ".")
    if not text:
        return None
    try:
        value = float(text)
    except ValueError:
        return previous
    if value != value or value in (float("inf"), float("-inf")) or value < 0:
        return previous
    return value


def parse_reps_input(text: str, previous: int) -> int:
    """Parse typed reps; keep the previous value on anything but a whole number ≥ 0."""
    try:
        value = int(text.strip())
    except ValueError:
        return previous
    return value if value >= 0 else previous
