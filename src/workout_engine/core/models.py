"""
Data models for workout-engine.

All core dataclasses representing templates, planned and logged sets,
superset rounds, the flat execution queue, and divergence results.
Values that flow through the queue are frozen so that a flattened
snapshot can never be mutated behind the execution state machine.
"""

from dataclasses import dataclass, field
from typing import Literal, Union

from .config import TrainingGoal
from .exercises.base import ExerciseDefinition

SetType = Literal["warmup", "working", "backoff"]
SetMode = Literal["working", "warmup", "backoff", "full"]

SET_TYPES: tuple[str, ...] = ("warmup", "working", "backoff")
SET_MODES: tuple[str, ...] = ("working", "warmup", "backoff", "full")
TRAINING_GOALS: tuple[str, ...] = ("hypertrophy", "strength")


def _validate_set_type(set_type: str) -> None:
    if set_type not in SET_TYPES:
        raise ValueError(f"Invalid set_type: {set_type!r}. Must be one of {SET_TYPES}")


@dataclass(frozen=True)
class GeneratedSet:
    """A warmup or backoff set produced by the formula library."""

    weight_kg: float
    reps: int
    set_type: SetType


@dataclass(frozen=True)
class PlannedSet:
    """
    One set an exercise is planned to perform.

    Derived once per exercise from its resolved targets and never
    changed afterwards.  weight_kg is None when the template has no
    target weight (e.g. bodyweight or not-yet-calibrated exercises).
    """

    set_number: int
    weight_kg: float | None
    reps: int
    set_type: SetType

    def __post_init__(self) -> None:
        """Validate planned set data."""
        if self.set_number < 1:
            raise ValueError("set_number must be >= 1")
        if self.reps < 0:
            raise ValueError("reps must be non-negative")
        _validate_set_type(self.set_type)


@dataclass(frozen=True)
class LoggedSet:
    """
    An already-persisted performance record.

    Created by confirmation in the external store; the engine treats
    logs as read-only.  log_id is the store's handle, used for removal.
    """

    exercise_id: str
    set_number: int
    set_type: SetType
    weight_kg: float
    reps: int
    rpe: float | None = None
    failure_flag: bool = False
    log_id: str | None = None

    def __post_init__(self) -> None:
        """Validate logged set data."""
        _validate_set_type(self.set_type)
        if self.reps < 0:
            raise ValueError("reps must be non-negative")
        if self.weight_kg < 0:
            raise ValueError("weight_kg must be non-negative")
        if self.rpe is not None and not 0 <= self.rpe <= 10:
            raise ValueError(f"rpe must be within [0, 10], got {self.rpe}")


@dataclass
class TemplateExercise:
    """
    One exercise line of a workout template.

    Targets left as None are filled in from the training goal by the
    target resolver.  Exercises sharing a superset_group are performed
    in lockstep rounds.
    """

    exercise: ExerciseDefinition
    target_sets: int | None = None
    target_reps: int | None = None
    target_weight: float | None = None
    set_mode: SetMode | None = None
    superset_group: int | None = None
    training_goal: TrainingGoal | None = None

    def __post_init__(self) -> None:
        """Validate template targets."""
        if self.target_sets is not None and self.target_sets < 1:
            raise ValueError("target_sets must be >= 1")
        if self.target_reps is not None and self.target_reps < 0:
            raise ValueError("target_reps must be non-negative")
        if self.target_weight is not None and self.target_weight < 0:
            raise ValueError("target_weight must be non-negative")
        if self.set_mode is not None and self.set_mode not in SET_MODES:
            raise ValueError(f"Invalid set_mode: {self.set_mode!r}")
        if self.training_goal is not None and self.training_goal not in TRAINING_GOALS:
            raise ValueError(f"Invalid training_goal: {self.training_goal!r}")

    @property
    def exercise_id(self) -> str:
        return self.exercise.exercise_id

    @property
    def effective_set_mode(self) -> SetMode:
        return self.set_mode or "working"


@dataclass
class WorkoutTemplate:
    """An ordered list of exercises plus the workout-level training goal."""

    name: str
    training_goal: TrainingGoal = "hypertrophy"
    exercises: list[TemplateExercise] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.training_goal not in TRAINING_GOALS:
            raise ValueError(f"Invalid training_goal: {self.training_goal!r}")

    def goal_for(self, template_exercise: TemplateExercise) -> TrainingGoal:
        """Return the exercise-level goal, falling back to the workout goal."""
        return template_exercise.training_goal or self.training_goal


@dataclass(frozen=True)
class ResolvedTargets:
    """Effective sets/reps/weight after filling in goal defaults."""

    sets: int
    reps: int
    weight_kg: float


# =============================================================================
# RENDER ITEMS (standalone exercise | superset group)
# =============================================================================


@dataclass(frozen=True)
class StandaloneItem:
    """A single exercise performed on its own."""

    exercise: ExerciseDefinition
    logs: tuple[LoggedSet, ...]
    planned: tuple[PlannedSet, ...]

    @property
    def exercise_id(self) -> str:
        return self.exercise.exercise_id


@dataclass(frozen=True)
class SupersetMember:
    """One exercise inside a superset group, with its own logs and plan."""

    exercise: ExerciseDefinition
    logs: tuple[LoggedSet, ...]
    planned: tuple[PlannedSet, ...]

    @property
    def exercise_id(self) -> str:
        return self.exercise.exercise_id


@dataclass(frozen=True)
class SupersetItem:
    """Two or more exercises tied together as a superset."""

    group: int
    members: tuple[SupersetMember, ...]


RenderItem = Union[StandaloneItem, SupersetItem]


# =============================================================================
# SUPERSET ROUNDS
# =============================================================================


@dataclass(frozen=True)
class RoundSet:
    """One member's planned set (and its log, if performed) within a round."""

    exercise_id: str
    exercise: ExerciseDefinition
    planned: PlannedSet
    log: LoggedSet | None
    exercise_index: int


@dataclass(frozen=True)
class Round:
    """A synchronized slice across superset members at one phase position."""

    set_type: SetType
    sets: tuple[RoundSet, ...]


@dataclass(frozen=True)
class ExtraLog:
    """A log beyond the planned count of its phase, attributed to its exercise."""

    log: LoggedSet
    exercise: ExerciseDefinition


@dataclass(frozen=True)
class SupersetRounds:
    """Output of the round builder."""

    rounds: tuple[Round, ...]
    extra_logs: tuple[ExtraLog, ...]


# =============================================================================
# EXECUTION QUEUE
# =============================================================================


@dataclass(frozen=True)
class FlatSet:
    """
    One element of the session-wide execution queue.

    transition=True means only a short transition follows before the
    next exercise of the same superset round; otherwise a full rest.
    completed reflects externally persisted logs only.
    """

    exercise_id: str
    exercise_name: str
    set_type: SetType
    weight_kg: float | None
    reps: int
    set_number: int
    total_sets: int
    transition: bool
    item_index: int
    completed: bool


# =============================================================================
# DIVERGENCE
# =============================================================================


@dataclass(frozen=True)
class Performance:
    """A sets × reps @ weight triple, planned or actual."""

    sets: int
    reps: int
    weight: float | None


@dataclass(frozen=True)
class TemplateUpdate:
    """A suggested (or accepted) change to one template exercise's targets."""

    exercise_id: str
    target_sets: int
    target_reps: int
    target_weight: float | None


@dataclass(frozen=True)
class Divergence:
    """Planned vs. best-actual performance for one exercise."""

    exercise_id: str
    exercise_name: str
    planned: Performance
    actual: Performance
    improved: bool
    suggestion: TemplateUpdate
