"""
Target resolution and planned-set generation.

Fills in missing per-exercise targets (sets / reps / weight) from the
training goal and exercise metadata, then expands the resolved targets
into the exercise's immutable list of planned sets according to its
set mode.
"""

from dataclasses import dataclass
from typing import MutableMapping

from .config import REP_RANGE_FALLBACKS, TRAINING_DEFAULTS, TrainingGoal
from .exercises.base import ExerciseDefinition, MuscleEngagement
from .formulas import (
    generate_backoff_sets,
    generate_warmup_sets,
    round_half_up,
    should_skip_warmup,
)
from .models import PlannedSet, ResolvedTargets, SetMode, TemplateExercise


@dataclass(frozen=True)
class RepRange:
    """Inclusive rep range for one exercise and goal."""

    min: int
    max: int

    @property
    def midpoint(self) -> float:
        return (self.min + self.max) / 2


def default_sets(goal: TrainingGoal) -> int:
    """Default working-set count: 5 for strength, 3 for hypertrophy."""
    return TRAINING_DEFAULTS[goal].target_sets


def get_rep_range(exercise: ExerciseDefinition, goal: TrainingGoal) -> RepRange:
    """
    Resolve the rep range for an exercise + training goal.

    Resolution order:
    1. Explicit per-goal range on the exercise → use directly
    2. Hypertrophy only: derive from strength → (strength_max, strength_max × 2)
    3. Type-based fallback → compound strength 3–5, compound hypertrophy
       8–12, isolation 10–15
    """
    if goal == "strength":
        if exercise.strength_reps_min is not None and exercise.strength_reps_max is not None:
            return RepRange(exercise.strength_reps_min, exercise.strength_reps_max)
    else:
        if (
            exercise.hypertrophy_reps_min is not None
            and exercise.hypertrophy_reps_max is not None
        ):
            return RepRange(exercise.hypertrophy_reps_min, exercise.hypertrophy_reps_max)
        if exercise.strength_reps_max is not None:
            return RepRange(exercise.strength_reps_max, exercise.strength_reps_max * 2)

    low, high = REP_RANGE_FALLBACKS[(exercise.type, goal)]
    return RepRange(low, high)


def resolve_exercise_targets(
    template_exercise: TemplateExercise,
    goal: TrainingGoal,
) -> ResolvedTargets:
    """
    Effective sets/reps/weight for a template exercise.

    sets   = explicit ?? default_sets(goal)
    reps   = explicit ?? round(midpoint(rep range))
    weight = explicit ?? 0
    """
    rep_range = get_rep_range(template_exercise.exercise, goal)
    te = template_exercise
    return ResolvedTargets(
        sets=te.target_sets if te.target_sets is not None else default_sets(goal),
        reps=te.target_reps if te.target_reps is not None else round_half_up(rep_range.midpoint),
        weight_kg=te.target_weight if te.target_weight is not None else 0.0,
    )


def _merge_warmed_up(
    warmed_up: MutableMapping[str, float],
    muscles: tuple[MuscleEngagement, ...],
) -> None:
    for m in muscles:
        if m.intensity > warmed_up.get(m.muscle_group, 0.0):
            warmed_up[m.muscle_group] = m.intensity


def generate_planned_sets(
    set_mode: SetMode,
    targets: ResolvedTargets,
    muscles: tuple[MuscleEngagement, ...] = (),
    warmed_up: MutableMapping[str, float] | None = None,
    has_target_weight: bool = True,
) -> list[PlannedSet]:
    """
    Expand resolved targets into an exercise's planned sets.

    Set modes:
      working → ``sets`` working sets
      warmup  → warmup ramp, then ``sets`` working sets
      backoff → max(1, sets − 1) working sets, remainder as backoff sets
      full    → warmup ramp + backoff split

    The warmup ramp is dropped when preceding exercises already warmed
    up at least half of this exercise's muscle intensity.  Afterwards
    the exercise's muscles are merged into ``warmed_up`` (in place,
    max intensity per muscle), so callers thread one mapping through
    the template in order.

    Args:
        set_mode: Template set mode
        targets: Resolved sets/reps/weight
        muscles: The exercise's muscle engagements
        warmed_up: Muscles already warmed by preceding exercises (mutated)
        has_target_weight: False when the template left the weight unset;
            working and backoff sets then carry weight_kg=None

    Returns:
        Planned sets numbered 1..n in execution order
    """
    if warmed_up is None:
        warmed_up = {}

    with_warmup = set_mode in ("warmup", "full")
    with_backoff = set_mode in ("backoff", "full")

    weight = targets.weight_kg if has_target_weight else None
    raw: list[tuple[float | None, int, str]] = []

    if with_warmup and weight and not should_skip_warmup(muscles, warmed_up):
        raw.extend((s.weight_kg, s.reps, s.set_type) for s in generate_warmup_sets(weight, targets.reps))

    working_count = max(1, targets.sets - 1) if with_backoff else targets.sets
    raw.extend((weight, targets.reps, "working") for _ in range(working_count))

    backoff_count = targets.sets - working_count if with_backoff else 0
    if backoff_count > 0:
        if weight is None:
            raw.extend(
                (None, s.reps, "backoff")
                for s in generate_backoff_sets(0.0, targets.reps, backoff_count)
            )
        else:
            raw.extend(
                (s.weight_kg, s.reps, s.set_type)
                for s in generate_backoff_sets(weight, targets.reps, backoff_count)
            )

    _merge_warmed_up(warmed_up, muscles)

    return [
        PlannedSet(set_number=i + 1, weight_kg=w, reps=r, set_type=t)  # type: ignore[arg-type]
        for i, (w, r, t) in enumerate(raw)
    ]
