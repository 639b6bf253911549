"""
Post-session divergence analysis.

Compares each template exercise's plan against the best logged working
set and suggests template updates with a double-progression rule: once
reps reach the top of the rep range, bump the weight by one plate
increment and reset reps to the range max; otherwise match what was
actually done.
"""

from dataclasses import replace
from typing import Any, Mapping, Sequence

from .config import (
    NEW_EXERCISE_DEFAULT_REPS,
    NEW_EXERCISE_DEFAULT_SETS,
    WEIGHT_DIVERGENCE_TOLERANCE_KG,
)
from .formulas import plate_increment, round_weight
from .models import Divergence, LoggedSet, Performance, TemplateUpdate, WorkoutTemplate
from .targets import default_sets, get_rep_range

_OVERRIDE_FIELDS = ("target_sets", "target_reps", "target_weight")


def best_set(logs: Sequence[LoggedSet]) -> LoggedSet:
    """Heaviest set, ties broken by more reps (first wins on a full tie)."""
    best = logs[0]
    for log in logs[1:]:
        if log.weight_kg > best.weight_kg or (
            log.weight_kg == best.weight_kg and log.reps > best.reps
        ):
            best = log
    return best


def _working_logs(logs: Sequence[LoggedSet], exercise_id: str) -> list[LoggedSet]:
    return [log for log in logs if log.exercise_id == exercise_id and log.set_type == "working"]


def compute_divergences(
    logs: Sequence[LoggedSet],
    template: WorkoutTemplate,
) -> list[Divergence]:
    """
    Planned vs. actual for every template exercise with logged working sets.

    Only working sets count.  The planned set count excludes the backoff
    set when the set mode has one (floor 1); planned reps default to the
    top of the rep range.  Weight only diverges when the template has a
    target weight.

    Returns:
        Divergences in template order (exercises that matched the plan
        are omitted)
    """
    result: list[Divergence] = []

    for te in template.exercises:
        working = _working_logs(logs, te.exercise_id)
        if not working:
            continue

        goal = template.goal_for(te)
        rep_range = get_rep_range(te.exercise, goal)
        total_sets = te.target_sets if te.target_sets is not None else default_sets(goal)
        has_backoff = te.effective_set_mode in ("backoff", "full")
        effective_sets = max(1, total_sets - 1) if has_backoff else total_sets
        effective_reps = te.target_reps if te.target_reps is not None else rep_range.max

        best = best_set(working)
        weight_diff = (
            abs(best.weight_kg - te.target_weight) if te.target_weight is not None else 0.0
        )
        reps_diff = abs(best.reps - effective_reps)
        sets_diff = abs(len(working) - effective_sets)

        if not (weight_diff > WEIGHT_DIVERGENCE_TOLERANCE_KG or reps_diff > 0 or sets_diff > 0):
            continue

        improved = (
            best.weight_kg >= (te.target_weight or 0.0)
            and best.reps >= effective_reps
            and len(working) >= effective_sets
        )

        if best.reps >= rep_range.max and best.weight_kg > 0:
            suggestion = TemplateUpdate(
                exercise_id=te.exercise_id,
                target_sets=len(working),
                target_reps=rep_range.max,
                target_weight=round_weight(
                    best.weight_kg + plate_increment(best.weight_kg, "kg"), "kg", "up"
                ),
            )
        else:
            suggestion = TemplateUpdate(
                exercise_id=te.exercise_id,
                target_sets=len(working),
                target_reps=best.reps,
                target_weight=best.weight_kg if best.weight_kg > 0 else None,
            )

        result.append(
            Divergence(
                exercise_id=te.exercise_id,
                exercise_name=te.exercise.name,
                planned=Performance(effective_sets, effective_reps, te.target_weight),
                actual=Performance(len(working), best.reps, best.weight_kg),
                improved=improved,
                suggestion=suggestion,
            )
        )

    return result


def template_update_suggestions(
    divergences: Sequence[Divergence],
    accepted: Mapping[str, bool] | None = None,
    overrides: Mapping[str, Mapping[str, Any]] | None = None,
) -> list[TemplateUpdate]:
    """
    Template updates to apply after a session.

    Args:
        divergences: Output of compute_divergences
        accepted: exercise_id → apply?  Exercises not listed default to
            applying only improvements.
        overrides: exercise_id → {target_sets/target_reps/target_weight}
            replacing the suggested values field by field

    Returns:
        One TemplateUpdate per accepted divergence

    Raises:
        ValueError: If an override names an unknown field
    """
    accepted = accepted or {}
    overrides = overrides or {}
    updates: list[TemplateUpdate] = []

    for d in divergences:
        if not accepted.get(d.exercise_id, d.improved):
            continue
        update = d.suggestion
        custom = overrides.get(d.exercise_id)
        if custom:
            unknown = set(custom) - set(_OVERRIDE_FIELDS)
            if unknown:
                raise ValueError(f"Unknown override fields for {d.exercise_id}: {sorted(unknown)}")
            update = replace(update, **custom)
        updates.append(update)

    return updates


def new_exercise_suggestions(
    logs: Sequence[LoggedSet],
    template: WorkoutTemplate,
) -> list[TemplateUpdate]:
    """
    Targets for exercises logged this session but missing from the template.

    With no working sets the exercise gets 3×8 and no weight; otherwise
    the logged working-set count, the best set's reps and its weight
    (None when bodyweight).  Order follows first appearance in the logs.
    """
    template_ids = {te.exercise_id for te in template.exercises}
    seen: list[str] = []
    for log in logs:
        if log.exercise_id not in template_ids and log.exercise_id not in seen:
            seen.append(log.exercise_id)

    suggestions: list[TemplateUpdate] = []
    for exercise_id in seen:
        working = _working_logs(logs, exercise_id)
        if not working:
            suggestions.append(
                TemplateUpdate(
                    exercise_id=exercise_id,
                    target_sets=NEW_EXERCISE_DEFAULT_SETS,
                    target_reps=NEW_EXERCISE_DEFAULT_REPS,
                    target_weight=None,
                )
            )
            continue
        best = best_set(working)
        suggestions.append(
            TemplateUpdate(
                exercise_id=exercise_id,
                target_sets=len(working),
                target_reps=best.reps,
                target_weight=best.weight_kg if best.weight_kg > 0 else None,
            )
        )

    return suggestions
