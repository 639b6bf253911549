"""
Session queue building.

Turns a workout template plus the session's logs into render items
(standalone exercises and superset groups, in template order) and
flattens those into one strictly ordered queue of sets spanning the
whole session.  Flattening is deterministic: the same snapshot always
yields the same queue, and new logs only flip ``completed`` flags.
"""

from typing import Sequence

from .exercises.base import ExerciseDefinition
from .models import (
    FlatSet,
    LoggedSet,
    PlannedSet,
    RenderItem,
    StandaloneItem,
    SupersetItem,
    SupersetMember,
    WorkoutTemplate,
)
from .rounds import build_superset_rounds
from .targets import generate_planned_sets, resolve_exercise_targets


def _group_logs(logs: Sequence[LoggedSet]) -> dict[str, list[LoggedSet]]:
    by_exercise: dict[str, list[LoggedSet]] = {}
    for log in logs:
        by_exercise.setdefault(log.exercise_id, []).append(log)
    return by_exercise


def build_render_items(
    template: WorkoutTemplate,
    logs: Sequence[LoggedSet],
    exercises_by_id: dict[str, ExerciseDefinition] | None = None,
) -> list[RenderItem]:
    """
    Group a template and its session logs into render items.

    Each template exercise gets its planned sets (warmed-up muscles are
    threaded through the template in order, so later exercises may skip
    their warmup ramp).  Members sharing a superset group collapse into a
    single SupersetItem at the position of the first member; a group
    with fewer than two members stays standalone.  Exercises that were
    logged but are not in the template follow as standalone items with
    no planned sets.

    Args:
        template: Workout template
        logs: Session logs so far (any order; per-exercise order is kept)
        exercises_by_id: Definitions for logged exercises outside the
            template.  Logs whose exercise cannot be resolved are ignored.

    Returns:
        Render items in execution order
    """
    logs_by_exercise = _group_logs(logs)
    warmed_up: dict[str, float] = {}

    rows: list[tuple[ExerciseDefinition, list[LoggedSet], list[PlannedSet], int | None]] = []
    template_ids: set[str] = set()

    for te in template.exercises:
        goal = template.goal_for(te)
        targets = resolve_exercise_targets(te, goal)
        planned = generate_planned_sets(
            te.effective_set_mode,
            targets,
            muscles=te.exercise.muscles,
            warmed_up=warmed_up,
            has_target_weight=te.target_weight is not None,
        )
        template_ids.add(te.exercise_id)
        rows.append(
            (te.exercise, logs_by_exercise.get(te.exercise_id, []), planned, te.superset_group)
        )

    for exercise_id, ex_logs in logs_by_exercise.items():
        if exercise_id in template_ids:
            continue
        exercise = (exercises_by_id or {}).get(exercise_id)
        if exercise is None:
            continue
        rows.append((exercise, ex_logs, [], None))

    items: list[RenderItem] = []
    processed: set[str] = set()

    for exercise, ex_logs, planned, group in rows:
        if exercise.exercise_id in processed:
            continue

        if group is not None:
            members = [
                r for r in rows if r[3] == group and r[0].exercise_id not in processed
            ]
            if len(members) >= 2:
                items.append(
                    SupersetItem(
                        group=group,
                        members=tuple(
                            SupersetMember(exercise=m[0], logs=tuple(m[1]), planned=tuple(m[2]))
                            for m in members
                        ),
                    )
                )
                processed.update(m[0].exercise_id for m in members)
                continue

        processed.add(exercise.exercise_id)
        items.append(StandaloneItem(exercise=exercise, logs=tuple(ex_logs), planned=tuple(planned)))

    return items


def item_has_pending(item: RenderItem) -> bool:
    """True when some member still has more planned sets than logs."""
    if isinstance(item, StandaloneItem):
        return len(item.planned) > len(item.logs)
    if isinstance(item, SupersetItem):
        return any(len(m.planned) > len(m.logs) for m in item.members)
    raise TypeError(f"Unknown render item: {type(item).__name__}")


def flatten_sets(items: Sequence[RenderItem]) -> list[FlatSet]:
    """
    Flatten render items into the session-wide execution queue.

    Standalone items contribute one entry per planned set, never a
    transition, completed while its index is below the log count.
    Superset items are walked round by round; every entry except the
    last of its round is a transition.  A superset's set numbers run
    across the whole group and total_sets counts all members' planned
    sets.

    Args:
        items: Render items in template order

    Returns:
        Ordered FlatSet queue
    """
    result: list[FlatSet] = []

    for item_idx, item in enumerate(items):
        if isinstance(item, StandaloneItem):
            for i, planned in enumerate(item.planned):
                result.append(
                    FlatSet(
                        exercise_id=item.exercise_id,
                        exercise_name=item.exercise.name,
                        set_type=planned.set_type,
                        weight_kg=planned.weight_kg,
                        reps=planned.reps,
                        set_number=i + 1,
                        total_sets=len(item.planned),
                        transition=False,
                        item_index=item_idx,
                        completed=i < len(item.logs),
                    )
                )
        elif isinstance(item, SupersetItem):
            superset = build_superset_rounds(item.members)
            total_sets = sum(len(m.planned) for m in item.members)
            set_num = 0
            for rnd in superset.rounds:
                last = len(rnd.sets) - 1
                for set_idx, entry in enumerate(rnd.sets):
                    set_num += 1
                    result.append(
                        FlatSet(
                            exercise_id=entry.exercise_id,
                            exercise_name=entry.exercise.name,
                            set_type=entry.planned.set_type,
                            weight_kg=entry.planned.weight_kg,
                            reps=entry.planned.reps,
                            set_number=set_num,
                            total_sets=total_sets,
                            transition=set_idx != last,
                            item_index=item_idx,
                            completed=entry.log is not None,
                        )
                    )
        else:
            raise TypeError(f"Unknown render item: {type(item).__name__}")

    return result
