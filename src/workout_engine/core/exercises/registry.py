"""
Exercise catalog lookups.

Snapshots refer to exercises by catalog id, so the catalog is loaded
once at import time from the bundled YAML files (plus user overrides in
``~/.workout-engine/exercises/``).  An empty catalog is fatal.
"""

import difflib

from .base import ExerciseDefinition, ExerciseType
from .loader import load_exercises_from_yaml


def _build_registry() -> dict[str, ExerciseDefinition]:
    loaded = load_exercises_from_yaml()
    if not loaded:
        raise RuntimeError(
            "workout-engine: the exercise catalog is empty; "
            "expected YAML definitions in src/workout_engine/exercises/"
        )
    return dict(sorted(loaded.items()))


EXERCISE_REGISTRY: dict[str, ExerciseDefinition] = _build_registry()


def get_exercise(exercise_id: str) -> ExerciseDefinition:
    """
    Look up a catalog exercise.

    Raises:
        ValueError: If the id is unknown; the message names the closest
            catalog ids (or all of them when nothing is close)
    """
    exercise = EXERCISE_REGISTRY.get(exercise_id)
    if exercise is not None:
        return exercise
    close = difflib.get_close_matches(exercise_id, list(EXERCISE_REGISTRY), n=3)
    if close:
        raise ValueError(f"Unknown exercise '{exercise_id}'. Did you mean: {', '.join(close)}?")
    raise ValueError(f"Unknown exercise '{exercise_id}'. Valid IDs: {', '.join(EXERCISE_REGISTRY)}")


def find_exercises(
    muscle_group: str | None = None,
    exercise_type: ExerciseType | None = None,
    min_intensity: float = 0.5,
) -> list[ExerciseDefinition]:
    """
    Catalog exercises filtered by type and/or a targeted muscle group.

    A muscle counts as targeted when the exercise works it at
    min_intensity or more.  Results are ordered by fatigue tier, then id.
    """
    matches = [
        ex
        for ex in EXERCISE_REGISTRY.values()
        if (exercise_type is None or ex.type == exercise_type)
        and (
            muscle_group is None
            or any(
                m.muscle_group == muscle_group and m.intensity >= min_intensity
                for m in ex.muscles
            )
        )
    ]
    return sorted(matches, key=lambda ex: (ex.fatigue_tier, ex.exercise_id))
