"""
Exercise definitions for workout-engine.

Each exercise is described by an ExerciseDefinition loaded from the
bundled YAML catalog.
"""

from .base import MUSCLE_GROUPS, ExerciseDefinition, MuscleEngagement
from .registry import EXERCISE_REGISTRY, find_exercises, get_exercise

__all__ = [
    "MUSCLE_GROUPS",
    "ExerciseDefinition",
    "MuscleEngagement",
    "EXERCISE_REGISTRY",
    "find_exercises",
    "get_exercise",
]
