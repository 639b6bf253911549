"""
Base types for exercise definitions.

ExerciseDefinition carries everything the engine needs to know about a
movement: its classification (compound/isolation, fatigue tier), which
muscles it engages and how hard, and optional per-goal rep ranges.
"""

from dataclasses import dataclass, field
from typing import Final, Literal

ExerciseType = Literal["compound", "isolation"]

MUSCLE_GROUPS: Final[tuple[str, ...]] = (
    "chest",
    "upper_back",
    "lats",
    "front_delts",
    "side_delts",
    "rear_delts",
    "biceps",
    "triceps",
    "forearms",
    "quads",
    "hamstrings",
    "glutes",
    "calves",
    "core",
)


@dataclass(frozen=True)
class MuscleEngagement:
    """How strongly one muscle group is worked (0–1)."""

    muscle_group: str
    intensity: float

    def __post_init__(self) -> None:
        if not 0.0 <= self.intensity <= 1.0:
            raise ValueError(
                f"intensity for {self.muscle_group!r} must be within [0, 1], got {self.intensity}"
            )


@dataclass(frozen=True)
class ExerciseDefinition:
    """
    Full configuration for one exercise.

    fatigue_tier runs 1–4: 1 = heaviest compound with the longest
    recovery (squat, deadlift), 4 = pure isolation (lateral raise).
    Rep-range bounds are optional; the target resolver derives or falls
    back to type-based ranges when they are absent.
    """

    # Identity
    exercise_id: str          # e.g. "back_squat"
    display_name: str         # e.g. "Back Squat"

    # Classification
    type: ExerciseType
    fatigue_tier: int

    muscles: tuple[MuscleEngagement, ...] = field(default_factory=tuple)

    # Rep ranges per goal (both bounds or neither)
    strength_reps_min: int | None = None
    strength_reps_max: int | None = None
    hypertrophy_reps_min: int | None = None
    hypertrophy_reps_max: int | None = None

    def __post_init__(self) -> None:
        """Validate classification fields."""
        if self.type not in ("compound", "isolation"):
            raise ValueError(f"Invalid exercise type: {self.type!r}")
        if self.fatigue_tier not in (1, 2, 3, 4):
            raise ValueError(f"fatigue_tier must be 1-4, got {self.fatigue_tier}")

    @property
    def name(self) -> str:
        """Display name (alias used by queue entries)."""
        return self.display_name
