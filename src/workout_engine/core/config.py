"""
Configuration constants for the workout execution engine.

All adjustable parameters are centralized here for easy tuning.
The rest-duration table can additionally be overridden from YAML
(see core/engine/config_loader.py); the pure formulas always default
to the Python values below.
"""

from dataclasses import dataclass
from typing import Final, Literal

TrainingGoal = Literal["hypertrophy", "strength"]
WeightUnit = Literal["kg", "lbs"]

# =============================================================================
# REST DURATION
# =============================================================================

# Fatigue tier dominates: heavy compounds (T1) need far more rest than pure
# isolation work (T4).
TIER_BASE_SECONDS: Final[dict[int, int]] = {1: 120, 2: 80, 3: 45, 4: 30}
GOAL_REST_MULTIPLIER: Final[dict[str, float]] = {"hypertrophy": 1.0, "strength": 2.0}
REST_PER_REP_SECONDS: Final[int] = 3
WARMUP_REST_FACTOR: Final[float] = 0.5  # Warmups rest half as long as working sets
MIN_REST_SECONDS: Final[int] = 15

# Short rest between two members of the same superset round.  Fixed, not
# derived from calculate_rest().
SUPERSET_TRANSITION_SECONDS: Final[int] = 15

# =============================================================================
# ONE-REP MAX (Brzycki)
# =============================================================================

BRZYCKI_REP_LIMIT: Final[int] = 37  # Formula is undefined at and above this
E1RM_REP_CAP: Final[int] = 12  # Estimates above 12 reps inflate toward the asymptote

# =============================================================================
# PLATE INCREMENTS
# =============================================================================

# (upper bound inclusive, increment); the last entry applies above all bounds
PLATE_INCREMENTS: Final[dict[str, list[tuple[float, float]]]] = {
    "kg": [(5.0, 0.5), (20.0, 1.25), (float("inf"), 2.5)],
    "lbs": [(10.0, 1.0), (40.0, 2.5), (float("inf"), 5.0)],
}

# =============================================================================
# WARMUP / BACKOFF GENERATION
# =============================================================================

BAR_WEIGHT_KG: Final[float] = 20.0
BAR_WARMUP_REPS: Final[int] = 10
HEAVY_WARMUP_THRESHOLD_KG: Final[float] = 60.0  # Above this: bar → 50% → 75%
WARMUP_HALF_FRACTION: Final[float] = 0.5
WARMUP_HALF_REPS: Final[int] = 5
WARMUP_THREE_QUARTER_FRACTION: Final[float] = 0.75
WARMUP_THREE_QUARTER_REPS: Final[int] = 3
WARMUP_MIN_GAP_KG: Final[float] = 5.0  # 75% set must stay this far below working
LIGHT_WARMUP_FRACTION: Final[float] = 0.6

BACKOFF_START_FRACTION: Final[float] = 0.8
BACKOFF_STEP_FRACTION: Final[float] = 0.1
BACKOFF_REP_STEP: Final[int] = 2
DEFAULT_BACKOFF_COUNT: Final[int] = 2

WARMUP_SKIP_COVERAGE: Final[float] = 0.5  # Inclusive threshold

# =============================================================================
# TRAINING GOAL DEFAULTS
# =============================================================================


@dataclass(frozen=True)
class GoalDefaults:
    """Default prescription for one training goal."""

    target_sets: int
    target_reps: int


TRAINING_DEFAULTS: Final[dict[str, GoalDefaults]] = {
    "hypertrophy": GoalDefaults(target_sets=3, target_reps=10),
    "strength": GoalDefaults(target_sets=5, target_reps=5),
}

# Type-based rep-range fallbacks: (type, goal) -> (min, max)
REP_RANGE_FALLBACKS: Final[dict[tuple[str, str], tuple[int, int]]] = {
    ("compound", "strength"): (3, 5),
    ("compound", "hypertrophy"): (8, 12),
    ("isolation", "strength"): (10, 15),
    ("isolation", "hypertrophy"): (10, 15),
}

# =============================================================================
# DIVERGENCE ANALYSIS
# =============================================================================

WEIGHT_DIVERGENCE_TOLERANCE_KG: Final[float] = 0.1
NEW_EXERCISE_DEFAULT_SETS: Final[int] = 3
NEW_EXERCISE_DEFAULT_REPS: Final[int] = 8


# =============================================================================
# YAML-OVERRIDABLE REST MODEL
# =============================================================================


@dataclass(frozen=True)
class RestModel:
    """Rest-duration parameters, optionally overridden from engine.yaml."""

    tier_base: dict[int, int]
    goal_multiplier: dict[str, float]
    per_rep_seconds: int = REST_PER_REP_SECONDS
    warmup_factor: float = WARMUP_REST_FACTOR
    min_rest_seconds: int = MIN_REST_SECONDS
    transition_seconds: int = SUPERSET_TRANSITION_SECONDS


DEFAULT_REST_MODEL: Final[RestModel] = RestModel(
    tier_base=dict(TIER_BASE_SECONDS),
    goal_multiplier=dict(GOAL_REST_MULTIPLIER),
)


def load_rest_model() -> RestModel:
    """
    Build the rest model from YAML sources over the Python defaults.

    Reads the ``rest`` section of the merged engine config.  Missing keys
    keep their defaults; a missing or unreadable YAML yields
    DEFAULT_REST_MODEL.

    Returns:
        RestModel for use by calculate_rest() and the workout runner
    """
    from .engine.config_loader import load_model_config

    section = load_model_config().get("rest", {})
    if not isinstance(section, dict) or not section:
        return DEFAULT_REST_MODEL

    tier_base = dict(TIER_BASE_SECONDS)
    tier_base.update({int(k): int(v) for k, v in section.get("tier_base", {}).items()})
    goal_multiplier = dict(GOAL_REST_MULTIPLIER)
    goal_multiplier.update(
        {str(k): float(v) for k, v in section.get("goal_multiplier", {}).items()}
    )

    return RestModel(
        tier_base=tier_base,
        goal_multiplier=goal_multiplier,
        per_rep_seconds=int(section.get("per_rep_seconds", REST_PER_REP_SECONDS)),
        warmup_factor=float(section.get("warmup_factor", WARMUP_REST_FACTOR)),
        min_rest_seconds=int(section.get("min_rest_seconds", MIN_REST_SECONDS)),
        transition_seconds=int(
            section.get("transition_seconds", SUPERSET_TRANSITION_SECONDS)
        ),
    )
