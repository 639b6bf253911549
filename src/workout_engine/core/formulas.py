"""
Pure formula functions.

One-rep-max estimation, plate rounding, rest durations, volume, and
warmup/backoff generation.  Every function is pure and never raises on
degenerate numeric input: out-of-domain values short-circuit to a
documented fallback instead.
"""

import math
from typing import Iterable, Literal, Mapping, Sequence

from .config import (
    BACKOFF_REP_STEP,
    BACKOFF_START_FRACTION,
    BACKOFF_STEP_FRACTION,
    BAR_WARMUP_REPS,
    BAR_WEIGHT_KG,
    BRZYCKI_REP_LIMIT,
    DEFAULT_BACKOFF_COUNT,
    DEFAULT_REST_MODEL,
    E1RM_REP_CAP,
    HEAVY_WARMUP_THRESHOLD_KG,
    LIGHT_WARMUP_FRACTION,
    PLATE_INCREMENTS,
    WARMUP_HALF_FRACTION,
    WARMUP_HALF_REPS,
    WARMUP_MIN_GAP_KG,
    WARMUP_SKIP_COVERAGE,
    WARMUP_THREE_QUARTER_FRACTION,
    WARMUP_THREE_QUARTER_REPS,
    RestModel,
    WeightUnit,
)
from .exercises.base import MuscleEngagement
from .models import GeneratedSet, LoggedSet, SetType

RoundDirection = Literal["nearest", "up", "down"]


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves toward +infinity (2.5 → 3, -2.5 → -2)."""
    return math.floor(value + 0.5)


# =============================================================================
# ONE-REP MAX
# =============================================================================


def estimated_1rm(weight_kg: float, reps: int) -> float:
    """
    Brzycki one-rep-max estimate.

    e1RM = weight × 36 / (37 − reps)

    Reps are capped at 12 before applying the formula; the estimate blows
    up as reps approach 37.  reps ≤ 0 or reps ≥ 37 return weight_kg
    unchanged.

    Args:
        weight_kg: Load lifted
        reps: Reps performed at that load

    Returns:
        Estimated 1RM in the same unit as weight_kg
    """
    if reps <= 0 or reps >= BRZYCKI_REP_LIMIT:
        return weight_kg
    capped = min(reps, E1RM_REP_CAP)
    return weight_kg * (36 / (BRZYCKI_REP_LIMIT - capped))


def weight_for_reps(one_rm: float, reps: int) -> float:
    """
    Inverse Brzycki: working weight for a 1RM and a target rep count.

    weight = 1RM × (37 − reps) / 36

    reps ≤ 0 or reps ≥ 37 return one_rm unchanged.
    """
    if reps <= 0 or reps >= BRZYCKI_REP_LIMIT:
        return one_rm
    return one_rm * ((BRZYCKI_REP_LIMIT - reps) / 36)


# =============================================================================
# PLATE ROUNDING
# =============================================================================


def plate_increment(weight: float, unit: WeightUnit = "kg") -> float:
    """
    Smallest practical plate increment for a given weight.

    kg: ≤5 → 0.5, ≤20 → 1.25, else 2.5
    lbs: ≤10 → 1, ≤40 → 2.5, else 5
    """
    for upper, increment in PLATE_INCREMENTS[unit]:
        if weight <= upper:
            return increment
    return PLATE_INCREMENTS[unit][-1][1]


def round_weight(
    weight: float,
    unit: WeightUnit = "kg",
    direction: RoundDirection = "nearest",
) -> float:
    """
    Snap a weight to the practical plate increment.

    The ratio weight/increment is first snapped to 10 decimal places so
    float noise (20 × 0.7 = 14.000000000000002) cannot push ceil/floor
    to the wrong side.

    Args:
        weight: Raw weight
        unit: "kg" or "lbs"
        direction: "nearest" (half up), "up" (ceil) or "down" (floor)

    Returns:
        Rounded weight
    """
    inc = plate_increment(abs(weight), unit)
    ratio = round_half_up((weight / inc) * 1e10) / 1e10
    if direction == "up":
        steps = math.ceil(ratio)
    elif direction == "down":
        steps = math.floor(ratio)
    else:
        steps = round_half_up(ratio)
    return steps * inc


# =============================================================================
# REST
# =============================================================================


def calculate_rest(
    reps: int,
    fatigue_tier: int,
    goal: str,
    set_type: SetType = "working",
    model: RestModel = DEFAULT_REST_MODEL,
) -> int:
    """
    Rest period in seconds before the next set.

    base = round(TIER_BASE[tier] × GOAL_MULT[goal] + reps × 3)

    Warmup sets rest round(base × 0.5).  Backoff sets rest like working
    sets.  The result never drops below 15 s.

    Args:
        reps: Reps of the set just performed
        fatigue_tier: 1 (heavy compound) to 4 (pure isolation)
        goal: "hypertrophy" or "strength"
        set_type: Type of the set just performed
        model: Rest parameters (defaults to the built-in table)

    Returns:
        Rest duration in whole seconds
    """
    base = round_half_up(
        model.tier_base[fatigue_tier] * model.goal_multiplier[goal]
        + reps * model.per_rep_seconds
    )
    rest = round_half_up(base * model.warmup_factor) if set_type == "warmup" else base
    return max(model.min_rest_seconds, rest)


# =============================================================================
# VOLUME / E1RM STATS
# =============================================================================


def total_volume(logs: Iterable) -> float:
    """
    Total volume = Σ(weight × reps × sets).

    Accepts LoggedSet objects or any object/dict with weight_kg and reps
    (and optionally sets, default 1).
    """
    total = 0.0
    for log in logs:
        if isinstance(log, Mapping):
            total += log["weight_kg"] * log["reps"] * log.get("sets", 1)
        else:
            total += log.weight_kg * log.reps * getattr(log, "sets", 1)
    return total


def exercise_e1rm_stats(
    logs: Sequence[LoggedSet],
    names: Mapping[str, str] | None = None,
) -> list[dict]:
    """
    Per-exercise best estimated 1RM, sorted by highest e1RM.

    Sets with weight ≤ 0 or reps ≤ 0 are ignored for the estimate but
    still count toward volume.

    Returns:
        List of dicts: exercise_id, name, weight_kg, reps, e1rm, volume
    """
    by_exercise: dict[str, list[LoggedSet]] = {}
    for log in logs:
        by_exercise.setdefault(log.exercise_id, []).append(log)

    stats: list[dict] = []
    for exercise_id, ex_logs in by_exercise.items():
        best_e1rm = 0.0
        best: LoggedSet | None = None
        for log in ex_logs:
            if log.weight_kg <= 0 or log.reps <= 0:
                continue
            e1rm = estimated_1rm(log.weight_kg, log.reps)
            if e1rm > best_e1rm:
                best_e1rm = e1rm
                best = log
        if best is None:
            continue
        stats.append(
            {
                "exercise_id": exercise_id,
                "name": (names or {}).get(exercise_id, exercise_id),
                "weight_kg": best.weight_kg,
                "reps": best.reps,
                "e1rm": best_e1rm,
                "volume": total_volume(ex_logs),
            }
        )

    return sorted(stats, key=lambda s: s["e1rm"], reverse=True)


# =============================================================================
# WARMUP / BACKOFF GENERATION
# =============================================================================


def generate_warmup_sets(working_weight: float, working_reps: int) -> list[GeneratedSet]:
    """
    Warmup ramp for a working weight.

    Heavy (> 60 kg): empty bar × 10, then 50% × 5 if above the bar, then
    75% × 3 if above the 50% set and at least 5 kg below working weight.
    Light (≤ 60 kg): a single set at 60% for the working reps.

    Args:
        working_weight: Working-set weight in kg (≤ 0 → no warmups)
        working_reps: Working-set reps

    Returns:
        Warmup sets, lightest first
    """
    if working_weight <= 0:
        return []
    sets: list[GeneratedSet] = []

    if working_weight > HEAVY_WARMUP_THRESHOLD_KG:
        sets.append(GeneratedSet(weight_kg=BAR_WEIGHT_KG, reps=BAR_WARMUP_REPS, set_type="warmup"))
        half = round_weight(working_weight * WARMUP_HALF_FRACTION)
        if half > BAR_WEIGHT_KG:
            sets.append(GeneratedSet(weight_kg=half, reps=WARMUP_HALF_REPS, set_type="warmup"))
        three_quarter = round_weight(working_weight * WARMUP_THREE_QUARTER_FRACTION)
        if three_quarter > half and working_weight - three_quarter >= WARMUP_MIN_GAP_KG:
            sets.append(
                GeneratedSet(
                    weight_kg=three_quarter, reps=WARMUP_THREE_QUARTER_REPS, set_type="warmup"
                )
            )
    else:
        w = round_weight(working_weight * LIGHT_WARMUP_FRACTION)
        if w > 0:
            sets.append(GeneratedSet(weight_kg=w, reps=working_reps, set_type="warmup"))

    return sets


def generate_backoff_sets(
    working_weight: float,
    working_reps: int,
    count: int = DEFAULT_BACKOFF_COUNT,
) -> list[GeneratedSet]:
    """
    Backoff sets after the working sets.

    Set i (0-based): weight = roundWeight(working × (0.8 − 0.1 i), up),
    reps = working_reps + 2 (i + 1).
    """
    sets: list[GeneratedSet] = []
    for i in range(count):
        pct = BACKOFF_START_FRACTION - i * BACKOFF_STEP_FRACTION
        sets.append(
            GeneratedSet(
                weight_kg=round_weight(working_weight * pct, "kg", "up"),
                reps=working_reps + BACKOFF_REP_STEP * (i + 1),
                set_type="backoff",
            )
        )
    return sets


def should_skip_warmup(
    current_muscles: Sequence[MuscleEngagement],
    warmed_up_muscles: Mapping[str, float],
) -> bool:
    """
    True when preceding exercises already warmed up enough of these muscles.

    covered = Σ min(intensity, warmed[muscle]); skip when
    covered / Σ intensity ≥ 0.5 (inclusive).  An empty muscle list or a
    zero total intensity never skips.
    """
    if not current_muscles:
        return False
    total_intensity = sum(m.intensity for m in current_muscles)
    if total_intensity == 0:
        return False
    covered = 0.0
    for m in current_muscles:
        warmed = warmed_up_muscles.get(m.muscle_group, 0.0)
        if warmed > 0:
            covered += min(m.intensity, warmed)
    return covered / total_intensity >= WARMUP_SKIP_COVERAGE
