"""
YAML → ExerciseDefinition loader.

Loads exercise definitions from individual YAML files in the bundled
``src/workout_engine/exercises/`` directory.  Each file (e.g. back_squat.yaml)
contains a flat exercise definition matching the ExerciseDefinition schema.

User overrides: place matching files in ``~/.workout-engine/exercises/``.
A user file is deep-merged over the bundled definition, so only changed
keys need to be listed.  A user file whose stem does not match any
bundled file is treated as a new exercise and added to the catalog.

Usage (internal, called by registry.py):
    from .loader import load_exercises_from_yaml
    exercises = load_exercises_from_yaml()
"""

from __future__ import annotations

import warnings
from pathlib import Path

import yaml

from ..engine.config_loader import _deep_merge, get_user_config_dir
from .base import ExerciseDefinition, MuscleEngagement

_REQUIRED_EXERCISE_FIELDS: frozenset[str] = frozenset(
    {
        "exercise_id",
        "display_name",
        "type",
        "fatigue_tier",
        "muscles",
    }
)

_OPTIONAL_RANGE_FIELDS: tuple[str, ...] = (
    "strength_reps_min",
    "strength_reps_max",
    "hypertrophy_reps_min",
    "hypertrophy_reps_max",
)


def _optional_int(value) -> int | None:
    return int(value) if value is not None else None


def exercise_from_dict(d: dict) -> ExerciseDefinition:
    """Convert a raw dict (from YAML) to an ExerciseDefinition.

    ``muscles`` is a mapping of muscle group → intensity.

    Raises ValueError if any required field is absent or out of range.
    """
    missing = _REQUIRED_EXERCISE_FIELDS - set(d)
    if missing:
        raise ValueError(f"ExerciseDefinition missing fields: {sorted(missing)}")

    raw_muscles = d["muscles"] or {}
    if not isinstance(raw_muscles, dict):
        raise ValueError("muscles must be a mapping of muscle_group: intensity")
    muscles = tuple(
        MuscleEngagement(muscle_group=str(k), intensity=float(v))
        for k, v in raw_muscles.items()
    )

    ranges = {k: _optional_int(d.get(k)) for k in _OPTIONAL_RANGE_FIELDS}

    return ExerciseDefinition(
        exercise_id=str(d["exercise_id"]),
        display_name=str(d["display_name"]),
        type=str(d["type"]),  # type: ignore[arg-type]
        fatigue_tier=int(d["fatigue_tier"]),
        muscles=muscles,
        **ranges,
    )


def _load_yaml_file(path: Path) -> dict:
    """Load a YAML file; return {} when it is unreadable or not a mapping."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        warnings.warn(f"workout-engine: cannot read {path.name} ({exc})", stacklevel=3)
        return {}
    return data if isinstance(data, dict) else {}


def _get_bundled_exercises_dir() -> Path | None:
    """Return path to the bundled exercises/ data directory, or None if not found."""
    # loader.py lives at src/workout_engine/core/exercises/loader.py
    # three levels up → src/workout_engine/
    candidate = Path(__file__).parent.parent.parent / "exercises"
    return candidate if candidate.is_dir() else None


def _get_user_exercises_dir() -> Path | None:
    """Return ~/.workout-engine/exercises/ if it exists, else None."""
    p = get_user_config_dir() / "exercises"
    return p if p.is_dir() else None


def load_exercises_from_yaml() -> dict[str, ExerciseDefinition]:
    """Return {exercise_id: ExerciseDefinition} loaded from per-exercise YAML files.

    Loads each ``<exercise_id>.yaml`` from the bundled exercises/ directory.
    If a matching file exists in ``~/.workout-engine/exercises/`` it is
    deep-merged over the bundled definition.  User-only files are loaded
    as new exercises.  Invalid files are skipped with a warning.
    """
    bundled_dir = _get_bundled_exercises_dir()
    user_dir = _get_user_exercises_dir()

    stems: dict[str, Path] = {}
    if bundled_dir is not None:
        for p in sorted(bundled_dir.glob("*.yaml")):
            stems[p.stem] = p

    user_only: list[Path] = []
    if user_dir is not None:
        for p in sorted(user_dir.glob("*.yaml")):
            if p.stem not in stems:
                user_only.append(p)

    result: dict[str, ExerciseDefinition] = {}

    for stem, bundled_path in stems.items():
        raw = _load_yaml_file(bundled_path)
        if not raw:
            continue
        if user_dir is not None:
            user_path = user_dir / f"{stem}.yaml"
            if user_path.exists():
                raw = _deep_merge(raw, _load_yaml_file(user_path))
        try:
            ex = exercise_from_dict(raw)
        except ValueError as exc:
            warnings.warn(f"workout-engine: skipping exercise '{stem}': {exc}", stacklevel=2)
            continue
        result[ex.exercise_id] = ex

    for p in user_only:
        raw = _load_yaml_file(p)
        if not raw:
            continue
        try:
            ex = exercise_from_dict(raw)
        except ValueError as exc:
            warnings.warn(
                f"workout-engine: skipping user exercise '{p.stem}': {exc}", stacklevel=2
            )
            continue
        result[ex.exercise_id] = ex

    return result
