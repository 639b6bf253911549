"""
JSON serialization for workout-engine models.

Handles conversion between dataclasses and JSON-compatible dicts, and
loading of session snapshots (a template plus the session's logs).
"""

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any

from ..core.exercises import ExerciseDefinition, get_exercise
from ..core.exercises.loader import exercise_from_dict
from ..core.models import (
    SET_MODES,
    SET_TYPES,
    TRAINING_GOALS,
    Divergence,
    FlatSet,
    LoggedSet,
    TemplateExercise,
    TemplateUpdate,
    WorkoutTemplate,
)

logger = logging.getLogger(__name__)


class ValidationError(Exception):
    """Raised when data validation fails."""

    pass


def validate_choice(value: Any, choices: tuple[str, ...], name: str) -> str:
    """
    Validate that a value is one of the allowed strings.

    Raises:
        ValidationError: If value is not in choices
    """
    if value not in choices:
        raise ValidationError(f"Invalid {name}: {value!r}. Must be one of {choices}")
    return value


def validate_non_negative(value: int | float, name: str) -> int | float:
    """
    Validate that a value is a non-negative number.

    Raises:
        ValidationError: If value is negative or not a number
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{name} must be a number, got {value!r}")
    if value < 0:
        raise ValidationError(f"{name} must be non-negative, got {value}")
    return value


def _optional_number(data: dict[str, Any], key: str) -> int | float | None:
    value = data.get(key)
    if value is None:
        return None
    return validate_non_negative(value, key)


# =============================================================================
# EXERCISES / TEMPLATES
# =============================================================================


def resolve_exercise(data: dict[str, Any]) -> ExerciseDefinition:
    """
    Resolve a template exercise's definition.

    Either ``exercise`` (an inline definition, same schema as the YAML
    catalog) or ``exercise_id`` (a catalog id) must be present.

    Raises:
        ValidationError: If neither is present, the id is unknown, or the
            inline definition is invalid
    """
    inline = data.get("exercise")
    if inline is not None:
        if not isinstance(inline, dict):
            raise ValidationError("exercise must be an object")
        try:
            return exercise_from_dict(inline)
        except (ValueError, TypeError) as e:
            raise ValidationError(f"Invalid inline exercise: {e}") from e

    exercise_id = data.get("exercise_id")
    if not exercise_id:
        raise ValidationError("Template exercise needs 'exercise_id' or 'exercise'")
    try:
        return get_exercise(exercise_id)
    except ValueError as e:
        raise ValidationError(str(e)) from e


def template_exercise_to_dict(te: TemplateExercise) -> dict[str, Any]:
    """Compact form: catalog id plus only the targets that are set."""
    d: dict[str, Any] = {"exercise_id": te.exercise_id}
    for key in (
        "target_sets",
        "target_reps",
        "target_weight",
        "set_mode",
        "superset_group",
        "training_goal",
    ):
        value = getattr(te, key)
        if value is not None:
            d[key] = value
    return d


def dict_to_template_exercise(data: dict[str, Any]) -> TemplateExercise:
    """
    Convert dict to TemplateExercise.

    Raises:
        ValidationError: If data is invalid
    """
    exercise = resolve_exercise(data)

    target_sets = _optional_number(data, "target_sets")
    if target_sets is not None and target_sets < 1:
        raise ValidationError(f"target_sets must be >= 1, got {target_sets}")
    target_reps = _optional_number(data, "target_reps")
    target_weight = _optional_number(data, "target_weight")

    set_mode = data.get("set_mode")
    if set_mode is not None:
        validate_choice(set_mode, SET_MODES, "set_mode")
    goal = data.get("training_goal")
    if goal is not None:
        validate_choice(goal, TRAINING_GOALS, "training_goal")

    group = data.get("superset_group")

    return TemplateExercise(
        exercise=exercise,
        target_sets=int(target_sets) if target_sets is not None else None,
        target_reps=int(target_reps) if target_reps is not None else None,
        target_weight=float(target_weight) if target_weight is not None else None,
        set_mode=set_mode,
        superset_group=int(group) if group is not None else None,
        training_goal=goal,
    )


def template_to_dict(template: WorkoutTemplate) -> dict[str, Any]:
    return {
        "name": template.name,
        "training_goal": template.training_goal,
        "exercises": [template_exercise_to_dict(te) for te in template.exercises],
    }


def dict_to_template(data: dict[str, Any]) -> WorkoutTemplate:
    """
    Convert dict to WorkoutTemplate.

    Raises:
        ValidationError: If data is invalid
    """
    if not isinstance(data, dict):
        raise ValidationError("template must be an object")
    goal = validate_choice(data.get("training_goal", "hypertrophy"), TRAINING_GOALS, "training_goal")
    exercises = data.get("exercises") or []
    if not isinstance(exercises, list):
        raise ValidationError("template.exercises must be a list")

    return WorkoutTemplate(
        name=str(data.get("name", "Workout")),
        training_goal=goal,  # type: ignore[arg-type]
        exercises=[dict_to_template_exercise(e) for e in exercises],
    )


# =============================================================================
# LOGS
# =============================================================================


def logged_set_to_dict(log: LoggedSet) -> dict[str, Any]:
    d: dict[str, Any] = {
        "exercise_id": log.exercise_id,
        "set_number": log.set_number,
        "set_type": log.set_type,
        "weight_kg": log.weight_kg,
        "reps": log.reps,
    }
    if log.rpe is not None:
        d["rpe"] = log.rpe
    if log.failure_flag:
        d["failure_flag"] = True
    if log.log_id is not None:
        d["log_id"] = log.log_id
    return d


def dict_to_logged_set(data: dict[str, Any]) -> LoggedSet:
    """
    Convert dict to LoggedSet.

    set_type defaults to "working" and set_number to 1.

    Raises:
        ValidationError: If data is invalid
    """
    if not data.get("exercise_id"):
        raise ValidationError("Logged set needs 'exercise_id'")
    set_type = validate_choice(data.get("set_type", "working"), SET_TYPES, "set_type")
    weight = validate_non_negative(data.get("weight_kg", 0), "weight_kg")
    reps = validate_non_negative(data.get("reps", 0), "reps")
    rpe = data.get("rpe")
    if rpe is not None and not 0 <= validate_non_negative(rpe, "rpe") <= 10:
        raise ValidationError(f"rpe must be within [0, 10], got {rpe}")

    return LoggedSet(
        exercise_id=str(data["exercise_id"]),
        set_number=int(data.get("set_number", 1)),
        set_type=set_type,  # type: ignore[arg-type]
        weight_kg=float(weight),
        reps=int(reps),
        rpe=float(rpe) if rpe is not None else None,
        failure_flag=bool(data.get("failure_flag", False)),
        log_id=str(data["log_id"]) if data.get("log_id") is not None else None,
    )


# =============================================================================
# OUTPUTS
# =============================================================================


def flat_set_to_dict(flat: FlatSet) -> dict[str, Any]:
    return asdict(flat)


def template_update_to_dict(update: TemplateUpdate) -> dict[str, Any]:
    return asdict(update)


def divergence_to_dict(divergence: Divergence) -> dict[str, Any]:
    """Nested dict with planned/actual/suggestion sub-objects."""
    return asdict(divergence)


# =============================================================================
# SNAPSHOTS
# =============================================================================


def dict_to_snapshot(data: dict[str, Any]) -> tuple[WorkoutTemplate, list[LoggedSet]]:
    """
    Convert a snapshot dict ``{"template": ..., "logs": [...]}``.

    Raises:
        ValidationError: If the snapshot is malformed
    """
    if not isinstance(data, dict) or "template" not in data:
        raise ValidationError("Snapshot must be an object with a 'template' key")
    raw_logs = data.get("logs") or []
    if not isinstance(raw_logs, list):
        raise ValidationError("logs must be a list")
    return dict_to_template(data["template"]), [dict_to_logged_set(log) for log in raw_logs]


def snapshot_to_dict(template: WorkoutTemplate, logs: list[LoggedSet]) -> dict[str, Any]:
    return {
        "template": template_to_dict(template),
        "logs": [logged_set_to_dict(log) for log in logs],
    }


def load_snapshot(path: Path) -> tuple[WorkoutTemplate, list[LoggedSet]]:
    """
    Load a session snapshot from a JSON file.

    Args:
        path: Snapshot file

    Returns:
        (template, logs)

    Raises:
        FileNotFoundError: If the file does not exist
        ValidationError: If the JSON is invalid or the snapshot malformed
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON in {path}: {e}") from e

    template, logs = dict_to_snapshot(data)
    logger.debug(
        "Loaded snapshot %s: %d exercises, %d logs", path, len(template.exercises), len(logs)
    )
    return template, logs


def save_snapshot(path: Path, template: WorkoutTemplate, logs: list[LoggedSet]) -> None:
    """Write a snapshot as indented JSON."""
    with open(path, "w", encoding="utf-8") as f:
        json.dump(snapshot_to_dict(template, logs), f, indent=2)
        f.write("\n")
