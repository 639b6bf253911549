"""
Tests for snapshot parsing and JSON output helpers.
"""

import json

import pytest

from workout_engine.core.models import LoggedSet, TemplateUpdate
from workout_engine.io.serializers import (
    ValidationError,
    dict_to_logged_set,
    dict_to_snapshot,
    dict_to_template,
    load_snapshot,
    logged_set_to_dict,
    save_snapshot,
    template_exercise_to_dict,
    template_update_to_dict,
    validate_non_negative,
)

SNAPSHOT = {
    "template": {
        "name": "Lower A",
        "training_goal": "strength",
        "exercises": [
            {"exercise_id": "back_squat", "target_sets": 3, "target_reps": 5, "target_weight": 100},
            {"exercise_id": "bicep_curl", "superset_group": 1, "training_goal": "hypertrophy"},
            {"exercise_id": "tricep_pushdown", "superset_group": 1, "training_goal": "hypertrophy"},
        ],
    },
    "logs": [
        {"exercise_id": "back_squat", "set_number": 1, "weight_kg": 100, "reps": 5},
    ],
}


class TestTemplateParsing:

    def test_catalog_ids_resolve(self):
        template = dict_to_template(SNAPSHOT["template"])
        assert template.name == "Lower A"
        assert template.training_goal == "strength"
        squat, curl, _ = template.exercises
        assert squat.exercise.display_name == "Back Squat"
        assert squat.target_weight == 100.0
        assert curl.superset_group == 1
        assert curl.target_sets is None

    def test_defaults(self):
        template = dict_to_template({"exercises": []})
        assert template.name == "Workout"
        assert template.training_goal == "hypertrophy"

    def test_inline_exercise(self):
        template = dict_to_template({
            "exercises": [{
                "exercise": {
                    "exercise_id": "goblet_squat",
                    "display_name": "Goblet Squat",
                    "type": "compound",
                    "fatigue_tier": 2,
                    "muscles": {"quads": 1.0, "glutes": 0.6},
                },
                "target_weight": 24,
            }]
        })
        te = template.exercises[0]
        assert te.exercise_id == "goblet_squat"
        assert te.exercise.fatigue_tier == 2
        assert len(te.exercise.muscles) == 2

    def test_unknown_exercise_id(self):
        with pytest.raises(ValidationError, match="Unknown exercise"):
            dict_to_template({"exercises": [{"exercise_id": "underwater_squat"}]})

    def test_missing_exercise_reference(self):
        with pytest.raises(ValidationError):
            dict_to_template({"exercises": [{"target_sets": 3}]})

    def test_invalid_inline_exercise(self):
        with pytest.raises(ValidationError, match="Invalid inline exercise"):
            dict_to_template({"exercises": [{"exercise": {"exercise_id": "x"}}]})

    @pytest.mark.parametrize(
        "entry",
        [
            {"exercise_id": "back_squat", "set_mode": "drop"},
            {"exercise_id": "back_squat", "training_goal": "endurance"},
            {"exercise_id": "back_squat", "target_sets": 0},
            {"exercise_id": "back_squat", "target_weight": -5},
            {"exercise_id": "back_squat", "target_reps": "five"},
        ],
    )
    def test_invalid_targets(self, entry):
        with pytest.raises(ValidationError):
            dict_to_template({"exercises": [entry]})

    def test_compact_output(self):
        template = dict_to_template(SNAPSHOT["template"])
        assert template_exercise_to_dict(template.exercises[1]) == {
            "exercise_id": "bicep_curl",
            "superset_group": 1,
            "training_goal": "hypertrophy",
        }


class TestLoggedSets:

    def test_defaults(self):
        log = dict_to_logged_set({"exercise_id": "back_squat", "weight_kg": 60, "reps": 8})
        assert log == LoggedSet("back_squat", 1, "working", 60.0, 8)

    def test_optional_fields_only_when_set(self):
        log = LoggedSet("back_squat", 2, "warmup", 20, 10, rpe=6.5, log_id="abc")
        assert logged_set_to_dict(log) == {
            "exercise_id": "back_squat",
            "set_number": 2,
            "set_type": "warmup",
            "weight_kg": 20,
            "reps": 10,
            "rpe": 6.5,
            "log_id": "abc",
        }

    @pytest.mark.parametrize(
        "data",
        [
            {"weight_kg": 60, "reps": 8},
            {"exercise_id": "back_squat", "set_type": "dropset"},
            {"exercise_id": "back_squat", "reps": -1},
            {"exercise_id": "back_squat", "rpe": 11},
        ],
    )
    def test_invalid(self, data):
        with pytest.raises(ValidationError):
            dict_to_logged_set(data)

    def test_bool_is_not_a_number(self):
        with pytest.raises(ValidationError):
            validate_non_negative(True, "reps")


class TestSnapshots:

    def test_requires_template(self):
        with pytest.raises(ValidationError):
            dict_to_snapshot({"logs": []})

    def test_logs_must_be_list(self):
        with pytest.raises(ValidationError):
            dict_to_snapshot({"template": {}, "logs": {"a": 1}})

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "session.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ValidationError, match="Invalid JSON"):
            load_snapshot(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_snapshot(tmp_path / "absent.json")

    def test_save_then_load(self, tmp_path):
        path = tmp_path / "session.json"
        path.write_text(json.dumps(SNAPSHOT), encoding="utf-8")
        template, logs = load_snapshot(path)
        logs.append(LoggedSet("back_squat", 2, "working", 100, 4, log_id="console-1"))

        save_snapshot(path, template, logs)
        saved = json.loads(path.read_text(encoding="utf-8"))

        assert saved["template"]["exercises"][0]["target_weight"] == 100
        assert saved["logs"][1] == {
            "exercise_id": "back_squat",
            "set_number": 2,
            "set_type": "working",
            "weight_kg": 100,
            "reps": 4,
            "log_id": "console-1",
        }

    def test_template_update_dict(self):
        assert template_update_to_dict(TemplateUpdate("back_squat", 3, 5, 105.0)) == {
            "exercise_id": "back_squat",
            "target_sets": 3,
            "target_reps": 5,
            "target_weight": 105.0,
        }
