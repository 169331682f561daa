"""Tests for SchemaValidator."""

import json

import pytest

from treatment_plan_generation.core.enums import SchemaErrorKind, UrgencyLevel
from treatment_plan_generation.core.exceptions import SchemaError
from treatment_plan_generation.validation import SchemaValidator, strip_code_fences
from treatment_plan_generation.validation.schema_validator import format_path


@pytest.fixture
def validator():
    return SchemaValidator()


def _violation(validator, data, diagnosis=False):
    raw = json.dumps(data)
    with pytest.raises(SchemaError) as exc_info:
        if diagnosis:
            validator.validate_diagnosis(raw)
        else:
            validator.validate_plan(raw)
    return exc_info.value


class TestParsing:
    def test_strips_code_fences(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
        assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'
        assert strip_code_fences('  {"a": 1} ') == '{"a": 1}'

    def test_fenced_plan_is_accepted(self, validator, valid_plan_json):
        plan = validator.validate_plan(f"```json\n{valid_plan_json}\n```")
        assert len(plan.phases) == 2

    def test_json_inside_prose_is_accepted(self, validator, valid_plan_json):
        plan = validator.validate_plan(f"Here is the plan:\n{valid_plan_json}\nGood luck!")
        assert plan.overview.startswith("Lumbar")

    @pytest.mark.parametrize("raw", ["", "not json at all", "{broken", "{\"overview\": }"])
    def test_unparseable_is_malformed(self, validator, raw):
        with pytest.raises(SchemaError) as exc_info:
            validator.validate_plan(raw)
        assert exc_info.value.kind == SchemaErrorKind.MALFORMED
        assert exc_info.value.path == "$"

    @pytest.mark.parametrize("raw", ["[]", "[1, 2]", "42", "\"plan\"", "null"])
    def test_non_object_root_is_malformed(self, validator, raw):
        with pytest.raises(SchemaError) as exc_info:
            validator.validate_plan(raw)
        assert exc_info.value.kind == SchemaErrorKind.MALFORMED

    def test_non_text_input_is_malformed(self, validator):
        with pytest.raises(SchemaError) as exc_info:
            validator.validate_plan(None)
        assert exc_info.value.kind == SchemaErrorKind.MALFORMED


class TestPlanContract:
    def test_valid_plan_is_returned_untouched(self, validator, valid_plan_json, valid_plan_dict):
        plan = validator.validate_plan(valid_plan_json)

        assert plan.to_dict() == valid_plan_dict
        assert [p.name for p in plan.phases] == ["Phase 1: Pain Relief", "Phase 2: Strength"]
        assert plan.phases[1].exercises[0].reps == "30-60 seconds"
        assert plan.progression_notes == "Advance when symptoms centralise."

    def test_accepts_already_parsed_mapping(self, validator, valid_plan_dict):
        assert validator.validate_plan(valid_plan_dict).exercise_count == 2

    def test_missing_top_level_field(self, validator, valid_plan_dict):
        del valid_plan_dict["progressionNotes"]
        error = _violation(validator, valid_plan_dict)
        assert error.kind == SchemaErrorKind.MISSING_FIELD
        assert error.path == "progressionNotes"

    def test_empty_phases(self, validator, valid_plan_dict):
        valid_plan_dict["phases"] = []
        error = _violation(validator, valid_plan_dict)
        assert error.kind == SchemaErrorKind.INVALID_VALUE
        assert error.path == "phases"

    def test_phase_without_exercises(self, validator, valid_plan_dict):
        valid_plan_dict["phases"][0]["exercises"] = []
        error = _violation(validator, valid_plan_dict)
        assert error.kind == SchemaErrorKind.INVALID_VALUE
        assert error.path == "phases[0].exercises"

    def test_phase_without_goals(self, validator, valid_plan_dict):
        valid_plan_dict["phases"][1]["goals"] = []
        error = _violation(validator, valid_plan_dict)
        assert error.kind == SchemaErrorKind.INVALID_VALUE
        assert error.path == "phases[1].goals"

    def test_numeric_sets_is_a_type_violation(self, validator, valid_plan_dict):
        valid_plan_dict["phases"][0]["exercises"][0]["sets"] = 3
        error = _violation(validator, valid_plan_dict)
        assert error.kind == SchemaErrorKind.MISSING_FIELD
        assert error.path == "phases[0].exercises[0].sets"

    def test_missing_exercise_field(self, validator, valid_plan_dict):
        del valid_plan_dict["phases"][1]["exercises"][0]["progression"]
        error = _violation(validator, valid_plan_dict)
        assert error.path == "phases[1].exercises[0].progression"

    def test_phases_as_string(self, validator, valid_plan_dict):
        valid_plan_dict["phases"] = "Phase 1 then Phase 2"
        error = _violation(validator, valid_plan_dict)
        assert error.kind == SchemaErrorKind.MISSING_FIELD
        assert error.path == "phases"

    def test_shallowest_error_is_reported(self, validator, valid_plan_dict):
        valid_plan_dict["phases"][0]["exercises"][0]["reps"] = 10
        del valid_plan_dict["overview"]
        error = _violation(validator, valid_plan_dict)
        assert error.path == "overview"
        assert len(error.errors) == 2

    def test_snake_case_name_does_not_replace_wire_name(self, validator, valid_plan_dict):
        valid_plan_dict["progression_notes"] = valid_plan_dict.pop("progressionNotes")
        error = _violation(validator, valid_plan_dict)
        assert error.kind == SchemaErrorKind.MISSING_FIELD
        assert error.path == "progressionNotes"

    def test_extra_fields_are_ignored(self, validator, valid_plan_dict):
        valid_plan_dict["disclaimer"] = "Consult a professional"
        assert "disclaimer" not in validator.validate_plan(valid_plan_dict).to_dict()


class TestDiagnosisContract:
    def test_valid_diagnosis(self, validator, valid_diagnosis_json):
        diagnosis = validator.validate_diagnosis(valid_diagnosis_json)
        assert diagnosis.urgency_level == UrgencyLevel.LOW
        assert diagnosis.findings == ("Forward head posture", "Thoracic kyphosis")

    def test_unknown_urgency(self, validator, valid_diagnosis_dict):
        valid_diagnosis_dict["urgencyLevel"] = "critical"
        error = _violation(validator, valid_diagnosis_dict, diagnosis=True)
        assert error.kind == SchemaErrorKind.INVALID_VALUE
        assert error.path == "urgencyLevel"

    def test_snake_case_urgency_is_rejected(self, validator, valid_diagnosis_dict):
        valid_diagnosis_dict["urgency_level"] = valid_diagnosis_dict.pop("urgencyLevel")
        error = _violation(validator, valid_diagnosis_dict, diagnosis=True)
        assert error.kind == SchemaErrorKind.MISSING_FIELD
        assert error.path == "urgencyLevel"

    def test_missing_next_steps(self, validator, valid_diagnosis_dict):
        del valid_diagnosis_dict["nextSteps"]
        error = _violation(validator, valid_diagnosis_dict, diagnosis=True)
        assert error.kind == SchemaErrorKind.MISSING_FIELD
        assert error.path == "nextSteps"


class TestFormatPath:
    def test_nested_path(self):
        assert format_path(("phases", 0, "exercises", 1, "reps")) == "phases[0].exercises[1].reps"

    def test_root(self):
        assert format_path(()) == "$"
