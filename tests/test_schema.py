"""Tests for blueprint schema validation."""

import pytest

from guildsmith.blueprint.schema import (
    ValidationIssue,
    build_repair_prompt,
    format_validation_errors,
    validate_blueprint,
)
from guildsmith.errors import BlueprintValidationError


def _paths(report):
    return [issue.path for issue in report.errors]


class TestValidateBlueprint:
    """Structural validation of blueprints."""

    def test_canonical_blueprint_is_valid(self, canonical_blueprint):
        """Three roles and two one-channel categories pass."""
        report = validate_blueprint(canonical_blueprint)
        assert report.valid
        assert report.errors == []

    def test_missing_roles_is_reported_at_roles(self, canonical_blueprint):
        """A missing roles list points at /roles."""
        del canonical_blueprint["roles"]
        report = validate_blueprint(canonical_blueprint)
        assert not report.valid
        assert "/roles" in _paths(report)

    def test_missing_categories_is_reported_at_categories(self, canonical_blueprint):
        """A missing categories map points at /categories."""
        del canonical_blueprint["categories"]
        report = validate_blueprint(canonical_blueprint)
        assert not report.valid
        assert "/categories" in _paths(report)

    def test_all_errors_collected_in_one_pass(self):
        """Both missing top-level fields are reported together."""
        report = validate_blueprint({})
        assert sorted(_paths(report)) == ["/categories", "/roles"]

    def test_unknown_channel_type_points_at_channel(self, canonical_blueprint):
        """A channel type outside the enum is located precisely."""
        canonical_blueprint["categories"]["COMMUNITY"][0]["type"] = "hologram"
        report = validate_blueprint(canonical_blueprint)
        assert not report.valid
        assert "/categories/COMMUNITY/0/type" in _paths(report)

    def test_unknown_top_level_key_rejected(self, canonical_blueprint):
        """Extra top-level keys are not allowed."""
        canonical_blueprint["surprise"] = True
        assert not validate_blueprint(canonical_blueprint).valid

    def test_invalid_auto_archive_duration(self, canonical_blueprint):
        """Forum auto-archive must be one of Discord's durations."""
        canonical_blueprint["categories"]["COMMUNITY"].append(
            {"name": "ideas", "type": "forum", "defaultAutoArchiveDuration": 30}
        )
        report = validate_blueprint(canonical_blueprint)
        assert "/categories/COMMUNITY/1/defaultAutoArchiveDuration" in _paths(report)

    def test_non_object_is_invalid(self):
        """A JSON array is not a blueprint."""
        assert not validate_blueprint([1, 2, 3]).valid

    def test_raise_for_errors(self):
        """Invalid reports raise with the issue list attached."""
        report = validate_blueprint({"roles": []})
        with pytest.raises(BlueprintValidationError) as excinfo:
            report.raise_for_errors()
        assert excinfo.value.issues == report.errors
        assert "/categories" in str(excinfo.value)

    def test_valid_report_does_not_raise(self, canonical_blueprint):
        validate_blueprint(canonical_blueprint).raise_for_errors()


class TestFormatting:
    """Error formatting and repair prompts."""

    def test_no_errors(self):
        assert format_validation_errors([]) == "No errors"

    def test_errors_joined(self):
        issues = [ValidationIssue("/roles", "is required"), ValidationIssue("/categories", "is required")]
        assert format_validation_errors(issues) == "/roles is required; /categories is required"

    def test_repair_prompt_lists_errors(self):
        prompt = build_repair_prompt([ValidationIssue("/roles/0/name", "is too short")])
        assert "ONLY return a corrected JSON object" in prompt
        assert "/roles/0/name is too short" in prompt
