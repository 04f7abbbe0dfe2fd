"""Unit tests for the request constraint tables."""

from datetime import datetime

import pytest

from projectify.core.errors import ValidationError
from projectify.core.validation import (
    APPLICATION_RULES,
    LOGIN_RULES,
    PROJECT_RULES,
    REGISTRATION_RULES,
    validate,
)


def project_payload(**overrides):
    payload = {
        "name": "Site Redesign",
        "description": "Refresh the marketing site",
        "startDate": "2024-01-01",
        "endDate": "2024-03-01",
        "budget": 5000,
    }
    payload.update(overrides)
    return payload


def failure(payload, rules) -> str:
    with pytest.raises(ValidationError) as exc_info:
        validate(payload, rules)
    assert exc_info.value.message == "Validation error"
    return exc_info.value.error


class TestProjectRules:
    """Project creation constraints."""

    def test_valid_project_is_cleaned(self):
        data = validate(project_payload(name="  Site Redesign  "), PROJECT_RULES)
        assert data["name"] == "Site Redesign"
        assert data["startDate"] == datetime(2024, 1, 1)
        assert data["endDate"] == datetime(2024, 3, 1)
        assert data["budget"] == 5000

    def test_end_date_must_follow_start_date(self):
        assert failure(project_payload(endDate="2023-12-31"), PROJECT_RULES) == "End date must be after start date"

    def test_equal_dates_are_rejected(self):
        assert failure(project_payload(endDate="2024-01-01"), PROJECT_RULES) == "End date must be after start date"

    def test_negative_budget_is_rejected(self):
        assert failure(project_payload(budget=-1), PROJECT_RULES) == "Budget cannot be negative"

    def test_zero_budget_is_valid(self):
        assert validate(project_payload(budget=0), PROJECT_RULES)["budget"] == 0

    def test_numeric_string_budget_is_coerced(self):
        assert validate(project_payload(budget="2500.5"), PROJECT_RULES)["budget"] == 2500.5

    def test_non_numeric_budget_is_rejected(self):
        assert failure(project_payload(budget="lots"), PROJECT_RULES) == "Budget must be a number"

    def test_boolean_budget_is_rejected(self):
        assert failure(project_payload(budget=True), PROJECT_RULES) == "Budget must be a number"

    @pytest.mark.parametrize("budget", ["nan", "inf", "-Infinity", float("nan"), float("inf")])
    def test_non_finite_budget_is_rejected(self, budget):
        assert failure(project_payload(budget=budget), PROJECT_RULES) == "Budget must be a number"

    def test_missing_name(self):
        assert failure(project_payload(name="   "), PROJECT_RULES) == "Project name is required"

    def test_name_too_long(self):
        assert failure(project_payload(name="x" * 101), PROJECT_RULES) == (
            "Project name cannot be more than 100 characters"
        )

    def test_invalid_date(self):
        assert failure(project_payload(startDate="next tuesday"), PROJECT_RULES) == (
            "Start date must be a valid date"
        )

    def test_timezone_aware_dates_become_naive_utc(self):
        data = validate(
            project_payload(startDate="2024-01-01T02:00:00+02:00", endDate="2024-01-02T00:00:00Z"),
            PROJECT_RULES,
        )
        assert data["startDate"] == datetime(2024, 1, 1, 0, 0)
        assert data["endDate"].tzinfo is None

    def test_unknown_fields_are_dropped(self):
        data = validate(project_payload(status="approved"), PROJECT_RULES)
        assert "status" not in data

    def test_body_must_be_object(self):
        assert failure(["not", "an", "object"], PROJECT_RULES) == "Request body must be a JSON object"


class TestApplicationRules:
    def test_valid_object_id(self):
        assert validate({"projectId": "65a1f0c2e4b0a1b2c3d4e5f6"}, APPLICATION_RULES)

    def test_malformed_object_id(self):
        assert failure({"projectId": "abcdefghijkl"}, APPLICATION_RULES) == "Invalid project ID format"

    def test_missing_project_id(self):
        assert failure({}, APPLICATION_RULES) == "Project ID is required"


class TestAccountRules:
    def test_registration_normalizes_email(self):
        data = validate(
            {"name": "Bob", "email": "Bob@Example.COM", "password": "secret1"}, REGISTRATION_RULES
        )
        assert data["email"] == "bob@example.com"

    def test_invalid_email(self):
        payload = {"name": "Bob", "email": "not-an-email", "password": "secret1"}
        assert failure(payload, REGISTRATION_RULES) == "Please enter a valid email"

    def test_short_password(self):
        payload = {"name": "Bob", "email": "bob@example.com", "password": "12345"}
        assert failure(payload, REGISTRATION_RULES) == "Password must be at least 6 characters"

    def test_login_requires_password(self):
        assert failure({"email": "bob@example.com"}, LOGIN_RULES) == "Password is required"
