from __future__ import annotations

import pytest

from registration.validation import (
    AGE_OUT_OF_RANGE_MESSAGE,
    FailureKind,
    MISSING_FIELD_MESSAGE,
    RegistrationRequest,
    ValidationFailed,
    require_valid_registration,
    validate_registration,
)


def test_valid_request_is_cleaned() -> None:
    result = validate_registration("  alice ", " alice@example.com ", "42")

    assert result.ok
    assert result.request == RegistrationRequest(username="alice", email="alice@example.com", age=42)


@pytest.mark.parametrize("age", [1, 150])
def test_age_boundaries_are_inclusive(age: int) -> None:
    assert validate_registration("bob", "bob@example.com", age).ok


@pytest.mark.parametrize("age", [0, 151, -5, 200])
def test_age_outside_range_is_rejected(age: int) -> None:
    result = validate_registration("bob", "bob@example.com", age)

    assert result.failure is not None
    assert result.failure.kind is FailureKind.AGE_OUT_OF_RANGE
    assert result.failure.message == AGE_OUT_OF_RANGE_MESSAGE == "Age must be between 1 and 150"


@pytest.mark.parametrize(
    ("username", "email", "age", "field"),
    [
        (None, "a@example.com", 20, "username"),
        ("", "a@example.com", 20, "username"),
        ("   ", "a@example.com", 20, "username"),
        ("carol", None, 20, "email"),
        ("carol", "", 20, "email"),
        ("carol", "a@example.com", None, "age"),
        ("carol", "a@example.com", "", "age"),
    ],
)
def test_missing_fields_are_reported(username, email, age, field) -> None:
    result = validate_registration(username, email, age)

    assert result.failure is not None
    assert result.failure.kind is FailureKind.MISSING_FIELD
    assert result.failure.message == MISSING_FIELD_MESSAGE
    assert result.failure.field == field


def test_first_violation_wins() -> None:
    result = validate_registration("", "a@example.com", 500)

    assert result.failure is not None
    assert result.failure.kind is FailureKind.MISSING_FIELD


@pytest.mark.parametrize("age", ["abc", 12.5, True, ["30"]])
def test_non_integer_age_is_rejected(age) -> None:
    result = validate_registration("dave", "dave@example.com", age)

    assert result.failure is not None
    assert result.failure.kind is FailureKind.INVALID_AGE


def test_whole_float_age_is_accepted() -> None:
    result = validate_registration("erin", "erin@example.com", 30.0)

    assert result.request is not None
    assert result.request.age == 30


def test_non_string_username_counts_as_missing() -> None:
    result = validate_registration(123, "frank@example.com", 30)

    assert result.failure is not None
    assert result.failure.kind is FailureKind.MISSING_FIELD


def test_require_valid_registration_raises_structured_failure() -> None:
    with pytest.raises(ValidationFailed) as excinfo:
        require_valid_registration({"username": "grace", "email": "grace@example.com", "age": 151})

    assert excinfo.value.kind is FailureKind.AGE_OUT_OF_RANGE
    assert str(excinfo.value) == AGE_OUT_OF_RANGE_MESSAGE


def test_require_valid_registration_returns_request() -> None:
    request = require_valid_registration({"username": "heidi", "email": "heidi@example.com", "age": 25})
    assert request.age == 25
