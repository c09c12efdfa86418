"""Validation rules applied to registration requests before they reach the store."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Mapping, Optional

MIN_AGE = 1
MAX_AGE = 150

MISSING_FIELD_MESSAGE = "All fields are required"
INVALID_AGE_MESSAGE = "Age must be a whole number"
AGE_OUT_OF_RANGE_MESSAGE = f"Age must be between {MIN_AGE} and {MAX_AGE}"


class FailureKind(str, enum.Enum):
    MISSING_FIELD = "missing_field"
    INVALID_AGE = "invalid_age"
    AGE_OUT_OF_RANGE = "age_out_of_range"


@dataclass(frozen=True)
class ValidationFailure:
    """The first rule a registration request violated."""

    kind: FailureKind
    message: str
    field: Optional[str] = None


@dataclass(frozen=True)
class RegistrationRequest:
    """A registration request that passed every rule."""

    username: str
    email: str
    age: int


@dataclass(frozen=True)
class ValidationResult:
    request: Optional[RegistrationRequest] = None
    failure: Optional[ValidationFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


class ValidationFailed(Exception):
    """Raised when a registration request breaks one of the validation rules."""

    def __init__(self, failure: ValidationFailure) -> None:
        super().__init__(failure.message)
        self.failure = failure

    @property
    def kind(self) -> FailureKind:
        return self.failure.kind


def _is_missing(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def _coerce_age(value: object) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def validate_registration(username: object, email: object, age: object) -> ValidationResult:
    """Check a registration request, stopping at the first violated rule."""

    for field, value in (("username", username), ("email", email), ("age", age)):
        if _is_missing(value):
            return ValidationResult(
                failure=ValidationFailure(FailureKind.MISSING_FIELD, MISSING_FIELD_MESSAGE, field)
            )

    if not isinstance(username, str) or not isinstance(email, str):
        return ValidationResult(
            failure=ValidationFailure(FailureKind.MISSING_FIELD, MISSING_FIELD_MESSAGE)
        )

    numeric_age = _coerce_age(age)
    if numeric_age is None:
        return ValidationResult(
            failure=ValidationFailure(FailureKind.INVALID_AGE, INVALID_AGE_MESSAGE, "age")
        )

    if numeric_age < MIN_AGE or numeric_age > MAX_AGE:
        return ValidationResult(
            failure=ValidationFailure(FailureKind.AGE_OUT_OF_RANGE, AGE_OUT_OF_RANGE_MESSAGE, "age")
        )

    return ValidationResult(
        request=RegistrationRequest(
            username=username.strip(),
            email=email.strip(),
            age=numeric_age,
        )
    )


def require_valid_registration(payload: Mapping[str, object]) -> RegistrationRequest:
    """Validate a raw payload, raising :class:`ValidationFailed` on the first violation."""

    result = validate_registration(
        payload.get("username"),
        payload.get("email"),
        payload.get("age"),
    )
    if result.request is None:
        raise ValidationFailed(result.failure)
    return result.request


__all__ = [
    "AGE_OUT_OF_RANGE_MESSAGE",
    "FailureKind",
    "INVALID_AGE_MESSAGE",
    "MAX_AGE",
    "MIN_AGE",
    "MISSING_FIELD_MESSAGE",
    "RegistrationRequest",
    "ValidationFailed",
    "ValidationFailure",
    "ValidationResult",
    "require_valid_registration",
    "validate_registration",
]
