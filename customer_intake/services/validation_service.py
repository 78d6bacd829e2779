"""Field rules for customer intake data.

``validate_customer_data`` checks every field independently and collects all
violations, in field order, so the form can show every problem at once. It
performs no I/O and can be called any number of times on the same input.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from email_validator import EmailNotValidError, validate_email

MAX_FIELD_LENGTH = 255

VALID_COUNTRIES: tuple[str, ...] = (
    "United States",
    "Canada",
    "Japan",
    "United Kingdom",
    "France",
    "Germany",
)


@dataclass(frozen=True)
class FieldViolation:
    field: str
    message: str


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    errors: list[FieldViolation] = field(default_factory=list)

    @property
    def messages(self) -> list[str]:
        return [e.message for e in self.errors]


def _check_text(data: Mapping[str, Any], key: str, label: str) -> FieldViolation | None:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        return FieldViolation(key, f"{label} is required.")
    if len(value.strip()) > MAX_FIELD_LENGTH:
        return FieldViolation(key, f"{label} must not exceed {MAX_FIELD_LENGTH} characters.")
    return None


def is_valid_email(value: str) -> bool:
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def _check_email(data: Mapping[str, Any]) -> FieldViolation | None:
    value = data.get("email")
    if not isinstance(value, str) or not value.strip():
        return FieldViolation("email", "Email is required.")
    value = value.strip()
    if not is_valid_email(value):
        return FieldViolation("email", "Please enter a valid email address.")
    if len(value) > MAX_FIELD_LENGTH:
        return FieldViolation("email", f"Email must not exceed {MAX_FIELD_LENGTH} characters.")
    return None


def _check_country(data: Mapping[str, Any]) -> FieldViolation | None:
    # Exact, case-sensitive membership
    if data.get("country") not in VALID_COUNTRIES:
        return FieldViolation("country", "Please select a valid country.")
    return None


def validate_customer_data(data: Mapping[str, Any]) -> ValidationResult:
    checks = [
        _check_text(data, "lastname", "Last name"),
        _check_text(data, "firstname", "First name"),
        _check_email(data),
        _check_text(data, "city", "City"),
        _check_country(data),
    ]
    errors = [c for c in checks if c is not None]
    return ValidationResult(is_valid=not errors, errors=errors)
