"""Error taxonomy for the intake pipeline.

Every failure the pipeline can report is an ``IntakeError``. Each carries the
HTTP status the API shell answers with and the user-facing messages it may
show. Internal detail (driver errors, filesystem paths) is never put into
``messages``; it is logged where the error is raised.
"""

from __future__ import annotations

from enum import Enum


class IntakeError(Exception):
    status_code: int = 400

    def __init__(self, message: str, *, messages: list[str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.messages = messages if messages is not None else [message]

    def to_dict(self) -> dict:
        return {"errors": list(self.messages)}


class CsrfRejected(IntakeError):
    """The submitted anti-forgery token is missing or does not match the session."""

    status_code = 403

    def __init__(self) -> None:
        super().__init__("Invalid CSRF token. Please refresh the page.")


class FieldValidationFailed(IntakeError):
    """One or more field rules failed. All violations are reported together."""

    status_code = 422

    def __init__(self, messages: list[str]) -> None:
        super().__init__("Customer data is invalid.", messages=messages)


class UploadRejectReason(str, Enum):
    UPLOAD_FAILED = "upload_failed"
    FILE_TOO_LARGE = "file_too_large"
    INVALID_CONTENT_TYPE = "invalid_content_type"
    INVALID_EXTENSION = "invalid_extension"


class UploadRejected(IntakeError):
    status_code = 400

    def __init__(self, reason: UploadRejectReason, message: str) -> None:
        super().__init__(message)
        self.reason = reason

    def to_dict(self) -> dict:
        return {"errors": list(self.messages), "reason": self.reason.value}


class UniquenessViolation(IntakeError):
    """Insert rejected by the database because the email already exists."""

    status_code = 409

    def __init__(self, email: str) -> None:
        super().__init__(
            "A customer with this email already exists. Update the existing customer instead."
        )
        self.email = email


class StorageError(IntakeError):
    """Transient storage failure: database connectivity or upload filesystem I/O."""

    status_code = 503

    def __init__(self, message: str = "Database error occurred. Please try again later.") -> None:
        super().__init__(message)


class MalformedQuery(IntakeError):
    """The database rejected a statement as malformed. Indicates a programming defect."""

    status_code = 500

    def __init__(self) -> None:
        super().__init__("An unexpected error occurred. Please try again.")
