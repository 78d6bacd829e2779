"""Request-level orchestration of the intake pipeline.

Every mutating action verifies the session's CSRF token first and only then
touches the upload checks, the field rules and the store. The photo upload and
the text submission are separate actions: a stored photo path waits in the
session until the next successful save picks it up.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, MutableMapping

import structlog

from customer_intake.core.errors import CsrfRejected, FieldValidationFailed
from customer_intake.core.logging import mask_email
from customer_intake.schemas.customer import CustomerRecord
from customer_intake.services.csrf_service import clear_csrf_token, verify_csrf_token
from customer_intake.services.customer_store import CustomerStore
from customer_intake.services.upload_service import (
    MAX_FILE_SIZE,
    IncomingFile,
    discard_upload,
    store_upload,
    validate_upload,
)
from customer_intake.services.validation_service import validate_customer_data

logger = structlog.get_logger()

UPLOADED_IMAGE_SESSION_KEY = "uploaded_image"

TEXT_FIELDS = ("lastname", "firstname", "email", "city")


@dataclass(frozen=True)
class UploadOutcome:
    image_path: str | None
    message: str = ""


@dataclass(frozen=True)
class SaveOutcome:
    customer_id: int | None
    record: CustomerRecord
    updated: bool = False


def _require_csrf(session: MutableMapping[str, Any], csrf_token: str | None) -> None:
    if not verify_csrf_token(session, csrf_token):
        logger.warning("csrf_rejected")
        raise CsrfRejected()


def prepare_form_data(form: Mapping[str, Any], image_path: str | None) -> dict[str, Any]:
    data: dict[str, Any] = {}
    for key in TEXT_FIELDS:
        value = form.get(key)
        data[key] = value.strip() if isinstance(value, str) else ""
    # Country is matched exactly, so it is not trimmed
    country = form.get("country")
    data["country"] = country if isinstance(country, str) else ""
    data["image_path"] = image_path or None
    return data


def _validated_record(data: dict[str, Any]) -> CustomerRecord:
    result = validate_customer_data(data)
    if not result.is_valid:
        logger.info("customer_validation_failed", fields=[e.field for e in result.errors])
        raise FieldValidationFailed(result.messages)
    return CustomerRecord(**data)


def pending_upload(session: MutableMapping[str, Any]) -> str | None:
    return session.get(UPLOADED_IMAGE_SESSION_KEY) or None


def upload_customer_image(
    session: MutableMapping[str, Any],
    csrf_token: str | None,
    incoming: IncomingFile,
    *,
    upload_dir: str | Path,
    path_prefix: str = "uploads",
    max_bytes: int = MAX_FILE_SIZE,
) -> UploadOutcome:
    _require_csrf(session, csrf_token)

    extension = validate_upload(incoming, max_bytes=max_bytes)
    if extension is None:
        # No file chosen: keep whatever is already pending
        return UploadOutcome(image_path=pending_upload(session))

    previous = pending_upload(session)
    image_path = store_upload(incoming, extension, upload_dir=upload_dir, path_prefix=path_prefix)
    session[UPLOADED_IMAGE_SESSION_KEY] = image_path
    if previous and previous != image_path:
        # Superseded before any save referenced it
        discard_upload(previous, upload_dir=upload_dir)
    return UploadOutcome(image_path=image_path, message="Image uploaded successfully!")


def save_customer(
    store: CustomerStore,
    session: MutableMapping[str, Any],
    csrf_token: str | None,
    form: Mapping[str, Any],
) -> SaveOutcome:
    """Create a new customer from the submitted form.

    A duplicate email surfaces as UniquenessViolation from the store. On
    success the pending upload and the CSRF token are cleared so a replay of
    the same submitted form is rejected.
    """
    _require_csrf(session, csrf_token)

    record = _validated_record(prepare_form_data(form, pending_upload(session)))
    customer_id = store.insert(record)

    session.pop(UPLOADED_IMAGE_SESSION_KEY, None)
    clear_csrf_token(session)
    return SaveOutcome(customer_id=customer_id, record=record.model_copy(update={"id": customer_id}))


def update_customer(
    store: CustomerStore,
    session: MutableMapping[str, Any],
    csrf_token: str | None,
    form: Mapping[str, Any],
) -> SaveOutcome:
    """Overwrite the customer whose email matches the form.

    Without a new pending upload the stored photo is kept. An email with no
    matching customer is not an error; the outcome reports ``updated=False``.
    """
    _require_csrf(session, csrf_token)

    data = prepare_form_data(form, pending_upload(session))
    record = _validated_record(data)

    existing = None
    if record.image_path is None:
        existing = store.find_by_email(record.email)
        if existing is not None:
            record = record.model_copy(update={"image_path": existing.image_path})

    matched = store.update(record)
    if matched:
        session.pop(UPLOADED_IMAGE_SESSION_KEY, None)
        clear_csrf_token(session)
    else:
        logger.info("customer_update_no_match", email=mask_email(record.email))

    customer_id = existing.id if existing is not None else None
    return SaveOutcome(customer_id=customer_id, record=record, updated=matched > 0)


def cancel(
    session: MutableMapping[str, Any],
    csrf_token: str | None,
    *,
    upload_dir: str | Path | None = None,
) -> bool:
    """Discard the pending upload. An unverified cancel changes nothing.

    With ``upload_dir`` the pending file is also removed from disk.
    """
    if not verify_csrf_token(session, csrf_token):
        return False
    image_path = session.pop(UPLOADED_IMAGE_SESSION_KEY, None)
    if image_path and upload_dir is not None:
        discard_upload(image_path, upload_dir=upload_dir)
    return True


def fetch_customer_details(store: CustomerStore, email: str) -> CustomerRecord | None:
    # A literal "+" in a query string arrives decoded as a space
    return store.find_by_email(email.strip().replace(" ", "+"))


def success_message(customer_id: int | None) -> str:
    if customer_id:
        return f"Customer information saved successfully! (Customer ID: {customer_id})"
    return "Customer information saved successfully!"
