from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status

from customer_intake.core.config import Settings, get_settings
from customer_intake.core.deps import get_customer_store
from customer_intake.core.errors import IntakeError
from customer_intake.schemas.customer import (
    CustomerForm,
    CustomerSaved,
    CustomerUpdated,
    FormState,
    ImageUploaded,
)
from customer_intake.services.csrf_service import issue_csrf_token
from customer_intake.services.customer_store import CustomerStore
from customer_intake.services.intake_service import (
    cancel,
    fetch_customer_details,
    pending_upload,
    save_customer,
    success_message,
    update_customer,
    upload_customer_image,
)
from customer_intake.services.upload_service import read_upload

router = APIRouter()


def _customer_form(
    lastname: str = Form(default=""),
    firstname: str = Form(default=""),
    email: str = Form(default=""),
    city: str = Form(default=""),
    country: str = Form(default=""),
) -> CustomerForm:
    return CustomerForm(lastname=lastname, firstname=firstname, email=email, city=city, country=country)


def _parse_customer_id(raw: str | None) -> int | None:
    # A malformed id only drops the id from the message
    if raw is None:
        return None
    try:
        return int(raw.strip())
    except ValueError:
        return None


@router.get("/form", response_model=FormState)
def form_state(
    request: Request,
    email: str | None = None,
    success: str | None = None,
    id: str | None = None,
    store: CustomerStore = Depends(get_customer_store),
):
    session = request.session
    state = FormState(csrf_token=issue_csrf_token(session), uploaded_image=pending_upload(session))

    if success == "1":
        state.success = success_message(_parse_customer_id(id))

    if email is not None:
        try:
            details = fetch_customer_details(store, email)
        except IntakeError as exc:
            state.errors.extend(exc.messages)
        else:
            if details is None:
                state.errors.append("Customer not found.")
            else:
                state.details = details
                state.uploaded_image = details.image_path
    return state


@router.post("/image", response_model=ImageUploaded)
async def upload_image(
    request: Request,
    csrf_token: str = Form(default=""),
    customer_image: UploadFile | None = File(default=None),
    settings: Settings = Depends(get_settings),
):
    incoming = await read_upload(customer_image, max_bytes=settings.max_upload_bytes)
    outcome = upload_customer_image(
        request.session,
        csrf_token,
        incoming,
        upload_dir=settings.upload_dir,
        path_prefix=settings.upload_path_prefix,
        max_bytes=settings.max_upload_bytes,
    )
    return ImageUploaded(image_path=outcome.image_path, message=outcome.message)


@router.post("/customers", response_model=CustomerSaved, status_code=status.HTTP_201_CREATED)
def create_customer(
    request: Request,
    csrf_token: str = Form(default=""),
    form: CustomerForm = Depends(_customer_form),
    store: CustomerStore = Depends(get_customer_store),
):
    outcome = save_customer(store, request.session, csrf_token, form.model_dump())
    return CustomerSaved(id=outcome.customer_id, message=success_message(outcome.customer_id))


@router.post("/customers/update", response_model=CustomerUpdated)
def update_existing_customer(
    request: Request,
    csrf_token: str = Form(default=""),
    form: CustomerForm = Depends(_customer_form),
    store: CustomerStore = Depends(get_customer_store),
):
    outcome = update_customer(store, request.session, csrf_token, form.model_dump())
    if not outcome.updated:
        return CustomerUpdated(updated=False, message="No customer with this email was found. Nothing was updated.")
    return CustomerUpdated(updated=True, message="Customer information updated successfully!")


@router.post("/cancel")
def cancel_form(
    request: Request,
    csrf_token: str = Form(default=""),
    settings: Settings = Depends(get_settings),
):
    return {"ok": cancel(request.session, csrf_token, upload_dir=settings.upload_dir)}
