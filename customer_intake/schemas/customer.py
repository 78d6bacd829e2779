from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CustomerRecord(BaseModel):
    """A customer as read from or written to the store.

    No field rules are enforced here; they belong to the validation service, and
    the store must hold its own constraints even when validation is bypassed.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int | None = None
    lastname: str
    firstname: str
    email: str
    city: str
    country: str
    image_path: str | None = None


class CustomerForm(BaseModel):
    """Raw intake form fields, before trimming and validation."""

    lastname: str = ""
    firstname: str = ""
    email: str = ""
    city: str = ""
    country: str = ""


class CustomerSaved(BaseModel):
    id: int
    message: str


class CustomerUpdated(BaseModel):
    updated: bool
    message: str


class ImageUploaded(BaseModel):
    image_path: str | None
    message: str = ""


class FormState(BaseModel):
    csrf_token: str
    uploaded_image: str | None = None
    details: CustomerRecord | None = None
    success: str = ""
    errors: list[str] = Field(default_factory=list)


class DriverInfo(BaseModel):
    driver: str
    dialect: str
    server_version: str
    connected: bool
