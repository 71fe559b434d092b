"""
Form validation schemas.

Declarative rules are expressed as Pydantic models (`LoginForm`,
`ReportForm`, `MessageForm`). The `validate_*` helpers run a schema over
raw form input and return a `ValidationResult` instead of raising, so the
caller can render one message next to each offending field.

Rules:
- login: valid email address, password of at least 6 characters
- report: title 3..100 chars, optional description up to 500 chars,
  photo required (<= 10MB, jpeg/png/webp), lat in [-90, 90],
  lng in [-180, 180], urgency in {low, medium, high}
- message: text 1..1000 chars

Validation is pure and synchronous. Only programmer misuse (passing
something that is not a mapping or a model) raises, with `TypeError`.
"""

from collections.abc import Mapping
from typing import Any, Dict, Optional, Type

from pydantic import BaseModel, EmailStr, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from models import PhotoFile, Urgency

MAX_PHOTO_BYTES = 10 * 1024 * 1024
ALLOWED_PHOTO_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/webp"}

# (field, pydantic error type) -> copy shown to the user. A `None` error
# type is the fallback for any other failure on that field.
FIELD_MESSAGES: Dict[tuple, str] = {
    ("email", "value_error"): "Invalid email address",
    ("email", None): "Invalid email address",
    ("password", None): "Password must be at least 6 characters",
    ("title", "string_too_short"): "Title must be at least 3 characters",
    ("title", "string_too_long"): "Title too long",
    ("title", None): "Title is required",
    ("description", None): "Description too long",
    ("photo_file", None): "Photo is required",
    ("location", None): "Location is required",
    ("location.lat", "float_parsing"): "Latitude must be a number",
    ("location.lng", "float_parsing"): "Longitude must be a number",
    ("location.lat", None): "Latitude must be between -90 and 90",
    ("location.lng", None): "Longitude must be between -180 and 180",
    ("urgency", None): "Please select the urgency level",
    ("text", "string_too_long"): "Message too long",
    ("text", None): "Message cannot be empty",
}


class LoginForm(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)


class LocationForm(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    address: Optional[str] = None


class ReportForm(BaseModel):
    title: str = Field(..., min_length=3, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    photo_file: PhotoFile
    location: LocationForm
    urgency: Urgency

    @field_validator("photo_file")
    @classmethod
    def check_photo(cls, photo: PhotoFile) -> PhotoFile:
        if photo.size > MAX_PHOTO_BYTES:
            raise ValueError("Photo must be less than 10MB")
        if photo.content_type not in ALLOWED_PHOTO_TYPES:
            raise ValueError("Only JPEG, PNG, and WebP images are allowed")
        return photo


class MessageForm(BaseModel):
    text: str = Field(..., min_length=1, max_length=1000)


class ValidationResult(BaseModel):
    """Discriminated result: `success` tells which of data/errors is set."""

    success: bool
    data: Optional[BaseModel] = None
    errors: Dict[str, str] = Field(default_factory=dict)


def _message_for(field: str, error: Dict[str, Any]) -> str:
    kind = error.get("type")
    if (field, kind) in FIELD_MESSAGES:
        return FIELD_MESSAGES[(field, kind)]
    if kind == "value_error" and "error" in error.get("ctx", {}):
        return str(error["ctx"]["error"])
    return FIELD_MESSAGES.get((field, None), error.get("msg", "Invalid value"))


def _run(schema: Type[BaseModel], data: Any) -> ValidationResult:
    if isinstance(data, BaseModel):
        data = data.model_dump()
    if not isinstance(data, Mapping):
        raise TypeError(
            f"{schema.__name__} expects a mapping of form fields, got {type(data).__name__}"
        )

    try:
        parsed = schema.model_validate(dict(data))
    except PydanticValidationError as exc:
        errors: Dict[str, str] = {}
        for err in exc.errors():
            field = ".".join(str(part) for part in err["loc"])
            # keep the first message per field
            errors.setdefault(field, _message_for(field, err))
        return ValidationResult(success=False, errors=errors)
    return ValidationResult(success=True, data=parsed)


def validate_login(data: Any) -> ValidationResult:
    return _run(LoginForm, data)


def validate_report(data: Any) -> ValidationResult:
    return _run(ReportForm, data)


def validate_message(data: Any) -> ValidationResult:
    return _run(MessageForm, data)
