"""Shared pieces for request DTOs and their validation."""

from typing import Annotated, Any, Dict, List, Mapping, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..errors import ValidationFailed
from ..query.params import MAX_SQL_INTEGER

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

ACTIVE_STATUSES = ("active", "inactive")

NOT_NULL_MESSAGE = "This field may not be null."

RecordKey = Annotated[int, Field(ge=1, le=MAX_SQL_INTEGER)]

DtoT = TypeVar("DtoT", bound=BaseModel)


class RequestData(BaseModel):
    """Base for request DTOs: unknown keys are dropped, strings trimmed."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)


def _field_name(loc: tuple) -> str:
    parts = [str(part) for part in loc if part != "__root__"]
    return ".".join(parts) if parts else "payload"


def _message(error: Mapping[str, Any]) -> str:
    message = str(error.get("msg", "Invalid value."))
    # Errors raised from validators carry pydantic's "Value error, " prefix.
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    return message


def errors_to_field_map(exc: ValidationError) -> Dict[str, List[str]]:
    """Convert pydantic errors into {field: [messages]} (first-seen order)."""
    field_map: Dict[str, List[str]] = {}
    for error in exc.errors():
        field = _field_name(tuple(error.get("loc", ())))
        field_map.setdefault(field, []).append(_message(error))
    return field_map


def validate_payload(dto_cls: Type[DtoT], payload: Any) -> DtoT:
    """
    Validate a request payload against a DTO class.

    Raises:
        ValidationFailed: With a field-to-messages map
    """
    if not isinstance(payload, Mapping):
        raise ValidationFailed.single("payload", "The request body must be an object.")
    try:
        return dto_cls.model_validate(dict(payload))
    except ValidationError as exc:
        raise ValidationFailed(errors_to_field_map(exc)) from exc
