from typing import Literal, Optional

from pydantic import Field, field_validator

from .base import EMAIL_PATTERN, NOT_NULL_MESSAGE, RequestData

UserRole = Literal["admin", "editor", "author"]


class UserCreate(RequestData):
    name: str = Field(min_length=2, max_length=255)
    email: str = Field(max_length=255, pattern=EMAIL_PATTERN)
    role: UserRole = "author"
    status: Literal["active", "inactive"] = "active"

    @field_validator("email")
    @classmethod
    def _lowercase_email(cls, value: str) -> str:
        return value.lower()


class UserUpdate(RequestData):
    name: Optional[str] = Field(default=None, min_length=2, max_length=255)
    role: Optional[UserRole] = None
    status: Optional[Literal["active", "inactive"]] = None

    @field_validator("name", "role", "status")
    @classmethod
    def _not_null(cls, value):
        if value is None:
            raise ValueError(NOT_NULL_MESSAGE)
        return value
