from typing import Literal, Optional

from pydantic import Field, field_validator

from .base import NOT_NULL_MESSAGE, SLUG_PATTERN, RequestData


class CategoryCreate(RequestData):
    name: str = Field(min_length=2, max_length=255)
    slug: Optional[str] = Field(default=None, max_length=255, pattern=SLUG_PATTERN)
    description: Optional[str] = Field(default=None, max_length=2000)
    status: Literal["active", "inactive"] = "active"


class CategoryUpdate(RequestData):
    name: Optional[str] = Field(default=None, min_length=2, max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)
    status: Optional[Literal["active", "inactive"]] = None

    @field_validator("name", "status")
    @classmethod
    def _not_null(cls, value):
        if value is None:
            raise ValueError(NOT_NULL_MESSAGE)
        return value
