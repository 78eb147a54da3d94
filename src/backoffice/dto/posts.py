from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field, field_validator

from .base import NOT_NULL_MESSAGE, SLUG_PATTERN, RecordKey, RequestData

PostStatus = Literal["draft", "published", "archived"]
POST_STATUSES = ("draft", "published", "archived")


class PostCreate(RequestData):
    title: str = Field(min_length=3, max_length=255)
    slug: Optional[str] = Field(default=None, max_length=255, pattern=SLUG_PATTERN)
    excerpt: Optional[str] = Field(default=None, max_length=500)
    body: str = Field(default="", max_length=65535)
    status: PostStatus = "draft"
    published_at: Optional[datetime] = None
    category_ids: List[RecordKey] = Field(default_factory=list, max_length=20)
    user_id: Optional[RecordKey] = None
    is_featured: bool = False

    @field_validator("category_ids")
    @classmethod
    def _dedupe_categories(cls, value):
        if value is None:
            return value
        return list(dict.fromkeys(value))


class PostUpdate(RequestData):
    """Partial update: only keys present in the payload are written."""

    title: Optional[str] = Field(default=None, min_length=3, max_length=255)
    excerpt: Optional[str] = Field(default=None, max_length=500)
    body: Optional[str] = Field(default=None, max_length=65535)
    status: Optional[PostStatus] = None
    published_at: Optional[datetime] = None
    category_ids: Optional[List[RecordKey]] = Field(default=None, max_length=20)
    user_id: Optional[RecordKey] = None
    is_featured: Optional[bool] = None

    @field_validator("category_ids")
    @classmethod
    def _dedupe_categories(cls, value):
        if value is None:
            return value
        return list(dict.fromkeys(value))

    @field_validator("title", "body", "status", "category_ids", "user_id", "is_featured")
    @classmethod
    def _not_null(cls, value):
        if value is None:
            raise ValueError(NOT_NULL_MESSAGE)
        return value
