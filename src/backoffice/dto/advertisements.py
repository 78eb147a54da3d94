from datetime import datetime
from typing import Literal, Optional
from urllib.parse import urlparse

from pydantic import Field, ValidationInfo, field_validator

from ..utils.time import ensure_aware
from .base import NOT_NULL_MESSAGE, SLUG_PATTERN, RecordKey, RequestData


def _check_url(value: Optional[str]) -> Optional[str]:
    if value is None or value == "":
        return None
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("The target URL must be an absolute http(s) URL.")
    return value


def _check_window(value: Optional[datetime], info: ValidationInfo) -> Optional[datetime]:
    starts_at = info.data.get("starts_at")
    if value is not None and starts_at is not None and ensure_aware(value) <= ensure_aware(starts_at):
        raise ValueError("The end date must be after the start date.")
    return value


class AdZoneCreate(RequestData):
    name: str = Field(min_length=2, max_length=255)
    slug: str = Field(max_length=255, pattern=SLUG_PATTERN)
    description: Optional[str] = Field(default=None, max_length=2000)
    width: Optional[int] = Field(default=None, ge=1, le=10000)
    height: Optional[int] = Field(default=None, ge=1, le=10000)
    status: Literal["active", "inactive"] = "active"


class AdZoneUpdate(RequestData):
    name: Optional[str] = Field(default=None, min_length=2, max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)
    width: Optional[int] = Field(default=None, ge=1, le=10000)
    height: Optional[int] = Field(default=None, ge=1, le=10000)
    status: Optional[Literal["active", "inactive"]] = None

    @field_validator("name", "status")
    @classmethod
    def _not_null(cls, value):
        if value is None:
            raise ValueError(NOT_NULL_MESSAGE)
        return value


class AdvertisementCreate(RequestData):
    title: str = Field(min_length=3, max_length=255)
    target_url: Optional[str] = Field(default=None, max_length=2048)
    ad_zone_id: RecordKey
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    user_id: Optional[RecordKey] = None
    priority: int = Field(default=0, ge=0, le=100)

    @field_validator("target_url")
    @classmethod
    def _target_url(cls, value):
        return _check_url(value)

    @field_validator("ends_at")
    @classmethod
    def _ends_after_start(cls, value, info: ValidationInfo):
        return _check_window(value, info)


class AdvertisementUpdate(RequestData):
    title: Optional[str] = Field(default=None, min_length=3, max_length=255)
    target_url: Optional[str] = Field(default=None, max_length=2048)
    ad_zone_id: Optional[RecordKey] = None
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    user_id: Optional[RecordKey] = None
    status: Optional[Literal["active", "inactive"]] = None
    priority: Optional[int] = Field(default=None, ge=0, le=100)

    @field_validator("target_url")
    @classmethod
    def _target_url(cls, value):
        return _check_url(value)

    @field_validator("ends_at")
    @classmethod
    def _ends_after_start(cls, value, info: ValidationInfo):
        return _check_window(value, info)

    @field_validator("title", "ad_zone_id", "user_id", "status", "priority")
    @classmethod
    def _not_null(cls, value):
        if value is None:
            raise ValueError(NOT_NULL_MESSAGE)
        return value
