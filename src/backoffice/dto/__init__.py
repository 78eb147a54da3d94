"""Request DTOs: declared input shapes with their validation rules."""

from .advertisements import AdvertisementCreate, AdvertisementUpdate, AdZoneCreate, AdZoneUpdate
from .base import errors_to_field_map, validate_payload
from .categories import CategoryCreate, CategoryUpdate
from .posts import PostCreate, PostUpdate
from .users import UserCreate, UserUpdate

__all__ = [
    "AdZoneCreate",
    "AdZoneUpdate",
    "AdvertisementCreate",
    "AdvertisementUpdate",
    "CategoryCreate",
    "CategoryUpdate",
    "PostCreate",
    "PostUpdate",
    "UserCreate",
    "UserUpdate",
    "errors_to_field_map",
    "validate_payload",
]
