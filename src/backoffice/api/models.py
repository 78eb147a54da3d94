"""Read models returned by the API layer.

Thin pydantic shapes over ORM rows; conversion lives in the *_api modules.
"""

from typing import Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

ItemT = TypeVar("ItemT")


class PaginationMeta(BaseModel):
    total: int
    page: int
    per_page: int
    last_page: int
    from_: Optional[int] = Field(default=None, serialization_alias="from")
    to: Optional[int] = None
    per_page_options: List[int] = []


class AppliedQuery(BaseModel):
    """The parameters that actually shaped the result (ignored ones are absent)."""
    search: Optional[str] = None
    filters: Dict[str, str] = {}
    sort: List[str] = []
    scope: str = "own"  # own | all | none (resource is not owner-scoped)


class Paginated(BaseModel, Generic[ItemT]):
    data: List[ItemT]
    meta: PaginationMeta
    query: AppliedQuery


class UserRef(BaseModel):
    id: int
    name: str


class CategoryRef(BaseModel):
    id: int
    name: str
    slug: str


class AttachmentOut(BaseModel):
    id: int
    path: str
    original_name: Optional[str] = None
    mime_type: str
    size_bytes: int
    created_at: str


class PostSummary(BaseModel):
    id: int
    title: str
    slug: str
    excerpt: Optional[str] = None
    status: str
    is_featured: bool
    is_published: bool
    is_trashed: bool
    author: Optional[UserRef] = None
    categories: List[CategoryRef] = []
    published_at: Optional[str] = None
    created_at: str
    updated_at: str
    deleted_at: Optional[str] = None


class PostDetail(PostSummary):
    body: str
    attachments: List[AttachmentOut] = []


class CategorySummary(BaseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    status: str
    posts_count: int = 0
    created_at: str
    updated_at: str


class UserSummary(BaseModel):
    id: int
    name: str
    email: str
    role: str
    status: str
    created_at: str
    updated_at: str


class AdZoneSummary(BaseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    status: str
    advertisements_count: int = 0
    created_at: str
    updated_at: str


class AdvertisementSummary(BaseModel):
    id: int
    title: str
    target_url: Optional[str] = None
    image_path: Optional[str] = None
    status: str
    priority: int
    starts_at: Optional[str] = None
    ends_at: Optional[str] = None
    impressions: int
    clicks: int
    ctr: float
    is_running: bool
    zone: Optional[CategoryRef] = None  # id/name/slug of the zone
    owner: Optional[UserRef] = None
    created_at: str
    updated_at: str
    deleted_at: Optional[str] = None


class AdvertisementDetail(AdvertisementSummary):
    attachments: List[AttachmentOut] = []


class FieldOption(BaseModel):
    value: str | int
    label: str


class FormSchema(BaseModel):
    """What a create/edit form may submit, for the acting principal."""
    resource: str
    operation: str
    fields: List[str]
    options: Dict[str, List[FieldOption]] = {}
