from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship

from ..utils.time import to_utc_z

Base = declarative_base()

# All *_at columns hold fixed-width ISO 8601 UTC strings ("...000000Z").


post_category = Table(
    "post_category",
    Base.metadata,
    Column("post_id", Integer, ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True),
    Column("category_id", Integer, ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    role = Column(String(20), nullable=False, default="author")  # admin, editor, author
    status = Column(String(20), nullable=False, default="active")  # active, inactive
    created_at = Column(String, nullable=False, index=True)
    updated_at = Column(String, nullable=False)

    posts = relationship("Post", back_populates="author")
    advertisements = relationship("Advertisement", back_populates="owner")


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="active")
    created_at = Column(String, nullable=False, index=True)
    updated_at = Column(String, nullable=False)

    posts = relationship("Post", secondary=post_category, back_populates="categories")


class Post(Base):
    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True)
    excerpt = Column(String(500), nullable=True)
    body = Column(Text, nullable=False, default="")
    status = Column(String(20), nullable=False, default="draft")  # draft, published, archived
    is_featured = Column(Boolean, nullable=False, default=False)
    published_at = Column(String, nullable=True)
    created_at = Column(String, nullable=False, index=True)
    updated_at = Column(String, nullable=False)
    deleted_at = Column(String, nullable=True)

    author = relationship("User", back_populates="posts")
    categories = relationship(
        "Category",
        secondary=post_category,
        back_populates="posts",
        order_by="Category.name",
    )
    attachments = relationship(
        "Attachment",
        primaryjoin="and_(Attachment.attachable_type == 'post', foreign(Attachment.attachable_id) == Post.id)",
        viewonly=True,
        order_by="Attachment.id",
    )

    @property
    def is_published(self) -> bool:
        return self.status == "published"

    @property
    def is_trashed(self) -> bool:
        return self.deleted_at is not None


class AdZone(Base):
    __tablename__ = "ad_zones"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    width = Column(Integer, nullable=True)  # pixels
    height = Column(Integer, nullable=True)  # pixels
    status = Column(String(20), nullable=False, default="active")
    created_at = Column(String, nullable=False, index=True)
    updated_at = Column(String, nullable=False)

    advertisements = relationship("Advertisement", back_populates="zone")


class Advertisement(Base):
    __tablename__ = "advertisements"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    ad_zone_id = Column(Integer, ForeignKey("ad_zones.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    target_url = Column(String(2048), nullable=True)
    image_path = Column(String(1024), nullable=True)
    status = Column(String(20), nullable=False, default="inactive")  # active, inactive
    priority = Column(Integer, nullable=False, default=0)
    starts_at = Column(String, nullable=True)
    ends_at = Column(String, nullable=True)
    impressions = Column(Integer, nullable=False, default=0)
    clicks = Column(Integer, nullable=False, default=0)
    created_at = Column(String, nullable=False, index=True)
    updated_at = Column(String, nullable=False)
    deleted_at = Column(String, nullable=True)

    owner = relationship("User", back_populates="advertisements")
    zone = relationship("AdZone", back_populates="advertisements")
    attachments = relationship(
        "Attachment",
        primaryjoin="and_(Attachment.attachable_type == 'advertisement', foreign(Attachment.attachable_id) == Advertisement.id)",
        viewonly=True,
        order_by="Attachment.id",
    )

    @property
    def ctr(self) -> float:
        """Click-through rate as a fraction; 0.0 before the first impression."""
        if not self.impressions:
            return 0.0
        return round((self.clicks or 0) / self.impressions, 4)

    def is_running(self, now: datetime) -> bool:
        if self.status != "active" or self.deleted_at is not None:
            return False
        now_iso = to_utc_z(now)
        if self.starts_at and self.starts_at > now_iso:
            return False
        if self.ends_at and self.ends_at <= now_iso:
            return False
        return True


class Attachment(Base):
    """File attached to any record; (attachable_type, attachable_id) names the owner."""

    __tablename__ = "attachments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    attachable_type = Column(String(50), nullable=False)  # post, advertisement
    attachable_id = Column(Integer, nullable=False)
    path = Column(String(1024), nullable=False)
    original_name = Column(String(255), nullable=True)
    mime_type = Column(String(100), nullable=False)
    size_bytes = Column(Integer, nullable=False)
    created_at = Column(String, nullable=False)

    __table_args__ = (
        Index("ix_attachments_attachable", "attachable_type", "attachable_id"),
    )
