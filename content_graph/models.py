from __future__ import annotations

from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from content_graph.database import Base
from content_graph.validation import FieldRule, check_field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Account (root of the ownership tree)
# ---------------------------------------------------------------------------
class Account(Base):
    __tablename__ = "accounts"

    __field_rules__ = {
        "handle": FieldRule("Handle", required=True, min_length=3, max_length=30),
        "email": FieldRule("Email", kind="email", required=True),
    }

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    handle: Mapped[str] = mapped_column(String(30), unique=True, nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=utcnow, nullable=True
    )

    # Owned outright: removed by the storage engine together with the account.
    profile: Mapped[Optional["Profile"]] = relationship(
        "Profile",
        back_populates="account",
        uselist=False,
        lazy="noload",
        cascade="all",
        passive_deletes=True,
    )
    content_items: Mapped[List["ContentItem"]] = relationship(
        "ContentItem",
        back_populates="author",
        lazy="noload",
        cascade="all",
        passive_deletes=True,
        order_by="desc(ContentItem.created_at)",
    )

    @validates(*__field_rules__)
    def _check(self, key, value):
        return check_field(Account, key, value)


# ---------------------------------------------------------------------------
# Profile (1:1 with Account)
# ---------------------------------------------------------------------------
class Profile(Base):
    __tablename__ = "profiles"

    __field_rules__ = {
        "account_id": FieldRule("Account id", kind="int", required=True),
        "first_name": FieldRule("First name", required=True, min_length=2, max_length=50),
        "last_name": FieldRule("Last name", required=True, min_length=2, max_length=50),
        "bio": FieldRule("Bio", max_length=1000),
        "birth_date": FieldRule("Birth date", kind="date"),
    }

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # unique=True is what makes this side one-to-one.
    account_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("accounts.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    birth_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=utcnow, nullable=True
    )

    account: Mapped["Account"] = relationship("Account", back_populates="profile", lazy="noload")

    @validates(*__field_rules__)
    def _check(self, key, value):
        return check_field(Profile, key, value)


# ---------------------------------------------------------------------------
# Tag
# ---------------------------------------------------------------------------
class Tag(Base):
    __tablename__ = "tags"

    __field_rules__ = {
        "name": FieldRule("Tag name", required=True, min_length=2, max_length=50),
        "description": FieldRule("Description", max_length=500),
    }

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=utcnow, nullable=True
    )

    # Read side of the many-to-many; join rows are written through ContentItemTag.
    content_items: Mapped[List["ContentItem"]] = relationship(
        "ContentItem",
        secondary="content_item_tags",
        back_populates="tags",
        viewonly=True,
        lazy="noload",
    )

    @validates(*__field_rules__)
    def _check(self, key, value):
        return check_field(Tag, key, value)


# ---------------------------------------------------------------------------
# ContentItem (1:N from Account, N:M with Tag)
# ---------------------------------------------------------------------------
class ContentItem(Base):
    __tablename__ = "content_items"

    __table_args__ = (
        # Account's items newest first
        Index("ix_content_items_account_id_created_at", "account_id", "created_at"),
        # Published feed
        Index("ix_content_items_published_created_at", "published", "created_at"),
    )

    __field_rules__ = {
        "account_id": FieldRule("Account id", kind="int", required=True),
        "title": FieldRule("Title", required=True, min_length=5, max_length=200),
        "body": FieldRule("Body", required=True, min_length=10, max_length=5000),
        "published": FieldRule("Published", kind="bool"),
    }

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    published: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=utcnow, nullable=True
    )

    author: Mapped["Account"] = relationship(
        "Account", back_populates="content_items", lazy="noload"
    )
    tag_links: Mapped[List["ContentItemTag"]] = relationship(
        "ContentItemTag",
        back_populates="content_item",
        lazy="noload",
        cascade="all",
        passive_deletes=True,
    )
    tags: Mapped[List["Tag"]] = relationship(
        "Tag",
        secondary="content_item_tags",
        back_populates="content_items",
        viewonly=True,
        lazy="noload",
        order_by="Tag.name",
    )

    @validates(*__field_rules__)
    def _check(self, key, value):
        return check_field(ContentItem, key, value)


# ---------------------------------------------------------------------------
# ContentItemTag (join entity; lives as long as both ends do)
# ---------------------------------------------------------------------------
class ContentItemTag(Base):
    __tablename__ = "content_item_tags"

    __table_args__ = (
        UniqueConstraint("content_item_id", "tag_id", name="uq_content_item_tag"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    content_item_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("content_items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    tag_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tags.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    content_item: Mapped["ContentItem"] = relationship(
        "ContentItem", back_populates="tag_links", lazy="noload"
    )
    tag: Mapped["Tag"] = relationship("Tag", lazy="noload")
