"""
Named projection shapes shared by the repositories and services.

A projection fixes two things at once: which columns / relationships a
repository loads (see ``_LOADERS`` in each repository) and which keys the
serialised dict carries (the ``*_to_dict`` functions below).  Keeping both
sides keyed by the same enum means a serialiser never touches an attribute
its query did not load.

=========  ==============================================================
LIGHT      identifying / summary columns only, no relationships
LISTING    LIGHT plus summaries of directly related entities
FULL       every column plus nested related entities
=========  ==============================================================
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class Projection(str, enum.Enum):
    LIGHT = "light"
    LISTING = "listing"
    FULL = "full"


@dataclass
class Page(Generic[T]):
    """One page of results plus the totals needed to render a pager."""

    items: list[T] = field(default_factory=list)
    total_count: int = 0
    total_pages: int = 0
    page: int = 1
    page_size: int = 1

    def as_dict(self, serialize) -> dict[str, Any]:
        return {
            "items": [serialize(item) for item in self.items],
            "total_count": self.total_count,
            "total_pages": self.total_pages,
            "page": self.page,
            "page_size": self.page_size,
        }


def _iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value else None


# ---------------------------------------------------------------------------
# Account
# ---------------------------------------------------------------------------

def account_to_dict(account, projection: Projection = Projection.FULL) -> dict:
    data = {
        "id": account.id,
        "handle": account.handle,
        "email": account.email,
        "created_at": _iso(account.created_at),
    }
    if projection is Projection.LISTING:
        profile = account.profile
        data["profile"] = (
            {"first_name": profile.first_name, "last_name": profile.last_name}
            if profile is not None
            else None
        )
        data["content_items"] = [
            {"id": c.id, "title": c.title, "published": c.published}
            for c in account.content_items
        ]
    elif projection is Projection.FULL:
        data["updated_at"] = _iso(account.updated_at)
        data["profile"] = (
            profile_to_dict(account.profile, Projection.FULL)
            if account.profile is not None
            else None
        )
        data["content_items"] = [
            content_item_to_dict(c, Projection.LIGHT) for c in account.content_items
        ]
    return data


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------

def profile_to_dict(profile, projection: Projection = Projection.FULL) -> dict:
    data = {
        "id": profile.id,
        "account_id": profile.account_id,
        "first_name": profile.first_name,
        "last_name": profile.last_name,
    }
    if projection is Projection.FULL:
        data["bio"] = profile.bio
        data["birth_date"] = _iso(profile.birth_date)
        data["created_at"] = _iso(profile.created_at)
        data["updated_at"] = _iso(profile.updated_at)
    return data


# ---------------------------------------------------------------------------
# ContentItem
# ---------------------------------------------------------------------------

def content_item_to_dict(item, projection: Projection = Projection.FULL) -> dict:
    data = {
        "id": item.id,
        "title": item.title,
        "published": item.published,
        "created_at": _iso(item.created_at),
        "account_id": item.account_id,
    }
    if projection is Projection.LISTING:
        author = item.author
        data["author"] = {"id": author.id, "handle": author.handle} if author else None
        data["tags"] = [{"id": t.id, "name": t.name} for t in item.tags]
    elif projection is Projection.FULL:
        data["body"] = item.body
        data["updated_at"] = _iso(item.updated_at)
        author = item.author
        if author is not None:
            data["author"] = account_to_dict(author, Projection.LIGHT)
            data["author"]["profile"] = (
                profile_to_dict(author.profile, Projection.LIGHT)
                if author.profile is not None
                else None
            )
        else:
            data["author"] = None
        data["tags"] = [
            {"id": t.id, "name": t.name, "description": t.description} for t in item.tags
        ]
    return data


# ---------------------------------------------------------------------------
# Tag
# ---------------------------------------------------------------------------

def tag_to_dict(tag, projection: Projection = Projection.FULL) -> dict:
    data = {"id": tag.id, "name": tag.name}
    if projection in (Projection.LISTING, Projection.FULL):
        data["description"] = tag.description
    if projection is Projection.FULL:
        data["created_at"] = _iso(tag.created_at)
        data["updated_at"] = _iso(tag.updated_at)
        data["content_items"] = [
            content_item_to_dict(c, Projection.LIGHT) for c in tag.content_items
        ]
    return data
