"""
Persistence gateway: one repository per entity kind.

Each repository wraps an ``AsyncSession`` and exposes the generic CRUD /
pagination primitives from :class:`BaseRepository` plus the query shapes
specific to its entity.  Repositories flush within the caller's
transaction and never commit.
"""
from content_graph.repositories.accounts import AccountRepository
from content_graph.repositories.base import BaseRepository
from content_graph.repositories.content_items import ContentItemRepository
from content_graph.repositories.profiles import ProfileRepository
from content_graph.repositories.tags import TagRepository

__all__ = [
    "AccountRepository",
    "BaseRepository",
    "ContentItemRepository",
    "ProfileRepository",
    "TagRepository",
]
