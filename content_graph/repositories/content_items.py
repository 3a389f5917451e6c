from __future__ import annotations

from typing import Iterable

from sqlalchemy import delete, select
from sqlalchemy.orm import joinedload, load_only, selectinload

from content_graph.errors import storage_errors
from content_graph.models import Account, ContentItem, ContentItemTag, Tag
from content_graph.projections import Page, Projection
from content_graph.repositories.base import BaseRepository

_LIGHT = (
    load_only(
        ContentItem.id,
        ContentItem.title,
        ContentItem.published,
        ContentItem.created_at,
        ContentItem.account_id,
    ),
)


class ContentItemRepository(BaseRepository[ContentItem]):
    model = ContentItem
    entity_name = "ContentItem"
    references = {"account_id": Account}
    # joinedload for the many-to-one author, selectinload for the N:M tags;
    # no collection is ever joined, so rows are never fanned out.
    loaders = {
        Projection.LIGHT: _LIGHT,
        Projection.LISTING: _LIGHT
        + (
            joinedload(ContentItem.author).load_only(Account.id, Account.handle),
            selectinload(ContentItem.tags).load_only(Tag.id, Tag.name),
        ),
        Projection.FULL: (
            joinedload(ContentItem.author).selectinload(Account.profile),
            selectinload(ContentItem.tags),
        ),
    }

    async def find_by_account(
        self, account_id: int, projection: Projection = Projection.LIGHT
    ) -> list[ContentItem]:
        return await self.find_many({"account_id": account_id}, projection)

    async def find_published(self, page: int, page_size: int) -> Page[ContentItem]:
        """Published items, newest first, with author summary and tag names."""
        return await self.paginate(page, page_size, {"published": True}, Projection.LISTING)

    async def tag_ids_for(self, content_item_id: int) -> set[int]:
        stmt = select(ContentItemTag.tag_id).where(
            ContentItemTag.content_item_id == content_item_id
        )
        with storage_errors("ContentItem.tag_ids_for"):
            result = await self.db.execute(stmt)
        return set(result.scalars().all())

    async def replace_tags(
        self, content_item_id: int, tag_ids: Iterable[int]
    ) -> tuple[set[int], set[int]]:
        """
        Make the item's tag-set exactly *tag_ids*.

        Only the difference is written: links missing from the new set are
        deleted, new links are inserted, and links present in both are left
        untouched.  Returns ``(added, removed)``.  The caller is responsible
        for having checked that every tag id exists.
        """
        wanted = set(tag_ids)
        current = await self.tag_ids_for(content_item_id)
        removed = current - wanted
        added = wanted - current

        if removed:
            stmt = delete(ContentItemTag).where(
                ContentItemTag.content_item_id == content_item_id,
                ContentItemTag.tag_id.in_(removed),
            )
            with storage_errors("ContentItem.replace_tags"):
                await self.db.execute(stmt)
        if added:
            self.db.add_all(
                ContentItemTag(content_item_id=content_item_id, tag_id=tag_id)
                for tag_id in sorted(added)
            )
            await self._flush("ContentItem.replace_tags")
        return added, removed
