from __future__ import annotations

from typing import Iterable

from sqlalchemy.orm import load_only, selectinload

from content_graph.models import ContentItem, Tag
from content_graph.projections import Projection
from content_graph.repositories.base import BaseRepository


class TagRepository(BaseRepository[Tag]):
    model = Tag
    entity_name = "Tag"
    loaders = {
        Projection.LIGHT: (load_only(Tag.id, Tag.name),),
        Projection.LISTING: (load_only(Tag.id, Tag.name, Tag.description),),
        Projection.FULL: (
            selectinload(Tag.content_items).load_only(
                ContentItem.id,
                ContentItem.title,
                ContentItem.published,
                ContentItem.created_at,
                ContentItem.account_id,
            ),
        ),
    }

    async def find_by_ids(self, tag_ids: Iterable[int]) -> list[Tag]:
        ids = set(tag_ids)
        if not ids:
            return []
        return await self.find_many({"id": ids}, Projection.LIGHT)
