"""
Tag service: tags are created on their own and linked to content items
through ``content_service.assign_tags_to_content_item``.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from content_graph.cache import cache
from content_graph.database import unit_of_work
from content_graph.errors import NotFound
from content_graph.projections import Projection, tag_to_dict
from content_graph.repositories import TagRepository

logger = logging.getLogger(__name__)


async def list_tags(db: AsyncSession) -> list[dict]:
    tags = await TagRepository(db).find_many(projection=Projection.LISTING)
    return [tag_to_dict(t, Projection.LISTING) for t in tags]


async def get_tag(db: AsyncSession, tag_id: int) -> dict:
    tag = await TagRepository(db).find_by_id(tag_id, Projection.FULL)
    return tag_to_dict(tag, Projection.FULL)


async def create_tag(db: AsyncSession, attrs: dict) -> dict:
    tags = TagRepository(db)
    async with unit_of_work(db, "create_tag"):
        tag = await tags.create(attrs)
        result = tag_to_dict(await tags.find_by_id(tag.id, Projection.FULL), Projection.FULL)

    logger.info("Created tag id=%s name=%s", result["id"], result["name"])
    return result


async def update_tag(db: AsyncSession, tag_id: int, attrs: dict) -> dict:
    tags = TagRepository(db)
    async with unit_of_work(db, "update_tag"):
        await tags.update(tag_id, attrs)
        result = tag_to_dict(await tags.find_by_id(tag_id, Projection.FULL), Projection.FULL)

    await cache.invalidate_content()
    logger.info("Updated tag id=%s", tag_id)
    return result


async def delete_tag(db: AsyncSession, tag_id: int) -> dict:
    """Delete a tag; its links to content items are removed by cascade."""
    async with unit_of_work(db, "delete_tag"):
        if not await TagRepository(db).delete(tag_id):
            raise NotFound("Tag", tag_id)

    await cache.invalidate_content()
    logger.info("Deleted tag id=%s", tag_id)
    return {"deleted": True, "id": tag_id}
