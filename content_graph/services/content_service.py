"""
Content service: business logic for content items and their tag-set.

Design notes
------------
- List and detail reads go through the cache-aside pattern (Redis, then
  storage).  Cache keys encode every dimension that affects the result;
  every committed write purges the affected keys after the commit.
- Tag assignment replaces the whole tag-set in one unit of work.  Tag ids
  are resolved all-or-nothing before any join row is written, and only the
  difference between the old and new set is applied.
- The author reference is checked by the repository at write time, so a
  dangling ``account_id`` surfaces as ``IntegrityError`` rather than a
  storage failure.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from content_graph.cache import cache, content_detail_key, published_feed_key
from content_graph.config import settings
from content_graph.database import unit_of_work
from content_graph.errors import NotFound, ValidationError
from content_graph.projections import Projection, content_item_to_dict
from content_graph.repositories import ContentItemRepository, TagRepository

logger = logging.getLogger(__name__)


async def _full_item(items: ContentItemRepository, content_item_id: int) -> dict:
    item = await items.find_by_id(content_item_id, Projection.FULL)
    return content_item_to_dict(item, Projection.FULL)


def _normalise_tag_ids(tag_ids) -> list[int]:
    """Drop duplicates (keeping order) and reject anything that is not an int id."""
    if not isinstance(tag_ids, (list, tuple, set, frozenset)):
        raise ValidationError({"tag_ids": "tag_ids must be a list of integers"})
    if any(isinstance(t, bool) or not isinstance(t, int) for t in tag_ids):
        raise ValidationError({"tag_ids": "tag_ids must be a list of integers"})
    return list(dict.fromkeys(tag_ids))


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

async def list_content_items(db: AsyncSession) -> list[dict]:
    """All content items newest first, with author handle and tag names."""
    items = await ContentItemRepository(db).find_many(projection=Projection.LISTING)
    return [content_item_to_dict(i, Projection.LISTING) for i in items]


async def get_content_item(db: AsyncSession, content_item_id: int) -> dict:
    """Full detail (body, author with profile, tags); NotFound when absent."""
    cache_key = content_detail_key(content_item_id)
    cached = await cache.get(cache_key)
    if cached:
        return cached

    data = await _full_item(ContentItemRepository(db), content_item_id)
    await cache.set(cache_key, data, ttl=settings.CACHE_TTL_DETAIL)
    return data


async def published_content_items(db: AsyncSession, page: int, page_size: int) -> dict:
    """
    One page of published items, newest first, each with an author summary.

    Two statements on a cache miss: a ``COUNT(DISTINCT id)`` and the page
    itself (plus one ``selectin`` round-trip for tags).
    """
    cache_key = published_feed_key(page, page_size)
    cached = await cache.get(cache_key)
    if cached:
        return cached

    result = await ContentItemRepository(db).find_published(page, page_size)
    data = result.as_dict(lambda item: content_item_to_dict(item, Projection.LISTING))
    await cache.set(cache_key, data, ttl=settings.CACHE_TTL_LIST)
    return data


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

async def create_content_item(db: AsyncSession, attrs: dict) -> dict:
    items = ContentItemRepository(db)
    async with unit_of_work(db, "create_content_item"):
        item = await items.create(attrs)
        result = await _full_item(items, item.id)

    await cache.invalidate_content(result["id"])
    logger.info("Created content item id=%s account_id=%s", result["id"], result["account_id"])
    return result


async def update_content_item(db: AsyncSession, content_item_id: int, attrs: dict) -> dict:
    items = ContentItemRepository(db)
    async with unit_of_work(db, "update_content_item"):
        await items.update(content_item_id, attrs)
        result = await _full_item(items, content_item_id)

    await cache.invalidate_content(content_item_id)
    logger.info("Updated content item id=%s fields=%s", content_item_id, sorted(attrs))
    return result


async def delete_content_item(db: AsyncSession, content_item_id: int) -> dict:
    """Delete an item; its tag links go with it, the tags themselves stay."""
    async with unit_of_work(db, "delete_content_item"):
        if not await ContentItemRepository(db).delete(content_item_id):
            raise NotFound("ContentItem", content_item_id)

    await cache.invalidate_content(content_item_id)
    logger.info("Deleted content item id=%s", content_item_id)
    return {"deleted": True, "id": content_item_id}


async def assign_tags_to_content_item(
    db: AsyncSession, content_item_id: int, tag_ids: list[int]
) -> dict:
    """
    Replace the item's tag-set with exactly *tag_ids*.

    Raises NotFound for an unknown item and ValidationError (field
    ``tag_ids``) when any id does not resolve to a tag, in which case
    nothing is written.  Repeating the call with the same ids is a no-op.
    """
    wanted = _normalise_tag_ids(tag_ids)
    items = ContentItemRepository(db)
    tags = TagRepository(db)

    async with unit_of_work(db, "assign_tags_to_content_item"):
        if not await items.exists(content_item_id):
            raise NotFound("ContentItem", content_item_id)

        found = {tag.id for tag in await tags.find_by_ids(wanted)}
        missing = [tag_id for tag_id in wanted if tag_id not in found]
        if missing:
            raise ValidationError(
                {"tag_ids": f"Unknown tag id(s): {', '.join(str(t) for t in missing)}"}
            )

        added, removed = await items.replace_tags(content_item_id, wanted)
        result = await _full_item(items, content_item_id)

    await cache.invalidate_content(content_item_id)
    logger.info(
        "Assigned tags to content item id=%s (+%d, -%d)", content_item_id, len(added), len(removed)
    )
    return result
