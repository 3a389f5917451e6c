from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from content_graph.database import get_db
from content_graph.dependencies import PaginationParams
from content_graph.schemas import (
    ContentItemCreate,
    ContentItemUpdate,
    PaginatedResponse,
    TagAssignment,
)
from content_graph.services import content_service

router = APIRouter(prefix="/api/v1/content-items", tags=["content-items"])


@router.get("")
async def list_content_items(db: AsyncSession = Depends(get_db)):
    return await content_service.list_content_items(db)


@router.get("/published", response_model=PaginatedResponse)
async def published_content_items(
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
):
    return await content_service.published_content_items(db, pagination.page, pagination.page_size)


@router.get("/{content_item_id}")
async def get_content_item(content_item_id: int, db: AsyncSession = Depends(get_db)):
    return await content_service.get_content_item(db, content_item_id)


@router.post("", status_code=201)
async def create_content_item(data: ContentItemCreate, db: AsyncSession = Depends(get_db)):
    return await content_service.create_content_item(db, data.model_dump())


@router.put("/{content_item_id}")
async def update_content_item(
    content_item_id: int, data: ContentItemUpdate, db: AsyncSession = Depends(get_db)
):
    return await content_service.update_content_item(
        db, content_item_id, data.model_dump(exclude_unset=True)
    )


@router.delete("/{content_item_id}", status_code=204)
async def delete_content_item(content_item_id: int, db: AsyncSession = Depends(get_db)):
    await content_service.delete_content_item(db, content_item_id)


@router.put("/{content_item_id}/tags")
async def assign_tags(
    content_item_id: int, data: TagAssignment, db: AsyncSession = Depends(get_db)
):
    return await content_service.assign_tags_to_content_item(db, content_item_id, data.tag_ids)
