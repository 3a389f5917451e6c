from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from content_graph.database import get_db
from content_graph.schemas import TagCreate, TagUpdate
from content_graph.services import tag_service

router = APIRouter(prefix="/api/v1/tags", tags=["tags"])


@router.get("")
async def list_tags(db: AsyncSession = Depends(get_db)):
    return await tag_service.list_tags(db)


@router.get("/{tag_id}")
async def get_tag(tag_id: int, db: AsyncSession = Depends(get_db)):
    return await tag_service.get_tag(db, tag_id)


@router.post("", status_code=201)
async def create_tag(data: TagCreate, db: AsyncSession = Depends(get_db)):
    return await tag_service.create_tag(db, data.model_dump())


@router.put("/{tag_id}")
async def update_tag(tag_id: int, data: TagUpdate, db: AsyncSession = Depends(get_db)):
    return await tag_service.update_tag(db, tag_id, data.model_dump(exclude_unset=True))


@router.delete("/{tag_id}", status_code=204)
async def delete_tag(tag_id: int, db: AsyncSession = Depends(get_db)):
    await tag_service.delete_tag(db, tag_id)
