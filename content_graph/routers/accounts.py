from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from content_graph.database import get_db
from content_graph.schemas import AccountModify, AccountRegister
from content_graph.services import account_service

router = APIRouter(prefix="/api/v1/accounts", tags=["accounts"])


@router.get("")
async def list_accounts(
    include: str | None = Query(None, pattern="^associations$"),
    db: AsyncSession = Depends(get_db),
):
    return await account_service.list_accounts(db, include_associations=include == "associations")


@router.get("/{account_id}")
async def get_account(account_id: int, db: AsyncSession = Depends(get_db)):
    return await account_service.get_account(db, account_id)


@router.post("", status_code=201)
async def register_account(data: AccountRegister, db: AsyncSession = Depends(get_db)):
    profile = data.profile.model_dump() if data.profile is not None else None
    return await account_service.register_account(db, data.account.model_dump(), profile)


@router.put("/{account_id}")
async def modify_account(account_id: int, data: AccountModify, db: AsyncSession = Depends(get_db)):
    account = data.account.model_dump(exclude_unset=True) if data.account is not None else None
    profile = data.profile.model_dump(exclude_unset=True) if data.profile is not None else None
    return await account_service.modify_account(db, account_id, account, profile)


@router.delete("/{account_id}", status_code=204)
async def remove_account(account_id: int, db: AsyncSession = Depends(get_db)):
    await account_service.remove_account(db, account_id)


@router.get("/{account_id}/content-items")
async def list_account_content_items(account_id: int, db: AsyncSession = Depends(get_db)):
    return await account_service.list_account_content_items(db, account_id)
