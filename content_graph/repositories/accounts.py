from __future__ import annotations

from sqlalchemy import or_
from sqlalchemy.orm import load_only, selectinload

from content_graph.models import Account, ContentItem, Profile
from content_graph.projections import Projection
from content_graph.repositories.base import BaseRepository

_LIGHT = (load_only(Account.id, Account.handle, Account.email, Account.created_at),)


class AccountRepository(BaseRepository[Account]):
    model = Account
    entity_name = "Account"
    loaders = {
        Projection.LIGHT: _LIGHT,
        Projection.LISTING: _LIGHT
        + (
            selectinload(Account.profile).load_only(
                Profile.id, Profile.account_id, Profile.first_name, Profile.last_name
            ),
            selectinload(Account.content_items).load_only(
                ContentItem.id, ContentItem.account_id, ContentItem.title, ContentItem.published
            ),
        ),
        Projection.FULL: (
            selectinload(Account.profile),
            selectinload(Account.content_items),
        ),
    }

    async def find_by_handle_or_email(self, handle: str | None, email: str | None) -> Account | None:
        """First account whose handle *or* email matches, in LIGHT projection."""
        conditions = []
        if handle is not None:
            conditions.append(Account.handle == handle)
        if email is not None:
            conditions.append(Account.email == email)
        if not conditions:
            return None
        stmt = self._select(Projection.LIGHT).where(or_(*conditions)).limit(1)
        return await self._first(stmt, "Account.find_by_handle_or_email")
