from __future__ import annotations

from sqlalchemy.orm import joinedload, load_only

from content_graph.models import Account, Profile
from content_graph.projections import Projection
from content_graph.repositories.base import BaseRepository


class ProfileRepository(BaseRepository[Profile]):
    model = Profile
    entity_name = "Profile"
    references = {"account_id": Account}
    loaders = {
        Projection.LIGHT: (
            load_only(Profile.id, Profile.account_id, Profile.first_name, Profile.last_name),
        ),
        Projection.LISTING: (
            load_only(Profile.id, Profile.account_id, Profile.first_name, Profile.last_name),
            joinedload(Profile.account).load_only(Account.id, Account.handle),
        ),
        Projection.FULL: (joinedload(Profile.account),),
    }

    async def find_by_account(
        self, account_id: int, projection: Projection = Projection.FULL
    ) -> Profile | None:
        return await self.find_one({"account_id": account_id}, projection)
