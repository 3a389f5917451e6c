"""
Account service: multi-entity operations on the Account aggregate.

An account owns its profile (1:1) and its content items (1:N).  Writes
that touch both the account and its profile run in a single
``unit_of_work`` so either both persist or neither does; the storage
engine's ``ON DELETE CASCADE`` carries removals down the ownership tree.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from content_graph.cache import cache
from content_graph.database import unit_of_work
from content_graph.errors import ConflictError, ContentGraphError, NotFound
from content_graph.models import Account
from content_graph.projections import Projection, account_to_dict, content_item_to_dict
from content_graph.repositories import AccountRepository, ContentItemRepository, ProfileRepository
from content_graph.validation import validate_attributes

logger = logging.getLogger(__name__)


async def _full_account(accounts: AccountRepository, account_id: int) -> dict:
    account = await accounts.find_by_id(account_id, Projection.FULL)
    return account_to_dict(account, Projection.FULL)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

async def list_accounts(db: AsyncSession, include_associations: bool = False) -> list[dict]:
    """
    Return all accounts newest first.

    The light projection carries identifying columns only; with
    *include_associations* each entry also gets the profile names and a
    summary of the account's content items.
    """
    projection = Projection.LISTING if include_associations else Projection.LIGHT
    accounts = await AccountRepository(db).find_many(projection=projection)
    return [account_to_dict(a, projection) for a in accounts]


async def get_account(db: AsyncSession, account_id: int) -> dict:
    return await _full_account(AccountRepository(db), account_id)


async def list_account_content_items(db: AsyncSession, account_id: int) -> list[dict]:
    """Light listing of one account's content items; NotFound for an unknown account."""
    if not await AccountRepository(db).exists(account_id):
        raise NotFound("Account", account_id)
    items = await ContentItemRepository(db).find_by_account(account_id, Projection.LIGHT)
    return [content_item_to_dict(i, Projection.LIGHT) for i in items]


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

async def register_account(
    db: AsyncSession,
    account_attrs: dict,
    profile_attrs: dict | None = None,
) -> dict:
    """
    Create an account, and optionally its profile, atomically.

    The handle/email lookup up front gives a precise conflict message; the
    unique constraints on ``accounts`` still decide any race between two
    concurrent registrations.
    """
    accounts = AccountRepository(db)
    profiles = ProfileRepository(db)

    async with unit_of_work(db, "register_account"):
        # Rules first, so a mistyped value never reaches the lookup's bind parameters.
        validate_attributes(Account, account_attrs)
        handle = account_attrs.get("handle")
        email = account_attrs.get("email")
        existing = await accounts.find_by_handle_or_email(handle, email)
        if existing is not None:
            field = "handle" if existing.handle == handle else "email"
            raise ConflictError(f"An account with this {field} already exists", field=field)

        account = await accounts.create(account_attrs)
        if profile_attrs is not None:
            try:
                await profiles.create({**profile_attrs, "account_id": account.id})
            except ContentGraphError as exc:
                exc.context = "profile"
                raise
        result = await _full_account(accounts, account.id)

    logger.info("Registered account id=%s handle=%s", result["id"], result["handle"])
    return result


async def modify_account(
    db: AsyncSession,
    account_id: int,
    account_attrs: dict | None = None,
    profile_attrs: dict | None = None,
) -> dict:
    """
    Update account fields and upsert its profile in one unit of work.

    The profile is updated in place when one exists and created otherwise.
    Any failure rolls back both sides.
    """
    accounts = AccountRepository(db)
    profiles = ProfileRepository(db)

    async with unit_of_work(db, "modify_account"):
        if not await accounts.exists(account_id):
            raise NotFound("Account", account_id)

        if account_attrs:
            try:
                await accounts.update(account_id, account_attrs)
            except ContentGraphError as exc:
                exc.context = "account"
                raise

        if profile_attrs is not None:
            # A profile cannot be moved to another account.
            fields = {k: v for k, v in profile_attrs.items() if k != "account_id"}
            try:
                profile = await profiles.find_by_account(account_id, Projection.LIGHT)
                if profile is not None:
                    await profiles.update(profile.id, fields)
                else:
                    await profiles.create({**fields, "account_id": account_id})
            except ContentGraphError as exc:
                exc.context = "profile"
                raise

        result = await _full_account(accounts, account_id)

    # Author handles are embedded in cached content details.
    await cache.invalidate_content()
    logger.info("Modified account id=%s", account_id)
    return result


async def remove_account(db: AsyncSession, account_id: int) -> dict:
    """
    Delete an account.  Its profile, content items and their tag links go
    with it by storage cascade, atomically with the root delete.
    """
    async with unit_of_work(db, "remove_account"):
        if not await AccountRepository(db).delete(account_id):
            raise NotFound("Account", account_id)

    await cache.invalidate_content()
    logger.info("Removed account id=%s", account_id)
    return {"deleted": True, "id": account_id}
