"""
Account aggregate: registration with a profile, profile upsert, and removal
cascading through the ownership tree.
"""
import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import make_account, make_item, make_tag
from content_graph.errors import ConflictError, IntegrityError, NotFound, ValidationError
from content_graph.models import ContentItem, ContentItemTag, Profile, Tag
from content_graph.repositories import AccountRepository
from content_graph.services import account_service, content_service

ALICE_PROFILE = {"first_name": "Alice", "last_name": "Liddell", "bio": "Down the rabbit hole"}


async def _count(db: AsyncSession, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


# ---------------------------------------------------------------------------
# register_account
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_register_with_profile_returns_full_projection(db_session: AsyncSession):
    account = await make_account(db_session, "alice", ALICE_PROFILE)
    assert account["handle"] == "alice"
    assert account["email"] == "alice@example.com"
    assert account["profile"]["first_name"] == "Alice"
    assert account["profile"]["account_id"] == account["id"]
    assert account["content_items"] == []


@pytest.mark.asyncio
async def test_register_without_profile(db_session: AsyncSession):
    account = await make_account(db_session, "bob")
    assert account["profile"] is None
    assert await _count(db_session, Profile) == 0


@pytest.mark.asyncio
async def test_register_duplicate_handle_conflicts(db_session: AsyncSession):
    await make_account(db_session, "alice", ALICE_PROFILE)
    with pytest.raises(ConflictError) as exc_info:
        await account_service.register_account(
            db_session, {"handle": "alice", "email": "another@example.com"}
        )
    assert exc_info.value.field == "handle"
    assert await AccountRepository(db_session).count() == 1


@pytest.mark.asyncio
async def test_register_duplicate_email_conflicts(db_session: AsyncSession):
    await make_account(db_session, "alice")
    with pytest.raises(ConflictError) as exc_info:
        await account_service.register_account(
            db_session, {"handle": "alice2", "email": "alice@example.com"}
        )
    assert exc_info.value.field == "email"


@pytest.mark.asyncio
async def test_register_display_name_email_is_rejected(db_session: AsyncSession):
    """A taken address wrapped in a display name must not slip past uniqueness."""
    await make_account(db_session, "alice")
    with pytest.raises(ValidationError) as exc_info:
        await account_service.register_account(
            db_session, {"handle": "alice2", "email": "Mallory <alice@example.com>"}
        )
    assert list(exc_info.value.errors) == ["email"]
    assert await AccountRepository(db_session).count() == 1


@pytest.mark.asyncio
async def test_register_wrong_types_fail_validation_before_lookup(db_session: AsyncSession):
    with pytest.raises(ValidationError) as exc_info:
        await account_service.register_account(db_session, {"handle": 5, "email": 7})
    assert exc_info.value.errors == {
        "handle": "Handle must be a string",
        "email": "Email must be a string",
    }
    assert await AccountRepository(db_session).count() == 0


@pytest.mark.asyncio
async def test_register_invalid_profile_leaves_no_account(db_session: AsyncSession):
    """The account insert is rolled back together with the failed profile insert."""
    with pytest.raises(ValidationError) as exc_info:
        await account_service.register_account(
            db_session,
            {"handle": "carol", "email": "carol@example.com"},
            {"first_name": "C"},
        )
    assert exc_info.value.context == "profile"
    assert set(exc_info.value.errors) == {"first_name", "last_name"}
    assert await AccountRepository(db_session).count() == 0


@pytest.mark.asyncio
async def test_register_invalid_account_fields(db_session: AsyncSession):
    with pytest.raises(ValidationError) as exc_info:
        await account_service.register_account(db_session, {"handle": "x", "email": "bad"})
    assert set(exc_info.value.errors) == {"handle", "email"}


# ---------------------------------------------------------------------------
# modify_account
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_modify_creates_missing_profile(db_session: AsyncSession):
    account = await make_account(db_session, "dave")
    result = await account_service.modify_account(
        db_session, account["id"], profile_attrs={"first_name": "Dave", "last_name": "Bowman"}
    )
    assert result["profile"]["last_name"] == "Bowman"
    assert await _count(db_session, Profile) == 1


@pytest.mark.asyncio
async def test_modify_updates_existing_profile_in_place(db_session: AsyncSession):
    account = await make_account(db_session, "alice", ALICE_PROFILE)
    profile_id = account["profile"]["id"]
    result = await account_service.modify_account(
        db_session,
        account["id"],
        account_attrs={"email": "liddell@example.com"},
        profile_attrs={"bio": "Through the looking glass"},
    )
    assert result["email"] == "liddell@example.com"
    assert result["profile"]["id"] == profile_id
    assert result["profile"]["bio"] == "Through the looking glass"
    assert result["profile"]["first_name"] == "Alice"
    assert await _count(db_session, Profile) == 1


@pytest.mark.asyncio
async def test_modify_ignores_profile_account_id(db_session: AsyncSession):
    alice = await make_account(db_session, "alice", ALICE_PROFILE)
    bob = await make_account(db_session, "bob")
    result = await account_service.modify_account(
        db_session, alice["id"], profile_attrs={"account_id": bob["id"], "bio": "Stays put"}
    )
    assert result["profile"]["account_id"] == alice["id"]


@pytest.mark.asyncio
async def test_modify_failure_rolls_back_both_sides(db_session: AsyncSession):
    account = await make_account(db_session, "alice", ALICE_PROFILE)
    with pytest.raises(ValidationError) as exc_info:
        await account_service.modify_account(
            db_session,
            account["id"],
            account_attrs={"email": "fresh@example.com"},
            profile_attrs={"first_name": "A"},
        )
    assert exc_info.value.context == "profile"

    unchanged = await account_service.get_account(db_session, account["id"])
    assert unchanged["email"] == "alice@example.com"
    assert unchanged["profile"]["first_name"] == "Alice"


@pytest.mark.asyncio
async def test_modify_conflict_names_account_context(db_session: AsyncSession):
    await make_account(db_session, "taken")
    account = await make_account(db_session, "alice")
    with pytest.raises(ConflictError) as exc_info:
        await account_service.modify_account(
            db_session, account["id"], account_attrs={"handle": "taken"}
        )
    assert exc_info.value.context == "account"
    assert exc_info.value.field == "handle"


@pytest.mark.asyncio
async def test_modify_unknown_account(db_session: AsyncSession):
    with pytest.raises(NotFound):
        await account_service.modify_account(db_session, 999, account_attrs={"handle": "ghost"})


# ---------------------------------------------------------------------------
# remove_account
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_remove_cascades_to_dependents_but_not_tags(db_session: AsyncSession):
    account = await make_account(db_session, "alice", ALICE_PROFILE)
    first = await make_item(db_session, account["id"], "First post here", published=True)
    await make_item(db_session, account["id"], "Second post here")
    tag = await make_tag(db_session, "python")
    await content_service.assign_tags_to_content_item(db_session, first["id"], [tag["id"]])

    result = await account_service.remove_account(db_session, account["id"])
    assert result == {"deleted": True, "id": account["id"]}

    assert await _count(db_session, Profile) == 0
    assert await _count(db_session, ContentItem) == 0
    assert await _count(db_session, ContentItemTag) == 0
    assert await _count(db_session, Tag) == 1

    with pytest.raises(NotFound):
        await account_service.list_account_content_items(db_session, account["id"])


@pytest.mark.asyncio
async def test_remove_leaves_other_accounts_alone(db_session: AsyncSession):
    alice = await make_account(db_session, "alice")
    bob = await make_account(db_session, "bob")
    await make_item(db_session, bob["id"], "Bob keeps this")
    await account_service.remove_account(db_session, alice["id"])

    items = await account_service.list_account_content_items(db_session, bob["id"])
    assert [i["title"] for i in items] == ["Bob keeps this"]


@pytest.mark.asyncio
async def test_remove_unknown_account(db_session: AsyncSession):
    with pytest.raises(NotFound):
        await account_service.remove_account(db_session, 999)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_list_accounts_light_vs_associations(db_session: AsyncSession):
    account = await make_account(db_session, "alice", ALICE_PROFILE)
    await make_item(db_session, account["id"], "Listed post")

    light = await account_service.list_accounts(db_session)
    assert set(light[0]) == {"id", "handle", "email", "created_at"}

    listing = await account_service.list_accounts(db_session, include_associations=True)
    assert listing[0]["profile"] == {"first_name": "Alice", "last_name": "Liddell"}
    assert [c["title"] for c in listing[0]["content_items"]] == ["Listed post"]


@pytest.mark.asyncio
async def test_get_account_includes_content_items(db_session: AsyncSession):
    account = await make_account(db_session, "alice")
    await make_item(db_session, account["id"], "Owned post")
    full = await account_service.get_account(db_session, account["id"])
    assert [c["title"] for c in full["content_items"]] == ["Owned post"]


@pytest.mark.asyncio
async def test_item_for_removed_account_is_integrity_error(db_session: AsyncSession):
    account = await make_account(db_session, "alice")
    await account_service.remove_account(db_session, account["id"])
    with pytest.raises(IntegrityError) as exc_info:
        await make_item(db_session, account["id"])
    assert exc_info.value.field == "account_id"
