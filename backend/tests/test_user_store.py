"""Tests for services/user_store.py against an in-memory SQLite database."""

import pytest
from sqlalchemy.exc import IntegrityError

from schemas.users import PublicUser


@pytest.fixture
def user_fields() -> dict:
    return {
        "username": "carol",
        "email": "c@x.com",
        "full_name": "Carol C",
        "avatar": "https://res.cloudinary.com/demo/avatar.png",
        "password_hash": "hash",
    }


async def test_create_assigns_id_and_defaults(user_store, user_fields) -> None:
    user = await user_store.create(**user_fields)

    assert user.id
    assert user.cover_image == ""
    assert user.refresh_token is None
    assert user.created_at is not None


async def test_create_rejects_duplicate_username(user_store, user_fields) -> None:
    await user_store.create(**user_fields)

    with pytest.raises(IntegrityError):
        await user_store.create(**{**user_fields, "email": "other@x.com"})


async def test_find_one_matches_username_case_insensitively(user_store, user_fields) -> None:
    created = await user_store.create(**user_fields)

    found = await user_store.find_one(username="  CaRoL ")

    assert found.id == created.id


async def test_find_one_matches_email(user_store, user_fields) -> None:
    created = await user_store.create(**user_fields)

    found = await user_store.find_one(email="c@x.com")

    assert found.id == created.id


async def test_find_one_is_a_disjunction(user_store, user_fields) -> None:
    created = await user_store.create(**user_fields)

    assert (await user_store.find_one(username="carol", email="nobody@x.com")).id == created.id
    assert (await user_store.find_one(username="nobody", email="c@x.com")).id == created.id
    assert await user_store.find_one(username="nobody", email="nobody@x.com") is None


async def test_find_one_without_criteria_returns_none(user_store, user_fields) -> None:
    await user_store.create(**user_fields)

    assert await user_store.find_one() is None
    assert await user_store.find_one(username="", email=None) is None


async def test_find_public_by_id_excludes_credentials(user_store, user_fields) -> None:
    created = await user_store.create(**user_fields)
    await user_store.find_by_id_and_update(created.id, refresh_token="token")

    public = await user_store.find_public_by_id(created.id)

    assert type(public) is PublicUser
    assert public.username == "carol"
    assert "password_hash" not in public.model_dump()
    assert "refresh_token" not in public.model_dump()


async def test_find_public_by_id_unknown(user_store) -> None:
    assert await user_store.find_public_by_id("missing") is None


async def test_find_by_id_and_update(user_store, user_fields) -> None:
    created = await user_store.create(**user_fields)

    updated = await user_store.find_by_id_and_update(created.id, refresh_token="r1")
    assert updated.refresh_token == "r1"

    cleared = await user_store.find_by_id_and_update(created.id, refresh_token=None)
    assert cleared.refresh_token is None
    assert (await user_store.find_by_id(created.id)).refresh_token is None


async def test_find_by_id_and_update_unknown(user_store) -> None:
    assert await user_store.find_by_id_and_update("missing", refresh_token=None) is None


async def test_swap_refresh_token_requires_expected_value(user_store, user_fields) -> None:
    created = await user_store.create(**user_fields)
    await user_store.find_by_id_and_update(created.id, refresh_token="r1")

    assert await user_store.swap_refresh_token(created.id, expected="stale", new="r2") is False
    assert (await user_store.find_by_id(created.id)).refresh_token == "r1"

    assert await user_store.swap_refresh_token(created.id, expected="r1", new="r2") is True
    assert (await user_store.find_by_id(created.id)).refresh_token == "r2"

    assert await user_store.swap_refresh_token(created.id, expected="r1", new="r3") is False
