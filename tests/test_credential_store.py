"""Refresh credential store tests — save, validity window, revoke."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError

from myway.auth.password import hash_password
from myway.auth.store import RefreshTokenStore
from myway.db.models import User
from myway.errors import StorageError


async def _user(db, email="store@myway.io") -> User:
    user = User(email=email, name="Store", password_hash=hash_password("x", rounds=4))
    db.add(user)
    await db.flush()
    return user


@pytest.mark.asyncio
async def test_saved_token_is_found_until_expiry(db_session):
    store = RefreshTokenStore(db_session)
    user = await _user(db_session)
    now = datetime.now(timezone.utc)
    await store.save(user.id, "tok-1", now + timedelta(days=7))
    await db_session.commit()

    assert await store.find_valid("tok-1", user.id, now) is not None
    assert await store.find_valid("tok-1", user.id, now + timedelta(days=8)) is None


@pytest.mark.asyncio
async def test_token_bound_to_its_user(db_session):
    store = RefreshTokenStore(db_session)
    user = await _user(db_session)
    now = datetime.now(timezone.utc)
    await store.save(user.id, "tok-1", now + timedelta(days=7))

    assert await store.find_valid("tok-1", uuid.uuid4(), now) is None
    assert await store.find_valid("tok-other", user.id, now) is None


@pytest.mark.asyncio
async def test_delete_by_value_is_idempotent(db_session):
    store = RefreshTokenStore(db_session)
    user = await _user(db_session)
    now = datetime.now(timezone.utc)
    await store.save(user.id, "tok-1", now + timedelta(days=7))
    await store.save(user.id, "tok-2", now + timedelta(days=7))

    assert await store.delete_by_value("tok-1") == 1
    assert await store.delete_by_value("tok-1") == 0
    assert await store.delete_by_value("never-issued") == 0
    assert await store.find_valid("tok-2", user.id, now) is not None
    assert await store.count_for_user(user.id) == 1


@pytest.mark.asyncio
async def test_flush_failure_becomes_storage_error(db_session, monkeypatch):
    store = RefreshTokenStore(db_session)

    async def broken_flush(*args, **kwargs):
        raise OperationalError("INSERT", {}, Exception("disk full"))

    monkeypatch.setattr(db_session, "flush", broken_flush)
    with pytest.raises(StorageError):
        await store.save(uuid.uuid4(), "tok", datetime.now(timezone.utc))
