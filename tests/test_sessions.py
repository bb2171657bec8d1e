"""Session manager tests — sign-up, sign-in, refresh, logout, identify.

Learn: These run against the real SQLite session, bypassing HTTP, so
they can assert on stored rows and inject storage failures directly.
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from conftest import bearer, unique_email
from myway.auth.jwt import TokenKind
from myway.auth.store import RefreshTokenStore
from myway.auth.sessions import SessionManager, normalize_email, parse_bearer
from myway.db.models import RefreshToken, Role, User
from myway.errors import (
    Conflict,
    InvalidCredentials,
    InvalidToken,
    NotFound,
    StorageError,
    Unauthenticated,
)


# ═══════════════════════════════════════════════════════════
# Sign-up / Sign-in
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_sign_up_issues_pair_and_stores_refresh(sessions, db_session):
    tokens = await sessions.sign_up(unique_email(), "secret123", "Ada")
    assert tokens.user.role is Role.STUDENT
    assert tokens.access_token != tokens.refresh_token

    claims = sessions.codec.verify(tokens.refresh_token)
    assert claims.kind is TokenKind.REFRESH
    assert await sessions.store.count_for_user(tokens.user.id) == 1

    user = await db_session.get(User, tokens.user.id)
    assert user.password_hash != "secret123"


@pytest.mark.asyncio
async def test_sign_up_normalizes_email_and_rejects_duplicates(sessions):
    await sessions.sign_up("Ada@MyWay.io", "secret123", "Ada")
    with pytest.raises(Conflict):
        await sessions.sign_up("  ada@myway.io ", "other-pass", "Ada 2")


@pytest.mark.asyncio
async def test_sign_in_is_additive(sessions):
    email = unique_email()
    first = await sessions.sign_up(email, "secret123", "Ada")
    second = await sessions.sign_in(email, "secret123")

    assert second.refresh_token != first.refresh_token
    assert await sessions.store.count_for_user(first.user.id) == 2
    # The first session keeps working.
    assert await sessions.refresh(first.refresh_token)


@pytest.mark.asyncio
async def test_sign_in_sets_last_login(sessions, db_session):
    email = unique_email()
    tokens = await sessions.sign_up(email, "secret123", "Ada")
    await sessions.sign_in(email, "secret123")
    user = await db_session.get(User, tokens.user.id)
    assert user.last_login is not None


@pytest.mark.asyncio
async def test_unknown_email_and_wrong_password_look_the_same(sessions):
    email = unique_email()
    await sessions.sign_up(email, "secret123", "Ada")

    with pytest.raises(InvalidCredentials) as unknown:
        await sessions.sign_in(unique_email("ghost"), "secret123")
    with pytest.raises(InvalidCredentials) as wrong:
        await sessions.sign_in(email, "wrong-password")
    assert unknown.value.detail == wrong.value.detail


# ═══════════════════════════════════════════════════════════
# Refresh / Logout
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_refresh_returns_access_token_only(sessions):
    tokens = await sessions.sign_up(unique_email(), "secret123", "Ada")
    access = await sessions.refresh(tokens.refresh_token)
    claims = sessions.codec.verify(access)
    assert claims.kind is TokenKind.ACCESS
    assert claims.principal_id == tokens.user.id


@pytest.mark.asyncio
async def test_refresh_rejects_access_token(sessions):
    tokens = await sessions.sign_up(unique_email(), "secret123", "Ada")
    with pytest.raises(InvalidToken):
        await sessions.refresh(tokens.access_token)


@pytest.mark.asyncio
async def test_refresh_rejects_unstored_but_validly_signed_token(sessions):
    tokens = await sessions.sign_up(unique_email(), "secret123", "Ada")
    stray = sessions.codec.issue(tokens.user.id, tokens.user.email, TokenKind.REFRESH)
    with pytest.raises(InvalidToken):
        await sessions.refresh(stray)


@pytest.mark.asyncio
async def test_refresh_rejects_garbage(sessions):
    with pytest.raises(InvalidToken):
        await sessions.refresh("garbage")


@pytest.mark.asyncio
async def test_refresh_rejects_row_past_expiry(sessions, db_session):
    tokens = await sessions.sign_up(unique_email(), "secret123", "Ada")
    row = (
        await db_session.execute(
            select(RefreshToken).where(RefreshToken.token == tokens.refresh_token)
        )
    ).scalar_one()
    row.expires_at = datetime.now(timezone.utc) - timedelta(seconds=1)
    await db_session.commit()

    with pytest.raises(InvalidToken):
        await sessions.refresh(tokens.refresh_token)


@pytest.mark.asyncio
async def test_refresh_for_deleted_principal_is_not_found(sessions, db_session):
    tokens = await sessions.sign_up(unique_email(), "secret123", "Ada")
    user = await db_session.get(User, tokens.user.id)
    await db_session.delete(user)
    await db_session.commit()

    with pytest.raises(NotFound):
        await sessions.refresh(tokens.refresh_token)

@pytest.mark.asyncio
async def test_logout_revokes_only_that_token(sessions):
    email = unique_email()
    a = await sessions.sign_up(email, "secret123", "Ada")
    b = await sessions.sign_in(email, "secret123")

    await sessions.logout(a.refresh_token)
    with pytest.raises(InvalidToken):
        await sessions.refresh(a.refresh_token)
    assert await sessions.refresh(b.refresh_token)


@pytest.mark.asyncio
async def test_logout_is_idempotent(sessions):
    tokens = await sessions.sign_up(unique_email(), "secret123", "Ada")
    await sessions.logout(tokens.refresh_token)
    await sessions.logout(tokens.refresh_token)
    await sessions.logout("never-issued")


# ═══════════════════════════════════════════════════════════
# Identify
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_identify_accepts_access_token(sessions):
    tokens = await sessions.sign_up(unique_email(), "secret123", "Ada")
    identity = sessions.identify(bearer(tokens.access_token)["Authorization"])
    assert identity.principal_id == tokens.user.id


@pytest.mark.asyncio
async def test_identify_rejects_refresh_token(sessions):
    tokens = await sessions.sign_up(unique_email(), "secret123", "Ada")
    with pytest.raises(Unauthenticated):
        sessions.identify(f"Bearer {tokens.refresh_token}")


@pytest.mark.parametrize("header", [None, "", "Bearer", "Bearer ", "Token abc", "bearer abc"])
def test_parse_bearer_rejects(header):
    with pytest.raises(Unauthenticated):
        parse_bearer(header)


def test_normalize_email():
    assert normalize_email("  Ada@MyWay.IO ") == "ada@myway.io"


# ═══════════════════════════════════════════════════════════
# Storage failure
# ═══════════════════════════════════════════════════════════


class _FailingStore(RefreshTokenStore):
    async def save(self, user_id, token, expires_at):
        raise StorageError()


@pytest.mark.asyncio
async def test_sign_up_storage_failure_returns_nothing_and_persists_nothing(db_session, sessions):
    failing = SessionManager(
        db_session, sessions.codec, store=_FailingStore(db_session), bcrypt_rounds=4
    )
    email = unique_email()
    with pytest.raises(StorageError):
        await failing.sign_up(email, "secret123", "Ada")

    result = await db_session.execute(select(User).where(User.email == email))
    assert result.scalars().first() is None


def _operational_error(*args, **kwargs):
    raise OperationalError("SELECT", {}, Exception("connection reset"))


@pytest.mark.asyncio
async def test_sign_up_flush_failure_is_storage_error(sessions, db_session, monkeypatch):
    email = unique_email()

    async def broken_flush(*args, **kwargs):
        _operational_error()

    monkeypatch.setattr(db_session, "flush", broken_flush)
    with pytest.raises(StorageError):
        await sessions.sign_up(email, "secret123", "Ada")

    monkeypatch.undo()
    result = await db_session.execute(select(User).where(User.email == email))
    assert result.scalars().first() is None


@pytest.mark.asyncio
async def test_refresh_user_lookup_failure_is_storage_error(sessions, db_session, monkeypatch):
    tokens = await sessions.sign_up(unique_email(), "secret123", "Ada")

    async def broken_get(*args, **kwargs):
        _operational_error()

    monkeypatch.setattr(db_session, "get", broken_get)
    with pytest.raises(StorageError):
        await sessions.refresh(tokens.refresh_token)
