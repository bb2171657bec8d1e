"""Session manager — sign-up, sign-in, refresh, logout, identify.

Learn: There is no stored session state besides User and RefreshToken rows:
- sign_up / sign_in each mint a fresh access + refresh pair and persist
  the refresh token (7-day window). Prior sessions stay valid, so a user can
  be signed in on many devices at once.
- refresh verifies the token (must be kind=refresh), checks the store, and
  returns a new ACCESS token only. The refresh token is not rotated.
- logout deletes the stored row by exact value; always succeeds.
- identify turns an `Authorization: Bearer ...` header into an identity.
  Every protected route passes through it first.

Tokens are only returned after the refresh row is durably committed.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from myway.auth.jwt import TokenCodec, TokenError, TokenKind
from myway.auth.password import dummy_hash, hash_password, verify_password
from myway.auth.store import RefreshTokenStore
from myway.db.models import Role, User
from myway.errors import (
    Conflict,
    InvalidCredentials,
    InvalidToken,
    NotFound,
    StorageError,
    Unauthenticated,
)

logger = structlog.get_logger()

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class PrincipalView:
    """Public principal fields, never the password hash."""

    id: uuid.UUID
    email: str
    name: str
    role: Role


@dataclass(frozen=True)
class SessionTokens:
    access_token: str
    refresh_token: str
    user: PrincipalView


@dataclass(frozen=True)
class Identity:
    """Who is making the request, as proven by the access token."""

    principal_id: uuid.UUID
    email: str


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _view(user: User) -> PrincipalView:
    return PrincipalView(id=user.id, email=user.email, name=user.name, role=user.role)


class SessionManager:
    """Orchestrates the token codec and refresh store around User rows."""

    def __init__(
        self,
        db: AsyncSession,
        codec: TokenCodec,
        store: RefreshTokenStore | None = None,
        bcrypt_rounds: int = 12,
    ):
        self.db = db
        self.codec = codec
        self.store = store or RefreshTokenStore(db)
        self.bcrypt_rounds = bcrypt_rounds

    # ─── Sign-up ──────────────────────────────────────────

    async def sign_up(
        self,
        email: str,
        password: str,
        name: str,
        role: Role | None = None,
    ) -> SessionTokens:
        email = normalize_email(email)
        if await self._find_user(email):
            raise Conflict("User already exists")

        user = User(
            email=email,
            name=name,
            password_hash=hash_password(password, rounds=self.bcrypt_rounds),
            role=role or Role.STUDENT,
        )
        self.db.add(user)
        try:
            await self.db.flush()
        except IntegrityError:
            # Lost a race with a concurrent sign-up for the same email.
            await self.db.rollback()
            raise Conflict("User already exists")
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("storage.user_insert_failed", error=str(e))
            raise StorageError() from e

        tokens = await self._issue_pair(user)
        logger.info("auth.signed_up", user_id=str(user.id), role=user.role.value)
        return tokens

    # ─── Sign-in ──────────────────────────────────────────

    async def sign_in(self, email: str, password: str) -> SessionTokens:
        user = await self._find_user(normalize_email(email))
        if user is None:
            verify_password(password, dummy_hash(self.bcrypt_rounds))
            logger.info("auth.signin_failed")
            raise InvalidCredentials()
        if not verify_password(password, user.password_hash):
            logger.info("auth.signin_failed", user_id=str(user.id))
            raise InvalidCredentials()

        user.last_login = datetime.now(timezone.utc)
        tokens = await self._issue_pair(user)
        logger.info("auth.signed_in", user_id=str(user.id))
        return tokens

    # ─── Refresh ──────────────────────────────────────────

    async def refresh(self, refresh_token: str) -> str:
        """Exchange a stored refresh token for a new access token."""
        try:
            claims = self.codec.verify(refresh_token)
        except TokenError as e:
            logger.info("auth.refresh_rejected", reason=type(e).__name__)
            raise InvalidToken()
        if claims.kind is not TokenKind.REFRESH:
            logger.info("auth.refresh_rejected", reason="wrong_kind")
            raise InvalidToken()

        now = datetime.now(timezone.utc)
        row = await self.store.find_valid(refresh_token, claims.principal_id, now)
        if row is None:
            logger.info("auth.refresh_rejected", reason="not_stored")
            raise InvalidToken()

        try:
            user = await self.db.get(User, claims.principal_id)
        except SQLAlchemyError as e:
            logger.error("storage.user_lookup_failed", error=str(e))
            raise StorageError() from e
        if user is None:
            raise NotFound("User not found")

        return self.codec.issue(user.id, user.email, TokenKind.ACCESS)

    # ─── Logout ───────────────────────────────────────────

    async def logout(self, refresh_token: str) -> None:
        """Revoke one refresh token. Idempotent."""
        deleted = await self.store.delete_by_value(refresh_token)
        await self._commit()
        logger.info("auth.logged_out", revoked=deleted)

    # ─── Identify ─────────────────────────────────────────

    def identify(self, authorization: str | None) -> Identity:
        """Resolve an Authorization header to an identity, or raise Unauthenticated."""
        token = parse_bearer(authorization)
        try:
            claims = self.codec.verify(token)
        except TokenError:
            raise Unauthenticated()
        if claims.kind is not TokenKind.ACCESS:
            raise Unauthenticated()
        return Identity(principal_id=claims.principal_id, email=claims.email)

    # ─── Internals ────────────────────────────────────────

    async def _find_user(self, email: str) -> User | None:
        try:
            result = await self.db.execute(select(User).where(User.email == email))
        except SQLAlchemyError as e:
            logger.error("storage.user_lookup_failed", error=str(e))
            raise StorageError() from e
        return result.scalars().first()

    async def _issue_pair(self, user: User) -> SessionTokens:
        access = self.codec.issue(user.id, user.email, TokenKind.ACCESS)
        refresh = self.codec.issue(user.id, user.email, TokenKind.REFRESH)
        expires_at = datetime.now(timezone.utc) + self.codec.ttl(TokenKind.REFRESH)
        try:
            await self.store.save(user.id, refresh, expires_at)
        except StorageError:
            await self.db.rollback()
            raise
        await self._commit()
        return SessionTokens(access_token=access, refresh_token=refresh, user=_view(user))

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            if "email" in str(e.orig).lower():
                raise Conflict("User already exists") from e
            logger.error("storage.commit_failed", error=str(e))
            raise StorageError() from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("storage.commit_failed", error=str(e))
            raise StorageError() from e


def parse_bearer(authorization: str | None) -> str:
    """Extract the token from `Bearer <token>`. Anything else is Unauthenticated."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise Unauthenticated()
    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        raise Unauthenticated()
    return token
