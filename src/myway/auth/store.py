"""Refresh credential store.

Learn: The store is the source of truth for "is this refresh token still
valid". A signature that verifies is not enough: the row must exist, be
bound to the same user, and not be past expires_at. Expired and mismatched
rows look identical to the caller (None), so the answer can't be used as
an oracle.

The store does not commit: the Session Manager owns the transaction so
that a user row and its first credential land together or not at all.
"""

import uuid
from datetime import datetime

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from myway.db.models import RefreshToken
from myway.errors import StorageError

logger = structlog.get_logger()


class RefreshTokenStore:
    """Persists issued refresh tokens for revocation and expiry checks."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def save(
        self, user_id: uuid.UUID, token: str, expires_at: datetime
    ) -> RefreshToken:
        row = RefreshToken(user_id=user_id, token=token, expires_at=expires_at)
        self.db.add(row)
        try:
            await self.db.flush()
        except SQLAlchemyError as e:
            logger.error("storage.refresh_token_save_failed", user_id=str(user_id), error=str(e))
            raise StorageError() from e
        return row

    async def find_valid(
        self, token: str, user_id: uuid.UUID, now: datetime
    ) -> RefreshToken | None:
        """Row matching both token and user, with expires_at > now."""
        try:
            result = await self.db.execute(
                select(RefreshToken).where(
                    RefreshToken.token == token,
                    RefreshToken.user_id == user_id,
                    RefreshToken.expires_at > now,
                )
            )
        except SQLAlchemyError as e:
            logger.error("storage.refresh_token_lookup_failed", error=str(e))
            raise StorageError() from e
        return result.scalars().first()

    async def delete_by_value(self, token: str) -> int:
        """Delete the row with this exact value. Missing rows are not an error."""
        try:
            result = await self.db.execute(
                delete(RefreshToken).where(RefreshToken.token == token)
            )
        except SQLAlchemyError as e:
            logger.error("storage.refresh_token_delete_failed", error=str(e))
            raise StorageError() from e
        return result.rowcount or 0

    async def count_for_user(self, user_id: uuid.UUID) -> int:
        result = await self.db.execute(
            select(RefreshToken.id).where(RefreshToken.user_id == user_id)
        )
        return len(result.scalars().all())
