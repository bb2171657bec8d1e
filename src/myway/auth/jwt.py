"""JWT token creation and verification — the credential codec.

Learn: JWT (JSON Web Token) provides stateless, tamper-evident credentials.
- Access token: short-lived (minutes), sent on every protected request
- Refresh token: long-lived (days), only used to mint new access tokens

Both carry the principal id (`sub`), email, kind (`type`), issued-at and
expiry, signed with HMAC under one process-wide secret. A random `jti`
makes every token value unique even when two are minted in the same second.

The codec is a pure function of its TokenConfig and its input. Rotating the
secret invalidates every outstanding token.
"""

import enum
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt


class TokenKind(str, enum.Enum):
    ACCESS = "access"
    REFRESH = "refresh"


class TokenError(Exception):
    """Raised when token verification fails."""


class MalformedToken(TokenError):
    pass


class InvalidSignature(TokenError):
    pass


class ExpiredToken(TokenError):
    pass


@dataclass(frozen=True)
class TokenConfig:
    secret: str
    algorithm: str = "HS256"
    access_ttl: timedelta = timedelta(minutes=60)
    refresh_ttl: timedelta = timedelta(days=7)

    @classmethod
    def from_settings(cls, settings) -> "TokenConfig":
        return cls(
            secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            access_ttl=timedelta(minutes=settings.access_token_expire_minutes),
            refresh_ttl=timedelta(days=settings.refresh_token_expire_days),
        )


@dataclass(frozen=True)
class TokenClaims:
    principal_id: uuid.UUID
    email: str
    kind: TokenKind
    issued_at: datetime
    expires_at: datetime


class TokenCodec:
    """Issues and verifies signed tokens under an immutable config."""

    def __init__(self, config: TokenConfig):
        self._config = config

    @property
    def config(self) -> TokenConfig:
        return self._config

    def ttl(self, kind: TokenKind) -> timedelta:
        if kind is TokenKind.ACCESS:
            return self._config.access_ttl
        return self._config.refresh_ttl

    def issue(
        self,
        principal_id: uuid.UUID,
        email: str,
        kind: TokenKind,
        now: datetime | None = None,
    ) -> str:
        """Create a signed token of the given kind."""
        issued = now or datetime.now(timezone.utc)
        payload = {
            "sub": str(principal_id),
            "email": email,
            "type": kind.value,
            "iat": issued,
            "exp": issued + self.ttl(kind),
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(payload, self._config.secret, algorithm=self._config.algorithm)

    def verify(self, token: str) -> TokenClaims:
        """Verify and decode a token.

        Returns the claims on success.
        Raises InvalidSignature, ExpiredToken or MalformedToken on failure.
        """
        try:
            payload = jwt.decode(
                token,
                self._config.secret,
                algorithms=[self._config.algorithm],
                options={"require": ["sub", "email", "exp", "iat", "type"]},
            )
        except jwt.ExpiredSignatureError:
            raise ExpiredToken("Token has expired")
        except jwt.InvalidSignatureError:
            raise InvalidSignature("Token signature mismatch")
        except jwt.InvalidTokenError as e:
            raise MalformedToken(f"Invalid token: {e}")

        try:
            return TokenClaims(
                principal_id=uuid.UUID(payload["sub"]),
                email=payload["email"],
                kind=TokenKind(payload["type"]),
                issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
                expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            )
        except (ValueError, TypeError) as e:
            raise MalformedToken(f"Invalid token claims: {e}")
