"""Error taxonomy shared by the auth core and the resource layer.

Learn: Every failure the core can produce is one of these classes.
Each carries the HTTP status it maps to and a generic public message;
the FastAPI exception handlers in main.py render them. The public
message never says which check failed: "wrong password" and
"unknown email" are the same InvalidCredentials, and "exists but
you're not a member" is the same NotFound as "does not exist".
"""


class MyWayError(Exception):
    """Base class. `detail` is safe to show to the caller."""

    status_code = 500
    detail = "Internal server error"

    def __init__(self, detail: str | None = None):
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class Unauthenticated(MyWayError):
    """Missing, malformed, forged or expired access token."""

    status_code = 401
    detail = "Authentication required"


class InvalidCredentials(MyWayError):
    """Unknown email or wrong password (deliberately indistinguishable)."""

    status_code = 401
    detail = "Invalid credentials"


class InvalidToken(MyWayError):
    """Refresh token failed verification, has the wrong kind, or is revoked."""

    status_code = 401
    detail = "Invalid refresh token"


class Forbidden(MyWayError):
    """Authenticated, but lacking membership or role."""

    status_code = 403
    detail = "Forbidden"


class NotAMember(Forbidden):
    """No Active membership. Never joined and left look the same."""

    detail = "Not a member of this organization"


class NotFound(MyWayError):
    status_code = 404
    detail = "Not found"


class Conflict(MyWayError):
    status_code = 409
    detail = "Conflict"


class BadRequest(MyWayError):
    status_code = 400
    detail = "Bad request"


class StorageError(MyWayError):
    """Persistence failure. Propagated, never retried by the core."""

    status_code = 500
    detail = "Internal server error"
