"""Auth API — sign-up, sign-in, refresh, logout, me.

Learn: Routes for the session lifecycle:
- POST /auth/signup  → create account + first token pair (201)
- POST /auth/signin  → email/password → new token pair (additive)
- POST /auth/refresh → stored refresh token → new access token only
- POST /auth/logout  → revoke one refresh token (idempotent, no access token needed)
- GET  /auth/me      → current user + active memberships

Failures are raised as MyWayError subclasses by the session manager and
rendered by the handlers registered in main.py.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from myway.auth.dependencies import get_current_user, get_session_manager
from myway.auth.sessions import Identity, SessionManager, SessionTokens
from myway.db.engine import get_db
from myway.db.models import User
from myway.errors import NotFound
from myway.schemas.auth import (
    AccessTokenResponse,
    LogoutRequest,
    MeResponse,
    MembershipSummary,
    PrincipalRead,
    RefreshRequest,
    SessionResponse,
    SignInRequest,
    SignUpRequest,
)
from myway.services.organization_service import OrganizationService

router = APIRouter(prefix="/auth")


def _session_response(tokens: SessionTokens) -> SessionResponse:
    return SessionResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        user=PrincipalRead.model_validate(tokens.user),
    )


# ─── Sign-up / Sign-in ──────────────────────────────────


@router.post("/signup", response_model=SessionResponse, status_code=201)
async def signup(body: SignUpRequest, sessions: SessionManager = Depends(get_session_manager)):
    """Create a new account and sign it in."""
    tokens = await sessions.sign_up(
        email=body.email, password=body.password, name=body.name, role=body.role
    )
    return _session_response(tokens)


@router.post("/signin", response_model=SessionResponse)
async def signin(body: SignInRequest, sessions: SessionManager = Depends(get_session_manager)):
    """Login with email and password → token pair."""
    tokens = await sessions.sign_in(email=body.email, password=body.password)
    return _session_response(tokens)


# ─── Refresh / Logout ───────────────────────────────────


@router.post("/refresh", response_model=AccessTokenResponse)
async def refresh(body: RefreshRequest, sessions: SessionManager = Depends(get_session_manager)):
    """Exchange a refresh token for a new access token."""
    access_token = await sessions.refresh(body.refresh_token)
    return AccessTokenResponse(access_token=access_token)


@router.post("/logout")
async def logout(body: LogoutRequest, sessions: SessionManager = Depends(get_session_manager)):
    await sessions.logout(body.refresh_token)
    return {"message": "Logged out successfully"}


# ─── Current user ───────────────────────────────────────


@router.get("/me", response_model=MeResponse)
async def get_me(
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get the current authenticated user's info."""
    user = await db.get(User, identity.principal_id)
    if user is None:
        raise NotFound("User not found")

    memberships = await OrganizationService(db).list_my_memberships(user.id)
    return MeResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        memberships=[
            MembershipSummary(org_id=m.org_id, org_name=m.organization.name, role=m.role)
            for m in memberships
        ],
    )
