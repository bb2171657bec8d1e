"""Pydantic schemas for sign-up, sign-in, refresh and logout.

Learn: Pydantic v2 models validate request/response data. Separate
request schemas (input) from read schemas (output) for clean APIs.
Responses never include the password hash.
"""

import uuid
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from myway.db.models import Role


class SignUpRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    name: str = Field(min_length=1, max_length=100)
    role: Optional[Role] = None


class SignInRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(min_length=1)


class LogoutRequest(BaseModel):
    refresh_token: str = Field(min_length=1)


class PrincipalRead(BaseModel):
    id: uuid.UUID
    email: str
    name: str
    role: Role

    model_config = {"from_attributes": True}


class SessionResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: PrincipalRead


class AccessTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class MembershipSummary(BaseModel):
    org_id: uuid.UUID
    org_name: str
    role: Role


class MeResponse(PrincipalRead):
    memberships: list[MembershipSummary] = []
