"""Pydantic schemas for organizations and memberships."""

import uuid
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from myway.db.models import MembershipStatus, Role


class OrgCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class OrgRead(BaseModel):
    id: uuid.UUID
    name: str
    plan: str
    created_at: datetime

    model_config = {"from_attributes": True}


class OrgWithRole(BaseModel):
    id: uuid.UUID
    name: str
    plan: str
    role: Role


class SwitchResponse(BaseModel):
    organization: OrgRead
    role: Role


class InviteRequest(BaseModel):
    email: EmailStr
    role: Role = Role.STUDENT


class MembershipRead(BaseModel):
    organization_id: uuid.UUID
    user_id: uuid.UUID
    role: Role
    status: MembershipStatus


class MemberRead(BaseModel):
    user_id: uuid.UUID
    email: str
    name: str
    role: Role
