"""Core data models for tenants and their users.

These are Pydantic models; records are stored as ``model_dump(mode="json")``
dicts and read back with ``model_validate``.
"""

from __future__ import annotations

import secrets
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from .permissions.constants import BusinessType, Role


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_tenant_id() -> str:
    return f"biz_{secrets.token_hex(8)}"


def new_user_id() -> str:
    return f"usr_{secrets.token_hex(8)}"


class UserStatus(str, Enum):
    """Account status. ``removed`` is terminal.

    ``pending`` marks an enrollment the owner has not approved yet.
    """

    ACTIVE = "active"
    PENDING = "pending"
    SUSPENDED = "suspended"
    INACTIVE = "inactive"
    REMOVED = "removed"


class TenantSettings(BaseModel):
    """Locale defaults for a new business."""

    currency: str = "INR"
    timezone: str = "Asia/Kolkata"
    language: str = "en"


class Tenant(BaseModel):
    """One onboarded business. The isolation boundary for users and data."""

    id: str = Field(default_factory=new_tenant_id, frozen=True)
    name: str
    business_type: BusinessType
    owner_email: str
    owner_id: str = ""
    owner_secret_hash: str = Field(repr=False)
    staff_secret_hash: str = Field(repr=False)
    created_at: datetime = Field(default_factory=_utcnow)
    settings: TenantSettings = Field(default_factory=TenantSettings)


class User(BaseModel):
    """A member of exactly one tenant."""

    id: str = Field(default_factory=new_user_id, frozen=True)
    tenant_id: str = Field(frozen=True)
    name: str
    email: str
    phone: str = ""
    role: Role
    status: UserStatus = UserStatus.ACTIVE
    is_owner: bool = Field(default=False, frozen=True)
    created_at: datetime = Field(default_factory=_utcnow)

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE


class OwnerProfile(BaseModel):
    """Fields collected by the business creation form for the owner account."""

    name: str
    email: EmailStr
    phone: str = ""


class MemberProfile(BaseModel):
    """Fields collected by the staff enrollment form.

    ``role`` is a request; the enrollment policy decides what is granted.
    """

    name: str
    email: EmailStr
    phone: str = ""
    role: Optional[Role] = None


__all__ = [
    "MemberProfile",
    "OwnerProfile",
    "Tenant",
    "TenantSettings",
    "User",
    "UserStatus",
    "new_tenant_id",
    "new_user_id",
]
