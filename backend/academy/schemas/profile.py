"""
Academy Backend: Profile & Role Schemas
========================================

What:  Per-user profile rows (created by a trigger when an account signs up)
       and role memberships that grant admin access.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import Field

from academy.schemas.base import InputModel, RecordModel


class AppRole(str, Enum):
    ADMIN = "admin"
    USER = "user"


class Profile(RecordModel):
    id: str
    user_id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProfileCreate(InputModel):
    user_id: str = Field(min_length=1)
    email: Optional[str] = None
    full_name: Optional[str] = Field(default=None, max_length=200)
    avatar_url: Optional[str] = None


class ProfileUpdate(InputModel):
    full_name: Optional[str] = Field(default=None, max_length=200)
    avatar_url: Optional[str] = None


class UserRole(RecordModel):
    id: Optional[str] = None
    user_id: str
    role: AppRole
    created_at: Optional[datetime] = None


class UserRoleCreate(InputModel):
    user_id: str = Field(min_length=1)
    role: AppRole


class UserWithRoles(Profile):
    """A profile joined with the roles its user holds, for the admin user list."""

    roles: List[AppRole] = Field(default_factory=list)

    @property
    def is_admin(self) -> bool:
        return AppRole.ADMIN in self.roles
