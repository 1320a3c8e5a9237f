"""
Academy Backend: Account Tables
================================

What:  One profile per auth user (created by a trigger at sign-up) and the
       role memberships that make a user an admin.

`user_id` references `auth.users`, which the hosted auth service owns;
the foreign keys are created in the migration rather than declared here
since that schema is not part of this metadata.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Enum, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from academy.database import Base
from academy.models.columns import created_at, updated_at, uuid_pk
from academy.schemas.profile import AppRole

APP_ROLE = Enum(
    AppRole,
    name="app_role",
    values_callable=lambda roles: [role.value for role in roles],
)


class Profile(Base):
    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = uuid_pk()
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, unique=True)
    email: Mapped[Optional[str]] = mapped_column(Text)
    full_name: Mapped[Optional[str]] = mapped_column(Text)
    avatar_url: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = created_at()
    updated_at: Mapped[datetime] = updated_at()


class UserRole(Base):
    __tablename__ = "user_roles"
    __table_args__ = (UniqueConstraint("user_id", "role", name="uq_user_roles_user_id_role"),)

    id: Mapped[uuid.UUID] = uuid_pk()
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    role: Mapped[AppRole] = mapped_column(APP_ROLE, nullable=False)
    created_at: Mapped[datetime] = created_at()
