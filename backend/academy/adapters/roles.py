"""
Academy Backend: Role Membership Adapter
=========================================

What:  Reads and edits `user_roles`, the table that decides who is an admin.
Who:   The session manager asks `has_role()` after every sign-in; the admin
       users page lists, grants and revokes roles.

Granting a role a user already holds fails with kind `conflict` (unique
constraint on user_id + role). Revoking a role the user does not hold
fails with kind `not_found`.
"""

import logging
from typing import Dict, List

from academy.adapters.base import require_id
from academy.exceptions import BackendError
from academy.remote import BackendClient
from academy.results import ErrorKind, RemoteError, Result
from academy.schemas.profile import AppRole, UserRole

logger = logging.getLogger(__name__)


class RoleAdapter:
    table = "user_roles"

    def __init__(self, client: BackendClient):
        self._client = client

    def _failure(self, exc: BackendError, operation: str) -> Result:
        error = RemoteError.from_backend_error(exc)
        logger.warning("user_roles.%s failed: kind=%s %s", operation, error.kind.value, error.message)
        return Result.failure(error)

    @staticmethod
    def _role(role) -> AppRole:
        try:
            return AppRole(role)
        except ValueError:
            raise ValueError(f"Unknown role {role!r}; expected one of {[r.value for r in AppRole]}") from None

    async def has_role(self, user_id: str, role: str = AppRole.ADMIN.value) -> Result[bool]:
        """Whether `user_id` holds `role`. Zero rows is a success with `False`."""
        require_id(user_id, "user_id")
        role = self._role(role)
        try:
            response = await (
                self._client.table(self.table)
                .select("role")
                .eq("user_id", user_id)
                .eq("role", role.value)
                .maybe_single()
                .execute()
            )
        except BackendError as e:
            return self._failure(e, "has_role")
        return Result.success(response.data is not None)

    async def list_all(self) -> Result[List[UserRole]]:
        try:
            response = await self._client.table(self.table).select("*").execute()
        except BackendError as e:
            return self._failure(e, "list_all")
        return Result.success([UserRole.model_validate(row) for row in response.data or []])

    async def roles_by_user(self) -> Result[Dict[str, List[AppRole]]]:
        result = await self.list_all()
        if not result.ok:
            return Result.failure(result.error)
        grouped: Dict[str, List[AppRole]] = {}
        for membership in result.data:
            grouped.setdefault(membership.user_id, []).append(membership.role)
        return Result.success(grouped)

    async def grant(self, user_id: str, role: str = AppRole.ADMIN.value) -> Result[UserRole]:
        require_id(user_id, "user_id")
        role = self._role(role)
        try:
            response = await (
                self._client.table(self.table)
                .insert({"user_id": user_id, "role": role.value})
                .select("*")
                .single()
                .execute()
            )
        except BackendError as e:
            return self._failure(e, "grant")
        logger.info("Granted role %s to user %s", role.value, user_id)
        return Result.success(UserRole.model_validate(response.data))

    async def revoke(self, user_id: str, role: str = AppRole.ADMIN.value) -> Result[None]:
        require_id(user_id, "user_id")
        role = self._role(role)
        try:
            response = await (
                self._client.table(self.table)
                .delete()
                .eq("user_id", user_id)
                .eq("role", role.value)
                .execute()
            )
        except BackendError as e:
            return self._failure(e, "revoke")
        if not response.data:
            return Result.failure(
                RemoteError(kind=ErrorKind.NOT_FOUND, message=f"User does not hold the {role.value} role")
            )
        logger.info("Revoked role %s from user %s", role.value, user_id)
        return Result.success(None)
