"""
Academy Backend: Profiles Adapter
==================================

What:  Per-user profile rows, keyed by the auth user id.
How:   Rows are created by a database trigger when an account signs up;
       this adapter reads them and lets a user edit their own.
"""

from typing import Any, Dict, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from academy.adapters.base import TableAdapter, require_id, validation_message
from academy.exceptions import BackendError
from academy.results import RemoteError, Result
from academy.schemas.profile import Profile, ProfileCreate, ProfileUpdate


class ProfileAdapter(TableAdapter[Profile, ProfileCreate, ProfileUpdate]):
    table = "profiles"
    resource = "profile"
    record_model = Profile
    create_model = ProfileCreate
    update_model = ProfileUpdate

    async def get_for_user(self, user_id: str) -> Result[Optional[Profile]]:
        """The user's profile, or `data=None` when the trigger has not created one."""
        require_id(user_id, "user_id")
        try:
            response = await self._query().select("*").eq("user_id", user_id).maybe_single().execute()
        except BackendError as e:
            return self._failure(e, "get_for_user")
        return Result.success(self._parse_row(response.data) if response.data else None)

    async def update_for_user(
        self, user_id: str, changes: Union[Dict[str, Any], ProfileUpdate]
    ) -> Result[Profile]:
        require_id(user_id, "user_id")
        try:
            model = self._coerce(changes, ProfileUpdate)
        except PydanticValidationError as e:
            return Result.failure(RemoteError.validation(validation_message(e)))
        values = model.model_dump(mode="json", exclude_unset=True)
        if not values:
            return Result.failure(RemoteError.validation("No fields to update"))
        query = self._query().update(values).eq("user_id", user_id).select("*")
        return await self._fetch_one(query, "update_for_user")
