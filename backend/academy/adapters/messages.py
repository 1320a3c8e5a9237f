"""Contact-form messages: public submission, admin inbox."""

from typing import Any, Dict, Union

from pydantic import ValidationError as PydanticValidationError

from academy.adapters.base import TableAdapter, require_id, validation_message
from academy.exceptions import BackendError
from academy.results import RemoteError, Result
from academy.schemas.message import Message, MessageCreate, MessageUpdate


class MessageAdapter(TableAdapter[Message, MessageCreate, MessageUpdate]):
    table = "messages"
    resource = "message"
    record_model = Message
    create_model = MessageCreate
    update_model = MessageUpdate

    async def submit(self, payload: Union[Dict[str, Any], MessageCreate]) -> Result[None]:
        """Send a contact message as an anonymous visitor (write-only access)."""
        try:
            model = self._coerce(payload, MessageCreate)
        except PydanticValidationError as e:
            return Result.failure(RemoteError.validation(validation_message(e)))
        values = model.model_dump(mode="json", exclude_none=True)
        try:
            await self._query().insert(values, returning="minimal").execute()
        except BackendError as e:
            return self._failure(e, "submit")
        return Result.success(None)

    async def mark_as_read(self, message_id: str) -> Result[Message]:
        require_id(message_id, "message_id")
        return await self.update(message_id, {"is_read": True})

    async def count_unread(self) -> Result[int]:
        return await self.count(is_read=False)
