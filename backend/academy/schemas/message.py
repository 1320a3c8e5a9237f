"""Contact-form messages. Anyone may submit; only admins read them."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from academy.schemas.base import EMAIL_PATTERN, InputModel, RecordModel


class Message(RecordModel):
    id: str
    name: str
    email: str
    subject: Optional[str] = None
    message: str
    is_read: bool = False
    created_at: Optional[datetime] = None


class MessageCreate(InputModel):
    name: str = Field(min_length=1, max_length=200)
    email: str = Field(pattern=EMAIL_PATTERN, max_length=320)
    subject: Optional[str] = Field(default=None, max_length=300)
    message: str = Field(min_length=1, max_length=5000)


class MessageUpdate(InputModel):
    is_read: Optional[bool] = None
