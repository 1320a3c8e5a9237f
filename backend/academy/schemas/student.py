"""
Academy Backend: Student Registration Schemas
==============================================

What:  Registrations submitted through the public join form, and students
       added by an admin.
How:   Public registrations never choose their status; the column default
       makes them `pending`. Admins may set any status directly.

Class labels:
    The join form sends `kids`, `adults` or `private`; the admin form used
    "Kids Class", "Adults Class" and "Private Training". Both normalise to
    the short form.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from academy.schemas.base import EMAIL_PATTERN, InputModel, RecordModel, normalize_choice

CLASS_TYPES = ("kids", "adults", "private")
_CLASS_ALIASES = {
    "kids class": "kids",
    "tkd kids": "kids",
    "adults class": "adults",
    "adult": "adults",
    "tkd adults": "adults",
    "private training": "private",
    "private lessons": "private",
}

STUDENT_STATUSES = ("pending", "approved", "rejected")


def _status(value: Optional[str]) -> Optional[str]:
    return normalize_choice(value, STUDENT_STATUSES, label="status")


class Student(RecordModel):
    id: str
    name: str
    email: str
    phone: str
    age: int
    class_: str = Field(alias="class")
    message: Optional[str] = None
    status: str = "pending"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"extra": "ignore", "populate_by_name": True}


class StudentRegistration(InputModel):
    """What a prospective student submits on the join form."""

    name: str = Field(min_length=1, max_length=200)
    email: str = Field(pattern=EMAIL_PATTERN, max_length=320)
    phone: str = Field(min_length=3, max_length=40)
    age: int = Field(ge=3, le=120)
    class_: str = Field(alias="class", description=f"One of: {', '.join(CLASS_TYPES)}")
    message: Optional[str] = Field(default=None, max_length=5000)

    model_config = {"extra": "forbid", "str_strip_whitespace": True, "populate_by_name": True}

    @field_validator("class_")
    @classmethod
    def validate_class(cls, v: str) -> str:
        return normalize_choice(v, CLASS_TYPES, _CLASS_ALIASES, label="class")


class StudentCreate(StudentRegistration):
    """Admin-entered student; may be approved straight away."""

    status: Optional[str] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: Optional[str]) -> Optional[str]:
        return _status(v)


class StudentStatusUpdate(InputModel):
    status: str

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        return _status(v)
