"""
Academy Backend: Event Schemas
===============================

What:  Competitions, seminars, workshops and grading exams on the events page.

`type` is stored lowercase. The admin console historically offered
capitalised labels and called exams "Grading"; both forms are accepted on
input and normalised.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from academy.schemas.base import InputModel, RecordModel, normalize_choice

EVENT_TYPES = ("competition", "seminar", "workshop", "exam")
_EVENT_TYPE_ALIASES = {"grading": "exam", "grading exam": "exam", "belt exam": "exam"}


def _event_type(value: Optional[str]) -> Optional[str]:
    return normalize_choice(value, EVENT_TYPES, _EVENT_TYPE_ALIASES, label="event type")


class Event(RecordModel):
    id: str
    title: str
    description: Optional[str] = None
    date: datetime
    location: Optional[str] = None
    type: str
    registration_link: Optional[str] = None
    image_url: Optional[str] = None
    is_past: Optional[bool] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class EventCreate(InputModel):
    title: str = Field(min_length=1, max_length=200)
    date: datetime
    type: str = Field(description=f"One of: {', '.join(EVENT_TYPES)}")
    description: Optional[str] = None
    location: Optional[str] = None
    registration_link: Optional[str] = None
    image_url: Optional[str] = None
    is_past: Optional[bool] = None

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: str) -> str:
        return _event_type(v)


class EventUpdate(InputModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    date: Optional[datetime] = None
    type: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    registration_link: Optional[str] = None
    image_url: Optional[str] = None
    is_past: Optional[bool] = None

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: Optional[str]) -> Optional[str]:
        return _event_type(v)
