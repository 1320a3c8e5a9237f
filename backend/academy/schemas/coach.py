"""Coach profiles shown on the public coaches page."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from academy.schemas.base import InputModel, RecordModel


class Coach(RecordModel):
    id: str
    name: str
    rank: str = Field(description="Belt rank, e.g. '4th Dan Black Belt'")
    experience: Optional[str] = None
    specialization: Optional[List[str]] = None
    achievements: Optional[List[str]] = None
    students: Optional[List[str]] = Field(default=None, description="Notable students")
    image_url: Optional[str] = None
    bio: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CoachCreate(InputModel):
    """Only `name` and `rank` are required; every other column may stay null."""

    name: str = Field(min_length=1, max_length=200)
    rank: str = Field(min_length=1, max_length=100)
    experience: Optional[str] = None
    specialization: Optional[List[str]] = None
    achievements: Optional[List[str]] = None
    students: Optional[List[str]] = None
    image_url: Optional[str] = None
    bio: Optional[str] = None


class CoachUpdate(InputModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    rank: Optional[str] = Field(default=None, min_length=1, max_length=100)
    experience: Optional[str] = None
    specialization: Optional[List[str]] = None
    achievements: Optional[List[str]] = None
    students: Optional[List[str]] = None
    image_url: Optional[str] = None
    bio: Optional[str] = None
