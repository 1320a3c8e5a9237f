"""
Academy Backend: Gallery Schemas
=================================

What:  Photos (uploaded to the `gallery` bucket) and videos (external
       links) shown on the public gallery page, plus the merged media
       item the page consumes.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from academy.schemas.base import InputModel, RecordModel, normalize_choice

GALLERY_CATEGORIES = ("training", "competition", "seminar", "graduation", "events")


def _category(value: Optional[str]) -> Optional[str]:
    return normalize_choice(value, GALLERY_CATEGORIES, {"event": "events"}, label="category")


class GalleryItem(RecordModel):
    id: str
    title: str
    url: str
    category: str
    created_at: Optional[datetime] = None


class GalleryPhoto(GalleryItem):
    pass


class GalleryVideo(GalleryItem):
    pass


class GalleryItemCreate(InputModel):
    title: str = Field(min_length=1, max_length=200)
    url: str = Field(min_length=1)
    category: str = Field(description=f"One of: {', '.join(GALLERY_CATEGORIES)}")

    @field_validator("category")
    @classmethod
    def validate_category(cls, v: str) -> str:
        return _category(v)


class GalleryItemUpdate(InputModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    url: Optional[str] = Field(default=None, min_length=1)
    category: Optional[str] = None

    @field_validator("category")
    @classmethod
    def validate_category(cls, v: Optional[str]) -> Optional[str]:
        return _category(v)


class MediaItem(BaseModel):
    id: str
    type: Literal["image", "video"]
    title: str
    url: str
    category: str


class GalleryResponse(BaseModel):
    """Gallery page payload: `categories` starts with "all", then each category present."""

    items: List[MediaItem]
    categories: List[str]
