"""
Academy Backend: Site Content Tables
=====================================

What:  Coaches, events and gallery media. Everyone may read these rows;
       only admins may write them.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import Boolean, CheckConstraint, Index, String, Text
from sqlalchemy.dialects.postgresql import ARRAY, TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column

from academy.database import Base
from academy.models.columns import created_at, one_of, updated_at, uuid_pk
from academy.schemas.event import EVENT_TYPES
from academy.schemas.gallery import GALLERY_CATEGORIES


class Coach(Base):
    __tablename__ = "coaches"

    id: Mapped[uuid.UUID] = uuid_pk()
    name: Mapped[str] = mapped_column(Text, nullable=False)
    rank: Mapped[str] = mapped_column(Text, nullable=False)
    experience: Mapped[Optional[str]] = mapped_column(Text)
    specialization: Mapped[Optional[List[str]]] = mapped_column(ARRAY(Text))
    achievements: Mapped[Optional[List[str]]] = mapped_column(ARRAY(Text))
    students: Mapped[Optional[List[str]]] = mapped_column(ARRAY(Text))
    image_url: Mapped[Optional[str]] = mapped_column(Text)
    bio: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = created_at()
    updated_at: Mapped[datetime] = updated_at()


class Event(Base):
    __tablename__ = "events"
    __table_args__ = (
        CheckConstraint(one_of("type", EVENT_TYPES), name="type"),
        Index("ix_events_date", "date"),
    )

    id: Mapped[uuid.UUID] = uuid_pk()
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    date: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    location: Mapped[Optional[str]] = mapped_column(Text)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    registration_link: Mapped[Optional[str]] = mapped_column(Text)
    image_url: Mapped[Optional[str]] = mapped_column(Text)
    is_past: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="false")
    created_at: Mapped[datetime] = created_at()
    updated_at: Mapped[datetime] = updated_at()


class GalleryPhoto(Base):
    __tablename__ = "gallery_photos"
    __table_args__ = (CheckConstraint(one_of("category", GALLERY_CATEGORIES), name="category"),)

    id: Mapped[uuid.UUID] = uuid_pk()
    title: Mapped[str] = mapped_column(Text, nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = created_at()


class GalleryVideo(Base):
    __tablename__ = "gallery_videos"
    __table_args__ = (CheckConstraint(one_of("category", GALLERY_CATEGORIES), name="category"),)

    id: Mapped[uuid.UUID] = uuid_pk()
    title: Mapped[str] = mapped_column(Text, nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = created_at()
