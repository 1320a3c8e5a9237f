"""
Academy Backend: Table Models
==============================

What:  SQLAlchemy descriptions of the hosted Postgres tables.
Who:   Alembic (`target_metadata`) and the schema consistency tests.

Importing this package registers every table on `Base.metadata`.
"""

from academy.models.account import APP_ROLE, Profile, UserRole
from academy.models.content import Coach, Event, GalleryPhoto, GalleryVideo
from academy.models.inbox import Message, Student

__all__ = [
    "APP_ROLE",
    "Coach",
    "Event",
    "GalleryPhoto",
    "GalleryVideo",
    "Message",
    "Profile",
    "Student",
    "UserRole",
]
