"""
Academy Backend: Data Access Adapters
======================================

What:  One adapter per table, each returning `Result` values.
Who:   Route handlers (through `academy.dependencies`) and the session
       manager (role lookups).

    coaches          CoachAdapter          created_at desc, portrait upload
    events           EventAdapter          date asc, upcoming/past, image upload
    students         StudentAdapter        public register, status review
    messages         MessageAdapter        public submit, mark read, unread count
    profiles         ProfileAdapter        per-user profile
    user_roles       RoleAdapter           has_role, grant, revoke
    gallery_photos   GalleryPhotoAdapter   upload into gallery/photos/
    gallery_videos   GalleryVideoAdapter   external links
"""

from academy.adapters.coaches import CoachAdapter
from academy.adapters.events import EventAdapter
from academy.adapters.gallery import GalleryPhotoAdapter, GalleryVideoAdapter, merge_media
from academy.adapters.messages import MessageAdapter
from academy.adapters.profiles import ProfileAdapter
from academy.adapters.roles import RoleAdapter
from academy.adapters.students import StudentAdapter
from academy.adapters.uploads import ImageStore, UploadedFile, validate_image

__all__ = [
    "CoachAdapter",
    "EventAdapter",
    "GalleryPhotoAdapter",
    "GalleryVideoAdapter",
    "ImageStore",
    "MessageAdapter",
    "ProfileAdapter",
    "RoleAdapter",
    "StudentAdapter",
    "UploadedFile",
    "merge_media",
    "validate_image",
]
