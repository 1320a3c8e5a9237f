"""
Academy Backend: Admin Console Routes
======================================

What:  Back-office API: dashboard counters and management of coaches,
       events, students, messages, gallery media and admin roles.
How:   The whole router depends on `RouteGuard("admin")`. Callers who are
       not signed in get a 303 to /auth; signed-in non-admins get a 303 to
       /access-denied. Writes go out with the admin's own access token, so
       row-level policies enforce the same rule on the service side.
Who:   The admin pages of the frontend.

Image replacement:
    Uploading a new coach or event image stores the new object, points the
    row at it, then removes the previous object. A failed removal is
    logged and leaves an orphaned object behind; the request still
    succeeds since the row is already correct.
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from academy.adapters import (
    CoachAdapter,
    EventAdapter,
    GalleryPhotoAdapter,
    GalleryVideoAdapter,
    ImageStore,
    MessageAdapter,
    ProfileAdapter,
    RoleAdapter,
    StudentAdapter,
)
from academy.dependencies import (
    get_coaches,
    get_events,
    get_gallery_photos,
    get_gallery_videos,
    get_messages,
    get_profiles,
    get_roles,
    get_session_manager,
    get_students,
)
from academy.config import settings
from academy.exceptions import ValidationError
from academy.guard import RouteGuard
from academy.routes.common import read_upload, unwrap
from academy.schemas.api import DashboardStats, ErrorResponse
from academy.schemas.coach import Coach, CoachCreate, CoachUpdate
from academy.schemas.event import Event, EventCreate, EventUpdate
from academy.schemas.gallery import GalleryItemCreate, GalleryItemUpdate, GalleryPhoto, GalleryVideo
from academy.schemas.message import Message
from academy.schemas.profile import AppRole, UserRole, UserWithRoles
from academy.schemas.student import STUDENT_STATUSES, Student, StudentCreate, StudentStatusUpdate
from academy.session import SessionManager

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/admin",
    tags=["Admin"],
    dependencies=[Depends(RouteGuard(settings.admin_role))],
    responses={
        303: {"description": "Redirect to /auth or /access-denied"},
        502: {"description": "Data service unavailable", "model": ErrorResponse},
    },
)


async def _replace_image(images: ImageStore, previous_url: Optional[str], new_url: str) -> None:
    if not previous_url or previous_url == new_url:
        return
    removed = await images.remove_public_url(previous_url)
    if not removed.ok:
        logger.warning("Previous image left in storage: %s (%s)", previous_url, removed.error.message)


# ══════════════════════════════════════════════════════════════════════════
# Dashboard
# ══════════════════════════════════════════════════════════════════════════


@router.get("/dashboard", response_model=DashboardStats, summary="Dashboard counters")
async def dashboard(
    coaches: CoachAdapter = Depends(get_coaches),
    events: EventAdapter = Depends(get_events),
    students: StudentAdapter = Depends(get_students),
    messages: MessageAdapter = Depends(get_messages),
) -> DashboardStats:
    results = await asyncio.gather(
        coaches.count(),
        events.count(),
        students.count(),
        messages.count(),
        students.count(status="pending"),
        messages.count_unread(),
    )
    counts = [unwrap(result) for result in results]
    return DashboardStats(
        coaches=counts[0],
        events=counts[1],
        students=counts[2],
        messages=counts[3],
        pending_students=counts[4],
        unread_messages=counts[5],
    )


# ══════════════════════════════════════════════════════════════════════════
# Coaches
# ══════════════════════════════════════════════════════════════════════════


@router.get("/coaches", response_model=List[Coach], summary="List coaches")
async def list_coaches(coaches: CoachAdapter = Depends(get_coaches)) -> List[Coach]:
    return unwrap(await coaches.get_all(), "coach")


@router.post("/coaches", response_model=Coach, status_code=status.HTTP_201_CREATED, summary="Add a coach")
async def create_coach(body: CoachCreate, coaches: CoachAdapter = Depends(get_coaches)) -> Coach:
    coach = unwrap(await coaches.create(body), "coach")
    logger.info("Coach created: %s", coach.id)
    return coach


@router.patch("/coaches/{coach_id}", response_model=Coach, summary="Update a coach")
async def update_coach(coach_id: str, body: CoachUpdate, coaches: CoachAdapter = Depends(get_coaches)) -> Coach:
    return unwrap(await coaches.update(coach_id, body), "coach", coach_id)


@router.delete("/coaches/{coach_id}", response_model=Coach, summary="Delete a coach")
async def delete_coach(coach_id: str, coaches: CoachAdapter = Depends(get_coaches)) -> Coach:
    coach = unwrap(await coaches.delete(coach_id), "coach", coach_id)
    await _replace_image(coaches.images, coach.image_url, "")
    logger.info("Coach deleted: %s", coach_id)
    return coach


@router.post(
    "/coaches/{coach_id}/image",
    response_model=Coach,
    responses={400: {"description": "Not an image, or too large", "model": ErrorResponse}},
    summary="Upload a coach portrait",
)
async def upload_coach_image(
    coach_id: str,
    file: UploadFile = File(...),
    coaches: CoachAdapter = Depends(get_coaches),
) -> Coach:
    current = unwrap(await coaches.get_by_id(coach_id), "coach", coach_id)
    url = unwrap(await coaches.upload_image(await read_upload(file), coach_id))
    updated = unwrap(await coaches.update(coach_id, {"image_url": url}), "coach", coach_id)
    await _replace_image(coaches.images, current.image_url, url)
    return updated


# ══════════════════════════════════════════════════════════════════════════
# Events
# ══════════════════════════════════════════════════════════════════════════


@router.get("/events", response_model=List[Event], summary="List events")
async def list_events(events: EventAdapter = Depends(get_events)) -> List[Event]:
    return unwrap(await events.get_all(), "event")


@router.post("/events", response_model=Event, status_code=status.HTTP_201_CREATED, summary="Add an event")
async def create_event(body: EventCreate, events: EventAdapter = Depends(get_events)) -> Event:
    return unwrap(await events.create(body), "event")


@router.patch("/events/{event_id}", response_model=Event, summary="Update an event")
async def update_event(event_id: str, body: EventUpdate, events: EventAdapter = Depends(get_events)) -> Event:
    return unwrap(await events.update(event_id, body), "event", event_id)


@router.delete("/events/{event_id}", response_model=Event, summary="Delete an event")
async def delete_event(event_id: str, events: EventAdapter = Depends(get_events)) -> Event:
    event = unwrap(await events.delete(event_id), "event", event_id)
    await _replace_image(events.images, event.image_url, "")
    return event


@router.post(
    "/events/{event_id}/image",
    response_model=Event,
    responses={400: {"description": "Not an image, or too large", "model": ErrorResponse}},
    summary="Upload an event image",
)
async def upload_event_image(
    event_id: str,
    file: UploadFile = File(...),
    events: EventAdapter = Depends(get_events),
) -> Event:
    current = unwrap(await events.get_by_id(event_id), "event", event_id)
    url = unwrap(await events.upload_image(await read_upload(file), event_id))
    updated = unwrap(await events.update(event_id, {"image_url": url}), "event", event_id)
    await _replace_image(events.images, current.image_url, url)
    return updated


# ══════════════════════════════════════════════════════════════════════════
# Students
# ══════════════════════════════════════════════════════════════════════════


@router.get("/students", response_model=List[Student], summary="List student registrations")
async def list_students(
    status_filter: str | None = Query(default=None, alias="status", description=f"One of: {', '.join(STUDENT_STATUSES)}"),
    students: StudentAdapter = Depends(get_students),
) -> List[Student]:
    if status_filter is None:
        return unwrap(await students.get_all(), "student")
    if status_filter not in STUDENT_STATUSES:
        raise ValidationError(
            message=f"Invalid status '{status_filter}'. Must be one of: {list(STUDENT_STATUSES)}",
            field="status",
        )
    return unwrap(await students.get_by_status(status_filter), "student")


@router.post("/students", response_model=Student, status_code=status.HTTP_201_CREATED, summary="Add a student")
async def create_student(body: StudentCreate, students: StudentAdapter = Depends(get_students)) -> Student:
    return unwrap(await students.create(body), "student")


@router.patch("/students/{student_id}/status", response_model=Student, summary="Approve or reject a registration")
async def update_student_status(
    student_id: str,
    body: StudentStatusUpdate,
    students: StudentAdapter = Depends(get_students),
) -> Student:
    student = unwrap(await students.update_status(student_id, body.status), "student", student_id)
    logger.info("Student %s marked %s", student_id, student.status)
    return student


@router.delete("/students/{student_id}", response_model=Student, summary="Delete a student")
async def delete_student(student_id: str, students: StudentAdapter = Depends(get_students)) -> Student:
    return unwrap(await students.delete(student_id), "student", student_id)


# ══════════════════════════════════════════════════════════════════════════
# Messages
# ══════════════════════════════════════════════════════════════════════════


@router.get("/messages", response_model=List[Message], summary="Contact messages, newest first")
async def list_messages(messages: MessageAdapter = Depends(get_messages)) -> List[Message]:
    return unwrap(await messages.get_all(), "message")


@router.post("/messages/{message_id}/read", response_model=Message, summary="Mark a message as read")
async def mark_message_read(message_id: str, messages: MessageAdapter = Depends(get_messages)) -> Message:
    return unwrap(await messages.mark_as_read(message_id), "message", message_id)


@router.delete("/messages/{message_id}", response_model=Message, summary="Delete a message")
async def delete_message(message_id: str, messages: MessageAdapter = Depends(get_messages)) -> Message:
    return unwrap(await messages.delete(message_id), "message", message_id)


# ══════════════════════════════════════════════════════════════════════════
# Gallery
# ══════════════════════════════════════════════════════════════════════════


@router.get("/gallery/photos", response_model=List[GalleryPhoto], summary="List gallery photos")
async def list_photos(photos: GalleryPhotoAdapter = Depends(get_gallery_photos)) -> List[GalleryPhoto]:
    return unwrap(await photos.get_all(), "photo")


@router.post(
    "/gallery/photos",
    response_model=GalleryPhoto,
    status_code=status.HTTP_201_CREATED,
    summary="Add a photo by URL",
)
async def create_photo(
    body: GalleryItemCreate, photos: GalleryPhotoAdapter = Depends(get_gallery_photos)
) -> GalleryPhoto:
    return unwrap(await photos.create(body), "photo")


@router.post(
    "/gallery/photos/upload",
    response_model=GalleryPhoto,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Not an image, or too large", "model": ErrorResponse}},
    summary="Upload a photo",
)
async def upload_photo(
    title: str = Form(...),
    category: str = Form(...),
    file: UploadFile = File(...),
    photos: GalleryPhotoAdapter = Depends(get_gallery_photos),
) -> GalleryPhoto:
    """Stores the image first; if the row cannot be created the object is removed again."""
    url = unwrap(await photos.upload_image(await read_upload(file)))
    created = await photos.create({"title": title, "url": url, "category": category})
    if not created.ok:
        removed = await photos.remove_image(url)
        if not removed.ok:
            logger.warning("Uploaded photo left in storage: %s (%s)", url, removed.error.message)
    return unwrap(created, "photo")


@router.patch("/gallery/photos/{photo_id}", response_model=GalleryPhoto, summary="Update a photo")
async def update_photo(
    photo_id: str, body: GalleryItemUpdate, photos: GalleryPhotoAdapter = Depends(get_gallery_photos)
) -> GalleryPhoto:
    return unwrap(await photos.update(photo_id, body), "photo", photo_id)


@router.delete("/gallery/photos/{photo_id}", response_model=GalleryPhoto, summary="Delete a photo and its image")
async def delete_photo(photo_id: str, photos: GalleryPhotoAdapter = Depends(get_gallery_photos)) -> GalleryPhoto:
    photo = unwrap(await photos.delete(photo_id), "photo", photo_id)
    removed = await photos.remove_image(photo.url)
    if not removed.ok:
        logger.warning("Photo %s deleted but its image remains: %s", photo_id, removed.error.message)
    return photo


@router.get("/gallery/videos", response_model=List[GalleryVideo], summary="List gallery videos")
async def list_videos(videos: GalleryVideoAdapter = Depends(get_gallery_videos)) -> List[GalleryVideo]:
    return unwrap(await videos.get_all(), "video")


@router.post(
    "/gallery/videos",
    response_model=GalleryVideo,
    status_code=status.HTTP_201_CREATED,
    summary="Add a video link",
)
async def create_video(
    body: GalleryItemCreate, videos: GalleryVideoAdapter = Depends(get_gallery_videos)
) -> GalleryVideo:
    return unwrap(await videos.create(body), "video")


@router.patch("/gallery/videos/{video_id}", response_model=GalleryVideo, summary="Update a video")
async def update_video(
    video_id: str, body: GalleryItemUpdate, videos: GalleryVideoAdapter = Depends(get_gallery_videos)
) -> GalleryVideo:
    return unwrap(await videos.update(video_id, body), "video", video_id)


@router.delete("/gallery/videos/{video_id}", response_model=GalleryVideo, summary="Delete a video")
async def delete_video(video_id: str, videos: GalleryVideoAdapter = Depends(get_gallery_videos)) -> GalleryVideo:
    return unwrap(await videos.delete(video_id), "video", video_id)


# ══════════════════════════════════════════════════════════════════════════
# Users & roles
# ══════════════════════════════════════════════════════════════════════════


@router.get("/users", response_model=List[UserWithRoles], summary="Accounts with their roles")
async def list_users(
    profiles: ProfileAdapter = Depends(get_profiles),
    roles: RoleAdapter = Depends(get_roles),
) -> List[UserWithRoles]:
    profile_result, roles_result = await asyncio.gather(profiles.get_all(), roles.roles_by_user())
    by_user = unwrap(roles_result)
    return [
        UserWithRoles(**profile.model_dump(), roles=by_user.get(profile.user_id, []))
        for profile in unwrap(profile_result, "profile")
    ]


@router.post(
    "/users/{user_id}/admin",
    response_model=UserRole,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Already an admin", "model": ErrorResponse}},
    summary="Grant admin access",
)
async def grant_admin(user_id: str, roles: RoleAdapter = Depends(get_roles)) -> UserRole:
    return unwrap(await roles.grant(user_id, AppRole.ADMIN.value), "role")


@router.delete(
    "/users/{user_id}/admin",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        400: {"description": "Admins cannot revoke their own access", "model": ErrorResponse},
        404: {"description": "User is not an admin", "model": ErrorResponse},
    },
    summary="Revoke admin access",
)
async def revoke_admin(
    user_id: str,
    roles: RoleAdapter = Depends(get_roles),
    manager: SessionManager = Depends(get_session_manager),
) -> None:
    if manager.state.user is not None and manager.state.user.id == user_id:
        raise ValidationError(message="You cannot revoke your own admin access.", field="user_id")
    unwrap(await roles.revoke(user_id, AppRole.ADMIN.value), "admin role", user_id)
