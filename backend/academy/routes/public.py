"""
Academy Backend: Public Content Routes
=======================================

What:  Read-only endpoints behind the public site: coaches, events, gallery.
How:   Requests go out with the public key only; row-level policies allow
       anonymous reads of site content.
Who:   The Coaches, Events and Gallery pages.

Caching:
    Site content changes a few times a month. Responses carry a short
    public max-age so a burst of visitors does not fan out to the backend.
"""

import asyncio
import logging
from typing import List, Literal

from fastapi import APIRouter, Depends, Query, Response

from academy.adapters import CoachAdapter, EventAdapter, GalleryPhotoAdapter, GalleryVideoAdapter, merge_media
from academy.dependencies import get_coaches, get_events, get_gallery_photos, get_gallery_videos
from academy.routes.common import unwrap
from academy.schemas.api import ErrorResponse
from academy.schemas.coach import Coach
from academy.schemas.event import Event
from academy.schemas.gallery import GALLERY_CATEGORIES, GalleryResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Public"])

PUBLIC_CACHE = "public, max-age=60"


@router.get(
    "/coaches",
    response_model=List[Coach],
    responses={502: {"description": "Data service unavailable", "model": ErrorResponse}},
    summary="List coaches",
)
async def list_coaches(response: Response, coaches: CoachAdapter = Depends(get_coaches)) -> List[Coach]:
    """All coaches, newest first."""
    response.headers["Cache-Control"] = PUBLIC_CACHE
    return unwrap(await coaches.get_all(), "coach")


@router.get(
    "/coaches/{coach_id}",
    response_model=Coach,
    responses={404: {"description": "Coach not found", "model": ErrorResponse}},
    summary="Get one coach",
)
async def get_coach(coach_id: str, response: Response, coaches: CoachAdapter = Depends(get_coaches)) -> Coach:
    response.headers["Cache-Control"] = PUBLIC_CACHE
    return unwrap(await coaches.get_by_id(coach_id), "coach", coach_id)


@router.get(
    "/events",
    response_model=List[Event],
    responses={502: {"description": "Data service unavailable", "model": ErrorResponse}},
    summary="List events",
    description=(
        "`when=upcoming` returns events not yet flagged past and dated from now on, "
        "soonest first. `when=past` returns events flagged past, newest first. "
        "`when=all` returns everything in date order."
    ),
)
async def list_events(
    response: Response,
    when: Literal["upcoming", "past", "all"] = Query(default="upcoming"),
    events: EventAdapter = Depends(get_events),
) -> List[Event]:
    response.headers["Cache-Control"] = PUBLIC_CACHE
    if when == "upcoming":
        result = await events.get_upcoming()
    elif when == "past":
        result = await events.get_past()
    else:
        result = await events.get_all()
    return unwrap(result, "event")


@router.get(
    "/gallery",
    response_model=GalleryResponse,
    responses={502: {"description": "Data service unavailable", "model": ErrorResponse}},
    summary="Gallery photos and videos",
    description=f"Optional `category` filter: all, {', '.join(GALLERY_CATEGORIES)}.",
)
async def get_gallery(
    response: Response,
    category: str | None = Query(default=None),
    photos: GalleryPhotoAdapter = Depends(get_gallery_photos),
    videos: GalleryVideoAdapter = Depends(get_gallery_videos),
) -> GalleryResponse:
    """Photos first, then videos, each newest first; the category list ignores the filter."""
    response.headers["Cache-Control"] = PUBLIC_CACHE
    photo_result, video_result = await asyncio.gather(photos.get_all(), videos.get_all())
    return merge_media(unwrap(photo_result, "photo"), unwrap(video_result, "video"), category)
