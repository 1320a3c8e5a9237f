"""
Academy Backend: Gallery Adapters
==================================

What:  Gallery photos (images stored in the `gallery` bucket under
       `photos/`) and videos (external links, nothing stored), plus the
       merged media list the public gallery page shows.
"""

import uuid
from typing import Callable, List, Optional

from academy.adapters.base import TableAdapter
from academy.adapters.uploads import ImageStore, UploadedFile, epoch_millis
from academy.remote import BackendClient
from academy.results import Result
from academy.schemas.gallery import (
    GalleryItemCreate,
    GalleryItemUpdate,
    GalleryPhoto,
    GalleryResponse,
    GalleryVideo,
    MediaItem,
)

GALLERY_BUCKET = "gallery"
PHOTO_PREFIX = "photos/"


class GalleryPhotoAdapter(TableAdapter[GalleryPhoto, GalleryItemCreate, GalleryItemUpdate]):
    table = "gallery_photos"
    resource = "photo"
    record_model = GalleryPhoto
    create_model = GalleryItemCreate
    update_model = GalleryItemUpdate

    def __init__(
        self,
        client: BackendClient,
        clock: Callable[[], int] = epoch_millis,
        id_factory: Callable[[], str] = lambda: uuid.uuid4().hex[:12],
    ):
        super().__init__(client)
        self.images = ImageStore(client, GALLERY_BUCKET, prefix=PHOTO_PREFIX, clock=clock)
        self._id_factory = id_factory

    async def upload_image(self, file: UploadedFile) -> Result[str]:
        """
        Store a photo before its row exists.

        The object is named after a random token since there is no row id yet.
        """
        return await self.images.upload(file, self._id_factory())

    async def remove_image(self, url: Optional[str]) -> Result[None]:
        """Delete the stored object behind `url`; external URLs are ignored."""
        return await self.images.remove_public_url(url)


class GalleryVideoAdapter(TableAdapter[GalleryVideo, GalleryItemCreate, GalleryItemUpdate]):
    table = "gallery_videos"
    resource = "video"
    record_model = GalleryVideo
    create_model = GalleryItemCreate
    update_model = GalleryItemUpdate


def merge_media(
    photos: List[GalleryPhoto],
    videos: List[GalleryVideo],
    category: Optional[str] = None,
) -> GalleryResponse:
    """
    Combine photos and videos into one media list.

    `categories` is "all" followed by each category present, in first-seen
    order, computed before the `category` filter is applied.
    """
    items = [
        MediaItem(id=p.id, type="image", title=p.title, url=p.url, category=p.category) for p in photos
    ] + [
        MediaItem(id=v.id, type="video", title=v.title, url=v.url, category=v.category) for v in videos
    ]
    categories = ["all"] + list(dict.fromkeys(item.category for item in items))
    if category and category != "all":
        items = [item for item in items if item.category == category]
    return GalleryResponse(items=items, categories=categories)
