"""
Academy Backend: Events Adapter
================================

What:  Event rows ordered by date, with upcoming/past views and event
       images (bucket `events`).

Upcoming means not flagged past AND dated from now on; past means flagged
past, newest first. An event whose date has gone by but which nobody has
flagged yet appears in neither list.
"""

from datetime import datetime, timezone
from typing import Callable, List, Optional

from academy.adapters.base import TableAdapter, require_id
from academy.adapters.uploads import ImageStore, UploadedFile, epoch_millis
from academy.remote import BackendClient
from academy.results import Result
from academy.schemas.event import Event, EventCreate, EventUpdate

EVENT_BUCKET = "events"


class EventAdapter(TableAdapter[Event, EventCreate, EventUpdate]):
    table = "events"
    resource = "event"
    record_model = Event
    create_model = EventCreate
    update_model = EventUpdate
    order_column = "date"
    order_ascending = True

    def __init__(
        self,
        client: BackendClient,
        clock: Callable[[], int] = epoch_millis,
        now: Optional[Callable[[], datetime]] = None,
    ):
        super().__init__(client)
        self.images = ImageStore(client, EVENT_BUCKET, clock=clock)
        self._now = now or (lambda: datetime.now(timezone.utc))

    async def get_upcoming(self) -> Result[List[Event]]:
        query = (
            self._query()
            .select("*")
            .eq("is_past", False)
            .gte("date", self._now().isoformat())
            .order("date", ascending=True)
        )
        return await self._fetch_many(query, "get_upcoming")

    async def get_past(self) -> Result[List[Event]]:
        query = self._query().select("*").eq("is_past", True).order("date", ascending=False)
        return await self._fetch_many(query, "get_past")

    async def upload_image(self, file: UploadedFile, event_id: str) -> Result[str]:
        require_id(event_id, "event_id")
        return await self.images.upload(file, event_id)
