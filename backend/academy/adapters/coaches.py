"""Coach records and their portrait images (bucket `coaches`)."""

from typing import Callable

from academy.adapters.base import TableAdapter, require_id
from academy.adapters.uploads import ImageStore, UploadedFile, epoch_millis
from academy.remote import BackendClient
from academy.results import Result
from academy.schemas.coach import Coach, CoachCreate, CoachUpdate

COACH_BUCKET = "coaches"


class CoachAdapter(TableAdapter[Coach, CoachCreate, CoachUpdate]):
    table = "coaches"
    resource = "coach"
    record_model = Coach
    create_model = CoachCreate
    update_model = CoachUpdate

    def __init__(self, client: BackendClient, clock: Callable[[], int] = epoch_millis):
        super().__init__(client)
        self.images = ImageStore(client, COACH_BUCKET, clock=clock)

    async def upload_image(self, file: UploadedFile, coach_id: str) -> Result[str]:
        """Store a portrait and return its public URL. The coach row is not touched."""
        require_id(coach_id, "coach_id")
        return await self.images.upload(file, coach_id)
