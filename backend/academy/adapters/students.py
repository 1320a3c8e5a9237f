"""Student registrations: public sign-up through the join form and admin review."""

from typing import Any, Dict, List, Union

from pydantic import ValidationError as PydanticValidationError

from academy.adapters.base import TableAdapter, require_id, validation_message
from academy.exceptions import BackendError
from academy.results import RemoteError, Result
from academy.schemas.student import (
    Student,
    StudentCreate,
    StudentRegistration,
    StudentStatusUpdate,
)


class StudentAdapter(TableAdapter[Student, StudentCreate, StudentStatusUpdate]):
    table = "students"
    resource = "student"
    record_model = Student
    create_model = StudentCreate
    update_model = StudentStatusUpdate

    async def register(self, payload: Union[Dict[str, Any], StudentRegistration]) -> Result[None]:
        """
        Submit a join-form registration as an anonymous visitor.

        The row is inserted without asking for it back: visitors may insert
        students but not read them. Status defaults to `pending`.
        """
        try:
            model = self._coerce(payload, StudentRegistration)
        except PydanticValidationError as e:
            return Result.failure(RemoteError.validation(validation_message(e)))
        values = model.model_dump(mode="json", by_alias=True, exclude_none=True)
        try:
            await self._query().insert(values, returning="minimal").execute()
        except BackendError as e:
            return self._failure(e, "register")
        return Result.success(None)

    async def update_status(self, student_id: str, status: str) -> Result[Student]:
        require_id(student_id, "student_id")
        return await self.update(student_id, {"status": status})

    async def get_by_status(self, status: str) -> Result[List[Student]]:
        query = self._ordered(self._query().select("*").eq("status", status))
        return await self._fetch_many(query, "get_by_status")
