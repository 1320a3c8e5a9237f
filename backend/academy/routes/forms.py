"""
Academy Backend: Public Form Routes
====================================

What:  POST /api/join (student registration) and POST /api/contact (message).
How:   Bodies are validated by pydantic before the handler runs; the
       adapters insert without reading rows back, since visitors may
       write these tables but not read them.
"""

import logging

from fastapi import APIRouter, Depends, status

from academy.adapters import MessageAdapter, StudentAdapter
from academy.dependencies import get_messages, get_students
from academy.routes.common import unwrap
from academy.schemas.api import ErrorResponse, StatusMessage
from academy.schemas.message import MessageCreate
from academy.schemas.student import StudentRegistration

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Forms"])


@router.post(
    "/join",
    response_model=StatusMessage,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid registration", "model": ErrorResponse},
        502: {"description": "Data service unavailable", "model": ErrorResponse},
    },
    summary="Register as a new student",
)
async def join(body: StudentRegistration, students: StudentAdapter = Depends(get_students)) -> StatusMessage:
    unwrap(await students.register(body), "student")
    logger.info("New student registration for class %s", body.class_)
    return StatusMessage(message="Registration submitted! We'll contact you soon to complete your registration.")


@router.post(
    "/contact",
    response_model=StatusMessage,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid message", "model": ErrorResponse},
        502: {"description": "Data service unavailable", "model": ErrorResponse},
    },
    summary="Send a message to the academy",
)
async def contact(body: MessageCreate, messages: MessageAdapter = Depends(get_messages)) -> StatusMessage:
    unwrap(await messages.submit(body), "message")
    return StatusMessage(message="Message sent! We'll get back to you soon.")
