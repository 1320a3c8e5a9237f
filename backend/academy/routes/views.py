"""
Academy Backend: Guard Destination Views
=========================================

What:  The two places the route guard redirects to.
How:   Presentation-neutral JSON; the frontend renders the actual pages.
"""

from fastapi import APIRouter
from pydantic import BaseModel

from academy.guard import ACCESS_DENIED_PATH, SIGN_IN_PATH

router = APIRouter(tags=["Views"])


class ViewResponse(BaseModel):
    view: str
    title: str
    message: str


@router.get(SIGN_IN_PATH, response_model=ViewResponse, summary="Sign-in view")
async def sign_in_view() -> ViewResponse:
    return ViewResponse(view="auth", title="Sign In", message="Sign in to continue.")


@router.get(ACCESS_DENIED_PATH, response_model=ViewResponse, summary="Access denied view")
async def access_denied_view() -> ViewResponse:
    return ViewResponse(
        view="access-denied",
        title="Access Denied",
        message=(
            "Sorry, you don't have permission to access this page. "
            "This area is restricted to administrators only."
        ),
    )
