"""APIRouter registration for the onboarding admin service."""

from __future__ import annotations

from fastapi import APIRouter

from onboard_admin.routes.questions import router as questions_router
from onboard_admin.routes.responses import router as responses_router

api_router = APIRouter()
api_router.include_router(questions_router, tags=["Questions"])
api_router.include_router(responses_router, tags=["Responses"])

__all__ = ["api_router"]
