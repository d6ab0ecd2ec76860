"""Pydantic models for submitted onboarding responses (read/delete only)."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from onboard_admin.models.question import WireModel


class UserInfo(WireModel):
    ip: Optional[str] = None
    user_agent: Optional[str] = None


class UserResponse(WireModel):
    question_id: str
    answer: str = ""


class ResponseSession(WireModel):
    id: str
    session_id: str = ""
    responses: List[UserResponse] = Field(default_factory=list)
    completed: bool = False
    user_info: UserInfo = Field(default_factory=UserInfo)
    business_path: str = "Unknown"
    created_at: datetime
    updated_at: datetime


class PathCount(WireModel):
    path: str
    count: int


class ResponseStats(WireModel):
    total_responses: int = 0
    completed_responses: int = 0
    incomplete_responses: int = 0
    recent_responses: int = 0
    path_breakdown: List[PathCount] = Field(default_factory=list)


class ResponsePage(WireModel):
    """One page of responses plus the pagination envelope."""

    responses: List[ResponseSession] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 10
    total_pages: int = 0


__all__ = [
    "UserInfo",
    "UserResponse",
    "ResponseSession",
    "PathCount",
    "ResponseStats",
    "ResponsePage",
]
