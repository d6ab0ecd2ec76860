"""Response session routes: paginated listing, stats, read and delete."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from onboard_admin.http.problem import problem_response
from onboard_admin.logic.problem_factory import problem_response_not_found
from onboard_admin.logic.repository_responses import (
    delete_response,
    get_response,
    list_responses,
    response_stats,
)

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/responses")
async def list_page(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    path: Optional[str] = None,
    completed: Optional[str] = Query(default=None, pattern="^(true|false|all)$"),
) -> JSONResponse:
    result = list_responses(page=page, limit=limit, path=path, completed=completed)
    return JSONResponse(result.to_wire())


@router.get("/responses/stats")
async def stats() -> JSONResponse:
    return JSONResponse(response_stats().to_wire())


@router.get("/responses/{response_id}")
async def get_one(response_id: str) -> JSONResponse:
    session = get_response(response_id)
    if session is None:
        return problem_response(problem_response_not_found(response_id))
    return JSONResponse(session.to_wire())


@router.delete("/responses/{response_id}")
async def delete(response_id: str) -> JSONResponse:
    if not delete_response(response_id):
        return problem_response(problem_response_not_found(response_id))
    logger.info("responses.delete.success id=%s", response_id)
    return JSONResponse({"success": True})


__all__ = ["router"]
