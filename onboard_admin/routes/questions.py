"""Question routes: CRUD, bulk update and reorder.

Handlers validate bodies with the shared pydantic models, delegate persistence
to ``repository_questions`` and answer errors with problem+json. The bulk and
reorder routes are registered before ``/questions/{question_id}`` so their
literal paths win.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from onboard_admin.http.problem import problem_response
from onboard_admin.logic.canonical import next_timestamp, utc_now
from onboard_admin.logic.problem_factory import (
    problem_invalid_payload,
    problem_question_exists,
    problem_question_not_found,
    validation_errors,
)
from onboard_admin.logic.repository_questions import (
    bulk_update_questions,
    delete_question,
    get_next_question_order,
    get_question,
    insert_question,
    list_questions,
    reorder_questions,
    save_question,
)
from onboard_admin.models.question import (
    BulkUpdateRequest,
    Question,
    QuestionDraft,
    QuestionPatch,
    ReorderRequest,
    new_question_id,
)

router = APIRouter()
logger = logging.getLogger(__name__)


async def _json_body(request: Request) -> object:
    try:
        return await request.json()
    except ValueError:
        logger.info("questions.body.unparseable path=%s", request.url.path)
        return None


@router.get("/questions")
async def list_all() -> JSONResponse:
    questions = list_questions()
    return JSONResponse([q.to_wire() for q in questions])


@router.post("/questions")
async def create(request: Request) -> JSONResponse:
    payload = await _json_body(request)
    if not isinstance(payload, dict):
        return problem_response(problem_invalid_payload("request body must be a JSON object"))
    try:
        draft = QuestionDraft.model_validate(payload)
    except PydanticValidationError as exc:
        return problem_response(problem_invalid_payload("invalid question", validation_errors(exc)))

    question_id = (draft.id or "").strip() or new_question_id()
    if get_question(question_id) is not None:
        return problem_response(problem_question_exists(question_id))
    order = draft.order if draft.order and draft.order > 0 else get_next_question_order()
    now = utc_now()
    question = Question(
        **draft.model_dump(exclude={"id", "order"}),
        id=question_id,
        order=order,
        created_at=now,
        updated_at=now,
    )
    insert_question(question)
    logger.info("questions.create.success id=%s order=%s", question.id, question.order)
    return JSONResponse(question.to_wire(), status_code=201)


@router.put("/questions/bulk")
async def bulk_update(request: Request) -> JSONResponse:
    payload = await _json_body(request)
    try:
        body = BulkUpdateRequest.model_validate(payload)
        patch = QuestionPatch.model_validate(body.patch)
    except PydanticValidationError as exc:
        return problem_response(problem_invalid_payload("invalid bulk update", validation_errors(exc)))
    try:
        # Every merged record is validated the way a single update is
        matched = bulk_update_questions(body.ids, patch.changes())
    except PydanticValidationError as exc:
        return problem_response(problem_invalid_payload("invalid bulk update", validation_errors(exc)))
    return JSONResponse({"success": True, "matched": matched})


@router.put("/questions/reorder")
async def reorder(request: Request) -> JSONResponse:
    payload = await _json_body(request)
    try:
        body = ReorderRequest.model_validate(payload)
    except PydanticValidationError as exc:
        return problem_response(problem_invalid_payload("invalid reorder request", validation_errors(exc)))
    mapping = reorder_questions(body.ordered_ids)
    return JSONResponse({"success": True, "count": len(mapping)})


@router.get("/questions/{question_id}")
async def get_one(question_id: str) -> JSONResponse:
    question = get_question(question_id)
    if question is None:
        return problem_response(problem_question_not_found(question_id))
    return JSONResponse(question.to_wire())


@router.api_route("/questions/{question_id}", methods=["PUT", "PATCH"])
async def update(question_id: str, request: Request) -> JSONResponse:
    current = get_question(question_id)
    if current is None:
        return problem_response(problem_question_not_found(question_id))
    payload = await _json_body(request)
    if not isinstance(payload, dict):
        return problem_response(problem_invalid_payload("request body must be a JSON object"))
    try:
        patch = QuestionPatch.model_validate(payload)
        merged = current.model_copy(update=patch.changes())
        # Select questions must still carry options after the merge
        QuestionDraft.from_question(merged)
    except PydanticValidationError as exc:
        return problem_response(problem_invalid_payload("invalid question update", validation_errors(exc)))
    saved = merged.model_copy(update={"updated_at": next_timestamp(current.updated_at)})
    save_question(saved)
    logger.info("questions.update.success id=%s fields=%s", question_id, sorted(patch.changes()))
    return JSONResponse(saved.to_wire())


@router.delete("/questions/{question_id}")
async def delete(question_id: str) -> JSONResponse:
    if not delete_question(question_id):
        return problem_response(problem_question_not_found(question_id))
    logger.info("questions.delete.success id=%s", question_id)
    return JSONResponse({"success": True})


__all__ = ["router"]
