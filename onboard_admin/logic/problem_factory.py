"""Centralised construction of problem+json payloads for question/response routes.

Route modules import these helpers instead of embedding titles, codes and
status numbers inline.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional
import logging


logger = logging.getLogger(__name__)


def _problem(title: str, status: int, detail: str, code: str, errors: Optional[List[Dict[str, Any]]] = None) -> Dict[str, object]:
    problem: Dict[str, object] = {
        "title": title,
        "status": status,
        "detail": detail,
        "code": code,
    }
    if errors:
        problem["errors"] = errors
    logger.info("error_handler.handle code=%s status=%s", code, status)
    return problem


def problem_question_not_found(question_id: str) -> Dict[str, object]:
    """Return a 404 problem for an unknown question id."""
    return _problem("Not Found", 404, f"question {question_id} not found", "question_missing")


def problem_response_not_found(response_id: str) -> Dict[str, object]:
    return _problem("Not Found", 404, f"response {response_id} not found", "response_missing")


def problem_question_exists(question_id: str) -> Dict[str, object]:
    """Return a 409 problem when a create reuses an existing id."""
    return _problem("Conflict", 409, f"question {question_id} already exists", "question_exists")


def problem_invalid_payload(detail: str, errors: Optional[List[Dict[str, Any]]] = None) -> Dict[str, object]:
    """Return a 422 problem for a body that fails validation."""
    return _problem("Unprocessable Entity", 422, detail, "invalid_payload", errors)


def validation_errors(exc: Any) -> List[Dict[str, Any]]:
    """Flatten a pydantic ValidationError into ``{path, code, message}`` items."""
    items: List[Dict[str, Any]] = []
    for err in getattr(exc, "errors", lambda: [])():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        items.append(
            {
                "path": f"$.{loc}" if loc else "$",
                "code": str(err.get("type", "invalid")),
                "message": str(err.get("msg", "")),
            }
        )
    return items


__all__ = [
    "problem_question_not_found",
    "problem_response_not_found",
    "problem_question_exists",
    "problem_invalid_payload",
    "validation_errors",
]
