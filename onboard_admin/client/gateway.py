"""Remote gateways: one HTTP call per server verb.

Gateways are stateless apart from the shared ``httpx.AsyncClient``. Every
failure leaves as a ``GatewayError`` subclass and every record is passed
through the canonical mappers before it reaches a caller.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence
import logging

import httpx
from pydantic import ValidationError as PydanticValidationError

from onboard_admin.client.errors import GatewayError, NetworkError, NotFound, ServerError, ValidationError
from onboard_admin.config import ApiConfig
from onboard_admin.logic.canonical import (
    canonicalize_question,
    canonicalize_response_session,
    canonicalize_stats,
)
from onboard_admin.models.question import Question, QuestionDraft, QuestionPatch
from onboard_admin.models.response_session import ResponsePage, ResponseSession, ResponseStats

logger = logging.getLogger(__name__)


def _problem_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, Mapping):
        for key in ("detail", "error", "message", "title"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return response.reason_phrase


class _JsonGateway:
    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    @classmethod
    def from_config(cls, config: ApiConfig):
        client = httpx.AsyncClient(base_url=config.base_url, timeout=config.timeout_seconds)
        return cls(client)

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _call(
        self,
        operation: str,
        method: str,
        url: str,
        *,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        keyed: bool = False,
    ) -> Any:
        """Perform one request and return the decoded JSON body.

        ``keyed`` marks operations addressing a single record, where 404 means
        NotFound rather than a server fault.
        """
        try:
            response = await self._client.request(method, url, json=json, params=params)
        except (httpx.DecodingError, httpx.TooManyRedirects) as exc:
            logger.warning("gateway.%s.bad_response url=%s error=%s", operation, url, exc)
            raise ServerError(f"{operation} failed: malformed response ({exc})", operation=operation) from exc
        except httpx.TransportError as exc:
            logger.warning("gateway.%s.network_error url=%s error=%s", operation, url, exc)
            raise NetworkError(f"{operation} failed: backend unreachable ({exc})", operation=operation) from exc

        status = response.status_code
        if status == 404 and keyed:
            raise NotFound(f"{operation} failed: {_problem_detail(response)}", operation=operation, status=status)
        if status in (400, 422):
            raise ValidationError(f"{operation} failed: {_problem_detail(response)}", operation=operation, status=status)
        if not response.is_success:
            logger.warning("gateway.%s.failed status=%s url=%s", operation, status, url)
            raise ServerError(f"{operation} failed: {_problem_detail(response)}", operation=operation, status=status)
        try:
            return response.json()
        except ValueError as exc:
            raise ServerError(f"{operation} failed: malformed response body", operation=operation, status=status) from exc

    @staticmethod
    def _map(operation: str, mapper, payload: Any, **kwargs: Any):
        try:
            return mapper(payload, **kwargs)
        except (ValueError, TypeError, PydanticValidationError) as exc:
            logger.warning("gateway.%s.malformed error=%s", operation, exc)
            raise ServerError(f"{operation} failed: malformed record ({exc})", operation=operation) from exc


class QuestionGateway(_JsonGateway):
    async def list(self) -> List[Question]:
        payload = await self._call("list", "GET", "/questions")
        if isinstance(payload, Mapping) and isinstance(payload.get("questions"), list):
            payload = payload["questions"]
        if not isinstance(payload, list):
            raise ServerError("list failed: expected an array of questions", operation="list")
        questions = [
            self._map("list", canonicalize_question, raw, fallback_order=index + 1)
            for index, raw in enumerate(payload)
        ]
        # Python's sort is stable, so createdAt only breaks ties on order
        return sorted(sorted(questions, key=lambda q: q.created_at), key=lambda q: q.order)

    async def get(self, question_id: str) -> Question:
        payload = await self._call("get", "GET", f"/questions/{question_id}", keyed=True)
        return self._map("get", canonicalize_question, payload)

    async def create(self, draft: QuestionDraft) -> Question:
        body = draft.to_wire(exclude_none=True)
        payload = await self._call("create", "POST", "/questions", json=body)
        return self._map("create", canonicalize_question, payload)

    async def update(self, question_id: str, patch: QuestionPatch) -> Question:
        payload = await self._call(
            "update", "PATCH", f"/questions/{question_id}", json=patch.wire_changes(), keyed=True
        )
        return self._map("update", canonicalize_question, payload)

    async def remove(self, question_id: str) -> None:
        await self._call("remove", "DELETE", f"/questions/{question_id}", keyed=True)

    async def bulk_update(self, ids: Iterable[str], patch: QuestionPatch) -> int:
        requested = list(dict.fromkeys(str(i) for i in ids))
        payload = await self._call(
            "bulk_update", "PUT", "/questions/bulk", json={"ids": requested, "patch": patch.wire_changes()}
        )
        matched = payload.get("matched") if isinstance(payload, Mapping) else None
        if isinstance(matched, int) and not isinstance(matched, bool):
            return matched
        return len(requested)

    async def reorder(self, ordered_ids: Sequence[str]) -> None:
        await self._call("reorder", "PUT", "/questions/reorder", json={"orderedIds": list(ordered_ids)})


class ResponsesGateway(_JsonGateway):
    async def list(
        self,
        *,
        page: int = 1,
        limit: int = 10,
        path: Optional[str] = None,
        completed: Optional[str] = None,
    ) -> ResponsePage:
        params: Dict[str, Any] = {"page": page, "limit": limit}
        if path:
            params["path"] = path
        if completed:
            params["completed"] = completed
        payload = await self._call("list_responses", "GET", "/responses", params=params)
        if not isinstance(payload, Mapping):
            raise ServerError("list_responses failed: expected an object", operation="list_responses")
        sessions = [
            self._map("list_responses", canonicalize_response_session, raw)
            for raw in payload.get("responses") or []
        ]
        total = int(payload.get("total") or len(sessions))
        return ResponsePage(
            responses=sessions,
            total=total,
            page=int(payload.get("page") or page),
            limit=int(payload.get("limit") or limit),
            total_pages=int(payload.get("totalPages") or 0),
        )

    async def get(self, response_id: str) -> ResponseSession:
        payload = await self._call("get_response", "GET", f"/responses/{response_id}", keyed=True)
        return self._map("get_response", canonicalize_response_session, payload)

    async def remove(self, response_id: str) -> None:
        await self._call("remove_response", "DELETE", f"/responses/{response_id}", keyed=True)

    async def stats(self) -> ResponseStats:
        payload = await self._call("response_stats", "GET", "/responses/stats")
        return self._map("response_stats", canonicalize_stats, payload)


__all__ = ["QuestionGateway", "ResponsesGateway", "GatewayError"]
