"""Read/delete client for submitted onboarding responses.

Unlike the question store there is no optimistic write path: responses are
created by the public onboarding flow, and the admin only lists, inspects and
deletes them.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Iterable, List, Optional
import logging

from onboard_admin.client.errors import GatewayError
from onboard_admin.client.gateway import ResponsesGateway
from onboard_admin.models.question import Question
from onboard_admin.models.response_session import ResponsePage, ResponseSession, ResponseStats

logger = logging.getLogger(__name__)


def question_label(question_id: str, questions: Iterable[Question]) -> str:
    """Text of the referenced question, or ``Question <id>`` once it is gone."""
    for question in questions:
        if question.id == question_id and question.text:
            return question.text
    return f"Question {question_id}"


class ResponsesStore:
    def __init__(self, gateway: ResponsesGateway) -> None:
        self._gateway = gateway
        self.responses: List[ResponseSession] = []
        self.page: Optional[ResponsePage] = None
        self.stats: Optional[ResponseStats] = None
        self.loading = False
        self.error: Optional[str] = None
        self._observers: List[Callable[["ResponsesStore"], None]] = []

    def subscribe(self, observer: Callable[["ResponsesStore"], None]) -> Callable[[], None]:
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def _notify(self) -> None:
        for observer in list(self._observers):
            try:
                observer(self)
            except Exception:
                logger.error("responses_store.observer_failed observer=%r", observer, exc_info=True)

    async def fetch_responses(
        self,
        *,
        page: int = 1,
        limit: int = 10,
        path: Optional[str] = None,
        completed: Optional[str] = None,
    ) -> None:
        """Load one filtered page. Failures are kept on ``error``, not raised."""
        self.loading = True
        self.error = None
        self._notify()
        try:
            result = await self._gateway.list(page=page, limit=limit, path=path, completed=completed)
        except GatewayError as exc:
            logger.warning("responses_store.fetch.failed kind=%s", exc.kind)
            self.error = exc.message or "Failed to fetch responses"
        else:
            self.page = result
            self.responses = list(result.responses)
        finally:
            self.loading = False
            self._notify()

    async def fetch_stats(self) -> None:
        try:
            self.stats = await self._gateway.stats()
        except GatewayError as exc:
            logger.error("responses_store.stats.failed kind=%s message=%s", exc.kind, exc.message)
            return
        self._notify()

    async def get_by_id(self, response_id: str) -> Optional[ResponseSession]:
        try:
            return await self._gateway.get(response_id)
        except GatewayError as exc:
            logger.warning("responses_store.get.failed id=%s kind=%s", response_id, exc.kind)
            return None

    async def remove(self, response_id: str) -> None:
        """Delete remotely, then drop it from the loaded page. Errors propagate."""
        await self._gateway.remove(response_id)
        self.responses = [r for r in self.responses if r.id != response_id]
        self._notify()

    async def refetch(self) -> None:
        await asyncio.gather(self.fetch_responses(), self.fetch_stats())


__all__ = ["ResponsesStore", "question_label"]
