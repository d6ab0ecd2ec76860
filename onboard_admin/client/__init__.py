"""Sync client for the onboarding admin.

``open_client`` is the composition root: it builds the gateways over one
shared ``httpx.AsyncClient``, creates the stores and performs the initial
question load. The UI layer owns the returned ``AdminClient``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

import httpx

from onboard_admin.client.autosave import AutosaveBuffer
from onboard_admin.client.bulk import BulkOutcome, delete_many
from onboard_admin.client.errors import GatewayError, NetworkError, NotFound, ServerError, ValidationError
from onboard_admin.client.gateway import QuestionGateway, ResponsesGateway
from onboard_admin.client.notifications import Notifier
from onboard_admin.client.query import flow, select_questions
from onboard_admin.client.responses import ResponsesStore
from onboard_admin.client.store import QuestionStore
from onboard_admin.config import AppConfig, load_config


@dataclass
class AdminClient:
    config: AppConfig
    http: httpx.AsyncClient
    questions: QuestionStore
    responses: ResponsesStore
    notifier: Notifier

    def autosave(self, question_id: str) -> AutosaveBuffer:
        return AutosaveBuffer(
            self.questions,
            question_id,
            delay=self.config.sync.autosave_delay_seconds,
            notifier=self.notifier,
        )

    async def delete_many(self, ids: Iterable[str]) -> BulkOutcome:
        """Bulk delete with the configured concurrency, reporting through the notifier."""
        return await delete_many(
            self.questions,
            ids,
            notifier=self.notifier,
            concurrency=self.config.sync.bulk_delete_concurrency,
        )

    async def aclose(self) -> None:
        await self.http.aclose()


async def open_client(
    config: Optional[AppConfig] = None,
    *,
    http: Optional[httpx.AsyncClient] = None,
    load: bool = True,
) -> AdminClient:
    cfg = config or load_config()
    shared = http or httpx.AsyncClient(base_url=cfg.api.base_url, timeout=cfg.api.timeout_seconds)
    store = QuestionStore(QuestionGateway(shared))
    if load:
        await store.load()
    return AdminClient(
        config=cfg,
        http=shared,
        questions=store,
        responses=ResponsesStore(ResponsesGateway(shared)),
        notifier=Notifier(),
    )


__all__ = [
    "AdminClient",
    "open_client",
    "AutosaveBuffer",
    "BulkOutcome",
    "GatewayError",
    "NetworkError",
    "NotFound",
    "ServerError",
    "ValidationError",
    "QuestionGateway",
    "ResponsesGateway",
    "QuestionStore",
    "ResponsesStore",
    "Notifier",
    "flow",
    "select_questions",
]
