"""Optimistic, ordered question cache.

``QuestionStore`` owns the in-memory list of questions shown by the admin UI.
Each operation mutates the cache synchronously (observers see the change
before any network round-trip), then calls the gateway and reconciles the
server's canonical record into the cache.

Failures are never rolled back: the optimistic state stays, ``last_error``
is recorded, observers are notified and the error is re-raised for the
caller to display. A later ``refresh()`` restores server truth.

All mutations happen on one asyncio event loop; the cache is replaced, never
mutated in place, so readers always see a consistent tuple. When two
requests for the same record are in flight, whichever response resolves last
wins.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple
import logging

from pydantic import ValidationError as PydanticValidationError

from onboard_admin.client.errors import GatewayError, ValidationError
from onboard_admin.client.gateway import QuestionGateway
from onboard_admin.logic.canonical import next_timestamp, utc_now
from onboard_admin.logic.order_sequences import apply_order, next_order, renumber
from onboard_admin.models.question import (
    OnboardingPath,
    Question,
    QuestionDraft,
    QuestionPatch,
    QuestionStatus,
    QuestionType,
    new_question_id,
)

logger = logging.getLogger(__name__)

Observer = Callable[["QuestionStore"], None]


class QuestionStore:
    def __init__(
        self,
        gateway: QuestionGateway,
        *,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = new_question_id,
    ) -> None:
        self._gateway = gateway
        self._clock = clock
        self._new_id = id_factory
        self._items: Tuple[Question, ...] = ()
        self._loading = False
        self._last_error: Optional[GatewayError] = None
        self._observers: List[Observer] = []

    @classmethod
    async def open(cls, gateway: QuestionGateway, **kwargs: Any) -> "QuestionStore":
        """Create a store and perform its initial load."""
        store = cls(gateway, **kwargs)
        await store.load()
        return store

    # -- state -----------------------------------------------------------

    @property
    def items(self) -> Tuple[Question, ...]:
        return self._items

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def last_error(self) -> Optional[GatewayError]:
        return self._last_error

    def ids(self) -> List[str]:
        return [q.id for q in self._items]

    def get_by_id(self, question_id: str) -> Optional[Question]:
        for question in self._items:
            if question.id == question_id:
                return question
        return None

    # -- observers -------------------------------------------------------

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register ``observer``; returns a callable that unsubscribes it."""
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
                logger.error("question_store.observer_failed observer=%r", observer, exc_info=True)

    def _replace(self, items: Iterable[Question]) -> None:
        self._items = tuple(items)
        self._notify()

    def _swap(self, question_id: str, record: Question) -> bool:
        """Replace the entry with ``question_id`` by ``record``; False when absent."""
        if self.get_by_id(question_id) is None:
            return False
        self._replace(record if q.id == question_id else q for q in self._items)
        return True

    def _fail(self, operation: str, exc: GatewayError, **context: Any) -> None:
        self._last_error = exc
        logger.warning(
            "question_store.%s.failed kind=%s context=%s message=%s",
            operation,
            exc.kind,
            context,
            exc.message,
        )
        self._notify()

    def _parse_patch(self, operation: str, patch: Mapping[str, Any] | QuestionPatch) -> QuestionPatch:
        if isinstance(patch, QuestionPatch):
            return patch
        try:
            return QuestionPatch.model_validate(dict(patch))
        except PydanticValidationError as exc:
            error = ValidationError(f"{operation} failed: {exc}", operation=operation)
            self._fail(operation, error)
            raise error from exc

    def _touch(self, question: Question, changes: Mapping[str, Any]) -> Question:
        stamp = next_timestamp(question.updated_at, self._clock())
        return question.model_copy(update={**changes, "updated_at": stamp})

    # -- loading ---------------------------------------------------------

    async def load(self) -> Tuple[Question, ...]:
        """Replace the cache with the server's ordered list."""
        self._loading = True
        self._notify()
        try:
            fetched = await self._gateway.list()
        except GatewayError as exc:
            self._loading = False
            self._fail("load", exc)
            raise
        self._loading = False
        self._last_error = None
        self._replace(fetched)
        logger.info("question_store.load.success count=%s", len(fetched))
        return self._items

    refresh = load

    # -- creation --------------------------------------------------------

    def _provisional(self, **fields: Any) -> Question:
        now = self._clock()
        base = {
            "id": self._new_id(),
            "text": "",
            "type": QuestionType.TEXT,
            "paths": [OnboardingPath.NEW_BUSINESS],
            "required": False,
            "help_text": "",
            "options": [],
        }
        base.update(fields)
        base.update(
            {
                "status": QuestionStatus.DRAFT,
                "order": next_order(self._items),
                "created_at": now,
                "updated_at": now,
            }
        )
        return Question(**base)

    async def _create(self, operation: str, provisional: Question) -> Question:
        try:
            draft = QuestionDraft.from_question(provisional)
        except PydanticValidationError as exc:
            error = ValidationError(f"{operation} failed: {exc}", operation=operation)
            self._fail(operation, error, id=provisional.id)
            raise error from exc
        # Shown before the round-trip; stays in place if the create fails.
        self._replace((provisional, *self._items))
        try:
            created = await self._gateway.create(draft)
        except GatewayError as exc:
            self._fail(operation, exc, id=provisional.id)
            raise
        if not self._swap(provisional.id, created):
            logger.info("question_store.%s.reconcile_skipped id=%s reason=removed", operation, provisional.id)
        logger.info("question_store.%s.success id=%s order=%s", operation, created.id, created.order)
        return created

    async def add_blank(self) -> Question:
        """Insert a blank draft question at the top of the cache and persist it."""
        return await self._create("add_blank", self._provisional())

    async def duplicate(self, question_id: str) -> Optional[Question]:
        """Copy ``question_id`` as a new draft; None when it is not cached."""
        source = self.get_by_id(question_id)
        if source is None:
            return None
        copy = self._provisional(
            text=f"{source.text} (Copy)" if source.text else "(Copy)",
            type=source.type,
            paths=list(source.paths),
            required=source.required,
            help_text=source.help_text,
            options=list(source.options),
        )
        return await self._create("duplicate", copy)

    # -- mutation --------------------------------------------------------

    async def update(self, question_id: str, patch: Mapping[str, Any] | QuestionPatch) -> Question:
        """Merge ``patch`` into the cached entry, then persist it.

        ``patch`` may use camelCase or snake_case keys; id and timestamps are
        ignored. Returns the server's record.
        """
        parsed = self._parse_patch("update", patch)
        current = self.get_by_id(question_id)
        if current is not None:
            self._swap(question_id, self._touch(current, parsed.changes()))
        try:
            saved = await self._gateway.update(question_id, parsed)
        except GatewayError as exc:
            self._fail("update", exc, id=question_id)
            raise
        self._swap(question_id, saved)
        return saved

    async def remove(self, question_id: str) -> None:
        """Drop ``question_id`` from the cache, then delete it remotely."""
        self._replace(q for q in self._items if q.id != question_id)
        try:
            await self._gateway.remove(question_id)
        except GatewayError as exc:
            self._fail("remove", exc, id=question_id)
            raise
        logger.info("question_store.remove.success id=%s", question_id)

    async def bulk_update(self, ids: Iterable[str], patch: Mapping[str, Any] | QuestionPatch) -> int:
        """Apply one patch to every cached id in ``ids`` with a single request.

        Ids the cache (or server) does not know are ignored. Returns the
        server's matched count.
        """
        wanted = list(dict.fromkeys(str(i) for i in ids))
        parsed = self._parse_patch("bulk_update", patch)
        changes = parsed.changes()
        selected = set(wanted)
        self._replace(self._touch(q, changes) if q.id in selected else q for q in self._items)
        try:
            matched = await self._gateway.bulk_update(wanted, parsed)
        except GatewayError as exc:
            self._fail("bulk_update", exc, ids=wanted)
            raise
        logger.info("question_store.bulk_update.success requested=%s matched=%s", len(wanted), matched)
        return matched

    async def reorder_questions(self, new_order_ids: Iterable[str]) -> Dict[str, int]:
        """Renumber the cache to follow ``new_order_ids`` and persist the full order."""
        mapping = renumber(list(new_order_ids), self._items)
        previous = {q.id: q.order for q in self._items}
        changed = {qid for qid, order in mapping.items() if previous.get(qid) != order}
        reordered = apply_order(self._items, mapping)
        self._replace(
            self._touch(q, {}) if q.id in changed else q for q in reordered
        )
        full_order = [q.id for q in self._items]
        try:
            await self._gateway.reorder(full_order)
        except GatewayError as exc:
            self._fail("reorder", exc, count=len(full_order))
            raise
        logger.info("question_store.reorder.success count=%s changed=%s", len(full_order), len(changed))
        return mapping


__all__ = ["QuestionStore", "Observer"]
