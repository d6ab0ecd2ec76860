"""Multi-item question operations built on ``QuestionStore``.

These are the admin list's bulk actions. They never raise gateway errors:
each outcome is reported through the notifier and returned to the caller.
Deletes run one at a time by default; a bounded pool keeps the same
"continue past individual failures" rule.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional
import logging

from onboard_admin.client.errors import GatewayError
from onboard_admin.client.notifications import Notifier
from onboard_admin.client.store import QuestionStore
from onboard_admin.models.question import QuestionStatus

logger = logging.getLogger(__name__)


@dataclass
class BulkOutcome:
    operation: str
    requested: List[str]
    succeeded: List[str] = field(default_factory=list)
    failed: Dict[str, GatewayError] = field(default_factory=dict)
    completed: bool = False

    @property
    def ok(self) -> bool:
        """True once every item was attempted, regardless of per-item results."""
        return self.completed

    @property
    def all_succeeded(self) -> bool:
        return self.completed and not self.failed


def _plural(count: int) -> str:
    return f"{count} question(s)"


async def delete_many(
    store: QuestionStore,
    ids: Iterable[str],
    *,
    notifier: Optional[Notifier] = None,
    concurrency: int = 1,
) -> BulkOutcome:
    """Delete ``ids`` through the store, continuing past individual failures.

    With ``concurrency == 1`` each delete is awaited before the next starts.
    """
    if concurrency < 1:
        raise ValueError("concurrency must be >= 1")
    requested = list(dict.fromkeys(str(i) for i in ids))
    outcome = BulkOutcome(operation="delete", requested=requested)
    failures: Dict[str, GatewayError] = {}

    async def _delete_one(question_id: str) -> None:
        try:
            await store.remove(question_id)
        except GatewayError as exc:
            logger.warning("bulk.delete.item_failed id=%s kind=%s", question_id, exc.kind)
            failures[question_id] = exc

    if concurrency == 1:
        for question_id in requested:
            await _delete_one(question_id)
    else:
        gate = asyncio.Semaphore(concurrency)

        async def _bounded(question_id: str) -> None:
            async with gate:
                await _delete_one(question_id)

        await asyncio.gather(*(_bounded(qid) for qid in requested))

    outcome.failed = {qid: failures[qid] for qid in requested if qid in failures}
    outcome.succeeded = [qid for qid in requested if qid not in failures]
    outcome.completed = True
    logger.info(
        "bulk.delete.done requested=%s succeeded=%s failed=%s",
        len(requested),
        len(outcome.succeeded),
        len(outcome.failed),
    )
    if notifier is not None:
        if outcome.failed:
            notifier.error(
                "Error",
                f"Failed to delete {len(outcome.failed)} of {_plural(len(requested))}. Please try again.",
            )
        else:
            notifier.notify("Deleted", f"{_plural(len(requested))} deleted.")
    return outcome


async def set_status(
    store: QuestionStore,
    ids: Iterable[str],
    status: str,
    *,
    notifier: Optional[Notifier] = None,
) -> bool:
    """Apply ``status`` to ``ids`` with one bulk request; True on success."""
    if status not in QuestionStatus.ALL:
        raise ValueError(f"unknown status {status!r}")
    selected = list(dict.fromkeys(str(i) for i in ids))
    if not selected:
        return False
    verb = {
        QuestionStatus.ACTIVE: ("Activated", "activate", "activated"),
        QuestionStatus.INACTIVE: ("Deactivated", "deactivate", "deactivated"),
        QuestionStatus.DRAFT: ("Moved to draft", "move to draft", "moved to draft"),
    }[status]
    try:
        await store.bulk_update(selected, {"status": status})
    except GatewayError as exc:
        logger.warning("bulk.set_status.failed status=%s kind=%s", status, exc.kind)
        if notifier is not None:
            notifier.error("Error", f"Failed to {verb[1]} {_plural(len(selected))}. Please try again.")
        return False
    if notifier is not None:
        notifier.notify(verb[0], f"{_plural(len(selected))} {verb[2]}.")
    return True


async def activate(store: QuestionStore, ids: Iterable[str], *, notifier: Optional[Notifier] = None) -> bool:
    return await set_status(store, ids, QuestionStatus.ACTIVE, notifier=notifier)


async def deactivate(store: QuestionStore, ids: Iterable[str], *, notifier: Optional[Notifier] = None) -> bool:
    return await set_status(store, ids, QuestionStatus.INACTIVE, notifier=notifier)


async def move(
    store: QuestionStore,
    dragged_id: str,
    over_id: str,
    *,
    notifier: Optional[Notifier] = None,
) -> bool:
    """Drop ``dragged_id`` onto the slot of ``over_id`` and persist the full order.

    Returns False without any request when the move is a no-op.
    """
    if dragged_id == over_id:
        return False
    ids = [q.id for q in sorted(store.items, key=lambda q: q.order)]
    if dragged_id not in ids or over_id not in ids:
        return False
    target = ids.index(over_id)
    ids.remove(dragged_id)
    ids.insert(target, dragged_id)
    try:
        await store.reorder_questions(ids)
    except GatewayError as exc:
        logger.warning("bulk.move.failed dragged=%s over=%s kind=%s", dragged_id, over_id, exc.kind)
        if notifier is not None:
            notifier.error("Error", f"Failed to reorder {_plural(len(ids))}. Please try again.")
        return False
    if notifier is not None:
        notifier.notify("Reordered", f"{_plural(len(ids))} reordered.")
    return True


__all__ = ["BulkOutcome", "delete_many", "set_status", "activate", "deactivate", "move"]
