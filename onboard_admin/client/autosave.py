"""Debounced autosave for the question edit form.

Edits are buffered and flushed through ``QuestionStore.update`` once the
input has been idle for ``delay`` seconds. A new edit restarts the timer.
Closing the buffer drops unsaved edits; a flush that is already in flight
still completes.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any, Dict, Mapping, Optional
import logging

from onboard_admin.client.errors import GatewayError
from onboard_admin.client.notifications import Notifier
from onboard_admin.client.store import QuestionStore
from onboard_admin.logic.canonical import utc_now

logger = logging.getLogger(__name__)

DEFAULT_DELAY_SECONDS = 0.5


class AutosaveBuffer:
    def __init__(
        self,
        store: QuestionStore,
        question_id: str,
        *,
        delay: float = DEFAULT_DELAY_SECONDS,
        notifier: Optional[Notifier] = None,
    ) -> None:
        if delay <= 0:
            raise ValueError("delay must be positive")
        self._store = store
        self.question_id = question_id
        self.delay = delay
        self._notifier = notifier
        self._pending: Dict[str, Any] = {}
        self._timer: Optional[asyncio.TimerHandle] = None
        self._inflight: Optional[asyncio.Task] = None
        self.last_saved_at: Optional[datetime] = None
        self.last_error: Optional[GatewayError] = None

    @property
    def pending(self) -> Dict[str, Any]:
        return dict(self._pending)

    @property
    def has_pending(self) -> bool:
        return bool(self._pending)

    def edit(self, patch: Mapping[str, Any]) -> None:
        """Buffer ``patch`` and restart the idle timer. Needs a running loop."""
        self._pending.update(patch)
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.delay, self._on_idle)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_idle(self) -> None:
        self._timer = None
        self._inflight = asyncio.ensure_future(self.flush())

    async def flush(self) -> bool:
        """Send the buffered edits now; True when something was saved."""
        if not self._pending:
            return False
        patch, self._pending = self._pending, {}
        try:
            await self._store.update(self.question_id, patch)
        except GatewayError as exc:
            self.last_error = exc
            logger.warning("autosave.flush.failed id=%s kind=%s", self.question_id, exc.kind)
            if self._notifier is not None:
                self._notifier.error("Error", f"Failed to save changes: {exc.message}")
            return False
        self.last_saved_at = utc_now()
        self.last_error = None
        logger.info("autosave.flush.saved id=%s fields=%s", self.question_id, sorted(patch))
        return True

    async def save_now(self) -> bool:
        """Explicit save: skip the remaining delay and flush."""
        self._cancel_timer()
        saved = await self.flush()
        if saved and self._notifier is not None:
            self._notifier.notify("Saved", "Changes have been saved.")
        return saved

    async def wait_idle(self) -> None:
        """Wait for a flush started by the timer, if one is running."""
        if self._inflight is not None:
            await self._inflight

    def cancel(self) -> None:
        """Drop pending edits without saving them."""
        if self._pending:
            logger.info("autosave.cancel.dropped id=%s fields=%s", self.question_id, sorted(self._pending))
        self._cancel_timer()
        self._pending = {}

    close = cancel


__all__ = ["AutosaveBuffer", "DEFAULT_DELAY_SECONDS"]
