"""Transient user notifications (toasts).

The notifier logs each notification for observability and buffers it so the
presentation layer (or a test) can drain and render it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Literal
import logging

logger = logging.getLogger(__name__)

Variant = Literal["default", "destructive"]


@dataclass(frozen=True)
class Notification:
    title: str
    description: str = ""
    variant: Variant = "default"


class Notifier:
    def __init__(self) -> None:
        self._buffer: List[Notification] = []

    def notify(self, title: str, description: str = "", variant: Variant = "default") -> Notification:
        note = Notification(title=title, description=description, variant=variant)
        level = logging.WARNING if variant == "destructive" else logging.INFO
        logger.log(level, "notification title=%s description=%s", title, description)
        self._buffer.append(note)
        return note

    def error(self, title: str, description: str = "") -> Notification:
        return self.notify(title, description, "destructive")

    def drain(self) -> List[Notification]:
        """Return buffered notifications and clear the buffer."""
        notes = list(self._buffer)
        self._buffer.clear()
        return notes


__all__ = ["Notification", "Notifier"]
