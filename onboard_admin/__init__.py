"""Onboarding admin: question authoring client and its backing HTTP service.

``onboard_admin.client`` holds the async client (gateways, optimistic store,
bulk actions, autosave). The FastAPI service lives in ``routes/`` with its
persistence in ``logic/`` and ``db/``.
"""

from __future__ import annotations

from onboard_admin.main import create_app

__all__ = ["create_app"]
