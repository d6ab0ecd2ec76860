"""Database bootstrap utilities for the onboarding admin service.

Exposes engine construction and the SQL migrations runner. The DB layer is
intentionally minimal and does not leak ORM models into route handlers.
"""

from onboard_admin.db.base import dispose_engine, get_engine
from onboard_admin.db.migrations_runner import apply_migrations

__all__ = [
    "get_engine",
    "dispose_engine",
    "apply_migrations",
]
