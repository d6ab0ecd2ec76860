"""Lightweight SQL migrations runner.

Applies .sql files in lexical order from the packaged `migrations/`
directory and records applied filenames in a `schema_migrations` table of
the target database, so a fresh database (for example a new SQLite file in
tests) is always migrated from scratch.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection, Engine
import logging

from onboard_admin.logic.canonical import format_timestamp, utc_now

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"

_JOURNAL_DDL = (
    "CREATE TABLE IF NOT EXISTS schema_migrations ("
    "filename VARCHAR(255) PRIMARY KEY, applied_at VARCHAR(40) NOT NULL)"
)


def _iter_sql_files(root: Path) -> Iterable[Path]:
    for p in sorted(root.glob("*.sql")):
        if "rollback" in p.name.lower():
            continue
        yield p


def _exec_sql_compat(conn: Connection, sql: str) -> None:
    """Execute a multi-statement SQL file one statement at a time.

    SQLite's DB-API refuses several statements per execute(); splitting on ';'
    keeps the files portable. Comment-only segments are skipped.
    """
    for stmt in sql.split(";"):
        lines = [ln for ln in stmt.splitlines() if ln.strip() and not ln.strip().startswith("--")]
        s = "\n".join(lines).strip()
        if not s:
            continue
        if s.upper() in {"BEGIN", "COMMIT", "END"}:
            continue
        conn.exec_driver_sql(s)


def applied_migrations(engine: Engine) -> set[str]:
    with engine.begin() as conn:
        conn.exec_driver_sql(_JOURNAL_DDL)
        rows = conn.execute(sql_text("SELECT filename FROM schema_migrations")).fetchall()
    return {str(r[0]) for r in rows}


def apply_migrations(engine: Engine, migrations_dir: str | os.PathLike[str] | None = None) -> list[str]:
    """Apply pending migrations; returns the filenames applied by this call."""
    root = Path(migrations_dir) if migrations_dir is not None else MIGRATIONS_DIR
    if not root.exists():
        logger.warning("migrations_dir_missing path=%s", root)
        return []

    done = applied_migrations(engine)
    applied: list[str] = []
    for sql_path in _iter_sql_files(root):
        fname = sql_path.name
        if fname in done:
            continue
        sql = sql_path.read_text(encoding="utf-8")
        if not sql.strip():
            continue
        try:
            with engine.begin() as conn:
                _exec_sql_compat(conn, sql)
                conn.execute(
                    sql_text("INSERT INTO schema_migrations (filename, applied_at) VALUES (:f, :at)"),
                    {"f": fname, "at": format_timestamp(utc_now())},
                )
        except Exception:
            logger.error("migration_failed file=%s", fname, exc_info=True)
            raise
        applied.append(fname)
        logger.info("migration_applied file=%s", fname)
    return applied
