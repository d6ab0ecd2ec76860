"""Response session repository helpers (list, read, delete, stats).

Response sessions are written by the public onboarding flow; ``insert_response``
exists for that collaborator and for seeding.
"""

from __future__ import annotations

import json
import logging
import math
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from sqlalchemy import text as sql_text

from onboard_admin.db.base import get_engine
from onboard_admin.logic.canonical import canonicalize_response_session, format_timestamp, utc_now
from onboard_admin.models.response_session import PathCount, ResponsePage, ResponseSession, ResponseStats

logger = logging.getLogger(__name__)

_COLUMNS = "id, session_id, answers, completed, user_info, business_path, created_at, updated_at"
RECENT_WINDOW = timedelta(days=7)


def _row_to_session(row: Any) -> ResponseSession:
    return canonicalize_response_session(
        {
            "id": row[0],
            "session_id": row[1],
            "responses": json.loads(row[2] or "[]"),
            "completed": bool(row[3]),
            "user_info": json.loads(row[4] or "{}"),
            "business_path": row[5],
            "created_at": row[6],
            "updated_at": row[7],
        }
    )


def _filters(path: Optional[str], completed: Optional[str]) -> tuple[str, Dict[str, Any]]:
    clauses = []
    params: Dict[str, Any] = {}
    if path and path != "all":
        clauses.append("business_path = :path")
        params["path"] = path
    if completed and completed != "all":
        clauses.append("completed = :completed")
        params["completed"] = completed == "true"
    where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
    return where, params


def list_responses(
    *,
    page: int = 1,
    limit: int = 10,
    path: Optional[str] = None,
    completed: Optional[str] = None,
) -> ResponsePage:
    """Return one page of sessions, newest first."""
    where, params = _filters(path, completed)
    eng = get_engine()
    with eng.connect() as conn:
        total = conn.execute(sql_text(f"SELECT COUNT(*) FROM responses{where}"), params).scalar() or 0
        rows = conn.execute(
            sql_text(
                f"SELECT {_COLUMNS} FROM responses{where} ORDER BY created_at DESC, id DESC LIMIT :limit OFFSET :offset"
            ),
            {**params, "limit": int(limit), "offset": int((page - 1) * limit)},
        ).fetchall()
    return ResponsePage(
        responses=[_row_to_session(r) for r in rows],
        total=int(total),
        page=page,
        limit=limit,
        total_pages=math.ceil(int(total) / limit) if limit else 0,
    )


def get_response(response_id: str) -> Optional[ResponseSession]:
    eng = get_engine()
    with eng.connect() as conn:
        row = conn.execute(
            sql_text(f"SELECT {_COLUMNS} FROM responses WHERE id = :rid"),
            {"rid": str(response_id)},
        ).fetchone()
    return _row_to_session(row) if row else None


def delete_response(response_id: str) -> bool:
    eng = get_engine()
    try:
        with eng.begin() as conn:
            result = conn.execute(sql_text("DELETE FROM responses WHERE id = :rid"), {"rid": str(response_id)})
    except Exception:
        logger.error("delete_response failed rid=%s", response_id, exc_info=True)
        raise
    return (result.rowcount or 0) > 0


def insert_response(session: ResponseSession) -> ResponseSession:
    eng = get_engine()
    try:
        with eng.begin() as conn:
            conn.execute(
                sql_text(
                    f"""
                    INSERT INTO responses ({_COLUMNS})
                    VALUES (:id, :session_id, :answers, :completed, :user_info, :business_path, :created_at, :updated_at)
                    """
                ),
                {
                    "id": session.id,
                    "session_id": session.session_id,
                    "answers": json.dumps([r.to_wire() for r in session.responses]),
                    "completed": bool(session.completed),
                    "user_info": json.dumps(session.user_info.to_wire(exclude_none=True)),
                    "business_path": session.business_path,
                    "created_at": format_timestamp(session.created_at),
                    "updated_at": format_timestamp(session.updated_at),
                },
            )
    except Exception:
        logger.error("insert_response failed rid=%s", session.id, exc_info=True)
        raise
    return session


def response_stats(now: Optional[datetime] = None) -> ResponseStats:
    """Aggregate counts, recent activity (last 7 days) and a per-path breakdown."""
    since = format_timestamp((now or utc_now()) - RECENT_WINDOW)
    eng = get_engine()
    with eng.connect() as conn:
        total = int(conn.execute(sql_text("SELECT COUNT(*) FROM responses")).scalar() or 0)
        completed = int(
            conn.execute(sql_text("SELECT COUNT(*) FROM responses WHERE completed = :c"), {"c": True}).scalar() or 0
        )
        recent = int(
            conn.execute(sql_text("SELECT COUNT(*) FROM responses WHERE created_at >= :since"), {"since": since}).scalar()
            or 0
        )
        rows = conn.execute(
            sql_text(
                "SELECT business_path, COUNT(*) AS n FROM responses GROUP BY business_path ORDER BY n DESC, business_path ASC"
            )
        ).fetchall()
    # NULL and empty paths are merged into one "Unknown" bucket
    buckets: Dict[str, int] = {}
    for path, count in rows:
        key = path or "Unknown"
        buckets[key] = buckets.get(key, 0) + int(count)
    breakdown = sorted(buckets.items(), key=lambda kv: (-kv[1], kv[0]))
    return ResponseStats(
        total_responses=total,
        completed_responses=completed,
        incomplete_responses=total - completed,
        recent_responses=recent,
        path_breakdown=[PathCount(path=p, count=n) for p, n in breakdown],
    )


__all__ = [
    "list_responses",
    "get_response",
    "delete_response",
    "insert_response",
    "response_stats",
]
