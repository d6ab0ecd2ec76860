"""Question repository helpers for the backing service.

Encapsulates DB reads/writes used by the question routes, keeping the HTTP
layer free of direct SQL. Failures are logged at ERROR with exc_info and
re-raised so routes can map them to problem responses.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import bindparam, text as sql_text

from onboard_admin.db.base import get_engine
from onboard_admin.logic.canonical import canonicalize_question, format_timestamp, next_timestamp, utc_now
from onboard_admin.logic.order_sequences import next_order, renumber
from onboard_admin.models.question import Question, QuestionDraft

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id, text, question_type, paths, required, help_text, status, options, "
    "question_order, created_at, updated_at"
)

_UPDATE_SQL = """
    UPDATE questions
    SET text = :text, question_type = :qtype, paths = :paths, required = :required,
        help_text = :help_text, status = :status, options = :options,
        question_order = :ord, updated_at = :updated_at
    WHERE id = :id
"""


def _row_to_question(row: Any) -> Question:
    return canonicalize_question(
        {
            "id": row[0],
            "text": row[1],
            "type": row[2],
            "paths": json.loads(row[3] or "[]"),
            "required": bool(row[4]),
            "help_text": row[5],
            "status": row[6],
            "options": json.loads(row[7] or "[]"),
            "order": int(row[8]) if row[8] is not None else None,
            "created_at": row[9],
            "updated_at": row[10],
        }
    )


def _params(question: Question) -> Dict[str, Any]:
    return {
        "id": question.id,
        "text": question.text,
        "qtype": question.type,
        "paths": json.dumps(list(question.paths)),
        "required": bool(question.required),
        "help_text": question.help_text,
        "status": question.status,
        "options": json.dumps(list(question.options)),
        "ord": int(question.order),
        "created_at": format_timestamp(question.created_at),
        "updated_at": format_timestamp(question.updated_at),
    }


def list_questions() -> List[Question]:
    """Return every question ascending by order, ties broken by creation time."""
    eng = get_engine()
    with eng.connect() as conn:
        rows = conn.execute(
            sql_text(f"SELECT {_COLUMNS} FROM questions ORDER BY question_order ASC, created_at ASC, id ASC")
        ).fetchall()
    return [_row_to_question(r) for r in rows]


def get_question(question_id: str) -> Optional[Question]:
    eng = get_engine()
    with eng.connect() as conn:
        row = conn.execute(
            sql_text(f"SELECT {_COLUMNS} FROM questions WHERE id = :qid"),
            {"qid": str(question_id)},
        ).fetchone()
    return _row_to_question(row) if row else None


def get_next_question_order() -> int:
    """Return the order that appends after every stored question."""
    eng = get_engine()
    with eng.connect() as conn:
        rows = conn.execute(sql_text("SELECT id, question_order FROM questions")).fetchall()
    return next_order({"id": r[0], "order": r[1]} for r in rows)


def insert_question(question: Question) -> Question:
    eng = get_engine()
    try:
        with eng.begin() as conn:
            conn.execute(
                sql_text(
                    f"""
                    INSERT INTO questions ({_COLUMNS})
                    VALUES (:id, :text, :qtype, :paths, :required, :help_text, :status, :options, :ord, :created_at, :updated_at)
                    """
                ),
                _params(question),
            )
    except Exception:
        logger.error("insert_question failed qid=%s", question.id, exc_info=True)
        raise
    logger.info("repository_questions.insert qid=%s order=%s", question.id, question.order)
    return question


def save_question(question: Question) -> None:
    """Overwrite every mutable column of an existing question."""
    eng = get_engine()
    try:
        with eng.begin() as conn:
            conn.execute(sql_text(_UPDATE_SQL), _params(question))
    except Exception:
        logger.error("save_question failed qid=%s", question.id, exc_info=True)
        raise


def delete_question(question_id: str) -> bool:
    """Delete a question; False when no row matched."""
    eng = get_engine()
    try:
        with eng.begin() as conn:
            result = conn.execute(
                sql_text("DELETE FROM questions WHERE id = :qid"),
                {"qid": str(question_id)},
            )
    except Exception:
        logger.error("delete_question failed qid=%s", question_id, exc_info=True)
        raise
    return (result.rowcount or 0) > 0


def bulk_update_questions(ids: Iterable[str], changes: Mapping[str, Any]) -> int:
    """Merge ``changes`` into every existing id; unknown ids are ignored.

    Each merged record must still be a valid question. One invalid record
    raises pydantic's ValidationError and nothing is written. Returns the
    matched count.
    """
    wanted = list(dict.fromkeys(str(i) for i in ids))
    if not wanted:
        return 0
    select = sql_text(f"SELECT {_COLUMNS} FROM questions WHERE id IN :ids").bindparams(
        bindparam("ids", expanding=True)
    )
    eng = get_engine()
    try:
        with eng.begin() as conn:
            current = [_row_to_question(r) for r in conn.execute(select, {"ids": wanted}).fetchall()]
            merged = []
            for question in current:
                updated = question.model_copy(
                    update={**changes, "updated_at": next_timestamp(question.updated_at)}
                )
                QuestionDraft.from_question(updated)
                merged.append(updated)
            for question in merged:
                conn.execute(sql_text(_UPDATE_SQL), _params(question))
    except PydanticValidationError:
        logger.info("repository_questions.bulk_update.rejected count=%s fields=%s", len(wanted), sorted(changes))
        raise
    except Exception:
        logger.error("bulk_update_questions failed count=%s", len(wanted), exc_info=True)
        raise
    logger.info("repository_questions.bulk_update requested=%s matched=%s", len(wanted), len(merged))
    return len(merged)


def reorder_questions(ordered_ids: Sequence[str]) -> Dict[str, int]:
    """Persist contiguous 1-based orders following ``ordered_ids``.

    Uses the shared ``renumber`` rule over the full collection (in list
    order), so ids missing from the request are appended exactly as the
    client's optimistic pass appends them. Runs in one transaction.
    """
    eng = get_engine()
    try:
        with eng.begin() as conn:
            rows = conn.execute(
                sql_text("SELECT id, question_order FROM questions ORDER BY question_order ASC, created_at ASC, id ASC")
            ).fetchall()
            collection = [{"id": str(r[0]), "order": int(r[1]) if r[1] is not None else None} for r in rows]
            mapping = renumber(list(ordered_ids), collection)
            stamp = format_timestamp(utc_now())
            for item in collection:
                new_order = mapping[item["id"]]
                if new_order == item["order"]:
                    continue
                conn.execute(
                    sql_text("UPDATE questions SET question_order = :ord, updated_at = :ts WHERE id = :qid"),
                    {"ord": int(new_order), "ts": stamp, "qid": item["id"]},
                )
    except Exception:
        logger.error("reorder_questions failed count=%s", len(ordered_ids), exc_info=True)
        raise
    logger.info(
        "repository_questions.reorder requested=%s total=%s",
        len(ordered_ids),
        len(mapping),
    )
    return mapping


__all__ = [
    "list_questions",
    "get_question",
    "get_next_question_order",
    "insert_question",
    "save_question",
    "delete_question",
    "bulk_update_questions",
    "reorder_questions",
]
