"""Canonicalisation of stored and transported records.

Every question or response crossing a boundary (HTTP gateway, repository
row mapping) passes through these helpers so consumers always see fully
populated records. Default filling lives here and nowhere else.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional
import logging

from onboard_admin.models.question import OnboardingPath, Question, QuestionStatus, QuestionType
from onboard_admin.models.response_session import ResponseSession, ResponseStats

logger = logging.getLogger(__name__)

# Smallest step used to keep updatedAt strictly increasing on the same record
TIMESTAMP_STEP = timedelta(milliseconds=1)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def next_timestamp(previous: Optional[datetime], now: Optional[datetime] = None) -> datetime:
    """Return ``now`` unless it does not move past ``previous``."""
    current = now or utc_now()
    if previous is not None and current <= previous:
        return previous + TIMESTAMP_STEP
    return current


def format_timestamp(value: datetime) -> str:
    """Fixed-width UTC ISO form; sorts lexicographically in storage."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def parse_timestamp(value: Any, default: Optional[datetime] = None) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return parse_timestamp(datetime.fromisoformat(text))
        except ValueError:
            logger.warning("canonical.timestamp.unparseable value=%s", value)
    return default or utc_now()


def _unwrap(raw: Any, key: str) -> Mapping[str, Any]:
    if not isinstance(raw, Mapping):
        raise ValueError(f"expected an object, got {type(raw).__name__}")
    inner = raw.get(key)
    if isinstance(inner, Mapping) and "success" in raw:
        return inner
    return raw


def _identifier(raw: Mapping[str, Any]) -> str:
    ident = raw.get("id") or raw.get("_id")
    if ident is None or not str(ident).strip():
        raise ValueError("record has no id")
    return str(ident)


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [str(v) for v in value if v is not None]


def canonicalize_question(raw: Any, *, fallback_order: Optional[int] = None) -> Question:
    """Build a fully populated Question from a loosely shaped mapping.

    Accepts camelCase or snake_case keys, a Mongo-style ``_id`` and the legacy
    ``{"success": true, "question": {...}}`` envelope.
    """
    data = _unwrap(raw, "question")
    now = utc_now()

    qtype = data.get("type")
    if qtype not in QuestionType.ALL:
        qtype = QuestionType.TEXT
    status = data.get("status")
    if status not in QuestionStatus.ALL:
        status = QuestionStatus.DRAFT
    paths = [p for p in _string_list(data.get("paths")) if p in OnboardingPath.ALL]

    order = data.get("order")
    if isinstance(order, bool) or not isinstance(order, int) or order < 1:
        order = fallback_order if fallback_order and fallback_order > 0 else 1

    help_text = data.get("helpText", data.get("help_text"))
    created_at = parse_timestamp(data.get("createdAt", data.get("created_at")), now)
    updated_at = parse_timestamp(data.get("updatedAt", data.get("updated_at")), created_at)

    return Question(
        id=_identifier(data),
        text=str(data.get("text") or ""),
        type=qtype,
        paths=paths,
        required=bool(data.get("required") or False),
        help_text=str(help_text or ""),
        status=status,
        options=_string_list(data.get("options")),
        order=order,
        created_at=created_at,
        updated_at=updated_at,
    )


def _answer_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return str(value)


def canonicalize_response_session(raw: Any) -> ResponseSession:
    data = _unwrap(raw, "response")
    now = utc_now()
    answers = []
    for item in data.get("responses") or []:
        if not isinstance(item, Mapping):
            continue
        qid = item.get("questionId", item.get("question_id"))
        if qid is None:
            continue
        answers.append({"question_id": str(qid), "answer": _answer_text(item.get("answer"))})
    user_info = data.get("userInfo", data.get("user_info"))
    if not isinstance(user_info, Mapping):
        user_info = {}
    created_at = parse_timestamp(data.get("createdAt", data.get("created_at")), now)
    return ResponseSession(
        id=_identifier(data),
        session_id=str(data.get("sessionId", data.get("session_id")) or ""),
        responses=answers,
        completed=bool(data.get("completed") or False),
        user_info={
            "ip": user_info.get("ip"),
            "user_agent": user_info.get("userAgent", user_info.get("user_agent")),
        },
        business_path=str(data.get("businessPath", data.get("business_path")) or "Unknown"),
        created_at=created_at,
        updated_at=parse_timestamp(data.get("updatedAt", data.get("updated_at")), created_at),
    )


def canonicalize_stats(raw: Any) -> ResponseStats:
    if not isinstance(raw, Mapping):
        raise ValueError("stats payload must be an object")
    return ResponseStats.model_validate(raw)


__all__ = [
    "utc_now",
    "next_timestamp",
    "format_timestamp",
    "parse_timestamp",
    "canonicalize_question",
    "canonicalize_response_session",
    "canonicalize_stats",
]
