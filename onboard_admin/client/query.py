"""Read-only views over the cached question list.

These are pure functions over ``QuestionStore.items``: the admin table's
search, filters, sort and paging, and the per-path flow a respondent sees.
Nothing here touches the network or mutates the store.
"""

from __future__ import annotations

import math
from typing import Iterable, List, Optional, Sequence, Tuple

from onboard_admin.models.question import OnboardingPath, Question, QuestionStatus, QuestionType

ALL = "all"
PAGE_SIZE = 10

SORT_MODIFIED_DESC = "modified-desc"
SORT_MODIFIED_ASC = "modified-asc"
SORT_DISPLAY_ASC = "display-asc"
SORT_MODES = (SORT_MODIFIED_DESC, SORT_MODIFIED_ASC, SORT_DISPLAY_ASC)


def _check_choice(name: str, value: str, allowed: Sequence[str]) -> None:
    if value != ALL and value not in allowed:
        raise ValueError(f"unknown {name} filter: {value!r}")


def sort_questions(items: Iterable[Question], sort: str = SORT_MODIFIED_DESC) -> List[Question]:
    if sort not in SORT_MODES:
        raise ValueError(f"unknown sort mode: {sort!r}")
    rows = sorted(items, key=lambda q: q.order)
    if sort == SORT_DISPLAY_ASC:
        return rows
    return sorted(rows, key=lambda q: q.updated_at, reverse=sort == SORT_MODIFIED_DESC)


def select_questions(
    items: Iterable[Question],
    *,
    search: Optional[str] = None,
    path: str = ALL,
    question_type: str = ALL,
    status: str = ALL,
    sort: str = SORT_MODIFIED_DESC,
) -> List[Question]:
    """Filter and sort questions the way the admin table lists them.

    ``search`` matches case-insensitively against the text or the id. The
    ``path``, ``question_type`` and ``status`` filters accept ``"all"`` to disable them.
    """
    _check_choice("path", path, OnboardingPath.ALL)
    _check_choice("type", question_type, QuestionType.ALL)
    _check_choice("status", status, QuestionStatus.ALL)
    rows = sort_questions(items, sort)
    needle = (search or "").strip().lower()
    if needle:
        rows = [q for q in rows if needle in q.text.lower() or needle in q.id.lower()]
    if path != ALL:
        rows = [q for q in rows if path in q.paths]
    if question_type != ALL:
        rows = [q for q in rows if q.type == question_type]
    if status != ALL:
        rows = [q for q in rows if q.status == status]
    return rows


def paginate(rows: Sequence[Question], page: int = 1, page_size: int = PAGE_SIZE) -> Tuple[List[Question], int]:
    """Return one page of ``rows`` and the page count (at least 1)."""
    if page_size < 1:
        raise ValueError("page_size must be >= 1")
    total_pages = max(1, math.ceil(len(rows) / page_size))
    page = min(max(1, page), total_pages)
    start = (page - 1) * page_size
    return list(rows[start:start + page_size]), total_pages


def flow(items: Iterable[Question], path: str, *, include_inactive: bool = False) -> List[Question]:
    """Questions a respondent on ``path`` is shown, in display order.

    Only active questions are part of the flow unless ``include_inactive`` is
    set, which is how the editor previews drafts in place.
    """
    if path not in OnboardingPath.ALL:
        raise ValueError(f"unknown onboarding path: {path!r}")
    rows = [q for q in items if path in q.paths]
    if not include_inactive:
        rows = [q for q in rows if q.status == QuestionStatus.ACTIVE]
    return sorted(rows, key=lambda q: (q.order, q.created_at))


__all__ = [
    "ALL",
    "PAGE_SIZE",
    "SORT_MODES",
    "flow",
    "paginate",
    "select_questions",
    "sort_questions",
]
