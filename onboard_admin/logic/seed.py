"""Starter question set for a fresh database."""

from __future__ import annotations

import logging
from typing import List

from sqlalchemy import text as sql_text

from onboard_admin.db.base import get_engine
from onboard_admin.logic.canonical import canonicalize_question
from onboard_admin.logic.repository_questions import insert_question
from onboard_admin.models.question import Question

logger = logging.getLogger(__name__)

SEED_QUESTIONS = [
    {
        "id": "Q-1234",
        "text": "What is your primary business idea or concept?",
        "type": "text",
        "paths": ["New Business"],
        "required": True,
        "helpText": "This helps us understand your business foundation and tailor recommendations.",
        "status": "active",
        "options": [],
        "order": 1,
        "createdAt": "2025-01-10T10:00:00.000Z",
        "updatedAt": "2025-01-15T14:56:00.000Z",
    },
    {
        "id": "Q-2235",
        "text": "Which industry best describes your business?",
        "type": "single_select",
        "paths": ["New Business", "Existing Business", "Growth Stage"],
        "required": True,
        "helpText": "",
        "status": "active",
        "options": ["Technology", "Retail", "Healthcare", "Other"],
        "order": 2,
        "createdAt": "2025-01-11T09:30:00.000Z",
        "updatedAt": "2025-01-14T16:10:00.000Z",
    },
    {
        "id": "Q-3236",
        "text": "What are your primary revenue streams?",
        "type": "multi_select",
        "paths": ["Existing Business"],
        "required": False,
        "helpText": "",
        "status": "draft",
        "options": ["Subscriptions", "One-time Sales", "Ads", "Services"],
        "order": 3,
        "createdAt": "2025-01-12T08:45:00.000Z",
        "updatedAt": "2025-01-13T13:35:00.000Z",
    },
    {
        "id": "Q-4237",
        "text": "When did you start your business?",
        "type": "date",
        "paths": ["Existing Business"],
        "required": False,
        "helpText": "",
        "status": "inactive",
        "options": [],
        "order": 4,
        "createdAt": "2025-01-12T08:45:00.000Z",
        "updatedAt": "2025-01-12T12:05:00.000Z",
    },
]


def seed_questions(replace: bool = True) -> List[Question]:
    """Insert the starter questions, clearing existing ones first when ``replace``."""
    if replace:
        with get_engine().begin() as conn:
            conn.execute(sql_text("DELETE FROM questions"))
    seeded = [insert_question(canonicalize_question(raw)) for raw in SEED_QUESTIONS]
    logger.info("seed.questions.done count=%s replace=%s", len(seeded), replace)
    return seeded


__all__ = ["SEED_QUESTIONS", "seed_questions"]
