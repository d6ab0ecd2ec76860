"""Question record shapes shared by the sync client and the backing service.

`Question` is the lax read model: every field has a default so records from
older documents still load. `QuestionDraft` and `QuestionPatch` are the write
models; the draft enforces that select questions carry options.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class QuestionType:
    TEXT = "text"
    SINGLE_SELECT = "single_select"
    MULTI_SELECT = "multi_select"
    DATE = "date"

    ALL = (TEXT, SINGLE_SELECT, MULTI_SELECT, DATE)
    SELECT = (SINGLE_SELECT, MULTI_SELECT)


class QuestionStatus:
    ACTIVE = "active"
    DRAFT = "draft"
    INACTIVE = "inactive"

    ALL = (ACTIVE, DRAFT, INACTIVE)


class OnboardingPath:
    NEW_BUSINESS = "New Business"
    EXISTING_BUSINESS = "Existing Business"
    GROWTH_STAGE = "Growth Stage"

    ALL = (NEW_BUSINESS, EXISTING_BUSINESS, GROWTH_STAGE)


QuestionTypeName = Literal["text", "single_select", "multi_select", "date"]
QuestionStatusName = Literal["active", "draft", "inactive"]
OnboardingPathName = Literal["New Business", "Existing Business", "Growth Stage"]


class WireModel(BaseModel):
    """Base for records exchanged as camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self, **kwargs: Any) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, **kwargs)


def new_question_id() -> str:
    """Return a fresh client-side question id such as ``Q-1A2B3C4D``."""
    return f"Q-{uuid.uuid4().hex[:8].upper()}"


def validate_question_fields(question_type: str, options: Optional[List[str]]) -> None:
    """Raise ValueError when a select question has no usable options."""
    if question_type in QuestionType.SELECT:
        usable = [o for o in (options or []) if isinstance(o, str) and o.strip()]
        if not usable:
            raise ValueError(f"options must be a non-empty list for {question_type} questions")


class Question(WireModel):
    id: str
    text: str = ""
    type: QuestionTypeName = "text"
    paths: List[OnboardingPathName] = Field(default_factory=list)
    required: bool = False
    help_text: str = ""
    status: QuestionStatusName = "draft"
    options: List[str] = Field(default_factory=list)
    order: int = Field(default=1, ge=1)
    created_at: datetime
    updated_at: datetime


class QuestionDraft(WireModel):
    """Create payload. ``id`` and ``order`` are advisory; the server may replace them."""

    id: Optional[str] = None
    text: str
    type: QuestionTypeName = "text"
    paths: List[OnboardingPathName] = Field(default_factory=list)
    required: bool = False
    help_text: str = ""
    status: QuestionStatusName = "draft"
    options: List[str] = Field(default_factory=list)
    order: Optional[int] = None

    @model_validator(mode="after")
    def _select_types_need_options(self) -> "QuestionDraft":
        validate_question_fields(self.type, self.options)
        return self

    @classmethod
    def from_question(cls, question: Question) -> "QuestionDraft":
        return cls.model_validate(
            question.model_dump(exclude={"created_at", "updated_at"})
        )


class QuestionPatch(WireModel):
    """Partial update. Unknown and protected keys (id, timestamps) are dropped."""

    text: Optional[str] = None
    type: Optional[QuestionTypeName] = None
    paths: Optional[List[OnboardingPathName]] = None
    required: Optional[bool] = None
    help_text: Optional[str] = None
    status: Optional[QuestionStatusName] = None
    options: Optional[List[str]] = None
    order: Optional[int] = Field(default=None, ge=1)

    def changes(self) -> Dict[str, Any]:
        """Return the supplied fields keyed by attribute name."""
        return self.model_dump(exclude_unset=True, exclude_none=True)

    def wire_changes(self) -> Dict[str, Any]:
        return self.to_wire(exclude_unset=True, exclude_none=True)


class BulkUpdateRequest(WireModel):
    ids: List[str]
    patch: Dict[str, Any]


class ReorderRequest(WireModel):
    ordered_ids: List[str]


__all__ = [
    "QuestionType",
    "QuestionStatus",
    "OnboardingPath",
    "WireModel",
    "Question",
    "QuestionDraft",
    "QuestionPatch",
    "BulkUpdateRequest",
    "ReorderRequest",
    "new_question_id",
    "validate_question_fields",
]
