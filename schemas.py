"""Pydantic schemas for AI-generated learning entities and helper utilities."""

from __future__ import annotations

import json
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Literal, Type, TypeVar

from pydantic import BaseModel, Field, ValidationError

__all__ = [
    "DIFFICULTY_LEVELS",
    "ResourceType",
    "SessionType",
    "RawResource",
    "ModuleSection",
    "ModuleDetail",
    "LearningQuestion",
    "AnswerEvaluation",
    "AnswerHistoryItem",
    "LearningProgress",
    "RelatedResource",
    "as_payload",
    "extract_json_object",
    "parse_json_safe",
]

Difficulty = Literal["beginner", "intermediate", "advanced"]
DIFFICULTY_LEVELS = ("beginner", "intermediate", "advanced")


class ResourceType(str, Enum):
    """Stable vocabulary for related resources; values may be persisted."""

    OFFICIAL_DOCUMENTATION = "official_documentation"
    TUTORIAL = "tutorial"
    EXAMPLE = "example"
    ARTICLE = "article"
    VIDEO = "video"
    GITHUB = "github"
    COMMUNITY = "community"
    BOOK = "book"
    OTHER = "other"


class SessionType(str, Enum):
    PRACTICE = "practice"
    QUIZ = "quiz"
    REVIEW = "review"
    FEEDBACK = "feedback"


_LOOSE = {"extra": "allow", "populate_by_name": True}


class RawResource(BaseModel):
    """Resource entry as the content service emits it; every field is optional."""

    title: str | None = None
    url: str | None = None
    description: str | None = None
    type: str | None = None
    relevance: float | None = None
    tags: list[str] | None = None

    model_config = _LOOSE


class ModuleSection(BaseModel):
    id: str
    title: str
    content: str | None = None
    summary: str | None = None
    key_points: list[str] | None = Field(default=None, alias="keyPoints")
    resources: list[RawResource] | None = None

    model_config = _LOOSE


class ModuleDetail(BaseModel):
    id: str
    title: str
    description: str
    content: list[Any] = Field(default_factory=list)
    sections: list[ModuleSection] | None = None
    resources: list[RawResource] | None = None
    difficulty: Difficulty | None = None
    learning_objectives: list[str] | None = Field(default=None, alias="learningObjectives")
    prerequisites: list[str] | None = None
    estimated_duration: str | None = Field(default=None, alias="estimatedDuration")
    category: str | None = None
    estimated_time: int | None = Field(default=None, alias="estimatedTime")

    model_config = _LOOSE


class LearningQuestion(BaseModel):
    id: str
    question: str
    expected_answer: str = Field(alias="expectedAnswer")
    answer: str | None = None
    explanation: str | None = None
    hint: str | None = None
    difficulty: Difficulty | None = None
    category: str | None = None
    tags: list[str] | None = None

    model_config = _LOOSE


class AnswerEvaluation(BaseModel):
    is_correct: bool = Field(alias="isCorrect")
    score: float = Field(description="Evaluation score on a 0-100 scale.")
    feedback: str
    correct_answer: str | None = Field(default=None, alias="correctAnswer")
    explanation: str | None = None
    further_study_tips: str | None = Field(default=None, alias="furtherStudyTips")

    model_config = _LOOSE


class AnswerHistoryItem(BaseModel):
    id: str
    question_id: str = Field(alias="questionId")
    question: str
    user_answer: str = Field(alias="userAnswer")
    correct_answer: str = Field(alias="correctAnswer")
    is_correct: bool = Field(alias="isCorrect")
    score: float | None = None
    feedback: str | None = None
    timestamp: datetime | date | str | None = None
    time_spent: float | None = Field(default=None, alias="timeSpent")
    confidence: float | None = None
    category: str | None = None

    model_config = _LOOSE


class LearningProgress(BaseModel):
    user_id: str = Field(alias="userId")
    module_id: str = Field(alias="moduleId")
    session_type: str = Field(alias="sessionType")
    questions_answered: int = Field(alias="questionsAnswered")
    correct_answers: int = Field(alias="correctAnswers")
    total_questions: int = Field(alias="totalQuestions")
    completed: bool
    last_updated: datetime | str = Field(alias="lastUpdated")
    time_spent: float | None = Field(default=None, alias="timeSpent")
    mastery_level: float | None = Field(default=None, alias="masteryLevel")
    streak: int | None = None
    current_level: Difficulty | None = Field(default=None, alias="currentLevel")
    answer_history: list[AnswerHistoryItem] | None = Field(default=None, alias="answerHistory")

    model_config = _LOOSE


class RelatedResource(BaseModel):
    """Resource derived from generated module content."""

    id: str
    title: str
    url: str = Field(min_length=1)
    description: str = ""
    type: ResourceType = ResourceType.OTHER
    relevance: int = Field(default=0, ge=0, le=100)
    section_id: str | None = Field(
        default=None,
        alias="sectionId",
        description="Identifier of the section the resource was attached to; never dereferenced.",
    )
    tags: list[str] = Field(default_factory=list)

    model_config = {"frozen": True, "populate_by_name": True}


def as_payload(value: Any) -> Any:
    """Return a plain mapping for pydantic models, leaving other values untouched."""

    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, exclude_none=True)
    return value


_T = TypeVar("_T", bound=BaseModel)


def _find_first_json_object(text: str) -> tuple[str, int, int]:
    start = text.find("{")
    while start != -1:
        depth = 0
        for idx in range(start, len(text)):
            char = text[idx]
            if char == "{" and (idx == 0 or text[idx - 1] != "\\"):
                depth += 1
            elif char == "}" and (idx == 0 or text[idx - 1] != "\\"):
                depth -= 1
                if depth == 0:
                    candidate = text[start : idx + 1]
                    try:
                        json.loads(candidate)
                    except ValueError:
                        break
                    return candidate, start, idx + 1
        start = text.find("{", start + 1)
    raise ValueError("No JSON object found in provided text")


def extract_json_object(text: str) -> Dict[str, Any]:
    """Decode the first JSON object in ``text``.

    Generated replies often wrap the payload in prose or code fences; the
    surrounding text is ignored. Raises ``ValueError`` when no object is found.
    """

    try:
        data = json.loads(text)
    except ValueError:
        snippet, _, _ = _find_first_json_object(text)
        data = json.loads(snippet)
    if not isinstance(data, dict):
        snippet, _, _ = _find_first_json_object(text)
        data = json.loads(snippet)
    return data


def parse_json_safe(text: str, model: Type[_T], *, strict: bool | None = None) -> _T:
    """Parse a model reply into ``model``.

    Prose before the JSON object is tolerated; anything after it is not, since
    a reply that keeps talking may hold a second, conflicting object. With
    ``strict`` no type coercion happens (``"80"`` is not a score). Raises
    pydantic's ``ValidationError`` (a ``ValueError``) when the text cannot be
    read as ``model``.
    """

    try:
        return model.model_validate_json(text, strict=strict)
    except ValidationError as exc:
        direct_error = exc

    try:
        snippet, _, end = _find_first_json_object(text)
    except ValueError:
        raise direct_error from None

    if text[end:].strip():
        raise direct_error
    return model.model_validate_json(snippet, strict=strict)
