"""Validation predicates for AI-generated learning entities.

Each ``validate_*`` function accepts a decoded payload (mapping with the
upstream camelCase keys) or one of the models from :mod:`schemas` and
returns ``True`` only when the entity can be trusted downstream. None of them
raise; the caller decides whether to reject, retry or regenerate.
"""

import math
from datetime import date
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from schemas import DIFFICULTY_LEVELS, as_payload

__all__ = [
    "validate_module_detail",
    "validate_learning_question",
    "validate_answer_evaluation",
    "validate_answer_history_item",
    "validate_learning_progress",
    "validate_answer_history",
]


def _as_mapping(value: Any) -> Optional[Mapping[str, Any]]:
    value = as_payload(value)
    return value if isinstance(value, Mapping) else None


def _is_filled(value: Any) -> bool:
    """Truthiness of a required field; booleans never count as content."""
    if value is None or isinstance(value, bool):
        return False
    return bool(value)


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    # ints of any size are finite; converting a huge one to float overflows
    return isinstance(value, int) or math.isfinite(value)


def _is_count(value: Any) -> bool:
    if not _is_number(value) or value < 0:
        return False
    return isinstance(value, int) or value.is_integer()


def _is_percentage(value: Any) -> bool:
    return _is_number(value) and 0 <= value <= 100


def _is_text(value: Any) -> bool:
    return isinstance(value, str)


def _is_timestamp(value: Any) -> bool:
    # datetime is a subclass of date
    return isinstance(value, (str, date))


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _optional_fields_ok(data: Mapping[str, Any], checks: Dict[str, Callable[[Any], bool]]) -> bool:
    for field, check in checks.items():
        value = data.get(field)
        if value is not None and not check(value):
            return False
    return True


def validate_module_detail(detail: Any) -> bool:
    data = _as_mapping(detail)
    if data is None:
        return False
    if not all(_is_filled(data.get(field)) for field in ("id", "title", "description")):
        return False
    return _is_sequence(data.get("content"))


def validate_learning_question(question: Any) -> bool:
    data = _as_mapping(question)
    if data is None:
        return False
    if not all(_is_filled(data.get(field)) for field in ("id", "question", "expectedAnswer")):
        return False
    difficulty = data.get("difficulty")
    if difficulty and difficulty not in DIFFICULTY_LEVELS:
        return False
    return True


def validate_answer_evaluation(evaluation: Any) -> bool:
    data = _as_mapping(evaluation)
    if data is None:
        return False
    if not isinstance(data.get("isCorrect"), bool):
        return False
    if not _is_filled(data.get("feedback")):
        return False
    return _is_percentage(data.get("score"))


_HISTORY_REQUIRED = ("id", "questionId", "question", "userAnswer", "correctAnswer")

_HISTORY_OPTIONAL: Dict[str, Callable[[Any], bool]] = {
    "score": _is_percentage,
    "feedback": _is_text,
    "timestamp": _is_timestamp,
    "timeSpent": _is_number,
    "confidence": _is_percentage,
    "category": _is_text,
}


def validate_answer_history_item(item: Any) -> bool:
    """Full check of one answer-history record, optional fields included."""
    data = _as_mapping(item)
    if data is None:
        return False
    if not all(_is_filled(data.get(field)) for field in _HISTORY_REQUIRED):
        return False
    if not isinstance(data.get("isCorrect"), bool):
        return False
    return _optional_fields_ok(data, _HISTORY_OPTIONAL)


def _is_shallow_history_item(item: Any) -> bool:
    data = _as_mapping(item)
    if data is None:
        return False
    return (
        _is_filled(data.get("questionId"))
        and _is_filled(data.get("question"))
        and data.get("userAnswer") is not None
        and data.get("correctAnswer") is not None
        and isinstance(data.get("isCorrect"), bool)
    )


_PROGRESS_OPTIONAL: Dict[str, Callable[[Any], bool]] = {
    "timeSpent": _is_number,
    "masteryLevel": _is_percentage,
    "streak": _is_number,
    "currentLevel": lambda level: level in DIFFICULTY_LEVELS,
    "answerHistory": _is_sequence,
}


def validate_learning_progress(progress: Any) -> bool:
    """Validate a progress record.

    ``answerHistory`` entries only get a shallow check here; use
    :func:`validate_answer_history` for the full per-item rules. Tightening
    this would reject progress rows that were accepted before.
    """
    data = _as_mapping(progress)
    if data is None:
        return False
    if not all(_is_filled(data.get(field)) for field in ("userId", "moduleId", "sessionType", "lastUpdated")):
        return False

    counts = [data.get(field) for field in ("questionsAnswered", "correctAnswers", "totalQuestions")]
    if not all(_is_count(value) for value in counts):
        return False
    questions_answered, correct_answers, _ = counts
    if correct_answers > questions_answered:
        return False

    if not isinstance(data.get("completed"), bool):
        return False
    if not _optional_fields_ok(data, _PROGRESS_OPTIONAL):
        return False

    history = data.get("answerHistory") or ()
    return all(_is_shallow_history_item(entry) for entry in history)


def validate_answer_history(history: Iterable[Any]) -> bool:
    if isinstance(history, (str, bytes, Mapping)) or not isinstance(history, Iterable):
        return False
    return all(validate_answer_history_item(item) for item in history)
