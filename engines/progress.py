"""Aggregate statistics over persisted progress rows."""

from typing import Any, Dict, Iterable, Mapping


def _number(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return value


def calculate_progress_summary(progress_rows: Iterable[Mapping[str, Any]]) -> Dict[str, Any]:
    """Summarise progress rows from the data store.

    Only modules with a ``started_at`` timestamp count towards completion and
    accuracy; ``total_modules`` counts every row.
    """
    rows = [row for row in progress_rows if isinstance(row, Mapping)]
    started = [row for row in rows if row.get("started_at")]

    answered = sum(_number(row.get("questions_answered")) for row in started)
    correct = sum(_number(row.get("correct_answers")) for row in started)
    completion_total = sum(_number(row.get("completion_percentage")) for row in started)

    return {
        "total_modules": len(rows),
        "completed_modules": sum(1 for row in started if row.get("completion_percentage") == 100),
        "completion_rate": completion_total / len(started) if started else 0,
        "total_questions_answered": answered,
        "total_correct_answers": correct,
        "overall_accuracy": correct / answered * 100 if answered > 0 else 0,
    }
