import pytest

from engines.progress import calculate_progress_summary


def test_summary_of_no_rows_is_all_zero():
    assert calculate_progress_summary([]) == {
        "total_modules": 0,
        "completed_modules": 0,
        "completion_rate": 0,
        "total_questions_answered": 0,
        "total_correct_answers": 0,
        "overall_accuracy": 0,
    }


def test_summary_counts_only_started_modules():
    rows = [
        {
            "started_at": "2024-05-01",
            "completion_percentage": 100,
            "questions_answered": 10,
            "correct_answers": 8,
        },
        {
            "started_at": "2024-05-02",
            "completion_percentage": 50,
            "questions_answered": 10,
            "correct_answers": 4,
        },
        {"started_at": None, "completion_percentage": 100, "questions_answered": 99, "correct_answers": 99},
    ]

    summary = calculate_progress_summary(rows)

    assert summary["total_modules"] == 3
    assert summary["completed_modules"] == 1
    assert summary["completion_rate"] == pytest.approx(75)
    assert summary["total_questions_answered"] == 20
    assert summary["total_correct_answers"] == 12
    assert summary["overall_accuracy"] == pytest.approx(60)


def test_summary_ignores_non_numeric_counts():
    rows = [{"started_at": "2024-05-01", "completion_percentage": "done", "questions_answered": None}]
    summary = calculate_progress_summary(rows)
    assert summary["completion_rate"] == 0
    assert summary["overall_accuracy"] == 0
