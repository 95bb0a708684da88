from engines.fallback import (
    generate_fallback_chat_message,
    generate_fallback_module_detail,
    generate_fallback_questions,
)
from engines.resources import extract_resources_from_content
from engines.validation import validate_learning_question, validate_module_detail
from schemas import ResourceType


def test_fallback_module_detail_passes_validation():
    detail = generate_fallback_module_detail(
        {"id": "mod-9", "title": "SQL入門", "description": "SQLの基礎", "learning_objectives": ["SELECT文を書く"]}
    )

    assert validate_module_detail(detail)
    assert detail["id"] == "mod-9"
    assert [section["id"] for section in detail["content"]] == ["intro", "temp-content"]
    assert "SELECT文を書く" in detail["content"][0]["content"]
    assert detail["learningObjectives"] == ["SELECT文を書く"]


def test_fallback_module_detail_without_catalogue_data():
    detail = generate_fallback_module_detail({})
    assert validate_module_detail(detail)
    assert detail["id"] == "fallback-module"
    assert detail["learningObjectives"] == ["このモジュールを学ぶ"]


def test_fallback_module_resource_is_extracted():
    resources = extract_resources_from_content(generate_fallback_module_detail({"title": "SQL入門"}))
    assert len(resources) == 1
    assert resources[0].url == "https://example.com"
    assert resources[0].relevance == 1
    assert resources[0].type is ResourceType.OTHER


def test_fallback_questions_are_valid():
    detail = generate_fallback_module_detail({"title": "SQL入門", "learningObjectives": ["JOINを理解する"]})
    questions = generate_fallback_questions(detail)

    assert [question["id"] for question in questions] == ["fallback-q1", "fallback-q2", "fallback-q3"]
    assert all(validate_learning_question(question) for question in questions)
    assert "SQL入門" in questions[0]["question"]
    assert "JOINを理解する" in questions[1]["question"]


def test_fallback_questions_without_objectives():
    questions = generate_fallback_questions({"title": "SQL入門"})
    assert questions[1]["question"].startswith("このトピック")


def test_fallback_chat_message_per_session():
    quiz = generate_fallback_chat_message("quiz", "timeout")
    assert "エラー詳細: timeout" in quiz
    assert quiz.endswith("クイズセッションでは、モジュール内容に関連する質問に挑戦できます。")

    unknown = generate_fallback_chat_message("other")
    assert "一時的なシステムエラーが発生しました。" in unknown
    assert unknown.endswith("ご不便をおかけして申し訳ありません。")
