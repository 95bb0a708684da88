"""Placeholder content served when generation fails or is rejected.

The payloads mirror what the content service would return so that callers
can run them through the same validators and resource extraction.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence

from schemas import LearningQuestion, ModuleDetail, ModuleSection, RawResource, SessionType, as_payload

FALLBACK_EXPLANATION = (
    "これはフォールバック質問です。コンテンツ生成に問題があったため、基本的な質問のみ表示しています。"
)

_SESSION_HINTS = {
    SessionType.PRACTICE: "このセッションは練習用ですので、基本的な質問から始めてみてはいかがでしょうか。",
    SessionType.QUIZ: "クイズセッションでは、モジュール内容に関連する質問に挑戦できます。",
    SessionType.REVIEW: "このレビューセッションでは、学習内容の復習ができます。",
    SessionType.FEEDBACK: "フィードバックセッションでは、学習プロセスについての振り返りを行えます。",
}


def _objectives(value: Any) -> List[str]:
    if isinstance(value, (list, tuple)):
        objectives = [str(item) for item in value if item]
        if objectives:
            return objectives
    return []


def generate_fallback_module_detail(module_info: Mapping[str, Any]) -> Dict[str, Any]:
    """Build a minimal module payload from the module's catalogue entry."""
    title = str(module_info.get("title") or "このモジュール")
    description = str(module_info.get("description") or title)
    objectives = _objectives(
        module_info.get("learning_objectives") or module_info.get("learningObjectives")
    ) or ["このモジュールを学ぶ"]
    objective_lines = "\n".join(f"- {objective}" for objective in objectives)

    sections = [
        ModuleSection(
            id="intro",
            title="はじめに",
            content=(
                f"このセクションでは、{title}の基本的な概念を学びます。\n\n"
                f"{description}\n\n"
                f"このモジュールの学習目標:\n{objective_lines}"
            ),
            summary="このセクションでは、モジュールの基本概念と学習目標を紹介しました。",
            key_points=[
                "コンテンツの生成に一時的な問題が発生しています",
                "基本的な情報のみ表示しています",
                "後ほど再試行することでより詳細なコンテンツが表示されるかもしれません",
            ],
        ),
        ModuleSection(
            id="temp-content",
            title="一時的なコンテンツ",
            content=(
                "申し訳ありませんが、現在このモジュールの詳細コンテンツは利用できません。\n"
                "再読み込みするか、しばらく待ってから再度アクセスしてください。"
            ),
            summary="このセクションはフォールバックコンテンツです。",
            key_points=[
                "これは一時的なコンテンツです",
                "実際のコンテンツ生成に問題が発生しました",
                "後ほど再試行してください",
            ],
        ),
    ]

    detail = ModuleDetail(
        id=str(module_info.get("id") or "fallback-module"),
        title=title,
        description=description,
        content=[as_payload(section) for section in sections],
        difficulty="beginner",
        learning_objectives=objectives,
        prerequisites=["特になし"],
        estimated_duration="15-30分",
        category="一般",
        estimated_time=20,
        resources=[
            RawResource(
                title="フォールバックリソース",
                url="https://example.com",
                description="一時的なリソースリンクです。",
                type="web",
                relevance=1,
                tags=["temporary"],
            )
        ],
    )
    return as_payload(detail)


def generate_fallback_questions(module_detail: Mapping[str, Any]) -> List[Dict[str, Any]]:
    """Three open questions derived from the module title and objectives."""
    detail = as_payload(module_detail)
    title = detail.get("title") or "このモジュール"
    objectives: Sequence[str] = _objectives(detail.get("learningObjectives"))

    if objectives:
        second = f"「{objectives[0]}」について、あなたの理解を説明してください。"
    else:
        second = "このトピックについてあなたが知っていることを説明してください。"

    questions = [
        LearningQuestion(
            id="fallback-q1",
            question=f"{title}の主な目的は何ですか？",
            expected_answer="特定の答えがありませんが、モジュールの説明に基づいて回答してください。",
            explanation=FALLBACK_EXPLANATION,
            hint="モジュールの説明を読み直してみてください",
            difficulty="beginner",
            category="general",
        ),
        LearningQuestion(
            id="fallback-q2",
            question=second,
            expected_answer="自由回答形式です。あなたの理解に基づいて回答してください。",
            explanation=FALLBACK_EXPLANATION,
            difficulty="beginner",
            category="comprehension",
        ),
        LearningQuestion(
            id="fallback-q3",
            question="このモジュールの学習後、どのようにしてこの知識を活用できると思いますか？",
            expected_answer="自由回答形式です。あなたの考えを共有してください。",
            explanation=FALLBACK_EXPLANATION,
            difficulty="beginner",
            category="application",
        ),
    ]
    return [as_payload(question) for question in questions]


def generate_fallback_chat_message(session_type: str, error_message: Optional[str] = None) -> str:
    detail = f"エラー詳細: {error_message}" if error_message else "一時的なシステムエラーが発生しました。"
    base = (
        "申し訳ありませんが、AI応答の生成中に問題が発生しました。\n\n"
        f"{detail}\n\n"
        "以下の対処法をお試しください:\n"
        "1. もう一度質問を送信する\n"
        "2. インターネット接続を確認する\n"
        "3. しばらく待ってから再度試す\n"
        "4. 別の質問で試してみる\n\n"
        "ご不便をおかけして申し訳ありません。"
    )
    try:
        hint = _SESSION_HINTS[SessionType(session_type)]
    except ValueError:
        hint = ""
    return f"{base}\n{hint}" if hint else base
