"""Error taxonomy for the AI content boundary.

Every domain error carries a ``kind`` tag; classification, retry decisions
and user-facing messages dispatch on that tag. Friendly messages are Japanese
because that is the language of the learner-facing client.
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any, Mapping, Optional

import requests

logger = logging.getLogger(__name__)

RATE_LIMIT_CODE = "rate_limit_exceeded"
FETCH_FAILED_MARKER = "fetch failed"

UNKNOWN_ERROR_MESSAGE = "不明なエラーが発生しました。"
RATE_LIMIT_MESSAGE = "APIリクエスト制限に達しました。しばらく待ってから再試行してください。"

__all__ = [
    "ErrorKind",
    "ErrorCategory",
    "AppError",
    "AuthenticationError",
    "NetworkError",
    "AIServiceError",
    "ValidationError",
    "ContentGenerationError",
    "RATE_LIMIT_CODE",
    "get_friendly_error_message",
    "get_error_type",
    "get_error_message",
    "is_retryable_error",
    "handle_ai_service_error",
    "handle_network_error",
    "handle_validation_error",
    "handle_authentication_error",
    "error_from_status",
    "normalize_error",
]


class ErrorKind(str, Enum):
    GENERAL = "general"
    AUTHENTICATION = "authentication"
    NETWORK = "network"
    AI_SERVICE = "ai_service"
    VALIDATION = "validation"
    CONTENT_GENERATION = "content_generation"


class ErrorCategory(str, Enum):
    """Error type shown by the UI layer."""

    NETWORK = "network"
    API = "api"
    AUTH = "auth"
    VALIDATION = "validation"
    CONTENT = "content"
    GENERAL = "general"


class AppError(Exception):
    """Base class for errors raised at the AI content boundary."""

    kind = ErrorKind.GENERAL

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class AuthenticationError(AppError):
    kind = ErrorKind.AUTHENTICATION


class NetworkError(AppError):
    kind = ErrorKind.NETWORK


class AIServiceError(AppError):
    """Failure reported by the content-generation service."""

    kind = ErrorKind.AI_SERVICE

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.code = code


class ValidationError(AppError):
    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class ContentGenerationError(AppError):
    kind = ErrorKind.CONTENT_GENERATION

    def __init__(self, message: str, source: Optional[str] = None) -> None:
        super().__init__(message)
        self.source = source


_KIND_CATEGORIES = {
    ErrorKind.NETWORK: ErrorCategory.NETWORK,
    ErrorKind.AI_SERVICE: ErrorCategory.API,
    ErrorKind.AUTHENTICATION: ErrorCategory.AUTH,
    ErrorKind.VALIDATION: ErrorCategory.VALIDATION,
    ErrorKind.CONTENT_GENERATION: ErrorCategory.CONTENT,
}

# Checked in order; the first category with a matching keyword wins.
_MESSAGE_KEYWORDS = (
    (ErrorCategory.NETWORK, ("network", "connection", "fetch")),
    (ErrorCategory.AUTH, ("auth", "token", "key")),
    (ErrorCategory.API, ("api", "openai", "rate limit")),
    (ErrorCategory.VALIDATION, ("validation", "invalid")),
    (ErrorCategory.CONTENT, ("content", "generation")),
)


def _kind_of(error: Any) -> Optional[ErrorKind]:
    if not isinstance(error, BaseException):
        return None
    kind = getattr(error, "kind", None)
    return kind if isinstance(kind, ErrorKind) else None


def _message_of(error: BaseException) -> str:
    message = getattr(error, "message", None)
    if isinstance(message, str):
        return message
    return str(error)


def handle_ai_service_error(error: AIServiceError) -> str:
    if error.code == RATE_LIMIT_CODE:
        return RATE_LIMIT_MESSAGE
    return f"AIサービスエラー: {error.message}"


def handle_network_error(error: NetworkError) -> str:
    return f"ネットワークエラー: {error.message}"


def handle_validation_error(error: ValidationError) -> str:
    field_info = f"({error.field})" if error.field else ""
    return f"入力データエラー{field_info}: {error.message}"


def handle_authentication_error(error: AuthenticationError) -> str:
    return f"認証エラー: {error.message}"


def _handle_content_generation_error(error: ContentGenerationError) -> str:
    return f"コンテンツ生成エラー: {error.message}"


_FORMATTERS = {
    ErrorKind.AI_SERVICE: handle_ai_service_error,
    ErrorKind.NETWORK: handle_network_error,
    ErrorKind.VALIDATION: handle_validation_error,
    ErrorKind.AUTHENTICATION: handle_authentication_error,
    ErrorKind.CONTENT_GENERATION: _handle_content_generation_error,
}


def get_friendly_error_message(error: Any) -> str:
    """Map any error value to a message that can be shown to the learner.

    Never raises; values that cannot be stringified yield the generic message.
    """
    try:
        if error is None or (isinstance(error, (str, int, float)) and not error):
            return UNKNOWN_ERROR_MESSAGE
        if isinstance(error, str):
            return error
        if isinstance(error, BaseException):
            kind = _kind_of(error)
            if kind is ErrorKind.VALIDATION:
                # The friendly variant omits the field name.
                return f"入力データエラー: {_message_of(error)}"
            if kind in _FORMATTERS:
                return _FORMATTERS[kind](error)
            return _message_of(error)
        return json.dumps(error, ensure_ascii=False, default=str)
    except Exception:
        logger.debug("Falling back to the generic error message", exc_info=True)
        return UNKNOWN_ERROR_MESSAGE


def get_error_type(error: Any) -> ErrorCategory:
    """Classify an error for display, sniffing the message of untagged exceptions."""
    kind = _kind_of(error)
    if kind in _KIND_CATEGORIES:
        return _KIND_CATEGORIES[kind]

    if isinstance(error, BaseException):
        try:
            message = _message_of(error).lower()
        except Exception:
            return ErrorCategory.GENERAL
        for category, keywords in _MESSAGE_KEYWORDS:
            if any(keyword in message for keyword in keywords):
                return category

    return ErrorCategory.GENERAL


def get_error_message(error: Any) -> str:
    """Pick the formatter matching the error kind."""
    kind = _kind_of(error)
    if kind in _FORMATTERS:
        return _FORMATTERS[kind](error)
    if isinstance(error, BaseException):
        return _message_of(error)
    if isinstance(error, str):
        return error
    return "不明なエラーが発生しました"


def is_retryable_error(error: Any) -> bool:
    """Single source of truth for automatic retries."""
    kind = _kind_of(error)
    if kind is ErrorKind.NETWORK:
        return True
    if kind is ErrorKind.AI_SERVICE and getattr(error, "code", None) == RATE_LIMIT_CODE:
        return True
    if isinstance(error, BaseException):
        try:
            return FETCH_FAILED_MARKER in _message_of(error)
        except Exception:
            return False
    return False


def error_from_status(status_code: int, payload: Mapping[str, Any] | None = None) -> AppError:
    """Translate an unsuccessful upstream HTTP status into the taxonomy."""
    detail: Mapping[str, Any] = {}
    if isinstance(payload, Mapping) and isinstance(payload.get("error"), Mapping):
        detail = payload["error"]
    upstream_message = detail.get("message")

    if status_code == 401:
        return AuthenticationError("APIキーが無効か認証に失敗しました")
    if status_code == 429:
        return AIServiceError(
            "APIレート制限を超えました。しばらく待ってから再試行してください",
            RATE_LIMIT_CODE,
        )
    if status_code >= 500:
        return NetworkError(f"APIサーバーエラー: {upstream_message or '不明なエラー'}")
    return AIServiceError(
        f"APIエラー: {upstream_message or 'レスポンスの取得に失敗しました'}",
        detail.get("code"),
    )


def normalize_error(error: BaseException) -> BaseException:
    """Convert ``requests`` transport failures into taxonomy errors.

    Taxonomy errors and unrelated exceptions are returned unchanged so the
    original traceback stays intact.
    """
    if _kind_of(error) is not None:
        return error
    if isinstance(error, requests.exceptions.HTTPError) and error.response is not None:
        response = error.response
        try:
            payload = response.json()
        except ValueError:
            payload = None
        converted = error_from_status(response.status_code, payload)
    elif isinstance(error, (requests.exceptions.ConnectionError, requests.exceptions.Timeout)):
        converted = NetworkError(f"接続に失敗しました: {error}")
    else:
        return error
    converted.__cause__ = error
    return converted
