"""Ingestion gate between the content-generation service and the app.

Raw payloads are validated once here. Accepted modules get their related
resources extracted and ranked; rejected payloads raise
:class:`engines.errors.ValidationError` so callers can decide between
regenerating, retrying or serving fallback content.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Type

from pydantic import BaseModel

from engines.caching import TTLCache
from engines.errors import ValidationError, normalize_error
from engines.resilience import (
    batch_process,
    cleanup_unused_data,
    measure_performance,
    optimize_message_history,
    retry_with_backoff,
)
from engines.resources import extract_resources_from_content, get_relevant_resources
from engines.validation import (
    validate_answer_evaluation,
    validate_answer_history,
    validate_learning_progress,
    validate_learning_question,
    validate_module_detail,
)
from env_validation import Settings, load_settings
from schemas import (
    AnswerEvaluation,
    LearningProgress,
    RelatedResource,
    as_payload,
    extract_json_object,
    parse_json_safe,
)

logger = logging.getLogger(__name__)

_EVENT_LOGGER = logging.getLogger("lcg.events")


def _json_log(event: str, payload: Dict[str, Any], settings: Settings) -> None:
    if not settings.json_event_logs:
        return
    record = {"event": event, **payload}
    try:
        message = json.dumps(record, ensure_ascii=False, sort_keys=True)
    except (TypeError, ValueError):
        fallback = {
            "event": event,
            "error": "serialization_failed",
            "payload_repr": repr(payload),
        }
        message = json.dumps(fallback, ensure_ascii=False, sort_keys=True)
    _EVENT_LOGGER.info(message)


def _decode(payload: Any, model: Optional[Type[BaseModel]] = None) -> Any:
    """Turn raw service output into a mapping.

    Text is parsed strictly into ``model`` when one is given, so raw replies
    get the same typing as the rest of the schema; range checks stay with the
    validators.
    """
    if isinstance(payload, (str, bytes)):
        try:
            text = payload.decode("utf-8") if isinstance(payload, bytes) else payload
            if model is not None:
                return as_payload(parse_json_safe(text, model, strict=True))
            return extract_json_object(text)
        except ValueError as exc:
            raise ValidationError("生成結果からJSONを読み取れませんでした", field="payload") from exc
    return as_payload(payload)


@dataclass
class AcceptedModule:
    """A validated module payload with its ranked resources."""

    detail: Dict[str, Any]
    resources: List[RelatedResource] = field(default_factory=list)
    relevant: List[RelatedResource] = field(default_factory=list)


def accept_module_detail(
    payload: Any,
    current_section_id: Optional[str] = None,
    limit: Optional[int] = None,
    *,
    settings: Optional[Settings] = None,
) -> AcceptedModule:
    """Validate a generated module and rank its related resources."""
    settings = settings or load_settings()
    detail = _decode(payload)
    if not validate_module_detail(detail):
        module_id = detail.get("id") if isinstance(detail, Mapping) else None
        _json_log("module_rejected", {"module_id": module_id}, settings)
        raise ValidationError("モジュールの形式が正しくありません", field="moduleDetail")

    resources = extract_resources_from_content(detail)
    if limit is None:
        limit = settings.resource_limit
    relevant = get_relevant_resources(resources, current_section_id, limit)
    _json_log(
        "module_accepted",
        {
            "module_id": detail.get("id"),
            "resource_count": len(resources),
            "relevant_ids": [resource.id for resource in relevant],
        },
        settings,
    )
    return AcceptedModule(detail=dict(detail), resources=resources, relevant=relevant)


def filter_valid_questions(
    questions: Iterable[Any], *, settings: Optional[Settings] = None
) -> List[Dict[str, Any]]:
    """Keep the questions that pass validation, dropping the rest."""
    settings = settings or load_settings()
    accepted: List[Dict[str, Any]] = []
    rejected = 0
    for question in questions:
        question = as_payload(question)
        if validate_learning_question(question):
            accepted.append(dict(question))
        else:
            rejected += 1
    if rejected:
        logger.warning("Dropped %d invalid generated questions", rejected)
    _json_log("questions_filtered", {"accepted": len(accepted), "rejected": rejected}, settings)
    return accepted


def accept_evaluation(payload: Any, *, settings: Optional[Settings] = None) -> Dict[str, Any]:
    settings = settings or load_settings()
    evaluation = _decode(payload, AnswerEvaluation)
    if not validate_answer_evaluation(evaluation):
        _json_log("evaluation_rejected", {}, settings)
        raise ValidationError("回答評価の形式が正しくありません", field="evaluation")
    return dict(evaluation)


def accept_progress(payload: Any, *, strict_history: bool = False) -> Dict[str, Any]:
    """Validate a progress record read back from the data store.

    With ``strict_history`` the answer history additionally gets the full
    per-item validation.
    """
    progress = _decode(payload, LearningProgress)
    if not validate_learning_progress(progress):
        raise ValidationError("学習進捗の形式が正しくありません", field="progress")
    history = progress.get("answerHistory") or []
    if strict_history and not validate_answer_history(history):
        raise ValidationError("回答履歴の形式が正しくありません", field="answerHistory")
    return dict(progress)


def prepare_progress_for_storage(
    progress: Mapping[str, Any],
    max_history: Optional[int] = None,
    *,
    settings: Optional[Settings] = None,
) -> Dict[str, Any]:
    """Drop empty fields and keep only the newest answer-history entries."""
    if max_history is None:
        max_history = (settings or load_settings()).history_max_length
    cleaned = cleanup_unused_data(as_payload(progress))
    history = cleaned.get("answerHistory")
    if isinstance(history, list):
        cleaned["answerHistory"] = optimize_message_history(history, max_history)
    return cleaned


class ModuleGateway:
    """Fetch modules through ``fetch_module`` with caching, retries and timing.

    ``fetch_module`` is any coroutine function returning the raw payload for a
    module id; transport failures should surface as taxonomy errors (see
    :func:`engines.errors.normalize_error`) so that retry decisions apply.
    """

    def __init__(
        self,
        fetch_module: Callable[[str], Awaitable[Any]],
        *,
        cache: Optional[TTLCache[AcceptedModule]] = None,
        settings: Optional[Settings] = None,
    ):
        self._fetch_module = fetch_module
        self._settings = settings or load_settings()
        self._cache = cache if cache is not None else TTLCache(self._settings.cache_max_age_seconds)

    async def _fetch(self, module_id: str) -> Any:
        try:
            return await self._fetch_module(module_id)
        except Exception as exc:
            converted = normalize_error(exc)
            if converted is exc:
                raise
            raise converted from exc

    async def get_module(self, module_id: str, current_section_id: Optional[str] = None) -> AcceptedModule:
        cached = self._cache.get(module_id)
        if cached is None:
            payload = await measure_performance(
                lambda: retry_with_backoff(
                    lambda: self._fetch(module_id),
                    self._settings.retry_max_attempts,
                    self._settings.retry_delay_seconds,
                    label=f"fetch module {module_id}",
                ),
                f"module {module_id}",
            )
            cached = accept_module_detail(payload, settings=self._settings)
            self._cache.set(module_id, cached)
        if current_section_id is None:
            return cached
        return AcceptedModule(
            detail=cached.detail,
            resources=cached.resources,
            relevant=get_relevant_resources(
                cached.resources, current_section_id, self._settings.resource_limit
            ),
        )

    async def get_modules(self, module_ids: Iterable[str]) -> List[AcceptedModule]:
        return await batch_process(module_ids, self.get_module, self._settings.batch_size)

    def invalidate(self) -> None:
        self._cache.clear()
