"""Related-resource extraction and relevance ranking for generated modules."""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from schemas import RelatedResource, ResourceType, as_payload

logger = logging.getLogger(__name__)

MODULE_RESOURCE_RELEVANCE = 80
SECTION_RESOURCE_RELEVANCE = 70
SECTION_BOOST = 20
MAX_RELEVANCE = 100
DEFAULT_RESOURCE_TITLE = "リソース"

# Order matters: the first rule with a matching keyword decides the type.
RESOURCE_TYPE_RULES: Tuple[Tuple[ResourceType, Tuple[str, ...]], ...] = (
    (ResourceType.OFFICIAL_DOCUMENTATION, ("doc", "公式")),
    (ResourceType.TUTORIAL, ("tutorial", "チュートリアル")),
    (ResourceType.EXAMPLE, ("example", "例")),
    (ResourceType.ARTICLE, ("article", "記事")),
    (ResourceType.VIDEO, ("video", "動画")),
    (ResourceType.GITHUB, ("github", "リポジトリ")),
    (ResourceType.COMMUNITY, ("community", "コミュニティ")),
    (ResourceType.BOOK, ("book", "本")),
)

RESOURCE_TYPE_LABELS: Dict[ResourceType, str] = {
    ResourceType.OFFICIAL_DOCUMENTATION: "公式ドキュメント",
    ResourceType.TUTORIAL: "チュートリアル",
    ResourceType.EXAMPLE: "実装例",
    ResourceType.ARTICLE: "記事",
    ResourceType.VIDEO: "動画",
    ResourceType.GITHUB: "GitHub",
    ResourceType.COMMUNITY: "コミュニティ",
    ResourceType.BOOK: "書籍",
    ResourceType.OTHER: "その他",
}

RESOURCE_TYPE_ICONS: Dict[ResourceType, str] = {
    ResourceType.OFFICIAL_DOCUMENTATION: "file-text",
    ResourceType.TUTORIAL: "book-open",
    ResourceType.EXAMPLE: "code",
    ResourceType.ARTICLE: "file",
    ResourceType.VIDEO: "video",
    ResourceType.GITHUB: "github",
    ResourceType.COMMUNITY: "users",
    ResourceType.BOOK: "book",
    ResourceType.OTHER: "link",
}


def is_valid_resource(resource: Any) -> bool:
    """A candidate is usable only when it is mapping-like with a non-empty URL."""
    resource = as_payload(resource)
    if not isinstance(resource, Mapping):
        return False
    url = resource.get("url")
    return isinstance(url, str) and bool(url)


def map_resource_type(value: Optional[str]) -> ResourceType:
    """Normalize a free-form type label from generated content."""
    if not value or not isinstance(value, str):
        return ResourceType.OTHER
    text = value.lower()
    for resource_type, keywords in RESOURCE_TYPE_RULES:
        if any(keyword in text for keyword in keywords):
            return resource_type
    return ResourceType.OTHER


def _relevance(value: Any, default: int) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not value:
        return default
    if isinstance(value, float):
        if not math.isfinite(value):
            return default
        value = int(round(value))
    return max(0, min(MAX_RELEVANCE, value))


def _tags(value: Any) -> List[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [tag for tag in value if isinstance(tag, str)]


def _text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def _build_resource(
    resource: Mapping[str, Any],
    *,
    resource_id: str,
    fallback_title: str,
    default_relevance: int,
    section_id: Optional[str] = None,
) -> RelatedResource:
    return RelatedResource(
        id=resource_id,
        title=_text(resource.get("title")) or fallback_title,
        url=resource["url"],
        description=_text(resource.get("description")) or "",
        type=map_resource_type(resource.get("type")),
        relevance=_relevance(resource.get("relevance"), default_relevance),
        section_id=section_id,
        tags=_tags(resource.get("tags")),
    )


def _sequence(value: Any) -> Sequence[Any]:
    return value if isinstance(value, (list, tuple)) else ()


def extract_resources_from_content(module_detail: Any) -> List[RelatedResource]:
    """Collect module-level and section-level resources from a module payload.

    Malformed entries are dropped silently; indices in the generated ids
    still count them so ids stay stable across re-extraction.
    """
    detail = as_payload(module_detail)
    if not isinstance(detail, Mapping):
        return []

    resources: List[RelatedResource] = []
    dropped = 0

    for index, raw in enumerate(_sequence(detail.get("resources"))):
        raw = as_payload(raw)
        if not is_valid_resource(raw):
            dropped += 1
            continue
        resources.append(
            _build_resource(
                raw,
                resource_id=f"module-resource-{index}",
                fallback_title=DEFAULT_RESOURCE_TITLE,
                default_relevance=MODULE_RESOURCE_RELEVANCE,
            )
        )

    for section_index, section in enumerate(_sequence(detail.get("sections"))):
        section = as_payload(section)
        if not isinstance(section, Mapping):
            continue
        section_title = _text(section.get("title"))
        fallback_title = f"{section_title}のリソース" if section_title else DEFAULT_RESOURCE_TITLE
        section_id = section.get("id")
        section_id = str(section_id) if section_id is not None else None
        for resource_index, raw in enumerate(_sequence(section.get("resources"))):
            raw = as_payload(raw)
            if not is_valid_resource(raw):
                dropped += 1
                continue
            resources.append(
                _build_resource(
                    raw,
                    resource_id=f"section-{section_index}-resource-{resource_index}",
                    fallback_title=fallback_title,
                    default_relevance=SECTION_RESOURCE_RELEVANCE,
                    section_id=section_id,
                )
            )

    if dropped:
        logger.debug("Dropped %d malformed resource entries from module %s", dropped, detail.get("id"))
    return resources


def get_relevant_resources(
    resources: Sequence[RelatedResource],
    current_section_id: Optional[str] = None,
    limit: int = 5,
) -> List[RelatedResource]:
    """Rank resources, boosting those attached to the current section."""
    if not resources:
        return []

    ranked = list(resources)
    if current_section_id:
        ranked = [
            resource.model_copy(
                update={"relevance": min(resource.relevance + SECTION_BOOST, MAX_RELEVANCE)}
            )
            if resource.section_id == current_section_id
            else resource
            for resource in ranked
        ]

    # sorted() is stable, also with reverse=True
    ranked = sorted(ranked, key=lambda resource: resource.relevance, reverse=True)
    return ranked[: max(limit, 0)]


def group_resources_by_type(
    resources: Sequence[RelatedResource],
) -> Dict[ResourceType, List[RelatedResource]]:
    grouped: Dict[ResourceType, List[RelatedResource]] = {
        resource_type: [] for resource_type in ResourceType
    }
    for resource in resources:
        grouped[resource.type].append(resource)
    return grouped


def _coerce_type(resource_type: Any) -> Optional[ResourceType]:
    try:
        return ResourceType(resource_type)
    except ValueError:
        return None


def get_resource_type_label(resource_type: ResourceType | str) -> str:
    return RESOURCE_TYPE_LABELS.get(_coerce_type(resource_type), DEFAULT_RESOURCE_TITLE)


def get_resource_type_icon(resource_type: ResourceType | str) -> str:
    return RESOURCE_TYPE_ICONS.get(_coerce_type(resource_type), "link")
