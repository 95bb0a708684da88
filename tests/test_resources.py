import pytest

from engines.resources import (
    extract_resources_from_content,
    get_relevant_resources,
    get_resource_type_icon,
    get_resource_type_label,
    group_resources_by_type,
    is_valid_resource,
    map_resource_type,
)
from schemas import RelatedResource, ResourceType


def _resource(resource_id, relevance, section_id=None, resource_type=ResourceType.OTHER):
    return RelatedResource(
        id=resource_id,
        title=resource_id,
        url=f"https://example.com/{resource_id}",
        type=resource_type,
        relevance=relevance,
        section_id=section_id,
    )


def test_extract_resources_defaults_and_ids(sample_module):
    resources = extract_resources_from_content(sample_module)

    assert [resource.id for resource in resources] == [
        "module-resource-0",
        "module-resource-2",
        "section-0-resource-0",
        "section-1-resource-0",
    ]

    docs, video, tutorial, book = resources
    assert docs.relevance == 80
    assert docs.type is ResourceType.OFFICIAL_DOCUMENTATION
    assert docs.tags == []
    assert docs.section_id is None

    assert video.title == "リソース"
    assert video.relevance == 60
    assert video.type is ResourceType.VIDEO
    assert video.tags == ["intro"]

    assert tutorial.relevance == 70
    assert tutorial.title == "変数のリソース"
    assert tutorial.section_id == "sec-1"
    assert tutorial.description == ""

    assert book.type is ResourceType.BOOK
    assert book.relevance == 90
    assert book.section_id == "sec-2"


def test_extract_resources_handles_missing_or_malformed_input():
    assert extract_resources_from_content(None) == []
    assert extract_resources_from_content({"id": "m", "resources": "nope", "sections": [None]}) == []


def test_extract_resources_clamps_relevance():
    detail = {
        "resources": [
            {"url": "https://a", "relevance": 250},
            {"url": "https://b", "relevance": 0},
            {"url": "https://c", "relevance": "high"},
            {"url": "https://d", "relevance": 42.6},
        ]
    }
    assert [resource.relevance for resource in extract_resources_from_content(detail)] == [100, 80, 80, 43]


def test_extract_resources_does_not_mutate_input(sample_module):
    before = repr(sample_module)
    extract_resources_from_content(sample_module)
    assert repr(sample_module) == before


@pytest.mark.parametrize(
    "candidate, expected",
    [
        ({"url": "https://x"}, True),
        ({"url": ""}, False),
        ({"url": 5}, False),
        ({"title": "x"}, False),
        ("https://x", False),
        (None, False),
    ],
)
def test_is_valid_resource(candidate, expected):
    assert is_valid_resource(candidate) is expected


@pytest.mark.parametrize(
    "value, expected",
    [
        ("公式ドキュメント", ResourceType.OFFICIAL_DOCUMENTATION),
        ("Documentation", ResourceType.OFFICIAL_DOCUMENTATION),
        ("Video Tutorial", ResourceType.TUTORIAL),
        ("code example", ResourceType.EXAMPLE),
        ("blog ARTICLE", ResourceType.ARTICLE),
        ("動画", ResourceType.VIDEO),
        ("GitHub repo", ResourceType.GITHUB),
        ("コミュニティ", ResourceType.COMMUNITY),
        ("e-book", ResourceType.BOOK),
        ("web", ResourceType.OTHER),
        ("", ResourceType.OTHER),
        (None, ResourceType.OTHER),
    ],
)
def test_map_resource_type(value, expected):
    assert map_resource_type(value) is expected


def test_map_resource_type_first_rule_wins():
    # "documentation" beats "github" because documentation is checked first
    assert map_resource_type("github documentation") is ResourceType.OFFICIAL_DOCUMENTATION
    assert map_resource_type("tutorial video") is ResourceType.TUTORIAL


def test_get_relevant_resources_boosts_current_section():
    resources = [
        _resource("a", 90),
        _resource("b", 85, section_id="sec-1"),
        _resource("c", 95),
    ]

    ranked = get_relevant_resources(resources, "sec-1", 2)

    assert [resource.id for resource in ranked] == ["b", "c"]
    assert ranked[0].relevance == 100
    # originals are left untouched
    assert resources[1].relevance == 85


def test_get_relevant_resources_is_stable_for_ties():
    resources = [_resource("first", 70), _resource("second", 70), _resource("third", 80)]
    ranked = get_relevant_resources(resources)
    assert [resource.id for resource in ranked] == ["third", "first", "second"]


def test_get_relevant_resources_limits_and_handles_empty():
    resources = [_resource(str(index), index) for index in range(10)]
    assert len(get_relevant_resources(resources)) == 5
    assert get_relevant_resources([], "sec-1") == []
    assert get_relevant_resources(resources, limit=0) == []


def test_group_resources_by_type_has_every_key():
    resources = [
        _resource("v1", 50, resource_type=ResourceType.VIDEO),
        _resource("b1", 50, resource_type=ResourceType.BOOK),
        _resource("v2", 50, resource_type=ResourceType.VIDEO),
    ]
    grouped = group_resources_by_type(resources)

    assert list(grouped) == list(ResourceType)
    assert [resource.id for resource in grouped[ResourceType.VIDEO]] == ["v1", "v2"]
    assert grouped[ResourceType.TUTORIAL] == []


def test_labels_and_icons():
    assert get_resource_type_label(ResourceType.OFFICIAL_DOCUMENTATION) == "公式ドキュメント"
    assert get_resource_type_label("github") == "GitHub"
    assert get_resource_type_label("unknown") == "リソース"
    assert get_resource_type_icon(ResourceType.TUTORIAL) == "book-open"
    assert get_resource_type_icon("unknown") == "link"
    assert {get_resource_type_icon(resource_type) for resource_type in ResourceType} == {
        "file-text", "book-open", "code", "file", "video", "github", "users", "book", "link",
    }


def test_resource_type_values_are_stable():
    assert [resource_type.value for resource_type in ResourceType] == [
        "official_documentation",
        "tutorial",
        "example",
        "article",
        "video",
        "github",
        "community",
        "book",
        "other",
    ]


def test_related_resource_serialises_with_aliases():
    payload = _resource("a", 50, section_id="sec-1").model_dump(mode="json", by_alias=True)
    assert payload["sectionId"] == "sec-1"
    assert payload["type"] == "other"


def test_extract_resources_clamps_huge_relevance():
    detail = {"resources": [{"url": "https://a", "relevance": 10**400}, {"url": "https://b", "relevance": -(10**400)}]}
    assert [resource.relevance for resource in extract_resources_from_content(detail)] == [100, 0]
