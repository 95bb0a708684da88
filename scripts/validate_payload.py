"""Validate a generated payload file and report the result as JSON."""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Callable, Dict, Sequence

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from engines.errors import get_friendly_error_message
from engines.resources import extract_resources_from_content, get_relevant_resources
from engines.validation import (
    validate_answer_evaluation,
    validate_answer_history,
    validate_answer_history_item,
    validate_learning_progress,
    validate_learning_question,
    validate_module_detail,
)
from env_validation import ConfigurationError, configure_logging, validate_environment
from schemas import extract_json_object

VALIDATORS: Dict[str, Callable[[Any], bool]] = {
    "module": validate_module_detail,
    "question": validate_learning_question,
    "evaluation": validate_answer_evaluation,
    "history-item": validate_answer_history_item,
    "history": validate_answer_history,
    "progress": validate_learning_progress,
}


def _load_payload(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    try:
        return json.loads(text)
    except ValueError:
        return extract_json_object(text)


def build_report(
    kind: str,
    payload: Any,
    *,
    section_id: str | None = None,
    limit: int = 5,
) -> Dict[str, Any]:
    valid = VALIDATORS[kind](payload)
    report: Dict[str, Any] = {"kind": kind, "valid": valid}
    if kind == "module" and valid:
        resources = extract_resources_from_content(payload)
        report["resources"] = [
            resource.model_dump(mode="json", by_alias=True, exclude_none=True)
            for resource in get_relevant_resources(resources, section_id, limit)
        ]
        report["resource_count"] = len(resources)
    return report


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("path", type=str, help="Path to the JSON payload (raw model output is accepted).")
    parser.add_argument(
        "--kind",
        choices=sorted(VALIDATORS),
        default="module",
        help="Entity kind the payload should satisfy (default: module)",
    )
    parser.add_argument(
        "--section",
        type=str,
        default=None,
        help="Current section id used to boost section resources.",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximum number of resources to list (default: RESOURCE_LIMIT or 5).",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    try:
        settings = validate_environment()
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2
    configure_logging(settings)

    try:
        payload = _load_payload(Path(args.path))
    except (OSError, ValueError) as exc:
        print(get_friendly_error_message(exc), file=sys.stderr)
        return 2

    limit = args.limit if args.limit is not None else settings.resource_limit
    report = build_report(args.kind, payload, section_id=args.section, limit=limit)
    print(json.dumps(report, indent=2, ensure_ascii=False))
    return 0 if report["valid"] else 1


if __name__ == "__main__":
    raise SystemExit(main())
