"""Turns raw model text into a schema-conformant insight payload.

The model output is treated as untrusted input: it has to parse as a single
JSON object and validate against the kind's pydantic schema. Required fields
that are missing or malformed reject the whole response; optional decorative
fields fall back to their schema defaults.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Iterable

from pydantic import BaseModel, ValidationError

from app.services.ai_errors import SchemaViolation, UnparsableResponse

DERIVED_CONFIDENCE_FLOOR = 30
DERIVED_CONFIDENCE_CAP = 70
MAX_REPORTED_ERRORS = 5
_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)


@dataclass(frozen=True)
class SchemaDescriptor:
    model: type[BaseModel]
    # Payload field carrying the model's own confidence (0-100), if the kind has one.
    confidence_field: str | None = None
    # Payload field carrying the model's own human-review flag, if the kind has one.
    review_field: str | None = None


@dataclass(frozen=True)
class ValidatedInsight:
    kind: str
    payload: dict[str, Any]
    confidence: float
    human_review_needed: bool
    confidence_source: str


def parse_json_object(text: str) -> dict[str, Any]:
    cleaned = (text or "").strip()
    fenced = _FENCE_RE.match(cleaned)
    if fenced:
        cleaned = fenced.group(1)
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        try:
            start = cleaned.index("{")
            end = cleaned.rindex("}") + 1
            parsed = json.loads(cleaned[start:end])
        except (ValueError, json.JSONDecodeError) as exc:
            raise UnparsableResponse(f"Response is not valid JSON: {cleaned[:120]!r}") from exc
    if not isinstance(parsed, dict):
        raise UnparsableResponse(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed


def _format_errors(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors()[:MAX_REPORTED_ERRORS]:
        location = ".".join(str(part) for part in error["loc"]) or "<root>"
        parts.append(f"{location}: {error['msg']}")
    return "; ".join(parts)


def _children(value: Any) -> Iterable[BaseModel]:
    if isinstance(value, BaseModel):
        yield value
    elif isinstance(value, list):
        for item in value:
            if isinstance(item, BaseModel):
                yield item


def enrichment_coverage(model: BaseModel, *, skip: frozenset[str] = frozenset()) -> tuple[int, int]:
    """Count optional fields the model actually supplied versus optional fields available."""
    present = 0
    expected = 0
    for name, info in type(model).model_fields.items():
        if name in skip:
            continue
        if not info.is_required():
            expected += 1
            if name in model.model_fields_set:
                present += 1
        for child in _children(getattr(model, name)):
            child_present, child_expected = enrichment_coverage(child)
            present += child_present
            expected += child_expected
    return present, expected


def derive_confidence(present: int, expected: int) -> int:
    ratio = present / expected if expected else 1.0
    score = DERIVED_CONFIDENCE_FLOOR + (DERIVED_CONFIDENCE_CAP - DERIVED_CONFIDENCE_FLOOR) * ratio
    return min(DERIVED_CONFIDENCE_CAP, int(round(score)))


def _reported_confidence(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not 0 <= value <= 100:
        return None
    return float(value)


def validate_payload(kind: str, descriptor: SchemaDescriptor, parsed: dict[str, Any]) -> ValidatedInsight:
    try:
        model = descriptor.model.model_validate(parsed)
    except ValidationError as exc:
        raise SchemaViolation(_format_errors(exc)) from exc

    payload = model.model_dump(mode="json")
    reported = None
    if descriptor.confidence_field:
        reported = _reported_confidence(parsed.get(descriptor.confidence_field))

    if reported is not None:
        review = False
        if descriptor.review_field:
            review = bool(payload.get(descriptor.review_field))
        return ValidatedInsight(
            kind=kind,
            payload=payload,
            confidence=reported,
            human_review_needed=review,
            confidence_source="model",
        )

    skip = frozenset(name for name in (descriptor.confidence_field, descriptor.review_field) if name)
    present, expected = enrichment_coverage(model, skip=skip)
    return ValidatedInsight(
        kind=kind,
        payload=payload,
        confidence=derive_confidence(present, expected),
        human_review_needed=True,
        confidence_source="derived",
    )


def validate_completion(kind: str, descriptor: SchemaDescriptor, text: str) -> ValidatedInsight:
    return validate_payload(kind, descriptor, parse_json_object(text))
