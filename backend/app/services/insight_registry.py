from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from app.schemas.insights import (
    CareerDiscoveryOptionsPayload,
    CareerRoadmapSetPayload,
    CareerRoadmapTiersPayload,
    DashboardAnalysisPayload,
    RoiAnalysisPayload,
    TranslationPayload,
)
from app.services import ai_fallback, prompts
from app.services.ai_validator import SchemaDescriptor
from app.services.profile_normalizer import Profile


class InsightKind(str, Enum):
    dashboard_analysis = "dashboard-analysis"
    career_roadmap_set = "career-roadmap-set"
    career_roadmap_tiers = "career-roadmap-tiers"
    career_discovery_options = "career-discovery-options"
    roi_analysis = "roi-analysis"
    translation = "translation"


PromptTemplate = Callable[[Profile | None, dict[str, Any]], prompts.PromptPair]
FallbackBuilder = Callable[[Profile | None, dict[str, Any]], dict[str, Any]]
Passthrough = Callable[[dict[str, Any]], dict[str, Any] | None]


def translation_passthrough(parameters: dict[str, Any]) -> dict[str, Any] | None:
    """Translating into English, the source language of the UI, returns the text unchanged."""
    target = str(parameters.get("targetLang") or "").strip().lower()
    if target == "en" or target.startswith(("en-", "en_")) or target == "english":
        return {"translatedText": parameters["text"]}
    return None


@dataclass(frozen=True)
class InsightSpec:
    kind: InsightKind
    build_prompt: PromptTemplate
    schema: SchemaDescriptor
    fallback: FallbackBuilder
    temperature: float
    max_tokens: int
    requires_profile: bool = True
    required_parameters: tuple[str, ...] = ()
    requires_persistence: bool = False
    expect_json: bool = True
    passthrough: Passthrough | None = None


INSIGHT_SPECS: dict[InsightKind, InsightSpec] = {
    InsightKind.dashboard_analysis: InsightSpec(
        kind=InsightKind.dashboard_analysis,
        build_prompt=prompts.build_dashboard_prompt,
        schema=SchemaDescriptor(
            model=DashboardAnalysisPayload,
            confidence_field="confidence_score",
            review_field="human_review_needed",
        ),
        fallback=ai_fallback.dashboard_fallback,
        temperature=0.7,
        max_tokens=1024,
    ),
    InsightKind.career_roadmap_set: InsightSpec(
        kind=InsightKind.career_roadmap_set,
        build_prompt=prompts.build_roadmap_set_prompt,
        schema=SchemaDescriptor(model=CareerRoadmapSetPayload),
        fallback=ai_fallback.roadmap_set_fallback,
        temperature=0.7,
        max_tokens=4096,
    ),
    InsightKind.career_roadmap_tiers: InsightSpec(
        kind=InsightKind.career_roadmap_tiers,
        build_prompt=prompts.build_roadmap_tiers_prompt,
        schema=SchemaDescriptor(model=CareerRoadmapTiersPayload),
        fallback=ai_fallback.roadmap_tiers_fallback,
        temperature=0.7,
        max_tokens=2048,
    ),
    InsightKind.career_discovery_options: InsightSpec(
        kind=InsightKind.career_discovery_options,
        build_prompt=prompts.build_discovery_prompt,
        schema=SchemaDescriptor(model=CareerDiscoveryOptionsPayload),
        fallback=ai_fallback.discovery_fallback,
        temperature=0.6,
        max_tokens=1024,
    ),
    InsightKind.roi_analysis: InsightSpec(
        kind=InsightKind.roi_analysis,
        build_prompt=prompts.build_roi_prompt,
        schema=SchemaDescriptor(model=RoiAnalysisPayload),
        fallback=ai_fallback.roi_fallback,
        temperature=0.5,
        max_tokens=1024,
        requires_profile=False,
        required_parameters=("targetCountry", "userBudget"),
        requires_persistence=True,
    ),
    InsightKind.translation: InsightSpec(
        kind=InsightKind.translation,
        build_prompt=prompts.build_translation_prompt,
        schema=SchemaDescriptor(model=TranslationPayload),
        fallback=ai_fallback.translation_fallback,
        temperature=0.1,
        max_tokens=256,
        requires_profile=False,
        required_parameters=("text", "targetLang"),
        passthrough=translation_passthrough,
    ),
}


def get_insight_spec(kind: InsightKind | str) -> InsightSpec:
    return INSIGHT_SPECS[InsightKind(kind)]
