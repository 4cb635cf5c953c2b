from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from app.core.config import Settings
from app.schemas.insights import InsightEnvelope
from app.services.ai_errors import RECOVERABLE_ERRORS, InsightError, UpstreamTimeout
from app.services.ai_fallback import finalize, should_retry
from app.services.ai_validator import ValidatedInsight, validate_completion
from app.services.insight_registry import InsightKind, InsightSpec, get_insight_spec
from app.services.llm_client import CompletionClient
from app.services.profile_normalizer import Profile, normalize_profile
from app.services.prompts import PromptPair, strict_retry_prompt
from app.services.roi_store import RoiSimulationStore

logger = logging.getLogger(__name__)

PROFILE_KEYS = ("profile", "userProfile")


@dataclass(frozen=True)
class GenerationRequest:
    kind: InsightKind
    profile: Profile | None = None
    parameters: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_body(cls, kind: InsightKind | str, body: dict[str, Any]) -> "GenerationRequest":
        raw_profile = next((body[key] for key in PROFILE_KEYS if body.get(key) is not None), None)
        parameters = {key: value for key, value in body.items() if key not in PROFILE_KEYS}
        return cls(
            kind=InsightKind(kind),
            profile=normalize_profile(raw_profile) if raw_profile is not None else None,
            parameters=parameters,
        )


class InsightOrchestrator:
    def __init__(
        self,
        settings: Settings,
        client: CompletionClient,
        roi_store: RoiSimulationStore | None = None,
    ):
        self.settings = settings
        self.client = client
        self.roi_store = roi_store

    async def _attempt(
        self,
        spec: InsightSpec,
        prompt: PromptPair,
    ) -> tuple[ValidatedInsight | None, InsightError | None]:
        try:
            raw = await self.client.complete(
                prompt.system,
                prompt.user,
                temperature=spec.temperature,
                max_tokens=spec.max_tokens,
                expect_json=spec.expect_json,
            )
            return validate_completion(spec.kind.value, spec.schema, raw.text), None
        except RECOVERABLE_ERRORS as exc:
            logger.warning("%s attempt failed with %s: %s", spec.kind.value, type(exc).__name__, exc)
            return None, exc

    async def generate(self, request: GenerationRequest) -> InsightEnvelope:
        spec = get_insight_spec(request.kind)
        prompt = spec.build_prompt(request.profile, request.parameters)

        if spec.passthrough is not None:
            payload = spec.passthrough(request.parameters)
            if payload is not None:
                return InsightEnvelope(
                    kind=spec.kind.value,
                    origin="passthrough",
                    confidence=100,
                    human_review_needed=False,
                    payload=payload,
                    attempts=0,
                )

        self.client.ensure_configured()

        insight, error = await self._attempt(spec, prompt)
        attempts = 1
        if error is not None and should_retry(error, retried=False):
            # Timeouts resend the same prompt; format failures get the stricter one.
            retry_prompt = prompt if isinstance(error, UpstreamTimeout) else strict_retry_prompt(prompt)
            logger.info("Retrying %s once after %s", spec.kind.value, type(error).__name__)
            insight, error = await self._attempt(spec, retry_prompt)
            attempts = 2

        return finalize(
            spec.kind.value,
            spec.schema,
            insight,
            fallback_payload=lambda: spec.fallback(request.profile, request.parameters),
            attempts=attempts,
            review_threshold=self.settings.ai_confidence_review_threshold,
        )

    def requires_persistence(self, request: GenerationRequest) -> bool:
        return get_insight_spec(request.kind).requires_persistence and self.roi_store is not None

    def persist(self, request: GenerationRequest, envelope: InsightEnvelope) -> str | None:
        if not self.requires_persistence(request):
            return None
        return self.roi_store.save(request.parameters, envelope)
