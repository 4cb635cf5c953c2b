from typing import Any

from fastapi import APIRouter, BackgroundTasks, Body, Depends, HTTPException, Request

from app.api.deps import get_orchestrator
from app.core.ratelimit import insight_rate_limiter
from app.services.ai_orchestrator import GenerationRequest, InsightOrchestrator
from app.services.insight_registry import InsightKind

router = APIRouter()


def _client_key(request: Request) -> str:
    # userId is caller-supplied, so only the connection identifies the client.
    host = request.client.host if request.client else "unknown"
    return f"client:{host}"


async def _generate(
    kind: InsightKind,
    body: dict[str, Any] | None,
    request: Request,
    background_tasks: BackgroundTasks,
    orchestrator: InsightOrchestrator,
) -> dict[str, Any]:
    body = body or {}
    insight_rate_limiter.check(_client_key(request))
    generation = GenerationRequest.from_body(kind, body)
    envelope = await orchestrator.generate(generation)
    if orchestrator.requires_persistence(generation):
        # Runs after the response is sent.
        background_tasks.add_task(orchestrator.persist, generation, envelope)
    return envelope.to_response()


@router.post("/insights/{kind}")
async def generate_insight(
    kind: str,
    request: Request,
    background_tasks: BackgroundTasks,
    body: dict[str, Any] | None = Body(default=None),
    orchestrator: InsightOrchestrator = Depends(get_orchestrator),
):
    try:
        insight_kind = InsightKind(kind)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=f"Unknown insight kind '{kind}'") from exc
    return await _generate(insight_kind, body, request, background_tasks, orchestrator)


# Paths used by the existing frontend.


@router.post("/grok-dashboard")
async def legacy_dashboard(
    request: Request,
    background_tasks: BackgroundTasks,
    body: dict[str, Any] | None = Body(default=None),
    orchestrator: InsightOrchestrator = Depends(get_orchestrator),
):
    return await _generate(InsightKind.dashboard_analysis, body, request, background_tasks, orchestrator)


@router.post("/career-roadmap")
async def legacy_career_roadmap(
    request: Request,
    background_tasks: BackgroundTasks,
    body: dict[str, Any] | None = Body(default=None),
    orchestrator: InsightOrchestrator = Depends(get_orchestrator),
):
    return await _generate(InsightKind.career_roadmap_tiers, body, request, background_tasks, orchestrator)


@router.post("/career/roadmap")
async def legacy_career_logic(
    request: Request,
    background_tasks: BackgroundTasks,
    body: dict[str, Any] | None = Body(default=None),
    orchestrator: InsightOrchestrator = Depends(get_orchestrator),
):
    kind = InsightKind.career_roadmap_set if (body or {}).get("selectedPath") else InsightKind.career_discovery_options
    return await _generate(kind, body, request, background_tasks, orchestrator)


@router.post("/roi/analyze")
async def legacy_roi_analyze(
    request: Request,
    background_tasks: BackgroundTasks,
    body: dict[str, Any] | None = Body(default=None),
    orchestrator: InsightOrchestrator = Depends(get_orchestrator),
):
    return await _generate(InsightKind.roi_analysis, body, request, background_tasks, orchestrator)


@router.post("/translate")
async def legacy_translate(
    request: Request,
    background_tasks: BackgroundTasks,
    body: dict[str, Any] | None = Body(default=None),
    orchestrator: InsightOrchestrator = Depends(get_orchestrator),
):
    return await _generate(InsightKind.translation, body, request, background_tasks, orchestrator)
