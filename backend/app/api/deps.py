from fastapi import Request

from app.services.ai_orchestrator import InsightOrchestrator


def get_orchestrator(request: Request) -> InsightOrchestrator:
    return request.app.state.orchestrator
