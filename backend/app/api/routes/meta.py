from fastapi import APIRouter, Depends
from sqlalchemy import text

from app.api.deps import get_orchestrator
from app.core.database import SessionLocal
from app.schemas.insights import InsightKindOut
from app.services.ai_orchestrator import InsightOrchestrator
from app.services.insight_registry import INSIGHT_SPECS

router = APIRouter(prefix="/meta")


@router.get("/ai")
def ai_meta(orchestrator: InsightOrchestrator = Depends(get_orchestrator)):
    client = orchestrator.client
    return {
        "ai_enabled": client.is_configured(),
        "model": client.model,
        "provider": client.provider,
    }


@router.get("/insights", response_model=list[InsightKindOut])
def insight_kinds_meta():
    return [
        {
            "kind": spec.kind.value,
            "required_parameters": list(spec.required_parameters),
            "requires_profile": spec.requires_profile,
            "requires_persistence": spec.requires_persistence,
        }
        for spec in INSIGHT_SPECS.values()
    ]


@router.get("/health")
def health_meta(orchestrator: InsightOrchestrator = Depends(get_orchestrator)):
    db_ok = False
    db_error = None
    if SessionLocal is None:
        db_error = "DATABASE_URL is not configured"
    else:
        try:
            with SessionLocal() as db:
                db.execute(text("SELECT 1"))
            db_ok = True
        except Exception as exc:
            db_error = str(exc)
    client = orchestrator.client
    return {
        # The database only backs ROI persistence.
        "ok": True,
        "database": {"ok": db_ok, "error": db_error},
        "ai": {
            "enabled": client.is_configured(),
            "provider": client.provider,
            "model": client.model,
        },
    }
