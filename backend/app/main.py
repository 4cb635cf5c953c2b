from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.routes import insights, meta
from app.core.config import Settings, settings
from app.core.database import SessionLocal
from app.services.ai_errors import InsightError
from app.services.ai_orchestrator import InsightOrchestrator
from app.services.llm_client import CompletionClient
from app.services.roi_store import RoiSimulationStore


def build_orchestrator(config: Settings) -> InsightOrchestrator:
    client = CompletionClient(config)
    return InsightOrchestrator(
        config,
        client,
        RoiSimulationStore(SessionLocal, model=client.model),
    )


app = FastAPI(title="Orbis Insights API", version="0.1.0")
app.state.orchestrator = build_orchestrator(settings)

origins = [origin.strip() for origin in settings.cors_origins.split(",") if origin.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=[
        "Content-Type",
        "X-Request-Id",
    ],
)


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    request_id = request.headers.get("X-Request-Id") or uuid4().hex
    response = await call_next(request)
    response.headers["X-Request-Id"] = request_id
    return response


@app.exception_handler(InsightError)
async def insight_error_handler(_: Request, exc: InsightError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(_: Request, exc: StarletteHTTPException):
    if isinstance(exc.detail, dict):
        content = exc.detail
    else:
        content = {"error": str(exc.detail)}
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(_: Request, exc: RequestValidationError):
    details = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()[:5]
    )
    return JSONResponse(status_code=400, content={"error": "Invalid request body", "details": details})


def _register_routes(prefix: str = "") -> None:
    app.include_router(insights.router, tags=["insights"], prefix=prefix)
    app.include_router(meta.router, tags=["meta"], prefix=prefix)


_register_routes("")
_register_routes("/api")
