from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from app.models.entities import RoiSimulation
from app.schemas.insights import InsightEnvelope
from app.services.ai_errors import PersistenceFailure

logger = logging.getLogger(__name__)


class RoiSimulationStore:
    """Best-effort writer for ROI analyses. Failures are logged, never raised."""

    def __init__(self, session_factory: sessionmaker | None, *, model: str | None = None):
        self.session_factory = session_factory
        self.model = model

    def _build_record(self, parameters: dict[str, Any], envelope: InsightEnvelope) -> RoiSimulation:
        user_id = parameters.get("userId")
        return RoiSimulation(
            user_id=str(user_id) if user_id not in (None, "") else None,
            target_country=str(parameters.get("targetCountry") or "")[:120],
            budget=float(str(parameters.get("userBudget") or 0).replace(",", "")),
            request_parameters={
                key: value for key, value in parameters.items() if key in {"targetCountry", "userBudget", "userId"}
            },
            analysis_json=envelope.payload,
            origin=envelope.origin,
            model=self.model if envelope.origin == "model" else None,
            created_at=datetime.now(timezone.utc),
        )

    def _write(self, record: RoiSimulation) -> str:
        if self.session_factory is None:
            raise PersistenceFailure("DATABASE_URL is not configured")
        db = self.session_factory()
        try:
            db.add(record)
            db.commit()
            return str(record.id)
        except SQLAlchemyError:
            db.rollback()
            raise
        finally:
            db.close()

    def save(self, parameters: dict[str, Any], envelope: InsightEnvelope) -> str | None:
        try:
            record = self._build_record(parameters, envelope)
            return self._write(record)
        except PersistenceFailure as exc:
            logger.warning("ROI simulation not persisted: %s", exc)
        except (SQLAlchemyError, ValueError, TypeError):
            logger.exception("ROI simulation save failed for country %s", parameters.get("targetCountry"))
        return None
