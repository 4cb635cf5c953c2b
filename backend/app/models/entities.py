from uuid import uuid4
from datetime import datetime, timezone
from sqlalchemy import JSON, Column, DateTime, Float, String, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from app.core.database import Base

JSONDocument = JSON().with_variant(JSONB(), "postgresql")


class RoiSimulation(Base):
    __tablename__ = "roi_simulations"

    id = Column(Uuid, primary_key=True, default=uuid4)
    user_id = Column(String(120), nullable=True, index=True)
    target_country = Column(String(120), nullable=False)
    budget = Column(Float, nullable=False)
    request_parameters = Column(JSONDocument, nullable=True)
    analysis_json = Column(JSONDocument, nullable=False)
    origin = Column(String(20), nullable=False)
    model = Column(String(120), nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
