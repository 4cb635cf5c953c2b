from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from app.core.config import Settings, settings

Base = declarative_base()


def build_session_factory(config: Settings) -> sessionmaker | None:
    if not config.database_url:
        return None
    engine = create_engine(config.database_url, pool_pre_ping=True)
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


SessionLocal = build_session_factory(settings)
