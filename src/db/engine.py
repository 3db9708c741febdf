"""Database engine and session factory."""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from src.settings import get_settings

_engine = None


def get_engine():
    """Get or create the database engine."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_engine(
            settings.database_url,
            pool_pre_ping=True,
        )
    return _engine


def get_session_factory(engine=None):
    return sessionmaker(bind=engine or get_engine(), expire_on_commit=False)


def init_db(engine=None) -> None:
    """Create all tables (development and tests; production uses alembic)."""
    from src.db.base import Base
    import src.db.models  # noqa: F401

    Base.metadata.create_all(bind=engine or get_engine())
