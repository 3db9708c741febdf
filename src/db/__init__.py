"""Database package for the credential engine."""

from src.db.base import Base
from src.db.engine import get_engine, get_session_factory, init_db
from src.db.models import UserCustomModel, UserProvider

__all__ = [
    "Base",
    "get_engine",
    "get_session_factory",
    "init_db",
    "UserProvider",
    "UserCustomModel",
]
