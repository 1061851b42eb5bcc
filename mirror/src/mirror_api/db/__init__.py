"""Database utilities exposed for the mirror service."""

from .base import Base
from .session import (
    DATABASE_URL,
    SessionLocal,
    create_session_factory,
    engine,
    get_session,
    run_in_session,
)

__all__ = [
    "Base",
    "DATABASE_URL",
    "SessionLocal",
    "create_session_factory",
    "engine",
    "get_session",
    "run_in_session",
]
