"""Database session and engine helpers."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterator, TypeVar

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import URL, make_url
from sqlalchemy.orm import Session, sessionmaker

from mirror_api.config.settings import get_settings

from .base import Base
from . import models  # noqa: F401  # ensure models are imported for metadata

PROJECT_ROOT = Path(__file__).resolve().parents[4]
DEFAULT_DB_PATH = PROJECT_ROOT / "var" / "data" / "mirror.db"

T = TypeVar("T")


def _resolve_database_url() -> str:
    raw_url = get_settings().database_url
    if not raw_url:
        DEFAULT_DB_PATH.parent.mkdir(parents=True, exist_ok=True)
        return f"sqlite:///{DEFAULT_DB_PATH.as_posix()}"

    url: URL = make_url(raw_url)
    if url.drivername.startswith("sqlite") and url.database and url.database != ":memory:":
        db_path = Path(url.database)
        if not db_path.is_absolute():
            db_path = PROJECT_ROOT / db_path
        db_path.parent.mkdir(parents=True, exist_ok=True)
        url = url.set(database=str(db_path))
    return url.render_as_string(hide_password=False)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Build an engine and a session factory bound to it."""

    connect_args: dict[str, object] = (
        {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    )
    bound: Engine = create_engine(
        database_url,
        echo=False,
        future=True,
        pool_pre_ping=True,
        connect_args=connect_args,
    )
    return sessionmaker(
        bind=bound,
        autocommit=False,
        autoflush=False,
        future=True,
        expire_on_commit=False,
    )


DATABASE_URL = _resolve_database_url()

SessionLocal = create_session_factory(DATABASE_URL)
engine: Engine = SessionLocal.kw["bind"]


def get_session() -> Iterator[Session]:
    """Provide a session for request-scoped reads."""

    session: Session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def run_in_session(
    func: Callable[[Session], T],
    *,
    session_factory: sessionmaker[Session] | None = None,
) -> T:
    """Run ``func`` inside one transaction; commit on success, roll back on error."""

    factory = session_factory or SessionLocal
    with factory() as session:
        try:
            result = func(session)
            session.commit()
        except BaseException:
            session.rollback()
            raise
        return result


__all__ = [
    "Base",
    "DATABASE_URL",
    "SessionLocal",
    "create_session_factory",
    "engine",
    "get_session",
    "run_in_session",
]
