"""ORM model for mirrored gem names."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..base import Base

if TYPE_CHECKING:
    from .version import VersionRecord


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RubygemRecord(Base):
    """One row per gem name; created the first time any version references it."""

    __tablename__ = "rubygems"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    versions: Mapped[list["VersionRecord"]] = relationship(
        "VersionRecord",
        back_populates="rubygem",
    )
