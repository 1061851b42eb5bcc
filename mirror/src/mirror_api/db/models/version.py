"""ORM model for gem versions."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..base import Base

if TYPE_CHECKING:
    from .dependency import DependencyRecord
    from .rubygem import RubygemRecord


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VersionRecord(Base):
    """A single (gem, number, platform) release; ``indexed=False`` marks a removal."""

    __tablename__ = "versions"
    __table_args__ = (
        UniqueConstraint("rubygem_id", "number", "platform", name="uq_versions_gem_number_platform"),
        Index("ix_versions_rubygem_indexed", "rubygem_id", "indexed"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    rubygem_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("rubygems.id", ondelete="CASCADE"),
        nullable=False,
    )
    number: Mapped[str] = mapped_column(String(64), nullable=False)
    platform: Mapped[str] = mapped_column(String(64), nullable=False, default="ruby")
    prerelease: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    checksum: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    required_ruby_version: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    required_rubygems_version: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    info_checksum: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    indexed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    rubygem: Mapped["RubygemRecord"] = relationship("RubygemRecord", back_populates="versions")
    dependencies: Mapped[list["DependencyRecord"]] = relationship(
        "DependencyRecord",
        back_populates="version",
        cascade="all, delete-orphan",
    )
