"""ORM model for version dependencies."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..base import Base

if TYPE_CHECKING:
    from .version import VersionRecord

SCOPE_RUNTIME = "runtime"
SCOPE_DEVELOPMENT = "development"


class DependencyRecord(Base):
    """A declared dependency of one version. Rows are never updated once committed."""

    __tablename__ = "dependencies"
    __table_args__ = (
        UniqueConstraint(
            "version_id",
            "dependency_name",
            "scope",
            name="uq_dependencies_version_name_scope",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    version_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("versions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    dependency_name: Mapped[str] = mapped_column(String(255), nullable=False)
    requirements: Mapped[str] = mapped_column(String(255), nullable=False)
    scope: Mapped[str] = mapped_column(String(16), nullable=False, default=SCOPE_RUNTIME)

    version: Mapped["VersionRecord"] = relationship("VersionRecord", back_populates="dependencies")
