"""Repository for gems, versions and their dependencies."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from mirror_api.db.models import DependencyRecord, RubygemRecord, VersionRecord
from mirror_api.db.models.dependency import SCOPE_RUNTIME
from mirror_api.domain.models import (
    DependencySnapshot,
    DependencySpec,
    GemSpec,
    VersionSnapshot,
)
from mirror_api.domain.versions import version_key


@dataclass(frozen=True)
class VersionRow:
    id: int
    name: str
    number: str
    platform: str
    info_checksum: Optional[str]
    created_at: datetime


def _name_sort_key(name: str) -> bytes:
    return name.encode("utf-8")


class RubygemRepository:
    def get_rubygem_id(self, *, name: str, session: Session) -> int | None:
        stmt = select(RubygemRecord.id).where(RubygemRecord.name == name)
        return session.execute(stmt).scalars().first()

    def find_or_create_rubygem(self, *, name: str, session: Session) -> tuple[bool, int]:
        existing = self.get_rubygem_id(name=name, session=session)
        if existing is not None:
            return False, existing
        record = RubygemRecord(name=name)
        session.add(record)
        session.flush()
        return True, record.id

    def get_version(
        self,
        *,
        name: str,
        number: str,
        platform: str,
        session: Session,
        indexed_only: bool = True,
    ) -> VersionRecord | None:
        stmt = (
            select(VersionRecord)
            .join(RubygemRecord, VersionRecord.rubygem_id == RubygemRecord.id)
            .where(
                RubygemRecord.name == name,
                VersionRecord.number == number,
                VersionRecord.platform == platform,
            )
        )
        if indexed_only:
            stmt = stmt.where(VersionRecord.indexed.is_(True))
        return session.execute(stmt).scalars().first()

    def version_exists(
        self,
        *,
        name: str,
        number: str,
        platform: str,
        session: Session,
    ) -> bool:
        return (
            self.get_version(name=name, number=number, platform=platform, session=session)
            is not None
        )

    def find_or_create_version(
        self,
        *,
        rubygem_id: int,
        spec: GemSpec,
        platform: str,
        checksum: str | None,
        indexed: bool,
        prerelease: bool,
        session: Session,
    ) -> tuple[bool, int]:
        stmt = select(VersionRecord).where(
            VersionRecord.rubygem_id == rubygem_id,
            VersionRecord.number == spec.version,
            VersionRecord.platform == platform,
        )
        existing = session.execute(stmt).scalars().first()
        if existing is not None:
            existing.indexed = indexed
            if checksum is not None:
                existing.checksum = checksum
            if spec.required_ruby_version is not None:
                existing.required_ruby_version = spec.required_ruby_version
            if spec.required_rubygems_version is not None:
                existing.required_rubygems_version = spec.required_rubygems_version
            session.add(existing)
            session.flush()
            return False, existing.id

        record = VersionRecord(
            rubygem_id=rubygem_id,
            number=spec.version,
            platform=platform,
            prerelease=prerelease,
            checksum=checksum,
            required_ruby_version=spec.required_ruby_version,
            required_rubygems_version=spec.required_rubygems_version,
            indexed=indexed,
        )
        session.add(record)
        session.flush()
        return True, record.id

    def unindex_version(self, *, version_id: int, session: Session) -> None:
        session.execute(
            update(VersionRecord).where(VersionRecord.id == version_id).values(indexed=False)
        )

    def set_info_checksum(self, *, version_id: int, info_checksum: str, session: Session) -> None:
        session.execute(
            update(VersionRecord)
            .where(VersionRecord.id == version_id)
            .values(info_checksum=info_checksum)
        )

    def indexed_version_ids(self, *, rubygem_id: int, session: Session) -> list[int]:
        stmt = select(VersionRecord.id).where(
            VersionRecord.rubygem_id == rubygem_id,
            VersionRecord.indexed.is_(True),
        )
        return list(session.execute(stmt).scalars().all())

    def insert_dependencies(
        self,
        *,
        version_id: int,
        dependencies: Iterable[DependencySpec],
        session: Session,
    ) -> list[DependencySpec]:
        """Insert dependency rows that are not present yet; return the ones added."""

        stmt = select(DependencyRecord.dependency_name, DependencyRecord.scope).where(
            DependencyRecord.version_id == version_id
        )
        seen = {(row[0], row[1]) for row in session.execute(stmt).all()}
        added: list[DependencySpec] = []
        for dependency in dependencies:
            key = (dependency.name, dependency.scope)
            if key in seen:
                continue
            seen.add(key)
            session.add(
                DependencyRecord(
                    version_id=version_id,
                    dependency_name=dependency.name,
                    requirements=dependency.requirements,
                    scope=dependency.scope,
                )
            )
            added.append(dependency)
        session.flush()
        return added

    def snapshot(self, *, name: str, session: Session) -> list[VersionSnapshot]:
        stmt = (
            select(VersionRecord)
            .join(RubygemRecord, VersionRecord.rubygem_id == RubygemRecord.id)
            .where(RubygemRecord.name == name, VersionRecord.indexed.is_(True))
            .order_by(VersionRecord.id)
            .options(selectinload(VersionRecord.dependencies))
            .execution_options(populate_existing=True)
        )
        records = session.execute(stmt).scalars().all()
        ordered = sorted(records, key=lambda record: (version_key(record.number), record.platform))
        snapshots: list[VersionSnapshot] = []
        for record in ordered:
            runtime = sorted(
                (dep for dep in record.dependencies if dep.scope == SCOPE_RUNTIME),
                key=lambda dep: (_name_sort_key(dep.dependency_name), dep.requirements),
            )
            snapshots.append(
                VersionSnapshot(
                    number=record.number,
                    platform=record.platform,
                    checksum=record.checksum,
                    required_ruby_version=record.required_ruby_version,
                    required_rubygems_version=record.required_rubygems_version,
                    dependencies=tuple(
                        DependencySnapshot(name=dep.dependency_name, requirements=dep.requirements)
                        for dep in runtime
                    ),
                )
            )
        return snapshots

    def list_names(self, *, session: Session) -> list[str]:
        names = session.execute(select(RubygemRecord.name)).scalars().all()
        return sorted(names, key=_name_sort_key)

    def list_indexed_versions(self, *, session: Session) -> list[VersionRow]:
        stmt = (
            select(
                VersionRecord.id,
                RubygemRecord.name,
                VersionRecord.number,
                VersionRecord.platform,
                VersionRecord.info_checksum,
                VersionRecord.created_at,
            )
            .join(RubygemRecord, VersionRecord.rubygem_id == RubygemRecord.id)
            .where(VersionRecord.indexed.is_(True))
            .order_by(VersionRecord.id)
        )
        return [VersionRow(*row) for row in session.execute(stmt).all()]


__all__ = ["RubygemRepository", "VersionRow"]
