"""Initial registry store schema."""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "rubygems",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=255), nullable=False, unique=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )

    op.create_table(
        "versions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "rubygem_id",
            sa.Integer(),
            sa.ForeignKey("rubygems.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("number", sa.String(length=64), nullable=False),
        sa.Column("platform", sa.String(length=64), nullable=False, server_default="ruby"),
        sa.Column("prerelease", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("checksum", sa.String(length=128), nullable=True),
        sa.Column("required_ruby_version", sa.String(length=255), nullable=True),
        sa.Column("required_rubygems_version", sa.String(length=255), nullable=True),
        sa.Column("info_checksum", sa.String(length=64), nullable=True),
        sa.Column("indexed", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint(
            "rubygem_id",
            "number",
            "platform",
            name="uq_versions_gem_number_platform",
        ),
    )
    op.create_index("ix_versions_rubygem_indexed", "versions", ["rubygem_id", "indexed"])

    op.create_table(
        "dependencies",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "version_id",
            sa.Integer(),
            sa.ForeignKey("versions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("dependency_name", sa.String(length=255), nullable=False),
        sa.Column("requirements", sa.String(length=255), nullable=False),
        sa.Column("scope", sa.String(length=16), nullable=False, server_default="runtime"),
        sa.UniqueConstraint(
            "version_id",
            "dependency_name",
            "scope",
            name="uq_dependencies_version_name_scope",
        ),
    )
    op.create_index("ix_dependencies_version_id", "dependencies", ["version_id"])


def downgrade() -> None:
    op.drop_index("ix_dependencies_version_id", table_name="dependencies")
    op.drop_table("dependencies")
    op.drop_index("ix_versions_rubygem_indexed", table_name="versions")
    op.drop_table("versions")
    op.drop_table("rubygems")
