from sqlalchemy import create_engine, inspect

from mirror_api.db.migrations import upgrade_database


def test_upgrade_database_creates_registry_tables(tmp_path):
    url = f"sqlite:///{(tmp_path / 'migrated.db').as_posix()}"

    upgrade_database(url)
    upgrade_database(url)

    engine = create_engine(url)
    try:
        inspector = inspect(engine)
        assert {"rubygems", "versions", "dependencies", "alembic_version"} <= set(
            inspector.get_table_names()
        )
        unique = {item["name"] for item in inspector.get_unique_constraints("versions")}
        assert "uq_versions_gem_number_platform" in unique
    finally:
        engine.dispose()
