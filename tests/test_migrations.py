"""
Alembic migration tests against a throwaway SQLite file.

The migration must produce the same tables, unique constraints and indexes
that the ORM models declare, and must downgrade cleanly.
"""
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

ROOT = Path(__file__).resolve().parent.parent


@pytest.fixture
def alembic_config(tmp_path: Path):
    db_file = tmp_path / "migrations.db"
    cfg = Config()
    cfg.set_main_option("script_location", str(ROOT / "alembic"))
    cfg.set_main_option("sqlalchemy.url", f"sqlite+aiosqlite:///{db_file}")
    return cfg, f"sqlite:///{db_file}"


def test_upgrade_creates_schema(alembic_config):
    cfg, sync_url = alembic_config
    command.upgrade(cfg, "head")

    engine = create_engine(sync_url)
    try:
        insp = inspect(engine)
        assert {"user", "article"} <= set(insp.get_table_names())

        user_columns = {c["name"] for c in insp.get_columns("user")}
        assert user_columns == {"id", "email", "hash_password", "name", "created_at", "updated_at"}

        article_columns = {c["name"] for c in insp.get_columns("article")}
        assert article_columns == {
            "id", "title", "description", "content", "created_at", "updated_at", "author_id",
        }

        (fk,) = insp.get_foreign_keys("article")
        assert fk["referred_table"] == "user"
        assert fk["constrained_columns"] == ["author_id"]
        assert fk["options"].get("ondelete") == "CASCADE"

        article_indexes = {ix["name"] for ix in insp.get_indexes("article")}
        assert {"idx_article_author_id", "idx_article_created_at"} <= article_indexes
    finally:
        engine.dispose()


def test_constraint_names_follow_model_naming_convention(alembic_config):
    cfg, sync_url = alembic_config
    command.upgrade(cfg, "head")

    engine = create_engine(sync_url)
    try:
        insp = inspect(engine)
        assert insp.get_pk_constraint("user")["name"] == "pk_user"
        assert insp.get_pk_constraint("article")["name"] == "pk_article"
        assert {uq["name"] for uq in insp.get_unique_constraints("user")} == {"uq_user_email"}
        assert {uq["name"] for uq in insp.get_unique_constraints("article")} == {"uq_article_title"}
        (fk,) = insp.get_foreign_keys("article")
        assert fk["name"] == "fk_article_author_id_user"
    finally:
        engine.dispose()


def test_downgrade_drops_schema(alembic_config):
    cfg, sync_url = alembic_config
    command.upgrade(cfg, "head")
    command.downgrade(cfg, "base")

    engine = create_engine(sync_url)
    try:
        tables = set(inspect(engine).get_table_names())
        assert "user" not in tables
        assert "article" not in tables
    finally:
        engine.dispose()
