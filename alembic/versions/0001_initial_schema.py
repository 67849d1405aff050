"""Initial schema: user and article tables.

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

_TRIGGER_FUNCTION = """
CREATE OR REPLACE FUNCTION set_updated_at_column()
RETURNS TRIGGER AS $$
BEGIN
    NEW.updated_at = CURRENT_TIMESTAMP(6);
    RETURN NEW;
END;
$$ LANGUAGE plpgsql;
"""


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "user",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(length=100), nullable=False),
        sa.Column("hash_password", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_user"),
        sa.UniqueConstraint("email", name="uq_user_email"),
    )
    op.create_index("idx_user_email", "user", ["email"])
    op.create_index("idx_user_created_at", "user", ["created_at"])

    op.create_table(
        "article",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.String(length=1000), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("author_id", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_article"),
        sa.UniqueConstraint("title", name="uq_article_title"),
        sa.ForeignKeyConstraint(
            ["author_id"], ["user.id"], name="fk_article_author_id_user", ondelete="CASCADE"
        ),
    )
    op.create_index("idx_article_author_id", "article", ["author_id"])
    op.create_index("idx_article_created_at", "article", ["created_at"])

    # Writes that bypass the ORM still refresh updated_at on PostgreSQL.
    if op.get_context().dialect.name == "postgresql":
        op.execute(_TRIGGER_FUNCTION)
        for table in ("user", "article"):
            op.execute(
                f'CREATE TRIGGER {table}_set_updated_at BEFORE UPDATE ON "{table}" '
                "FOR EACH ROW EXECUTE FUNCTION set_updated_at_column();"
            )


def downgrade() -> None:
    if op.get_context().dialect.name == "postgresql":
        for table in ("article", "user"):
            op.execute(f'DROP TRIGGER IF EXISTS {table}_set_updated_at ON "{table}";')
        op.execute("DROP FUNCTION IF EXISTS set_updated_at_column();")

    op.drop_index("idx_article_created_at", table_name="article")
    op.drop_index("idx_article_author_id", table_name="article")
    op.drop_table("article")
    op.drop_index("idx_user_created_at", table_name="user")
    op.drop_index("idx_user_email", table_name="user")
    op.drop_table("user")
