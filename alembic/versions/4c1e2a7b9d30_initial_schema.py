"""Initial schema: users, communities, templates, memes, favourites, votes

Revision ID: 4c1e2a7b9d30
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "4c1e2a7b9d30"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create all tables plus the case-insensitive unique indexes."""
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(50), nullable=False, unique=True),
        sa.Column("email", sa.String(255)),
        sa.Column("password_hash", sa.String(255)),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )

    op.create_table(
        "communities",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("sidebar", sa.Text()),
        sa.Column("nsfw", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "creator_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
        ),
        sa.Column("favourites_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "ix_communities_top", "communities", ["favourites_count", "created_at", "id"]
    )
    op.create_index("ix_communities_new", "communities", ["created_at", "id"])
    op.create_index(
        "uq_communities_name_lower",
        "communities",
        [sa.text("lower(name)")],
        unique=True,
    )

    op.create_table(
        "templates",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("image_url", sa.String(2083)),
        sa.Column(
            "community_id",
            sa.Integer(),
            sa.ForeignKey("communities.id", ondelete="SET NULL"),
        ),
        sa.Column(
            "creator_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_templates_community", "templates", ["community_id"])

    op.create_table(
        "memes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(300)),
        sa.Column("link", sa.String(2083), nullable=False),
        sa.Column("net_vote", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("hot_score", sa.Float(), nullable=False, server_default="0"),
        sa.Column(
            "creator_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
        ),
        sa.Column(
            "template_id",
            sa.Integer(),
            sa.ForeignKey("templates.id", ondelete="SET NULL"),
        ),
        sa.Column(
            "community_id",
            sa.Integer(),
            sa.ForeignKey("communities.id", ondelete="SET NULL"),
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True)),
    )
    op.create_index(
        "ix_memes_community_new", "memes", ["community_id", "created_at", "id"]
    )
    op.create_index("ix_memes_community_top", "memes", ["community_id", "net_vote"])
    op.create_index("ix_memes_community_hot", "memes", ["community_id", "hot_score"])
    op.create_index("ix_memes_template", "memes", ["template_id"])
    op.create_index(
        "uq_memes_link_lower",
        "memes",
        [sa.text("lower(link)")],
        unique=True,
    )

    op.create_table(
        "favourites",
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "community_id",
            sa.Integer(),
            sa.ForeignKey("communities.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )

    op.create_table(
        "votes",
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "meme_id",
            sa.Integer(),
            sa.ForeignKey("memes.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("value", sa.SmallInteger(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
    )


def downgrade() -> None:
    """Drop everything in reverse dependency order."""
    op.drop_table("votes")
    op.drop_table("favourites")

    op.drop_index("uq_memes_link_lower", table_name="memes")
    op.drop_index("ix_memes_template", table_name="memes")
    op.drop_index("ix_memes_community_hot", table_name="memes")
    op.drop_index("ix_memes_community_top", table_name="memes")
    op.drop_index("ix_memes_community_new", table_name="memes")
    op.drop_table("memes")

    op.drop_index("ix_templates_community", table_name="templates")
    op.drop_table("templates")

    op.drop_index("uq_communities_name_lower", table_name="communities")
    op.drop_index("ix_communities_new", table_name="communities")
    op.drop_index("ix_communities_top", table_name="communities")
    op.drop_table("communities")

    op.drop_table("users")
