"""initial schema: sections, articles, comments, article_views

Revision ID: 0001
Revises:
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "sections",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("section_type", sa.SmallInteger(), nullable=False),
        sa.Column("created_time", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_sections"),
    )
    op.create_index("ix_sections_section_type", "sections", ["section_type"])

    op.create_table(
        "articles",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("raw_content", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("section_id", sa.Uuid(), nullable=False),
        sa.Column("author_id", sa.Uuid(), nullable=False),
        sa.Column("tags", sa.String(length=500), nullable=False),
        sa.Column("created_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.SmallInteger(), nullable=False),
        sa.ForeignKeyConstraint(
            ["section_id"], ["sections.id"], name="fk_articles_section_id_sections"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_articles"),
    )
    op.create_index(
        "ix_articles_section_id_status_created_time",
        "articles",
        ["section_id", "status", "created_time"],
    )
    op.create_index("ix_articles_author_id", "articles", ["author_id"])

    op.create_table(
        "comments",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("article_id", sa.Uuid(), nullable=False),
        sa.Column("author_id", sa.Uuid(), nullable=False),
        sa.Column("raw_content", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.SmallInteger(), nullable=False),
        sa.ForeignKeyConstraint(
            ["article_id"], ["articles.id"], name="fk_comments_article_id_articles"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_comments"),
    )
    op.create_index(
        "ix_comments_article_id_status_created_time",
        "comments",
        ["article_id", "status", "created_time"],
    )

    op.create_table(
        "article_views",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("article_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=True),
        sa.Column("user_agent", sa.String(length=500), nullable=False),
        sa.Column("visitor_ip", sa.String(length=64), nullable=False),
        sa.Column("created_time", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["article_id"], ["articles.id"], name="fk_article_views_article_id_articles"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_article_views"),
    )
    op.create_index("ix_article_views_article_id", "article_views", ["article_id"])


def downgrade() -> None:
    op.drop_index("ix_article_views_article_id", table_name="article_views")
    op.drop_table("article_views")
    op.drop_index("ix_comments_article_id_status_created_time", table_name="comments")
    op.drop_table("comments")
    op.drop_index("ix_articles_author_id", table_name="articles")
    op.drop_index("ix_articles_section_id_status_created_time", table_name="articles")
    op.drop_table("articles")
    op.drop_index("ix_sections_section_type", table_name="sections")
    op.drop_table("sections")
