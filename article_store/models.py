from __future__ import annotations

import enum
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from article_store.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ArticleStatus(enum.IntEnum):
    """Lifecycle flag shared by articles and comments. Only NORMAL is readable."""

    NORMAL = 0
    FROZEN = 1
    DELETED = 2


class SectionType(enum.IntEnum):
    FORUM = 0
    BLOG = 1


# ---------------------------------------------------------------------------
# Section
# ---------------------------------------------------------------------------
class Section(Base):
    __tablename__ = "sections"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    section_type: Mapped[int] = mapped_column(
        SmallInteger, default=SectionType.FORUM, nullable=False, index=True
    )
    created_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )


# ---------------------------------------------------------------------------
# Article
# ---------------------------------------------------------------------------
class Article(Base):
    __tablename__ = "articles"

    __table_args__ = (
        # Section listing: WHERE section_id = ? AND status = 0 ORDER BY created_time DESC
        Index("ix_articles_section_id_status_created_time", "section_id", "status", "created_time"),
        Index("ix_articles_author_id", "author_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    raw_content: Mapped[str] = mapped_column(Text, nullable=False)
    # Rendered markup of raw_content as of the last write.
    content: Mapped[str] = mapped_column(Text, nullable=False)
    section_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("sections.id"), nullable=False
    )
    author_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    tags: Mapped[str] = mapped_column(String(500), default="", nullable=False)
    created_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    status: Mapped[int] = mapped_column(
        SmallInteger, default=ArticleStatus.NORMAL, nullable=False
    )


# ---------------------------------------------------------------------------
# Comment
# ---------------------------------------------------------------------------
class Comment(Base):
    __tablename__ = "comments"

    __table_args__ = (
        Index("ix_comments_article_id_status_created_time", "article_id", "status", "created_time"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    article_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("articles.id"), nullable=False
    )
    author_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    raw_content: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    status: Mapped[int] = mapped_column(
        SmallInteger, default=ArticleStatus.NORMAL, nullable=False
    )


# ---------------------------------------------------------------------------
# ArticleView: one row per successful detail read
# ---------------------------------------------------------------------------
class ArticleView(Base):
    __tablename__ = "article_views"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    article_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("articles.id"), nullable=False, index=True
    )
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)
    user_agent: Mapped[str] = mapped_column(String(500), default="", nullable=False)
    visitor_ip: Mapped[str] = mapped_column(String(64), default="", nullable=False)
    created_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
