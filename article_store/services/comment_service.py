"""
Comment service: comments on visible articles.

Comments follow the same storage rules as articles: markdown source and
its rendering are both persisted at write time, reads pick a variant, and
deletion only flips ``status`` to Deleted.  Comments on a frozen or deleted
article are neither listed nor accepted.
"""
import logging
import uuid

from sqlalchemy import desc, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from article_store import rendering
from article_store.config import settings
from article_store.errors import ArticleNotFound, CommentNotFound, StoreError
from article_store.models import Article, ArticleStatus, Comment
from article_store.paging import paginate
from article_store.schemas import (
    CommentPage,
    ContentVariant,
    DeleteComment,
    NewComment,
    Permission,
)
from article_store.sessions import SessionStore

logger = logging.getLogger(__name__)


def _comment_to_dict(comment: Comment, variant: ContentVariant) -> dict:
    return {
        "id": comment.id,
        "article_id": comment.article_id,
        "author_id": comment.author_id,
        "content": comment.raw_content if variant is ContentVariant.RAW else comment.content,
        "created_time": comment.created_time,
        "status": comment.status,
    }


async def _ensure_article_visible(db: AsyncSession, article_id: uuid.UUID) -> None:
    q = select(Article.id).where(
        Article.id == article_id,
        Article.status == ArticleStatus.NORMAL,
    )
    try:
        found = (await db.execute(q)).scalar_one_or_none()
    except SQLAlchemyError as exc:
        raise StoreError(str(exc)) from exc
    if found is None:
        raise ArticleNotFound(article_id)


async def list_comments(
    db: AsyncSession,
    article_id: uuid.UUID,
    page: int = 1,
    page_size: int = settings.DEFAULT_PAGE_SIZE,
    variant: ContentVariant = ContentVariant.RENDERED,
) -> CommentPage:
    """Return one page of Normal comments on *article_id*, newest first."""
    await _ensure_article_visible(db, article_id)

    stmt = (
        select(Comment)
        .where(Comment.article_id == article_id, Comment.status == ArticleStatus.NORMAL)
        .order_by(desc(Comment.created_time), desc(Comment.id))
    )
    result = await paginate(db, stmt, page, page_size)
    return CommentPage(
        comments=[_comment_to_dict(c, variant) for c in result.rows],
        total=result.total,
        max_page=result.max_page,
        page=page,
        page_size=page_size,
    )


async def add_comment(
    db: AsyncSession,
    article_id: uuid.UUID,
    data: NewComment,
) -> dict:
    """
    Render and append a comment to *article_id*.

    Raises ``ArticleNotFound`` when the article is missing or not Normal.
    """
    await _ensure_article_visible(db, article_id)

    comment = Comment(
        id=uuid.uuid4(),
        article_id=article_id,
        author_id=data.author_id,
        raw_content=data.raw_content,
        content=rendering.render(data.raw_content),
        status=ArticleStatus.NORMAL,
    )
    db.add(comment)
    try:
        await db.flush()
    except SQLAlchemyError as exc:
        raise StoreError(str(exc)) from exc

    return _comment_to_dict(comment, ContentVariant.RENDERED)


async def delete_comment_with_permission(
    db: AsyncSession,
    data: DeleteComment,
    session_token: str | None,
    permission: Permission,
    sessions: SessionStore,
) -> bool:
    """
    Soft-delete a comment: moderators and admins always, others only when
    the session identity is ``data.user_id`` and that user wrote the comment.

    Raises ``CommentNotFound`` for an unknown comment and
    ``AuthResolutionError`` when the session lookup fails.
    """
    q = select(Comment.author_id).where(Comment.id == data.comment_id)
    try:
        author_id = (await db.execute(q)).scalar_one_or_none()
    except SQLAlchemyError as exc:
        raise StoreError(str(exc)) from exc
    if author_id is None:
        raise CommentNotFound(data.comment_id)

    if not permission.is_elevated:
        identity = await sessions.get_identity(session_token)
        if identity.id != data.user_id or author_id != data.user_id:
            return False

    stmt = (
        update(Comment)
        .where(Comment.id == data.comment_id)
        .values(status=ArticleStatus.DELETED)
    )
    try:
        await db.execute(stmt)
    except SQLAlchemyError as exc:
        logger.warning("Comment delete failed for %s: %s", data.comment_id, exc)
        return False
    return True
