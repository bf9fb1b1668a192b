import uuid

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from article_store.database import get_db
from article_store.dependencies import (
    PaginationParams,
    get_permission,
    get_session_token,
    get_user_agent,
    get_visitor_ip,
)
from article_store.errors import ArticleNotFound, Forbidden, StoreError
from article_store.models import SectionType
from article_store.schemas import (
    ArticleCreated,
    ArticlePage,
    ArticleResponse,
    CommentPage,
    CommentResponse,
    ContentVariant,
    DeleteArticle,
    DeleteComment,
    EditArticle,
    EditArticleBody,
    MutationStatus,
    NewArticle,
    NewComment,
    Permission,
    RowsAffected,
)
from article_store.services import article_service, comment_service, stats_service
from article_store.sessions import sessions

router = APIRouter(prefix="/api/v1", tags=["articles"])


# --- Listings ---

@router.get("/sections/{section_id}/articles", response_model=ArticlePage)
async def list_section_articles(
    section_id: uuid.UUID,
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
):
    return await article_service.list_by_section(
        db, section_id, pagination.page, pagination.page_size, pagination.variant
    )

@router.get("/sections/{section_id}/articles/all", response_model=list[ArticleResponse])
async def list_all_section_articles(
    section_id: uuid.UUID,
    variant: ContentVariant = ContentVariant.RENDERED,
    db: AsyncSession = Depends(get_db),
):
    return await article_service.list_all_by_section(db, section_id, variant)

@router.get("/blogs", response_model=ArticlePage)
async def list_blogs(
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
):
    return await article_service.list_by_section_type(
        db, SectionType.BLOG, pagination.page, pagination.page_size, pagination.variant
    )


# --- Single article ---

@router.get("/articles/{article_id}", response_model=ArticleResponse)
async def get_article(
    article_id: uuid.UUID,
    request: Request,
    variant: ContentVariant = ContentVariant.RENDERED,
    db: AsyncSession = Depends(get_db),
):
    article = await article_service.get_by_id(db, article_id, variant)
    visitor = await sessions.find_identity(get_session_token(request))
    await stats_service.record_view(
        db,
        article_id,
        visitor.id if visitor else None,
        get_user_agent(request),
        get_visitor_ip(request),
    )
    return article

@router.post("/articles", status_code=201, response_model=ArticleCreated)
async def create_article(data: NewArticle, db: AsyncSession = Depends(get_db)):
    article_id = await article_service.insert_article(db, data)
    if article_id is None:
        raise StoreError("Article could not be saved")
    return {"id": article_id}

@router.put("/articles/{article_id}", response_model=RowsAffected)
async def edit_article(
    article_id: uuid.UUID, data: EditArticleBody, db: AsyncSession = Depends(get_db)
):
    rows = await article_service.edit_article(
        db, EditArticle(id=article_id, **data.model_dump())
    )
    if rows == 0:
        raise ArticleNotFound(article_id)
    return {"rows_affected": rows}

@router.delete("/articles", response_model=MutationStatus)
async def delete_article(
    data: DeleteArticle,
    session_token: str | None = Depends(get_session_token),
    permission: Permission = Depends(get_permission),
    db: AsyncSession = Depends(get_db),
):
    deleted = await article_service.delete_with_permission(
        db, data, session_token, permission, sessions
    )
    if not deleted:
        raise Forbidden("Not allowed to delete this article")
    return {"status": True}


# --- Comments ---

@router.get("/articles/{article_id}/comments", response_model=CommentPage)
async def list_comments(
    article_id: uuid.UUID,
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
):
    return await comment_service.list_comments(
        db, article_id, pagination.page, pagination.page_size, pagination.variant
    )

@router.post("/articles/{article_id}/comments", status_code=201, response_model=CommentResponse)
async def add_comment(
    article_id: uuid.UUID, data: NewComment, db: AsyncSession = Depends(get_db)
):
    return await comment_service.add_comment(db, article_id, data)

@router.delete("/comments", response_model=MutationStatus)
async def delete_comment(
    data: DeleteComment,
    session_token: str | None = Depends(get_session_token),
    permission: Permission = Depends(get_permission),
    db: AsyncSession = Depends(get_db),
):
    deleted = await comment_service.delete_comment_with_permission(
        db, data, session_token, permission, sessions
    )
    if not deleted:
        raise Forbidden("Not allowed to delete this comment")
    return {"status": True}
