from fastapi import APIRouter, Depends
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from article_store.database import get_db
from article_store.models import Article, ArticleStatus, ArticleView, Comment
from article_store.schemas import MetricsResponse
from article_store.sessions import sessions

router = APIRouter(prefix="/api/v1/metrics", tags=["metrics"])

@router.get("", response_model=MetricsResponse)
async def get_metrics(db: AsyncSession = Depends(get_db)):

    rows = (
        await db.execute(select(Article.status, func.count()).group_by(Article.status))
    ).all()
    by_status = {status.name.lower(): 0 for status in ArticleStatus}
    for status, count in rows:
        by_status[ArticleStatus(status).name.lower()] = count

    total_comments = (
        await db.execute(
            select(func.count()).select_from(Comment).where(Comment.status == ArticleStatus.NORMAL)
        )
    ).scalar_one()

    total_views = (await db.execute(select(func.count()).select_from(ArticleView))).scalar_one()

    return MetricsResponse(
        articles_by_status=by_status,
        total_comments=total_comments,
        total_views=total_views,
        session_info=sessions.stats,
    )
