"""View statistics: one ``ArticleView`` row per successful article read."""
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from article_store.errors import StoreError
from article_store.models import ArticleView


async def record_view(
    db: AsyncSession,
    article_id: uuid.UUID,
    user_id: uuid.UUID | None,
    user_agent: str,
    visitor_ip: str,
) -> None:
    db.add(
        ArticleView(
            article_id=article_id,
            user_id=user_id,
            user_agent=user_agent[:500],
            visitor_ip=visitor_ip[:64],
        )
    )
    try:
        await db.flush()
    except SQLAlchemyError as exc:
        raise StoreError(str(exc)) from exc

