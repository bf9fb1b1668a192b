"""
Offset/limit paging shared by article and comment listings.

The COUNT and the slice are two independent statements with no snapshot
between them, so under concurrent writes ``total`` may be off by a row
relative to the returned slice.
"""
import math
from typing import Any, NamedTuple, Sequence

from sqlalchemy import Select, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from article_store.errors import StoreError, ValidationError


class Page(NamedTuple):
    rows: Sequence[Any]
    total: int
    max_page: int


def page_offset(page: int, page_size: int) -> int:
    """SQL OFFSET for a 1-based *page*."""
    return page_size * (page - 1)


def max_page_for(total: int, page_size: int) -> int:
    return math.ceil(total / page_size) if total > 0 else 0


def validate_paging(page: int, page_size: int) -> None:
    if page < 1:
        raise ValidationError(f"page must be >= 1, got {page}")
    if page_size < 1:
        raise ValidationError(f"page_size must be >= 1, got {page_size}")


async def paginate(db: AsyncSession, stmt: Select, page: int, page_size: int) -> Page:
    """
    Run *stmt* (already filtered and ordered) for one page.

    The total is counted over *stmt* with its ORDER BY dropped.
    """
    validate_paging(page, page_size)

    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    try:
        total: int = (await db.execute(count_stmt)).scalar_one()
        result = await db.execute(
            stmt.offset(page_offset(page, page_size)).limit(page_size)
        )
        rows = result.scalars().all()
    except SQLAlchemyError as exc:
        raise StoreError(str(exc)) from exc

    return Page(rows=rows, total=total, max_page=max_page_for(total, page_size))
