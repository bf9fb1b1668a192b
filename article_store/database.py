import logging

from sqlalchemy import MetaData
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from article_store.config import settings
from article_store.middleware import install_query_counter

logger = logging.getLogger(__name__)

# Stable constraint names so Alembic autogenerate produces reviewable diffs.
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


def build_engine(url: str, **kwargs) -> AsyncEngine:
    """Create an async engine for *url* with the SQL query counter attached."""
    engine = create_async_engine(url, **kwargs)
    install_query_counter(engine)
    return engine


# Module-level engine variable allows tests to override with a test engine.
engine = build_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_pre_ping=True,
)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


async def get_db():
    """
    Yield a request-scoped session.

    Services flush but never commit; the transaction is committed here when
    the handler returns and rolled back when it raises.
    """
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            logger.debug("Rolling back request transaction")
            await session.rollback()
            raise
