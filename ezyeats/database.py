"""SQL database: the durable store for shops, menus and orders"""
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from typing import AsyncIterator
from ezyeats.config import settings
import logging

logger = logging.getLogger(__name__)

engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
)

# Orders are serialized for the mirror after commit, so keep loaded attributes
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncIterator[AsyncSession]:
    """One session per request"""
    async with async_session_maker() as session:
        yield session


async def init_db():
    """Create the shop, menu and order tables if missing"""
    import ezyeats.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"Database ready: {', '.join(sorted(Base.metadata.tables))}")


async def close_db():
    await engine.dispose()
    logger.info("Database connections closed")
