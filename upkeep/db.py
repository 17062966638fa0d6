import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from upkeep.entity_store import EntityStores
from upkeep.load_secrets import database_url
from upkeep.models.schemas import Base

logging.getLogger("aiosqlite").setLevel(logging.WARNING)

engine = create_async_engine(database_url, echo=False)

# Centralized session factory to avoid creating it in router modules.
Session = async_sessionmaker(
    autocommit=False,
    class_=AsyncSession,
    autoflush=True,
    expire_on_commit=False,
    bind=engine,
)


async def create_tables(bind: AsyncEngine = engine) -> None:
    """Create table if not exists"""
    try:
        async with bind.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except IntegrityError as e:
        logging.warning(f"Table already exists or other integrity error: {e}")


def get_stores() -> EntityStores:
    """FastAPI dependency: SQL-backed stores sharing the app session factory."""
    return EntityStores.from_session(Session)
