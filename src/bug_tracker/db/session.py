from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from bug_tracker.config import settings
from bug_tracker.models.models import Base

engine = create_async_engine(settings.database_url, echo=settings.db_echo, pool_pre_ping=True)

async_session = async_sessionmaker(engine, expire_on_commit=False)


async def init_db() -> None:
    """Create missing tables. Only used when DB_AUTO_CREATE is set; Alembic owns the schema otherwise."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
