"""Database connection and session management."""
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base

from saas_dashboard.config import get_settings

settings = get_settings()

engine_options = {"echo": settings.debug, "pool_pre_ping": True}
if not settings.database_url.startswith("sqlite"):
    engine_options.update(
        pool_size=20,
        max_overflow=10,
        pool_timeout=30,     # Wait up to 30 seconds for a connection
        pool_recycle=3600,   # Recycle connections after 1 hour
    )

engine = create_async_engine(settings.database_url, **engine_options)

# Session factory
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# Base for models
Base = declarative_base()


async def init_db():
    """Create the cache tables if they don't exist."""
    import saas_dashboard.models  # noqa: F401  registers tables on Base.metadata

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
