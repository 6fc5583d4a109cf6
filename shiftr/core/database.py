# shiftr/core/database.py
from typing import Any, AsyncIterator, Dict
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, async_sessionmaker, AsyncSession
from shiftr.core.config import settings


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create the async engine with options suited to the driver"""
    url = make_url(database_url)
    options: Dict[str, Any] = {"echo": echo, "future": True}

    if url.get_backend_name() == "sqlite":
        # aiosqlite runs the connection in its own thread
        options["connect_args"] = {"check_same_thread": False}
    else:
        options.update(
            pool_size=settings.DATABASE_POOL_SIZE,
            max_overflow=settings.DATABASE_MAX_OVERFLOW,
            pool_timeout=60,
            pool_recycle=3600,      # Recycle connections every hour
            pool_pre_ping=True,
        )

    return create_async_engine(database_url, **options)


engine = build_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)

async_session_maker = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

async def get_async_session() -> AsyncIterator[AsyncSession]:
    async with async_session_maker() as session:
        yield session
