import logging
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker
from shiftr.core.config import settings
from shiftr.db.base import Base
from shiftr.models import *  # Import all models

logger = logging.getLogger(__name__)

async def create_tables(engine: AsyncEngine):
    """Create all database tables"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("✅ Database tables created successfully")

async def init_db(engine: AsyncEngine, session_maker: async_sessionmaker):
    """Initialize the database"""
    logger.info(f"🗄️  Initializing {engine.url.get_backend_name()} database for {settings.ENVIRONMENT} environment...")

    await create_tables(engine)

    if settings.SEED_DEMO_DATA:
        from shiftr.db.seeds.initial_data import create_initial_data
        async with session_maker() as session:
            await create_initial_data(session)

    logger.info("✅ Database initialized successfully")
