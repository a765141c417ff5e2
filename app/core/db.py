# app/core/db.py

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base

from app.core.config import settings
from app.utils.logger import get_logger

# --- Configure logging ---
logger = get_logger(__name__)

# --- Create declarative base ---
Base = declarative_base()

# --- Asynchronous database setup ---
async_engine = create_async_engine(settings.async_db_url, echo=False, future=True)
AsyncSessionLocal = async_sessionmaker(
    bind=async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

async def get_async_db():
    """
    Async method for obtaining database session object
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            logger.info("Committing async DB transaction")
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error("Error in async DB transaction", error_message=str(e))
            raise e
        finally:
            await session.close()


async def create_all_tables(engine=async_engine):
    """
    Create every mapped table that does not exist yet
    """
    # Import models so they are registered on the metadata
    from app.users import models as _user_models  # noqa: F401
    from app.actas import models as _acta_models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ensured", url=str(engine.url))
