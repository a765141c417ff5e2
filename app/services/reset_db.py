### app/services/reset_db.py

# Standard library imports
import asyncio
import os
from typing import Dict

# Third party library imports
from sqlalchemy.ext.asyncio import AsyncEngine

# Local imports
from app.core.db import AsyncSessionLocal, Base, async_engine, create_all_tables
from app.users.models import Organization, User
from app.users.repository import UserRepository
from app.utils.logger import get_logger
from app.utils.security import get_password_hash

logger = get_logger(__name__)

DEMO_ORGANIZATION_ID = "demo-org-001"
DEMO_ADMIN_EMAIL = os.getenv("SEED_ADMIN_EMAIL", "admin@actas-demo.com")
DEMO_ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD", "admin123")


async def drop_all_tables(engine: AsyncEngine = async_engine):
    """Drop all the tables"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    logger.info("Dropped all tables")


async def seed_demo_data(session_factory=AsyncSessionLocal) -> Dict[str, str]:
    """
    Insert the demo organization and its admin user when they are missing.
    """
    async with session_factory() as session:
        repo = UserRepository(session)

        if await repo.get_organization(DEMO_ORGANIZATION_ID) is None:
            await repo.create(Organization(
                id=DEMO_ORGANIZATION_ID, name="Organización Demo", slug="demo"
            ))
            logger.info("Seeded demo organization", organization_id=DEMO_ORGANIZATION_ID)

        if await repo.get_user_by_email(DEMO_ADMIN_EMAIL) is None:
            await repo.create(User(
                email_address=DEMO_ADMIN_EMAIL,
                display_name="Administrador",
                password=get_password_hash(DEMO_ADMIN_PASSWORD),
                organization_id=DEMO_ORGANIZATION_ID,
                role="admin",
            ))
            logger.info("Seeded admin user", email=DEMO_ADMIN_EMAIL)

    return {"organization_id": DEMO_ORGANIZATION_ID, "admin_email": DEMO_ADMIN_EMAIL}


async def reset_db(drop: bool = False) -> Dict[str, str]:
    """
    Bring the database to a usable state: tables created and demo data seeded.
    """
    logger.info("Starting database reset", drop=drop)
    if drop:
        await drop_all_tables()
    await create_all_tables()
    seeded = await seed_demo_data()
    logger.info("Database reset successfully", **seeded)
    return {"status": "success", "message": "Database reset successfully"}

if __name__ == "__main__":
    asyncio.run(reset_db(drop=os.getenv("RESET_DROP_TABLES", "").lower() in ("1", "true", "yes")))
