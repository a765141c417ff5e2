# app/users/repository.py

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.users.models import Organization, User


class UserRepository:
    """
    Data Access Layer for User and Organization models.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_email(self, email: str) -> Optional[User]:
        """Fetch a user by email address."""
        stmt = select(User).where(User.email_address == email)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_user_by_id(self, user_id: int) -> Optional[User]:
        """Fetch a user by ID."""
        stmt = select(User).where(User.id == user_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_organization(self, organization_id: str) -> Optional[Organization]:
        """Fetch an organization by ID."""
        stmt = select(Organization).where(Organization.id == organization_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, instance):
        """Persist a new user or organization."""
        self.db.add(instance)
        await self.db.commit()
        await self.db.refresh(instance)
        return instance

    async def update(self, user: User) -> User:
        """Update an existing user."""
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        return user
