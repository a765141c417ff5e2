# app/users/services.py

from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_async_db
from app.users.models import User
from app.users.repository import UserRepository
from app.users.schemas import LoginRequest
from app.utils.security import verify_password
from app.utils.logger import get_logger

logger = get_logger(__name__)

def get_user_repository(db: AsyncSession = Depends(get_async_db)) -> UserRepository:
    """Dependency to get UserRepository instance."""
    return UserRepository(db)


class UserService:
    """
    Business logic layer for user-related operations.
    Depends on the UserRepository for data access.
    """

    def __init__(self, repo: UserRepository = Depends(get_user_repository)):
        self.repo = repo

    async def authenticate_user(self, login_data: LoginRequest) -> Optional[User]:
        """Authenticate user by email and password."""
        user = await self.repo.get_user_by_email(login_data.email_id)

        if not user or not user.is_active or not verify_password(login_data.password, user.password):
            logger.warning("Authentication failed for email", email=login_data.email_id)
            return None

        user.last_login = datetime.now(timezone.utc)
        await self.repo.update(user)
        return user
