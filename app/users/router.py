# app/users/router.py

from fastapi import APIRouter, Depends, Header, HTTPException, status

from app.core.jwt import REFRESH_SCOPE, create_access_token, create_refresh_token, verify_token
from app.users.models import User
from app.users.schemas import LoginRequest, TokenResponse, UserResponse
from app.users.services import UserService
from app.users.utils import get_current_user
from app.utils.logger import get_logger

router = APIRouter(tags=["Users"])
logger = get_logger(__name__)


def issue_tokens(user: User) -> TokenResponse:
    """Access and refresh tokens carrying the user's organization."""
    claims = {"sub": user.email_address, "id": user.id, "org": user.organization_id}
    return TokenResponse(
        access_token=create_access_token(data=claims),
        refresh_token=create_refresh_token(data=claims),
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    login_request: LoginRequest,
    user_service: UserService = Depends(),
):
    """Authenticate user and return access & refresh tokens."""
    user = await user_service.authenticate_user(login_request)
    if not user:
        logger.warning("Failed login attempt", email=login_request.email_id)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password."
        )

    logger.info("User logged in", user_id=user.id, organization_id=user.organization_id)
    return issue_tokens(user)


@router.get("/user", response_model=UserResponse)
async def get_user_me(current_user: User = Depends(get_current_user)):
    """Details of the authenticated user."""
    return current_user


@router.post("/refresh", response_model=TokenResponse)
async def refresh_access_token(
    authorization: str = Header(..., alias="Authorization"),
    user_service: UserService = Depends(),
):
    """Exchange a refresh token for a new token pair."""
    payload = verify_token(authorization.removeprefix("Bearer ").strip(), scope=REFRESH_SCOPE)
    email = payload.get("sub")

    user = await user_service.repo.get_user_by_email(email) if email else None
    if not user or not user.is_active:
        logger.warning("Invalid refresh token attempt", email=email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token."
        )

    return issue_tokens(user)
