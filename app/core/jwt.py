# app/core/jwt.py

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import ExpiredSignatureError, JWTError, jwt
from fastapi import HTTPException, status

from app.core.config import settings
from app.utils.logger import get_logger

logger = get_logger(__name__)

ACCESS_SCOPE = "access"
REFRESH_SCOPE = "refresh"


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _encode(claims: Dict[str, Any], scope: str, lifetime: timedelta) -> str:
    payload = {**claims, "scope": scope, "exp": datetime.now(timezone.utc) + lifetime}
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a short-lived token for API calls"""
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    return _encode(data, ACCESS_SCOPE, lifetime)


def create_refresh_token(data: dict) -> str:
    """Create a token that can only be exchanged at /refresh"""
    return _encode(data, REFRESH_SCOPE, timedelta(days=settings.refresh_token_expire_days))


def verify_token(token: str, scope: str = ACCESS_SCOPE) -> Dict[str, Any]:
    """Decode a token, rejecting expired ones and ones issued for another scope"""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except ExpiredSignatureError as e:
        logger.info("Expired token presented", scope=scope)
        raise _unauthorized("Token has expired") from e
    except JWTError as e:
        logger.warning("Token could not be verified", error_message=str(e))
        raise _unauthorized("Invalid authentication credentials.") from e

    if payload.get("scope") != scope:
        logger.warning("Token used with the wrong scope", expected=scope, actual=payload.get("scope"))
        raise _unauthorized("Invalid token scope")
    return payload
