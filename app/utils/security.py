# app/utils/security.py

from typing import Optional

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

def verify_password(password: str, hashed_password: Optional[str]) -> bool:
    """
    Verify a password against a stored hash.
    Accounts without a password never authenticate.
    """
    if not hashed_password:
        return False
    return pwd_context.verify(password, hashed_password)


def get_password_hash(password: str) -> str:
    """
    Get a bcrypt password hash
    """
    return pwd_context.hash(password)
