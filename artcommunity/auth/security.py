"""
Password hashing and signed token helpers
"""
from datetime import datetime, timedelta, timezone
from jose import jwt
from passlib.context import CryptContext
from typing import Any, Dict, Optional
import secrets
from artcommunity.config.settings import settings

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    return pwd_context.verify(password, password_hash)


def create_access_token(user_id: int, username: str, expires_minutes: Optional[int] = None) -> str:
    """
    Issue a signed token carrying the user id
    Args:
        user_id: Numeric user id, stored in the ``userId`` claim
        username: Username, informational only
        expires_minutes: Lifetime override (defaults to settings)
    Returns:
        Encoded JWT
    """
    lifetime = settings.ACCESS_TOKEN_EXPIRE_MINUTES if expires_minutes is None else expires_minutes
    claims = {
        "userId": user_id,
        "username": username,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=lifetime),
    }
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Verify signature and expiry; raises ``jose.JWTError`` on failure"""
    return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])


def new_session_token() -> str:
    return secrets.token_urlsafe(32)
