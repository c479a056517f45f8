"""
User accounts: registration, login sessions and profile management
"""
from datetime import timedelta
from sqlalchemy import delete, or_, select, update
from typing import Any, Dict, Optional, Tuple
import logging
from artcommunity.auth.security import create_access_token, hash_password, new_session_token, verify_password
from artcommunity.auth.validator import AuthenticatedUser
from artcommunity.config.settings import settings
from artcommunity.database.gateway import PersistenceGateway
from artcommunity.database.models import User, UserSession, utcnow
from artcommunity.errors import AuthenticationError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
INVALID_CREDENTIALS = "Invalid username/email or password"


def _public_user(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": row["id"],
        "username": row["username"],
        "email": row["email"],
        "displayName": row["display_name"],
        "avatarUrl": row["avatar_url"],
        "bio": row.get("bio"),
        "credits": row.get("credits"),
        "isVerified": bool(row.get("is_verified")),
        "createdAt": row.get("created_at"),
    }


def _user_statement():
    return select(
        User.id,
        User.username,
        User.email,
        User.display_name,
        User.avatar_url,
        User.bio,
        User.credits,
        User.is_verified,
        User.created_at,
        User.password_hash,
    )


def _check_password_strength(password: Optional[str]):
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")


def _find_by_login(gateway: PersistenceGateway, username_or_email: str) -> Optional[Dict[str, Any]]:
    return gateway.query(
        _user_statement().where(or_(User.username == username_or_email, User.email == username_or_email))
    ).first()


def register_user(
    gateway: PersistenceGateway,
    username: Optional[str],
    email: Optional[str],
    password: Optional[str],
    display_name: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Create an account
    Args:
        username: Unique login name
        email: Unique email address
        password: Plain password, hashed before storage
        display_name: Optional name shown to others (defaults to username)
    Returns:
        The new user's public profile
    """
    if not username or not email or not password:
        raise ValidationError("Username, email and password are required")
    _check_password_strength(password)

    taken = gateway.query(
        select(User.id).where(or_(User.username == username, User.email == email))
    ).first()
    if taken:
        raise ValidationError("A user with this username or email already exists")

    user = gateway.add(User(
        username=username,
        email=email,
        password_hash=hash_password(password),
        display_name=display_name or username,
    ))
    gateway.commit()
    logger.info(f"Registered user {user.id} ({username})")
    return get_profile(gateway, user.id)


def login_user(
    gateway: PersistenceGateway, username_or_email: Optional[str], password: Optional[str]
) -> Tuple[Dict[str, Any], str, str]:
    """
    Check credentials and open a session
    Returns:
        (public profile, signed access token, session token)
    """
    if not username_or_email or not password:
        raise ValidationError("Username/email and password are required")
    row = _find_by_login(gateway, username_or_email)
    if row is None or not verify_password(password, row["password_hash"]):
        logger.info(f"Failed login for {username_or_email}")
        raise AuthenticationError(INVALID_CREDENTIALS)

    session_token = new_session_token()
    gateway.add(UserSession(
        session_token=session_token,
        user_id=row["id"],
        expires_at=utcnow() + timedelta(days=settings.SESSION_EXPIRE_DAYS),
    ))
    gateway.commit()
    token = create_access_token(row["id"], row["username"])
    logger.info(f"User {row['id']} logged in")
    return _public_user(row), token, session_token


def logout_user(gateway: PersistenceGateway, identity: AuthenticatedUser):
    gateway.query(delete(UserSession).where(UserSession.user_id == identity.id))
    gateway.commit()
    logger.info(f"User {identity.id} logged out")


def get_profile(gateway: PersistenceGateway, user_id: int) -> Dict[str, Any]:
    row = gateway.query(_user_statement().where(User.id == user_id)).first()
    if row is None:
        raise NotFoundError("User not found")
    return _public_user(row)


def update_profile(
    gateway: PersistenceGateway,
    identity: AuthenticatedUser,
    display_name: Optional[str] = None,
    bio: Optional[str] = None,
    avatar_url: Optional[str] = None,
    email: Optional[str] = None,
) -> Dict[str, Any]:
    """Partial profile update; ``None`` keeps the stored value"""
    values = {
        "display_name": display_name,
        "bio": bio,
        "avatar_url": avatar_url,
        "email": email,
    }
    values = {key: value for key, value in values.items() if value is not None}
    if "email" in values:
        clash = gateway.query(
            select(User.id).where(User.email == values["email"], User.id != identity.id)
        ).first()
        if clash:
            raise ValidationError("This email is already in use")
    if values:
        values["updated_at"] = utcnow()
        gateway.query(update(User).where(User.id == identity.id).values(**values))
        gateway.commit()
    return get_profile(gateway, identity.id)


def change_password(
    gateway: PersistenceGateway,
    identity: AuthenticatedUser,
    current_password: Optional[str],
    new_password: Optional[str],
):
    if not current_password or not new_password:
        raise ValidationError("Current and new password are required")
    _check_password_strength(new_password)
    stored = gateway.query(select(User.password_hash).where(User.id == identity.id)).scalar()
    if not verify_password(current_password, stored):
        raise AuthenticationError("Current password is incorrect")
    gateway.query(
        update(User)
        .where(User.id == identity.id)
        .values(password_hash=hash_password(new_password), updated_at=utcnow())
    )
    gateway.commit()
    logger.info(f"Password changed for user {identity.id}")
