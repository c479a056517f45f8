"""
Session/token validation

Resolves the caller's identity from either a server-side session cookie or
a signed token (cookie or bearer header). The result is an immutable
``AuthenticatedUser`` that handlers receive as an explicit argument.
"""
from dataclasses import dataclass
from jose import JWTError
from sqlalchemy import select
from typing import Any, Dict, Optional
import logging
from artcommunity.auth.security import decode_access_token
from artcommunity.database.gateway import PersistenceGateway
from artcommunity.database.models import User, UserSession, utcnow
from artcommunity.errors import AuthenticationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthenticatedUser:
    """Identity of the requester"""
    id: int
    username: str
    email: str
    display_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "displayName": self.display_name,
            "username": self.username,
            "email": self.email,
        }


def _user_id_from_claims(claims: Dict[str, Any]) -> Optional[int]:
    value = claims.get("userId")
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return None


class SessionValidator:
    """Turns request credentials into an ``AuthenticatedUser``"""

    def __init__(self, gateway: PersistenceGateway):
        self.gateway = gateway

    def validate(
        self,
        session_token: Optional[str] = None,
        token: Optional[str] = None,
        fallback_token: Optional[str] = None,
    ) -> AuthenticatedUser:
        """
        Authenticate a request
        Args:
            session_token: Value of the session cookie, if any
            token: Signed token from cookie or bearer header, if any
            fallback_token: Tried when ``token`` is absent or rejected
        Returns:
            The resolved identity
        Raises:
            AuthenticationError: no usable credential or unknown user
            StorageError: the user lookup failed
        """
        tokens = [candidate for candidate in (token, fallback_token) if candidate]
        user_id = None
        if session_token:
            user_id = self._user_id_from_session(session_token)
            if user_id is None and not tokens:
                raise AuthenticationError("Invalid or expired session")

        if user_id is None:
            if not tokens:
                raise AuthenticationError("Authentication required")
            user_id = self._user_id_from_tokens(tokens)

        return self._load_user(user_id)

    def _user_id_from_session(self, session_token: str) -> Optional[int]:
        stmt = select(UserSession.user_id).where(
            UserSession.session_token == session_token,
            UserSession.expires_at > utcnow(),
        )
        return self.gateway.query(stmt).scalar()

    def _user_id_from_tokens(self, tokens) -> int:
        """First token that verifies; the last rejection is raised when none does"""
        for candidate in tokens[:-1]:
            try:
                return self._user_id_from_token(candidate)
            except AuthenticationError:
                continue
        return self._user_id_from_token(tokens[-1])

    def _user_id_from_token(self, token: str) -> int:
        try:
            claims = decode_access_token(token)
        except JWTError as e:
            logger.info(f"Rejected token: {e}")
            raise AuthenticationError("Invalid or expired token")
        user_id = _user_id_from_claims(claims)
        if user_id is None:
            raise AuthenticationError("Invalid or expired token")
        return user_id

    def _load_user(self, user_id: int) -> AuthenticatedUser:
        stmt = select(User.id, User.username, User.email, User.display_name).where(User.id == user_id)
        row = self.gateway.query(stmt).first()
        if row is None:
            raise AuthenticationError("User not found")
        return AuthenticatedUser(
            id=row["id"],
            username=row["username"],
            email=row["email"],
            display_name=row["display_name"],
        )
