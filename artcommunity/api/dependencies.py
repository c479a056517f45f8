"""
Request dependencies shared by the API routers
"""
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from typing import Optional
from artcommunity.auth.validator import AuthenticatedUser, SessionValidator
from artcommunity.config.settings import settings
from artcommunity.database.gateway import PersistenceGateway, get_gateway
from artcommunity.generation.bfl_client import BFLClient
bearer_scheme = HTTPBearer(auto_error=False)
def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    gateway: PersistenceGateway = Depends(get_gateway)
) -> AuthenticatedUser:
    """
    Resolve the requester from the session cookie, the token cookie or the bearer header
    The bearer token is tried when the token cookie is missing or rejected.
    Raises AuthenticationError when none of them identifies a user
    """
    return SessionValidator(gateway).validate(
        session_token=request.cookies.get(settings.SESSION_COOKIE_NAME),
        token=request.cookies.get(settings.AUTH_COOKIE_NAME),
        fallback_token=credentials.credentials if credentials else None
    )
def get_generation_client(request: Request) -> BFLClient:
    """Client created in the application lifespan"""
    return request.app.state.generation_client
