"""
Authentication endpoints: registration, login/logout and profile
"""
from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
import logging
from artcommunity.config.settings import settings
from artcommunity.auth.validator import AuthenticatedUser
from artcommunity.database.gateway import PersistenceGateway, get_gateway
from artcommunity.services import (
    register_user, login_user, logout_user, get_profile, update_profile, change_password
)
from artcommunity.api.dependencies import get_current_user
from artcommunity.api.schemas import (
    RegisterRequest, LoginRequest, ProfileUpdateRequest, ChangePasswordRequest
)
logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth")
def _set_cookie(response: JSONResponse, name: str, value: str, max_age: int):
    response.set_cookie(
        key=name,
        value=value,
        max_age=max_age,
        path="/",
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="strict"
    )
@router.post("/register", status_code=201)
def register(request: RegisterRequest, gateway: PersistenceGateway = Depends(get_gateway)):
    """Create an account"""
    user = register_user(
        gateway,
        request.username,
        request.email,
        request.password,
        display_name=request.display_name
    )
    return {"message": "User registered successfully", "user": user}
@router.post("/login")
def login(request: LoginRequest, gateway: PersistenceGateway = Depends(get_gateway)):
    """Check credentials and set the token and session cookies"""
    user, token, session_token = login_user(gateway, request.username_or_email, request.password)
    response = JSONResponse(content={"message": "Login successful", "user": jsonable_encoder(user), "token": token})
    _set_cookie(response, settings.AUTH_COOKIE_NAME, token, settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60)
    _set_cookie(response, settings.SESSION_COOKIE_NAME, session_token, settings.SESSION_EXPIRE_DAYS * 24 * 60 * 60)
    return response
@router.post("/logout")
def logout(
    user: AuthenticatedUser = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway)
):
    logout_user(gateway, user)
    response = JSONResponse(content={"message": "Logged out successfully"})
    response.delete_cookie(settings.AUTH_COOKIE_NAME, path="/")
    response.delete_cookie(settings.SESSION_COOKIE_NAME, path="/")
    return response
@router.get("/me")
def me(
    user: AuthenticatedUser = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway)
):
    """Profile of the requester, including credits"""
    return {"user": get_profile(gateway, user.id)}
@router.put("/profile")
def profile(
    request: ProfileUpdateRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway)
):
    updated = update_profile(
        gateway,
        user,
        display_name=request.display_name,
        bio=request.bio,
        avatar_url=request.avatar_url,
        email=request.email
    )
    return {"message": "Profile updated successfully", "user": updated}
@router.post("/change-password")
def password(
    request: ChangePasswordRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway)
):
    change_password(gateway, user, request.current_password, request.new_password)
    return {"message": "Password changed successfully"}
