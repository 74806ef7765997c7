"""Auth routes: login, silent token refresh, logout"""

import logging

from fastapi import APIRouter, HTTPException, Request, Response

from ..core.config import settings
from ..database.users import User, user_db
from ..models.auth import LoginRequest, LoginResponse, RefreshResponse, UserOut
from ..security.auth import token_service
from ..security.passwords import verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


def _attach_refresh_cookie(response: Response, user: User) -> None:
    response.set_cookie(
        key=settings.refresh_cookie_name,
        value=token_service.generate_refresh_token(user.id, user.role),
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        max_age=int(token_service.refresh_ttl.total_seconds()),
        path="/api/auth",
    )


@router.post("/login", response_model=LoginResponse)
async def login(request: LoginRequest, response: Response):
    """Sign in with email and password"""
    user = user_db.get_by_email(request.email)
    if not user or not verify_password(request.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    _attach_refresh_cookie(response, user)
    logger.info(f"User {user.id} signed in")

    return LoginResponse(
        access_token=token_service.generate_access_token(user.id, user.role),
        user=UserOut.model_validate(user),
    )


@router.post("/refresh-token", response_model=RefreshResponse)
async def refresh_token(request: Request, response: Response):
    """Exchange the refresh cookie for a new access token (rotates the cookie)"""
    token = request.cookies.get(settings.refresh_cookie_name)
    if not token:
        raise HTTPException(status_code=401, detail="Refresh token missing")

    identity = token_service.verify_refresh_token(token)
    user = user_db.get(identity.id)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid refresh token")

    _attach_refresh_cookie(response, user)
    return RefreshResponse(access_token=token_service.generate_access_token(user.id, user.role))


@router.post("/logout")
async def logout(response: Response):
    """Drop the refresh cookie"""
    response.delete_cookie(settings.refresh_cookie_name, path="/api/auth")
    return {"message": "Logged out"}
