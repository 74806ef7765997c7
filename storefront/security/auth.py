"""
Token authentication

Access tokens travel in the Authorization header; refresh tokens live in
an httpOnly cookie and carry tokenType=refresh.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import HTTPException, Request

from ..core.config import settings

logger = logging.getLogger(__name__)


@dataclass
class CurrentUser:
    """Identity extracted from a verified access token"""
    id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class TokenService:
    """Issues and verifies access/refresh JWTs"""

    algorithm = "HS256"

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        access_ttl: timedelta,
        refresh_ttl: timedelta,
    ):
        self._access_secret = access_secret
        self._refresh_secret = refresh_secret
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl

    def _encode(self, claims: dict, secret: str, ttl: timedelta) -> str:
        now = datetime.now(timezone.utc)
        payload = {**claims, "iat": now, "exp": now + ttl}
        return jwt.encode(payload, secret, algorithm=self.algorithm)

    def generate_access_token(self, user_id: str, role: str) -> str:
        return self._encode({"sub": user_id, "role": role}, self._access_secret, self.access_ttl)

    def generate_refresh_token(self, user_id: str, role: str) -> str:
        return self._encode(
            {"sub": user_id, "role": role, "tokenType": "refresh"},
            self._refresh_secret,
            self.refresh_ttl,
        )

    def verify_access_token(self, token: str) -> CurrentUser:
        try:
            payload = jwt.decode(token, self._access_secret, algorithms=[self.algorithm])
        except jwt.PyJWTError:
            raise HTTPException(status_code=401, detail="Invalid or expired access token")
        return CurrentUser(id=payload["sub"], role=payload.get("role", "customer"))

    def verify_refresh_token(self, token: str) -> CurrentUser:
        try:
            payload = jwt.decode(token, self._refresh_secret, algorithms=[self.algorithm])
        except jwt.PyJWTError:
            raise HTTPException(status_code=401, detail="Invalid or expired refresh token")
        if payload.get("tokenType") != "refresh":
            raise HTTPException(status_code=401, detail="Invalid refresh token")
        return CurrentUser(id=payload["sub"], role=payload.get("role", "customer"))


token_service = TokenService(
    access_secret=settings.jwt_access_secret,
    refresh_secret=settings.jwt_refresh_secret,
    access_ttl=timedelta(minutes=settings.jwt_access_expire_minutes),
    refresh_ttl=timedelta(days=settings.jwt_refresh_expire_days),
)


class AuthDependency:
    """
    FastAPI dependency for bearer-token authentication.

    Returns the CurrentUser, or None when authentication is optional and
    no token was sent.
    """

    def __init__(self, require_user: bool = True, require_admin: bool = False):
        """
        Args:
            require_user: If True, reject requests without a valid access token
            require_admin: If True, require the admin role
        """
        self.require_user = require_user or require_admin
        self.require_admin = require_admin

    async def __call__(self, request: Request) -> Optional[CurrentUser]:
        header = request.headers.get("Authorization", "")
        scheme, _, token = header.partition(" ")

        if scheme.lower() != "bearer" or not token:
            if self.require_user:
                raise HTTPException(status_code=401, detail="Unauthorized")
            return None

        user = token_service.verify_access_token(token)

        if self.require_admin and not user.is_admin:
            logger.warning(f"User {user.id} denied admin access to {request.url.path}")
            raise HTTPException(status_code=403, detail="Admin access required")

        return user


# Dependency instances
require_user = AuthDependency()
require_admin = AuthDependency(require_admin=True)
