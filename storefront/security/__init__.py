# Authentication and password hashing

from .auth import AuthDependency, CurrentUser, TokenService, token_service, require_user, require_admin
from .passwords import hash_password, verify_password

__all__ = [
    "AuthDependency",
    "CurrentUser",
    "TokenService",
    "token_service",
    "require_user",
    "require_admin",
    "hash_password",
    "verify_password",
]
