"""Storefront API client with transparent token refresh"""

from .core import ClientSettings, Session, SessionCoordinator
from .services import StorefrontClient, StorefrontClientError

__all__ = [
    "ClientSettings",
    "Session",
    "SessionCoordinator",
    "StorefrontClient",
    "StorefrontClientError",
]
