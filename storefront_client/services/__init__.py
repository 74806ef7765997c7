# Services

from .storefront_client import StorefrontClient, StorefrontClientError

__all__ = ["StorefrontClient", "StorefrontClientError"]
