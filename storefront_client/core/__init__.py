# Core modules

from .config import ClientSettings, get_client_settings
from .session import Session, SessionCoordinator

__all__ = ["ClientSettings", "get_client_settings", "Session", "SessionCoordinator"]
