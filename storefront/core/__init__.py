# Core modules

from .config import settings, get_settings
from .session import SessionManager, SessionMiddleware, UserSession

__all__ = ["settings", "get_settings", "SessionManager", "SessionMiddleware", "UserSession"]
