"""Storefront sessions; each one owns its cart state"""

import logging
import uuid
from datetime import datetime
from typing import Callable, Optional
from dataclasses import dataclass, field

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from ..cart.state import CartState

logger = logging.getLogger(__name__)


@dataclass
class UserSession:
    """Storefront visitor session"""
    session_id: str
    created_at: datetime
    updated_at: datetime
    cart: CartState = field(default_factory=CartState)

    @property
    def cart_id(self) -> Optional[str]:
        """Cart id issued by the cart service"""
        return self.cart.cart_id

    def touch(self) -> None:
        self.updated_at = datetime.utcnow()


class SessionManager:
    """Manages storefront sessions"""

    def __init__(self, max_age_hours: int = 24):
        self.sessions: dict[str, UserSession] = {}
        self.max_age_hours = max_age_hours

    def create_session(self) -> UserSession:
        """Create a new session"""
        now = datetime.utcnow()
        session = UserSession(
            session_id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
        )
        self.sessions[session.session_id] = session
        return session

    def get_session(self, session_id: str) -> Optional[UserSession]:
        """Get session by ID"""
        return self.sessions.get(session_id)

    def get_or_create_session(self, session_id: Optional[str] = None) -> UserSession:
        """Get existing session or create new one"""
        session = self.get_session(session_id) if session_id else None
        if session:
            session.touch()
            return session
        self.cleanup_old_sessions(self.max_age_hours)
        return self.create_session()

    def cleanup_old_sessions(self, max_age_hours: int = 24) -> int:
        """Remove sessions older than max_age_hours"""
        now = datetime.utcnow()
        old_sessions = [
            sid for sid, session in self.sessions.items()
            if (now - session.updated_at).total_seconds() > max_age_hours * 3600
        ]
        for sid in old_sessions:
            del self.sessions[sid]
        if old_sessions:
            logger.info(f"Removed {len(old_sessions)} expired sessions")
        return len(old_sessions)


class SessionMiddleware(BaseHTTPMiddleware):
    """
    Attaches the visitor's session to ``request.state.session``.

    The session id travels in a cookie; a new session sets the cookie on
    the response.
    """

    def __init__(self, app, sessions: SessionManager, cookie_name: str):
        super().__init__(app)
        self.sessions = sessions
        self.cookie_name = cookie_name

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        session_id = request.cookies.get(self.cookie_name)
        session = self.sessions.get_or_create_session(session_id)
        request.state.session = session

        response = await call_next(request)

        if session.session_id != session_id:
            response.set_cookie(
                self.cookie_name,
                session.session_id,
                httponly=True,
                samesite="lax",
            )
        return response
