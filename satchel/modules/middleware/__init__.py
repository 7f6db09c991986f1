"""
Session Middleware Module - Black Box Interface

Purpose: Bind a SessionManager to each HTTP request
Interface: SessionMiddleware, create_session_middleware()
Hidden: Cookie names and attributes, auto-start policy, write-back on response

Can be used by any FastAPI app or sub-app that needs sessions.
"""

import logging
import time
from typing import Callable, Dict, List, Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse

from ...config.provider import SessionConfig
from ..session import AutoStart, SessionManager
from ..storage import SessionStorage

logger = logging.getLogger(__name__)


class SessionMiddleware:
    """
    Request-scoped session middleware for FastAPI applications.

    Reads the session identifier and visit key from cookies, loads the
    session, exposes the manager as request.state.session and writes the
    session back once the endpoint has produced its response.
    """

    def __init__(
        self,
        storage_provider: Callable[[], Optional[SessionStorage]],
        config: SessionConfig,
        skip_paths: Optional[Dict[str, List[str]]] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize session middleware.

        Args:
            storage_provider: Returns the session storage (None until the app has started)
            config: Session configuration
            skip_paths: Dict of {path: [methods]} that never touch the session
            clock: Source of the current Unix time
        """
        self.storage_provider = storage_provider
        self.config = config
        self.skip_paths = skip_paths or {}
        self.clock = clock

    def should_skip(self, request: Request) -> bool:
        """Check if the session should be skipped for this request."""
        allowed_methods = self.skip_paths.get(str(request.url.path))
        if allowed_methods is None:
            return False
        return "*" in allowed_methods or request.method.upper() in allowed_methods

    def create_manager(self, request: Request, storage: SessionStorage) -> SessionManager:
        """Build a session manager from the request cookies."""
        cookie = self.config.cookie
        return SessionManager(
            storage,
            session_id=request.cookies.get(cookie.name),
            visit_key=request.cookies.get(cookie.visit_name),
            expiration=self.config.expiration,
            auto_start=self.config.auto_start,
            clock=self.clock,
        )

    def attach_cookies(self, response: Response, manager: SessionManager) -> None:
        """Send the session identifier and visit key back to the client."""
        cookie = self.config.cookie
        attributes = {
            "path": cookie.path,
            "domain": cookie.domain,
            "secure": cookie.secure,
            "httponly": cookie.httponly,
            "samesite": cookie.samesite,
        }
        response.set_cookie(cookie.name, manager.id, max_age=manager.expiration, **attributes)
        # Browser-session cookie: disappears when the visit ends
        response.set_cookie(cookie.visit_name, manager.visit_key, **attributes)

    def clear_cookies(self, response: Response) -> None:
        cookie = self.config.cookie
        for name in (cookie.name, cookie.visit_name):
            response.delete_cookie(name, path=cookie.path, domain=cookie.domain)

    async def __call__(self, request: Request, call_next):
        """Process the request with a session attached."""
        if self.should_skip(request):
            return await call_next(request)

        storage = self.storage_provider()
        if storage is None:
            logger.error("Session storage is not initialized")
            return JSONResponse(status_code=503, content={"error": "Session storage unavailable"})

        manager = self.create_manager(request, storage)
        await manager.load()

        if self.config.auto_start is AutoStart.ALWAYS or (
            self.config.auto_start is AutoStart.SMART and manager.exists()
        ):
            await manager.start()

        request.state.session = manager
        response = await call_next(request)

        if manager.is_started:
            await manager.close()
            self.attach_cookies(response, manager)
        elif not manager.exists() and request.cookies.get(self.config.cookie.name):
            # Destroyed, or the client presented an unknown identifier
            self.clear_cookies(response)

        return response


def create_session_middleware(
    storage_provider: Callable[[], Optional[SessionStorage]],
    config: SessionConfig,
    skip_paths: Optional[Dict[str, List[str]]] = None,
) -> SessionMiddleware:
    """
    Factory function to create session middleware.

    Args:
        storage_provider: Callable returning the session storage
        config: Session configuration
        skip_paths: Paths to skip {"/path": ["GET", "POST"]}

    Returns:
        Configured SessionMiddleware instance
    """
    return SessionMiddleware(storage_provider=storage_provider, config=config, skip_paths=skip_paths)


__all__ = ["SessionMiddleware", "create_session_middleware"]
