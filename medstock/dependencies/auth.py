# medstock/dependencies/auth.py
from datetime import timedelta
from functools import lru_cache

from fastapi import Depends, Request

from medstock.core.config import get_settings
from medstock.core.database import SessionLocal
from medstock.core.exceptions import AuthorizationError, LoginRequiredError, StorageError
from medstock.core.redis import get_redis_client
from medstock.services.session_service import (
    DatabaseSessionStore,
    RedisSessionStore,
    SessionManager,
    SessionState,
)


@lru_cache()
def get_session_manager() -> SessionManager:
    """
    Build the process-wide SessionManager from settings.

    Tests override this dependency to point the store at their own database.
    """
    settings = get_settings()
    ttl = timedelta(days=settings.session_ttl_days)

    if settings.session_backend == "redis":
        client = get_redis_client()
        if client is None:
            raise StorageError("SESSION_BACKEND=redis but Redis is not available.")
        return SessionManager(RedisSessionStore(client), ttl)

    return SessionManager(DatabaseSessionStore(SessionLocal), ttl)


def get_session_token(request: Request) -> str | None:
    return request.cookies.get(get_settings().session_cookie_name)


def require_api_session(
    token: str | None = Depends(get_session_token),
    session_manager: SessionManager = Depends(get_session_manager),
) -> str:
    """
    Guard for every /api route: 401 unless the session cookie is valid.
    Runs on each request, so logout or expiry takes effect immediately.
    """
    if session_manager.validate(token) is not SessionState.AUTHENTICATED:
        raise AuthorizationError()
    return token


def require_page_session(
    token: str | None = Depends(get_session_token),
    session_manager: SessionManager = Depends(get_session_manager),
) -> str:
    """Guard for protected HTML pages: anonymous visitors go to the login page."""
    if session_manager.validate(token) is not SessionState.AUTHENTICATED:
        raise LoginRequiredError()
    return token
