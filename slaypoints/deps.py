"""Shared FastAPI dependencies."""

from fastapi import Depends, Request

from slaypoints.core.config import get_settings
from slaypoints.core.exceptions import AppError, UnauthorizedError
from slaypoints.core.logging import bind_session_id
from slaypoints.core.security import load_session_cookie
from slaypoints.services.auth_provider import AuthUser
from slaypoints.services.sessions import Session
from slaypoints.views.points_view import PointsView


async def get_session(request: Request) -> Session:
    """Dependency: the browser session named by the session cookie, created on first visit."""
    session = getattr(request.state, "session", None)
    if session is not None:
        return session
    cookie = request.cookies.get(get_settings().session_cookie_name)
    payload = load_session_cookie(cookie) if cookie else None
    session = await request.app.state.sessions.get_or_create(payload)
    request.state.session = session
    bind_session_id(session.id)
    return session


async def get_view(session: Session = Depends(get_session)) -> PointsView:
    return session.view


async def get_current_user(session: Session = Depends(get_session)) -> AuthUser:
    """Dependency: require a signed-in session."""
    user = session.auth.current_user
    if not user:
        raise UnauthorizedError("Not authenticated")
    return user


def raise_if_failed(error: AppError | None) -> None:
    """Turn the error a view action returned into an API error response."""
    if error is not None:
        raise error
