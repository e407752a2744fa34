from fastapi import APIRouter, Depends
from pydantic import BaseModel

from slaypoints.deps import get_current_user, get_view, raise_if_failed
from slaypoints.services.auth_provider import AuthUser
from slaypoints.views.points_view import PointsView

router = APIRouter()


class CredentialsRequest(BaseModel):
    email: str
    password: str


class PasswordResetRequest(BaseModel):
    email: str = ""


class PasswordResetConfirmRequest(BaseModel):
    token: str
    password: str


def _user_out(view: PointsView) -> dict:
    user = view.state.user
    return {
        "user": {"uid": user.uid, "email": user.email} if user else None,
        "points": view.state.points,
    }


@router.post("/signup")
async def auth_signup(body: CredentialsRequest, view: PointsView = Depends(get_view)):
    """Create an account and sign this session in; a zero balance record is created."""
    raise_if_failed(await view.handle_sign_up(body.email, body.password))
    return _user_out(view)


@router.post("/login")
async def auth_login(body: CredentialsRequest, view: PointsView = Depends(get_view)):
    """Sign this session in and load the persisted balance."""
    raise_if_failed(await view.handle_login(body.email, body.password))
    return _user_out(view)


@router.post("/logout")
async def auth_logout(view: PointsView = Depends(get_view)):
    raise_if_failed(await view.handle_logout())
    return {"status": "ok"}


@router.post("/password-reset")
async def auth_password_reset(body: PasswordResetRequest, view: PointsView = Depends(get_view)):
    """Mail a reset link. Answers the same whether or not the address has an account."""
    raise_if_failed(await view.handle_password_reset(body.email))
    return {"status": "ok", "message": view.state.info_message}


@router.post("/password-reset/confirm")
async def auth_password_reset_confirm(body: PasswordResetConfirmRequest, view: PointsView = Depends(get_view)):
    raise_if_failed(await view.handle_password_reset_confirm(body.token, body.password))
    return {"status": "ok"}


@router.get("/me")
async def auth_me(user: AuthUser = Depends(get_current_user)):
    """Return current user. Requires session cookie."""
    return {"uid": user.uid, "email": user.email}
