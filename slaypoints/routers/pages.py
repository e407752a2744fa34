"""The points page and its form posts. Every post runs one view action and redirects back to /."""

from pathlib import Path

from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from slaypoints.deps import get_view
from slaypoints.views.points_view import PointsView

router = APIRouter()

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))


def _back_home() -> RedirectResponse:
    return RedirectResponse("/", status_code=303)


@router.get("/", response_class=HTMLResponse)
async def index(request: Request, view: PointsView = Depends(get_view)):
    return templates.TemplateResponse(request, "index.html", {"state": view.state})


@router.post("/login")
async def login(
    email: str = Form(""),
    password: str = Form(""),
    view: PointsView = Depends(get_view),
):
    await view.handle_login(email, password)
    return _back_home()


@router.post("/signup")
async def signup(
    email: str = Form(""),
    password: str = Form(""),
    view: PointsView = Depends(get_view),
):
    await view.handle_sign_up(email, password)
    return _back_home()


@router.post("/logout")
async def logout(view: PointsView = Depends(get_view)):
    await view.handle_logout()
    return _back_home()


@router.post("/adjust")
async def adjust(adjustment: str = Form(""), view: PointsView = Depends(get_view)):
    await view.handle_adjust_points(adjustment)
    return _back_home()


@router.post("/theme")
async def theme(view: PointsView = Depends(get_view)):
    view.toggle_theme()
    return _back_home()


@router.post("/password-reset")
async def password_reset(email: str = Form(""), view: PointsView = Depends(get_view)):
    await view.handle_password_reset(email)
    return _back_home()


@router.get("/password-reset/confirm", response_class=HTMLResponse)
async def password_reset_form(
    request: Request,
    token: str = Query(""),
    view: PointsView = Depends(get_view),
):
    return templates.TemplateResponse(request, "password_reset.html", {"state": view.state, "token": token})


@router.post("/password-reset/confirm")
async def password_reset_confirm(
    token: str = Form(""),
    password: str = Form(""),
    view: PointsView = Depends(get_view),
):
    await view.handle_password_reset_confirm(token, password)
    return _back_home()
