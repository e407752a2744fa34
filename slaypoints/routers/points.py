from fastapi import APIRouter, Depends
from pydantic import BaseModel

from slaypoints.core.exceptions import InvalidAdjustmentError
from slaypoints.deps import get_current_user, get_view, raise_if_failed
from slaypoints.services.auth_provider import AuthUser
from slaypoints.views.points_view import PointsView

router = APIRouter()


class AdjustRequest(BaseModel):
    adjustment: str | int


@router.get("")
async def points_balance(user: AuthUser = Depends(get_current_user), view: PointsView = Depends(get_view)):
    """Return this session's balance (as last read or written by this session)."""
    return {"email": user.email, "points": view.state.points}


@router.post("/adjust")
async def points_adjust(
    body: AdjustRequest,
    user: AuthUser = Depends(get_current_user),
    view: PointsView = Depends(get_view),
):
    """Add a signed delta to the balance; the result never goes below zero."""
    raw = str(body.adjustment)
    if raw == "":
        raise InvalidAdjustmentError()
    raise_if_failed(await view.handle_adjust_points(raw))
    return {"points": view.state.points}


@router.post("/refresh")
async def points_refresh(user: AuthUser = Depends(get_current_user), view: PointsView = Depends(get_view)):
    """Re-read the persisted balance, picking up writes from other sessions."""
    raise_if_failed(await view.handle_refresh_points())
    return {"points": view.state.points}
