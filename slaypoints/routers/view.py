from fastapi import APIRouter, Depends

from slaypoints.deps import get_view
from slaypoints.views.points_view import PointsView

router = APIRouter()


@router.get("")
async def view_state(view: PointsView = Depends(get_view)):
    return view.state.model_dump()


@router.post("/theme")
async def view_toggle_theme(view: PointsView = Depends(get_view)):
    view.toggle_theme()
    return view.state.model_dump()
