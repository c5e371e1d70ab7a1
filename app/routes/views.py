"""HTML view routes: printable results page."""

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from app.export import connection_display, leaderboard
from app.state import state_manager

router = APIRouter()

templates = Jinja2Templates(directory=Path(__file__).resolve().parent.parent / "templates")


@router.get("/export", response_class=HTMLResponse)
async def export_page(request: Request):
    room = await state_manager.get_room()
    if not room:
        return HTMLResponse("No room is open", status_code=404)

    return templates.TemplateResponse(
        request,
        "export.html",
        {
            "room": room,
            "leaderboard": leaderboard(room),
            "connections": [connection_display(room, c) for c in room.connections],
        },
    )
