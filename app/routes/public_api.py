"""Public API routes: room state, SSE stream, leaderboard, graph, exports."""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse, StreamingResponse

from app.broadcaster import broadcaster
from app.export import connection_display, export_text, leaderboard, room_snapshot
from app.expiry_worker import announce_completion
from app.graph import graph_data
from app.state import state_manager

router = APIRouter(prefix="/api")


@router.get("/state")
async def get_state():
    # Every polling viewer doubles as a timer check
    if await state_manager.expire_if_due():
        await announce_completion()

    room = await state_manager.get_room()
    if not room:
        return {"room": None}
    return room_snapshot(room)


@router.get("/state/stream")
async def state_stream():
    """SSE endpoint for real-time updates."""

    async def event_generator():
        yield ": connected\n\n"
        async for message in broadcaster.subscribe():
            yield message

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.get("/leaderboard")
async def get_leaderboard():
    room = await state_manager.require_room()
    return {"status": room.status, "leaderboard": leaderboard(room)}


@router.get("/connections")
async def get_connections():
    room = await state_manager.require_room()
    return {
        "connections": [connection_display(room, c) for c in room.connections],
        "count": len(room.connections),
    }


@router.get("/graph")
async def get_graph():
    room = await state_manager.require_room()
    return graph_data(room)


@router.get("/export.txt", response_class=PlainTextResponse)
async def get_text_export():
    room = await state_manager.require_room()
    return PlainTextResponse(export_text(room))
