"""Facilitator API routes: room creation, start/stop, removal, reset."""

from __future__ import annotations

import logging
import secrets

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel, Field

from app.broadcaster import broadcaster
from app.config import settings
from app.export import room_snapshot, status_payload
from app.scheduler import rematch_scheduler
from app.state import state_manager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin")


def check_password(password: str) -> None:
    """Compare against the shared facilitator secret (case-sensitive)."""
    if not secrets.compare_digest(password.encode(), settings.admin_password.encode()):
        raise HTTPException(status_code=401, detail="Wrong facilitator password")


async def require_admin(x_admin_password: str = Header(default="")) -> None:
    check_password(x_admin_password)


# --- Request models ---


class CreateRoomRequest(BaseModel):
    password: str
    name: str = Field(min_length=1)


class StartRequest(BaseModel):
    duration_minutes: int | None = Field(default=None, gt=0)


# --- Routes ---


@router.post("/room")
async def create_room(request: CreateRoomRequest):
    check_password(request.password)
    if not request.name.strip():
        raise HTTPException(status_code=422, detail="Room name is required")

    room = await state_manager.create_room(request.name)
    await broadcaster.broadcast("room_update", room_snapshot(room))
    return {"ok": True, **room_snapshot(room)}


@router.post("/start", dependencies=[Depends(require_admin)])
async def start_room(request: StartRequest):
    minutes = request.duration_minutes
    if minutes is not None and not (
        settings.advisory_min_duration_minutes
        <= minutes
        <= settings.advisory_max_duration_minutes
    ):
        logger.warning(f"Session length {minutes} min is outside the advised range")

    room, groups = await state_manager.start_room(minutes)
    snapshot = room_snapshot(room)
    await broadcaster.broadcast("status_update", status_payload(room))
    await broadcaster.broadcast("match_update", {"groups": groups, **snapshot})
    return {"ok": True, "groups": groups, **snapshot}


@router.post("/stop", dependencies=[Depends(require_admin)])
async def stop_room():
    room, changed = await state_manager.complete_room()
    if changed:
        await broadcaster.broadcast("status_update", status_payload(room))
    return {"ok": True, "changed": changed, **room_snapshot(room)}


@router.post("/rematch", dependencies=[Depends(require_admin)])
async def rematch():
    room, groups = await state_manager.run_match_pass()
    snapshot = room_snapshot(room)
    if groups:
        await broadcaster.broadcast("match_update", {"groups": groups, **snapshot})
    return {"ok": True, "groups": groups, **snapshot}


@router.delete("/participants/{participant_id}", dependencies=[Depends(require_admin)])
async def remove_participant(participant_id: str):
    room, freed = await state_manager.remove_participant(participant_id)
    if freed:
        rematch_scheduler.schedule()
    await broadcaster.broadcast("room_update", room_snapshot(room))
    return {"ok": True, "removed": participant_id, "freed": freed}


@router.post("/reset", dependencies=[Depends(require_admin)])
async def reset_room():
    room = await state_manager.reset_room()
    await broadcaster.broadcast("room_update", room_snapshot(room))
    return {"ok": True, **room_snapshot(room)}
