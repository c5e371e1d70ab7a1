"""Participant API routes: join, profile, presence, sessions, trait submission."""

from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel

from app.broadcaster import broadcaster
from app.connections import connections_for
from app.directory import get_participant
from app.export import connection_display, participant_display, room_snapshot
from app.scheduler import rematch_scheduler
from app.state import state_manager

router = APIRouter(prefix="/api/participants")


class JoinRequest(BaseModel):
    room_name: str
    name: str
    affiliation: str


class TagsRequest(BaseModel):
    tags: list[str]


class PresenceRequest(BaseModel):
    online: bool


class TraitsRequest(BaseModel):
    traits: list[str]
    member_ids: list[str] | None = None


class ManualMatchRequest(BaseModel):
    partner_ids: list[str]


@router.post("")
async def join_room(request: JoinRequest):
    room, participant = await state_manager.join(
        request.room_name, request.name, request.affiliation
    )
    await broadcaster.broadcast("room_update", room_snapshot(room))
    return {"ok": True, "participant": participant.model_dump(mode="json")}


@router.get("/{participant_id}")
async def get_history(participant_id: str):
    room = await state_manager.require_room()
    participant = get_participant(room, participant_id)
    return {
        "participant": participant_display(room, participant),
        "tags": participant.tags,
        "connections": [
            connection_display(room, c) for c in connections_for(room, participant_id)
        ],
    }


@router.put("/{participant_id}/tags")
async def set_tags(participant_id: str, request: TagsRequest):
    room, participant = await state_manager.set_tags(participant_id, request.tags)
    await broadcaster.broadcast("room_update", room_snapshot(room))
    # A newly completed profile may be all the pool was waiting for
    rematch_scheduler.schedule()
    return {"ok": True, "participant": participant_display(room, participant)}


@router.post("/{participant_id}/presence")
async def set_presence(participant_id: str, request: PresenceRequest):
    room, participant = await state_manager.set_online(participant_id, request.online)
    await broadcaster.broadcast("room_update", room_snapshot(room))
    if request.online:
        rematch_scheduler.schedule()
    return {"ok": True, "participant": participant_display(room, participant)}


@router.post("/{participant_id}/traits")
async def submit_traits(participant_id: str, request: TraitsRequest):
    room, outcome = await state_manager.submit_traits(
        participant_id, request.traits, request.member_ids
    )
    if outcome.applied:
        for conn in room.connections:
            if conn.id == outcome.connection_id:
                await broadcaster.broadcast(
                    "connection_update", connection_display(room, conn)
                )
                break
    if outcome.released:
        await broadcaster.broadcast("match_update", room_snapshot(room))
        rematch_scheduler.schedule()
    return {"ok": True, **outcome.model_dump()}


@router.post("/{participant_id}/leave-match")
async def leave_match(participant_id: str):
    room, freed = await state_manager.leave_match(participant_id)
    if freed:
        await broadcaster.broadcast("match_update", room_snapshot(room))
        rematch_scheduler.schedule()
    return {"ok": True, "freed": freed}


@router.post("/{participant_id}/manual-match")
async def manual_match(participant_id: str, request: ManualMatchRequest):
    room, group = await state_manager.start_manual_match(
        participant_id, request.partner_ids
    )
    await broadcaster.broadcast("match_update", {"groups": [group], **room_snapshot(room)})
    return {"ok": True, "group": group}
