"""Room status transitions: waiting -> running -> completed."""

from __future__ import annotations

import logging
import random
import uuid
from datetime import datetime, timedelta, timezone

from app.directory import now_iso, release_participant
from app.errors import InvalidTransition
from app.matching import run_match_pass
from app.models import Room, RoomStatus, Unmatched

logger = logging.getLogger(__name__)


def new_room(name: str) -> Room:
    return Room(id=str(uuid.uuid4())[:8], name=name.strip(), created_at=now_iso())


def start_room(
    room: Room,
    duration_minutes: int | None = None,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> list[list[str]]:
    """Open matching and run the first partition pass."""
    if room.status != RoomStatus.WAITING:
        raise InvalidTransition(f"Cannot start a room that is {room.status}")

    now = now or datetime.now(timezone.utc)
    room.status = RoomStatus.RUNNING
    if duration_minutes:
        room.timer_end = (now + timedelta(minutes=duration_minutes)).isoformat()

    logger.info(f"Room {room.id} started (timer_end={room.timer_end})")
    return run_match_pass(room, rng)


def complete_room(room: Room) -> bool:
    """Move a running room to completed. Returns False if it already was."""
    if room.status == RoomStatus.COMPLETED:
        return False
    if room.status != RoomStatus.RUNNING:
        raise InvalidTransition(f"Cannot complete a room that is {room.status}")

    room.status = RoomStatus.COMPLETED
    for participant in room.participants.values():
        participant.match = Unmatched()
    logger.info(f"Room {room.id} completed")
    return True


def is_expired(room: Room, now: datetime | None = None) -> bool:
    if room.status != RoomStatus.RUNNING or not room.timer_end:
        return False
    now = now or datetime.now(timezone.utc)
    return now >= datetime.fromisoformat(room.timer_end)


def expire_if_due(room: Room, now: datetime | None = None) -> bool:
    """Force completion once the timer has run out. Safe to call from any poller."""
    if not is_expired(room, now):
        return False
    return complete_room(room)


def leave_match(room: Room, participant_id: str) -> list[str]:
    """End a participant's session for their whole group."""
    return release_participant(room, participant_id)
