"""Room state manager: the single live Room document in Redis.

Every mutation loads the Room under ``WATCH``, applies one domain command and
commits with ``MULTI``/``EXEC``. A concurrent write aborts the commit and the
command is replayed against fresh state after a jittered backoff, up to
``max_transaction_retries``. Writers in one process take turns on a lock, so
only writes from other workers can conflict. A command that leaves the Room
unchanged commits nothing.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Callable
from typing import TypeVar

from redis.exceptions import WatchError

from app import connections, directory, lifecycle, matching
from app.config import settings
from app.errors import NoRoomOpen, NotMatched, TransactionConflict
from app.models import Participant, Room, SubmissionOutcome
from app.redis_client import get_redis

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _room_key() -> str:
    return f"room:{settings.room_slug}:state"


def _backoff_seconds(attempt: int) -> float:
    """Exponential delay with full jitter, capped."""
    base = settings.transaction_backoff_seconds
    ceiling = min(settings.transaction_backoff_max_seconds, base * 2 ** (attempt - 1))
    return random.uniform(0, ceiling)


class RoomStateManager:
    """Narrow command interface over the shared Room."""

    def __init__(self) -> None:
        self._lock: asyncio.Lock | None = None
        self._lock_loop: asyncio.AbstractEventLoop | None = None

    # --- Reads ---

    async def get_room(self) -> Room | None:
        r = get_redis()
        raw = await r.get(_room_key())
        if raw:
            return Room.model_validate_json(raw)
        return None

    async def require_room(self) -> Room:
        room = await self.get_room()
        if not room:
            raise NoRoomOpen()
        return room

    # --- Transactions ---

    def _write_lock(self) -> asyncio.Lock:
        # asyncio.Lock is bound to the loop it first waits on
        loop = asyncio.get_running_loop()
        if self._lock is None or self._lock_loop is not loop:
            self._lock = asyncio.Lock()
            self._lock_loop = loop
        return self._lock

    async def _transact(self, command: Callable[[Room], T]) -> tuple[Room, T]:
        """Run ``command`` against the current Room and commit atomically."""
        r = get_redis()
        key = _room_key()
        retries = settings.max_transaction_retries

        async with self._write_lock():
            for attempt in range(1, retries + 1):
                async with r.pipeline(transaction=True) as pipe:
                    try:
                        await pipe.watch(key)
                        raw = await pipe.get(key)
                        if not raw:
                            raise NoRoomOpen()
                        room = Room.model_validate_json(raw)

                        before = room.model_dump_json()
                        result = command(room)
                        after = room.model_dump_json()
                        if after == before:
                            return room, result

                        pipe.multi()
                        pipe.set(key, after)
                        await pipe.execute()
                        return room, result
                    except WatchError:
                        logger.debug(f"Room write conflict, retrying (attempt {attempt})")

                if attempt < retries:
                    await asyncio.sleep(_backoff_seconds(attempt))

        logger.warning(f"Giving up after {retries} conflicting writes")
        raise TransactionConflict()

    # --- Room lifecycle ---

    async def create_room(self, name: str) -> Room:
        """Open a new room, discarding whatever was there before."""
        room = lifecycle.new_room(name)
        r = get_redis()
        await r.set(_room_key(), room.model_dump_json())
        logger.info(f"Room {room.id} created: {room.name!r}")
        return room

    async def reset_room(self) -> Room:
        room = await self.require_room()
        return await self.create_room(room.name)

    async def start_room(
        self, duration_minutes: int | None = None
    ) -> tuple[Room, list[list[str]]]:
        return await self._transact(
            lambda room: lifecycle.start_room(room, duration_minutes)
        )

    async def complete_room(self) -> tuple[Room, bool]:
        return await self._transact(lifecycle.complete_room)

    async def expire_if_due(self) -> bool:
        """Complete the room if its timer has passed; cheap when it has not."""
        room = await self.get_room()
        if not room or not lifecycle.is_expired(room):
            return False
        _, changed = await self._transact(lifecycle.expire_if_due)
        return changed

    async def run_match_pass(self) -> tuple[Room, list[list[str]]]:
        return await self._transact(matching.run_match_pass)

    # --- Participants ---

    async def join(
        self, room_name: str, name: str, affiliation: str
    ) -> tuple[Room, Participant]:
        return await self._transact(
            lambda room: directory.join(room, room_name, name, affiliation)
        )

    async def set_tags(
        self, participant_id: str, tags: list[str]
    ) -> tuple[Room, Participant]:
        return await self._transact(
            lambda room: directory.set_tags(room, participant_id, tags)
        )

    async def set_online(
        self, participant_id: str, online: bool
    ) -> tuple[Room, Participant]:
        return await self._transact(
            lambda room: directory.set_online(room, participant_id, online)
        )

    async def add_participants(self, participants: list[Participant]) -> Room:
        """Load prepared participants into the open room (demo seeding)."""
        room, added = await self._transact(
            lambda room: directory.add_participants(room, participants)
        )
        logger.info(f"Added {added} participants to room {room.id}")
        return room

    async def remove_participant(self, participant_id: str) -> tuple[Room, list[str]]:
        return await self._transact(
            lambda room: directory.remove_participant(room, participant_id)
        )

    # --- Sessions ---

    async def leave_match(self, participant_id: str) -> tuple[Room, list[str]]:
        return await self._transact(
            lambda room: lifecycle.leave_match(room, participant_id)
        )

    async def start_manual_match(
        self, requester_id: str, partner_ids: list[str]
    ) -> tuple[Room, list[str]]:
        return await self._transact(
            lambda room: matching.start_manual_match(room, requester_id, partner_ids)
        )

    async def submit_traits(
        self,
        submitter_id: str,
        traits: list[str],
        member_ids: list[str] | None = None,
    ) -> tuple[Room, SubmissionOutcome]:
        """Submit traits for the submitter's group.

        ``member_ids`` pins the group the client saw, so a retry after the
        group was finalized and released still resolves to the same record.
        """

        def command(room: Room) -> SubmissionOutcome:
            group = member_ids
            if group is None:
                directory.get_participant(room, submitter_id)
                group = directory.effective_group(room, submitter_id)
                if group is None:
                    raise NotMatched()
            return connections.submit_traits(room, group, submitter_id, traits)

        return await self._transact(command)


# Global instance
state_manager = RoomStateManager()
