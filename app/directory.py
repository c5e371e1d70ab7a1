"""Participant directory: joins, profiles, presence, removal and match pointers.

Everything here is a plain function over a ``Room`` loaded inside a state
transaction; nothing touches Redis directly.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from app.config import settings
from app.errors import (
    InvalidTransition,
    ParticipantNotFound,
    RoomMismatch,
    ValidationFailed,
)
from app.models import (
    PairedWith,
    Participant,
    Room,
    RoomStatus,
    TripledWith,
    Unmatched,
)


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def clean_entries(values: list[str], expected: int, label: str) -> list[str]:
    """Strip entries and require exactly ``expected`` non-empty ones."""
    cleaned = [v.strip() for v in values]
    if len(cleaned) != expected or any(not v for v in cleaned):
        raise ValidationFailed(f"Exactly {expected} non-empty {label} are required")
    return cleaned


def get_participant(room: Room, participant_id: str) -> Participant:
    participant = room.participants.get(participant_id)
    if not participant:
        raise ParticipantNotFound(f"Participant {participant_id} not found")
    return participant


def is_profile_complete(participant: Participant) -> bool:
    return len(participant.tags) == settings.tags_per_profile and all(
        t.strip() for t in participant.tags
    )


def effective_group(room: Room, participant_id: str) -> list[str] | None:
    """Sorted member ids of the participant's active group, or None.

    A pointer at a missing participant, or one that is not returned by every
    other member, counts as no match at all.
    """
    participant = room.participants.get(participant_id)
    if not participant or not participant.partner_ids:
        return None

    group = {participant_id, *participant.partner_ids}
    if len(group) != len(participant.partner_ids) + 1:
        return None
    for member_id in participant.partner_ids:
        member = room.participants.get(member_id)
        if not member or {member_id, *member.partner_ids} != group:
            return None
    return sorted(group)


def is_unmatched(room: Room, participant_id: str) -> bool:
    return effective_group(room, participant_id) is None


def assign_group(room: Room, member_ids: list[str]) -> None:
    """Point every member of a 2- or 3-person group at the others."""
    if len(member_ids) not in (2, 3) or len(set(member_ids)) != len(member_ids):
        raise ValueError(f"Invalid group {member_ids}")
    members = [get_participant(room, mid) for mid in member_ids]

    for member in members:
        others = [mid for mid in member_ids if mid != member.id]
        if len(others) == 1:
            member.match = PairedWith(partner=others[0])
        else:
            member.match = TripledWith(partners=(others[0], others[1]))


def release_group(room: Room, member_ids: list[str]) -> list[str]:
    """Set every listed member that still points into the group to unmatched.

    Returns the ids that were actually freed.
    """
    group = set(member_ids)
    freed: list[str] = []
    for member_id in member_ids:
        member = room.participants.get(member_id)
        if not member or not member.partner_ids:
            continue
        if set(member.partner_ids) & group:
            member.match = Unmatched()
            freed.append(member_id)
    return freed


def release_participant(room: Room, participant_id: str) -> list[str]:
    """Clear the match of a participant and everyone their pointers reach."""
    participant = get_participant(room, participant_id)
    if not participant.partner_ids:
        return []
    group = [participant_id, *participant.partner_ids]
    for member_id in participant.partner_ids:
        member = room.participants.get(member_id)
        if member:
            group.extend(m for m in member.partner_ids if m not in group)
    return release_group(room, group)


# --- Commands ---


def join(room: Room, room_name: str, name: str, affiliation: str) -> Participant:
    if room.status == RoomStatus.COMPLETED:
        raise InvalidTransition("Room is no longer accepting participants")
    if room.name.strip() != room_name.strip():
        raise RoomMismatch(f"Room name does not match the open room ({room.name})")

    name = name.strip()
    affiliation = affiliation.strip()
    if not name or not affiliation:
        raise ValidationFailed("Name and affiliation are required")

    participant = Participant(
        id=f"user-{uuid.uuid4().hex[:8]}",
        name=name,
        affiliation=affiliation,
        joined_at=now_iso(),
    )
    room.participants[participant.id] = participant
    return participant


def add_participants(room: Room, participants: list[Participant]) -> int:
    """Insert prepared participants whose ids are new to the room."""
    for participant in participants:
        if participant.id in room.participants:
            raise ValidationFailed(f"Participant {participant.id} already exists")
        room.participants[participant.id] = participant
    return len(participants)


def set_tags(room: Room, participant_id: str, tags: list[str]) -> Participant:
    cleaned = clean_entries(tags, settings.tags_per_profile, "tags")
    participant = get_participant(room, participant_id)
    participant.tags = cleaned
    return participant


def set_online(room: Room, participant_id: str, online: bool) -> Participant:
    participant = get_participant(room, participant_id)
    participant.online = online
    return participant


def remove_participant(room: Room, participant_id: str) -> list[str]:
    """Delete a participant after freeing the rest of their group.

    Returns the ids of former partners that were freed.
    """
    get_participant(room, participant_id)
    freed = release_participant(room, participant_id)
    del room.participants[participant_id]

    # Sweep any pointer left at the removed id (e.g. a stale asymmetric one)
    for other in room.participants.values():
        if participant_id in other.partner_ids:
            other.match = Unmatched()
            if other.id not in freed:
                freed.append(other.id)

    return [pid for pid in freed if pid != participant_id]
