"""Merges per-member trait submissions into one Connection per match-group."""

from __future__ import annotations

import logging

from app.config import settings
from app.directory import (
    clean_entries,
    effective_group,
    get_participant,
    now_iso,
    release_group,
)
from app.errors import InvalidTransition, NotMatched, ValidationFailed
from app.models import Connection, Room, RoomStatus, SubmissionOutcome
from app.scoring import connection_id, score_delta, shared_tags

logger = logging.getLogger(__name__)


def find_connection(room: Room, conn_id: str) -> Connection | None:
    for conn in room.connections:
        if conn.id == conn_id:
            return conn
    return None


def connections_for(room: Room, participant_id: str) -> list[Connection]:
    return [c for c in room.connections if participant_id in c.member_ids]


def _open_connection(room: Room, member_ids: list[str]) -> Connection:
    members = [room.participants[mid] for mid in member_ids if mid in room.participants]
    conn = Connection(
        id=connection_id(member_ids),
        member_ids=member_ids,
        group_size=len(member_ids),
        common_traits=shared_tags(members),
        created_at=now_iso(),
    )
    room.connections.append(conn)

    for member in members:
        member.met.update(mid for mid in member_ids if mid != member.id)
    return conn


def submit_traits(
    room: Room,
    member_ids: list[str],
    submitter_id: str,
    traits: list[str],
) -> SubmissionOutcome:
    """Record one member's traits for their group and score the whole group.

    Repeating a submission that already landed is a no-op. When the last
    member submits, the Connection is finalized and the group is released.
    Must run inside a single state transaction.
    """
    members = sorted(set(member_ids))
    if len(members) not in (2, 3) or len(members) != len(member_ids):
        raise ValidationFailed("A match-group has two or three distinct members")
    if submitter_id not in members:
        raise ValidationFailed("Submitter is not a member of this group")
    cleaned = clean_entries(traits, settings.traits_per_session, "traits")

    conn_id = connection_id(members)
    conn = find_connection(room, conn_id)

    if conn and submitter_id in conn.submitted_by:
        outcome = SubmissionOutcome(
            connection_id=conn_id, applied=False, finalized=conn.is_complete
        )
        # A group that meets again after finalizing has nothing left to add
        if conn.is_complete and effective_group(room, submitter_id) == members:
            outcome.released = release_group(room, members)
        return outcome

    if room.status != RoomStatus.RUNNING:
        raise InvalidTransition("Submissions are closed")
    get_participant(room, submitter_id)
    if effective_group(room, submitter_id) != members:
        raise NotMatched("Submitter is not currently matched with this group")

    if conn is None:
        conn = _open_connection(room, members)

    conn.submitted_by.append(submitter_id)
    conn.individual_traits[submitter_id] = cleaned
    for trait in cleaned:
        if trait not in conn.common_traits:
            conn.common_traits.append(trait)

    delta = score_delta(len(cleaned), conn.group_size)
    for member_id in members:
        member = room.participants.get(member_id)
        if member:
            member.score += delta

    outcome = SubmissionOutcome(connection_id=conn_id, applied=True, delta=delta)
    if conn.is_complete:
        outcome.finalized = True
        outcome.released = release_group(room, members)
        logger.info(f"Connection {conn_id} finalized; released {outcome.released}")
    return outcome
