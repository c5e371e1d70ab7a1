"""Greedy pair/triple partitioning of the eligible pool.

Prefers groups whose members have not met, falls back to repeats only when no
fresh option remains, and gives an odd pool exactly one triple. Ties are
broken first-fit in a fresh random order on every call; this is deliberately
not an optimal minimum-repeat matcher.
"""

from __future__ import annotations

import logging
import random
from itertools import combinations

from app.directory import (
    assign_group,
    get_participant,
    is_profile_complete,
    is_unmatched,
)
from app.errors import InvalidTransition, NotMatched, ValidationFailed
from app.models import Participant, Room, RoomStatus

logger = logging.getLogger(__name__)


def have_met(a: Participant, b: Participant) -> bool:
    return b.id in a.met or a.id in b.met


def eligible_pool(room: Room) -> list[Participant]:
    """Online, profile-complete, effectively unmatched participants."""
    return [
        p
        for p in room.participants.values()
        if p.online and is_profile_complete(p) and is_unmatched(room, p.id)
    ]


def compute_matches(
    pool: list[Participant],
    rng: random.Random | None = None,
) -> list[list[str]]:
    """Partition the pool into disjoint groups of 2 or 3 participant ids.

    Args:
        pool: Eligible participants.
        rng: Optional random source (tests pass a seeded one).

    Returns:
        Triple first (odd pools only), then pairs. Empty when the pool has
        fewer than 2 participants.
    """
    if len(pool) < 2:
        return []

    order = list(pool)
    (rng or random).shuffle(order)

    groups: list[list[str]] = []
    if len(order) % 2 == 1:
        triple = _pick_triple(order)
        groups.append([p.id for p in triple])
        taken = {p.id for p in triple}
        order = [p for p in order if p.id not in taken]

    used: set[str] = set()
    for i, a in enumerate(order):
        if a.id in used:
            continue
        for b in order[i + 1 :]:
            if b.id in used or have_met(a, b):
                continue
            groups.append([a.id, b.id])
            used.update((a.id, b.id))
            break

    # Everyone left has already met every remaining candidate
    leftovers = [p for p in order if p.id not in used]
    for i in range(0, len(leftovers) - 1, 2):
        groups.append([leftovers[i].id, leftovers[i + 1].id])

    return groups


def _pick_triple(order: list[Participant]) -> tuple[Participant, ...]:
    for triple in combinations(order, 3):
        a, b, c = triple
        if not (have_met(a, b) or have_met(a, c) or have_met(b, c)):
            return triple
    return tuple(order[:3])


def run_match_pass(room: Room, rng: random.Random | None = None) -> list[list[str]]:
    """Compute groups for the eligible pool and write them into the room."""
    if room.status != RoomStatus.RUNNING:
        return []

    groups = compute_matches(eligible_pool(room), rng)
    for group in groups:
        assign_group(room, group)

    if groups:
        logger.info(
            f"Match pass formed {len(groups)} group(s) "
            f"({sum(1 for g in groups if len(g) == 3)} triple)"
        )
    return groups


def start_manual_match(
    room: Room, requester_id: str, partner_ids: list[str]
) -> list[str]:
    """Let a participant open a session with one or two chosen people."""
    if room.status != RoomStatus.RUNNING:
        raise InvalidTransition("Sessions can only start while the room is running")

    group = [requester_id, *partner_ids]
    if not 1 <= len(partner_ids) <= 2 or len(set(group)) != len(group):
        raise ValidationFailed("Choose one or two other participants")

    for member_id in group:
        member = get_participant(room, member_id)
        if not is_profile_complete(member):
            raise ValidationFailed(f"{member.name} has not finished their profile")
        if not is_unmatched(room, member_id):
            raise NotMatched(f"{member.name} is already in a session")

    assign_group(room, group)
    logger.info(f"Manual session started by {requester_id} with {partner_ids}")
    return sorted(group)
