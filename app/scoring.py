"""Point scoring and group keys for match-groups."""

from __future__ import annotations

import math
from collections.abc import Iterable

from app.config import settings
from app.models import Participant


def make_group_key(ids: Iterable[str]) -> str:
    """Order-independent key for a set of participant ids."""
    return ":".join(sorted(set(ids)))


def connection_id(member_ids: Iterable[str]) -> str:
    return f"conn:{make_group_key(member_ids)}"


def score_delta(trait_count: int, group_size: int) -> int:
    """Points awarded to every group member for one submission.

    Each submitted trait is worth ``points_per_trait``; triples get the
    ``triple_multiplier`` bonus, rounded down.
    """
    multiplier = settings.triple_multiplier if group_size == 3 else 1
    return math.floor(trait_count * settings.points_per_trait * multiplier)


def shared_tags(members: list[Participant]) -> list[str]:
    """Tags present in every member's profile, in the first member's order."""
    if not members:
        return []
    others = [{t.strip() for t in m.tags} for m in members[1:]]
    shared: list[str] = []
    for tag in members[0].tags:
        tag = tag.strip()
        if tag and tag not in shared and all(tag in o for o in others):
            shared.append(tag)
    return shared
