"""Open a demo room in Redis filled with fake participants for development."""

from __future__ import annotations

import asyncio
import random
import uuid

from app.config import settings
from app.models import Participant, Room

FIRST_NAMES = [
    "Alice", "Ben", "Carlos", "Dana", "Emily", "Frank", "Grace", "Henry",
    "Iris", "Jack", "Kim", "Leo", "Maya", "Noah", "Olivia", "Pablo",
    "Quinn", "Rosa", "Sam", "Tara", "Uma", "Victor", "Wendy", "Xavier",
    "Yuki", "Zara", "Aaron", "Beth", "Chris", "Diane",
]

AFFILIATIONS = ["Design", "Engineering", "Sales", "Marketing", "Finance", "Ops", "HR"]

TAG_POOL = [
    "coffee", "hiking", "cats", "dogs", "running", "sci-fi", "jazz", "k-pop",
    "baking", "board games", "cycling", "photography", "camping", "yoga",
    "anime", "soccer", "podcasts", "gardening", "travel", "chess", "swimming",
    "night owl", "early bird", "spicy food", "tea", "guitar", "piano",
    "museums", "video games", "karaoke", "climbing", "fishing", "poetry",
]


def generate_participants(
    count: int = 20,
    rng: random.Random | None = None,
) -> list[Participant]:
    """Participants with complete 10-tag profiles drawn from a shared pool."""
    rng = rng or random.Random()
    participants = []

    for i in range(count):
        first = FIRST_NAMES[i % len(FIRST_NAMES)]
        suffix = "" if i < len(FIRST_NAMES) else f" {i // len(FIRST_NAMES) + 1}"
        participants.append(
            Participant(
                id=f"user-{uuid.UUID(int=rng.getrandbits(128)).hex[:8]}",
                name=f"{first}{suffix}",
                affiliation=rng.choice(AFFILIATIONS),
                tags=rng.sample(TAG_POOL, settings.tags_per_profile),
            )
        )

    return participants


def build_demo_room(name: str = "Demo Room", count: int = 20) -> Room:
    room = Room(id=str(uuid.uuid4())[:8], name=name)
    for participant in generate_participants(count):
        room.participants[participant.id] = participant
    return room


async def seed(name: str = "Demo Room", count: int = 20) -> None:
    from app.redis_client import close_pool
    from app.state import state_manager

    await state_manager.create_room(name)
    await state_manager.add_participants(generate_participants(count))
    print(f"Seeded room {name!r} with {count} participants")
    await close_pool()


if __name__ == "__main__":
    import sys

    count = int(sys.argv[1]) if len(sys.argv) > 1 else 20
    asyncio.run(seed(count=count))
