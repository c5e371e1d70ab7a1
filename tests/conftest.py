"""Shared test fixtures: fakeredis, test client, broadcast spy, room seeding."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import fakeredis.aioredis
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.config import settings
from app.models import Participant, Room, RoomStatus

ADMIN_HEADERS = {"X-Admin-Password": "test-admin-password"}


@pytest.fixture(autouse=True)
def _test_settings():
    """Ensure test-safe settings for every test."""
    original_slug = settings.room_slug
    original_password = settings.admin_password
    original_delay = settings.rematch_delay_seconds
    original_backoff = settings.transaction_backoff_seconds
    settings.room_slug = "test-room"
    settings.admin_password = "test-admin-password"
    settings.rematch_delay_seconds = 0
    settings.transaction_backoff_seconds = 0
    yield
    settings.room_slug = original_slug
    settings.admin_password = original_password
    settings.rematch_delay_seconds = original_delay
    settings.transaction_backoff_seconds = original_backoff


@pytest.fixture
def fake_redis():
    """Fresh fakeredis instance per test."""
    return fakeredis.aioredis.FakeRedis(decode_responses=True)


@pytest.fixture
def patched_redis(fake_redis):
    """Point the state manager at fakeredis without going through HTTP."""
    with (
        patch("app.state.get_redis", return_value=fake_redis),
        patch("app.redis_client.get_redis", return_value=fake_redis),
    ):
        yield fake_redis


@pytest_asyncio.fixture
async def client(fake_redis):
    """FastAPI async test client backed by fakeredis."""
    from app.scheduler import rematch_scheduler

    with (
        patch("app.state.get_redis", return_value=fake_redis),
        patch("app.redis_client.get_redis", return_value=fake_redis),
        patch("app.redis_client.close_pool", new_callable=AsyncMock),
    ):
        from app.main import app

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac

        await rematch_scheduler.shutdown()

    await fake_redis.flushall()


@pytest.fixture
def broadcast_spy():
    """Record every broadcast as {"event": ..., "data": ...}."""
    events: list[dict] = []

    async def record(event, data):
        events.append({"event": event, "data": data})

    with patch("app.broadcaster.broadcaster.broadcast", side_effect=record):
        yield events


def make_participant(
    id: str,
    tags: list[str] | None = None,
    met: set[str] | None = None,
    online: bool = True,
    name: str = "",
) -> Participant:
    return Participant(
        id=id,
        name=name or f"Person {id}",
        affiliation="Team",
        tags=tags if tags is not None else [f"{id}-tag-{i}" for i in range(10)],
        met=met or set(),
        online=online,
    )


def make_room(
    participants: list[Participant],
    status: RoomStatus = RoomStatus.RUNNING,
    name: str = "Test Room",
) -> Room:
    return Room(
        id="room-1",
        name=name,
        status=status,
        participants={p.id: p for p in participants},
    )


async def store_room(fake_redis, room: Room) -> None:
    await fake_redis.set(f"room:{settings.room_slug}:state", room.model_dump_json())


async def load_room(fake_redis) -> Room:
    raw = await fake_redis.get(f"room:{settings.room_slug}:state")
    return Room.model_validate_json(raw)


async def create_room(client: AsyncClient, name: str = "Team Day") -> dict:
    resp = await client.post(
        "/api/admin/room", json={"password": "test-admin-password", "name": name}
    )
    assert resp.status_code == 200
    return resp.json()


async def join_with_tags(
    client: AsyncClient, name: str, tags: list[str], room_name: str = "Team Day"
) -> str:
    """Join the room and fill in a full profile. Returns the participant id."""
    resp = await client.post(
        "/api/participants",
        json={"room_name": room_name, "name": name, "affiliation": "Team"},
    )
    assert resp.status_code == 200
    participant_id = resp.json()["participant"]["id"]

    resp = await client.put(f"/api/participants/{participant_id}/tags", json={"tags": tags})
    assert resp.status_code == 200
    return participant_id
