"""Background worker that closes the room when its timer runs out.

Runs as an asyncio task during the FastAPI app lifespan. Viewers polling
``/api/state`` run the same idempotent check, so whichever notices first
completes the room and the others see a no-op.
"""

from __future__ import annotations

import asyncio
import logging

from app.broadcaster import broadcaster
from app.config import settings
from app.export import status_payload
from app.state import state_manager

logger = logging.getLogger(__name__)


async def announce_completion() -> None:
    room = await state_manager.get_room()
    if room:
        await broadcaster.broadcast("status_update", status_payload(room))


async def _pause(stop: asyncio.Event) -> None:
    """Sleep one poll interval, waking early when ``stop`` is set."""
    try:
        await asyncio.wait_for(stop.wait(), timeout=settings.timer_poll_seconds)
    except asyncio.TimeoutError:
        pass


async def run_expiry_worker(stop: asyncio.Event | None = None) -> None:
    """Poll the room timer and force completion once it has passed.

    Runs until ``stop`` is set or the task is cancelled.
    """
    stop = stop or asyncio.Event()
    logger.info("Timer expiry worker started")

    while not stop.is_set():
        try:
            if await state_manager.expire_if_due():
                logger.info("Room timer expired; room completed")
                await announce_completion()
        except asyncio.CancelledError:
            break
        except Exception as e:
            logger.error(f"Timer expiry worker error: {e}")

        try:
            await _pause(stop)
        except asyncio.CancelledError:
            break

    logger.info("Timer expiry worker shutting down")
