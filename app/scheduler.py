"""Delayed partition passes after a match clears."""

from __future__ import annotations

import asyncio
import logging

from app.broadcaster import broadcaster
from app.config import settings
from app.export import room_snapshot
from app.state import state_manager

logger = logging.getLogger(__name__)


class RematchScheduler:
    """Runs a partition pass shortly after participants are freed.

    The delay lets a freed participant's partner or a late joiner settle into
    the pool so the next pass sees them too.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()

    def schedule(self, delay: float | None = None) -> asyncio.Task:
        if delay is None:
            delay = settings.rematch_delay_seconds
        task = asyncio.create_task(self._run(delay))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, delay: float) -> None:
        await asyncio.sleep(delay)
        try:
            room, groups = await state_manager.run_match_pass()
        except Exception as e:
            logger.error(f"Rematch pass failed: {e}")
            return

        if groups:
            await broadcaster.broadcast(
                "match_update", {"groups": groups, **room_snapshot(room)}
            )

    async def wait_idle(self) -> None:
        """Wait for every scheduled pass to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*list(self._tasks), return_exceptions=True)
        self._tasks.clear()


rematch_scheduler = RematchScheduler()
