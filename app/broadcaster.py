"""SSE fan-out of room changes to every connected screen and phone."""

from __future__ import annotations

import asyncio
import json
from typing import AsyncGenerator


class Broadcaster:
    """In-process pub/sub using one bounded asyncio queue per subscriber.

    A subscriber whose queue fills up is considered gone and dropped, so a
    stalled phone never holds up the facilitator's screen.
    """

    def __init__(self, max_queue: int = 100) -> None:
        self._subscribers: list[asyncio.Queue[str]] = []
        self._max_queue = max_queue
        self._next_id = 0

    async def subscribe(
        self, keepalive_seconds: int = 15
    ) -> AsyncGenerator[str, None]:
        """Yield SSE-formatted messages, with comment keepalives when idle."""
        queue: asyncio.Queue[str] = asyncio.Queue(maxsize=self._max_queue)
        self._subscribers.append(queue)
        try:
            while True:
                try:
                    yield await asyncio.wait_for(queue.get(), timeout=keepalive_seconds)
                except asyncio.TimeoutError:
                    yield ": keepalive\n\n"
        except asyncio.CancelledError:
            pass
        finally:
            if queue in self._subscribers:
                self._subscribers.remove(queue)

    async def broadcast(self, event: str, data: dict | str) -> None:
        """Push one event to all subscribers.

        Args:
            event: SSE event name ("room_update", "match_update", ...).
            data: dict (JSON-encoded) or a preformatted string.
        """
        if isinstance(data, dict):
            payload = json.dumps(data)
        else:
            payload = data

        self._next_id += 1
        message = f"id: {self._next_id}\nevent: {event}\ndata: {payload}\n\n"

        dead_queues: list[asyncio.Queue[str]] = []
        for queue in self._subscribers:
            try:
                queue.put_nowait(message)
            except asyncio.QueueFull:
                dead_queues.append(queue)

        for queue in dead_queues:
            self._subscribers.remove(queue)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)


# Global broadcaster instance
broadcaster = Broadcaster()
