"""Per-key in-flight coordination.

Concurrent callers asking for the same key share one computation instead of
each running their own.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SingleFlight:
    """
    Maps a key to the task currently computing it.

    The first caller starts the task; later callers await the same task
    until it finishes, after which the key is released. Callers await a
    shielded view, so one caller being cancelled leaves the shared
    computation running for the others.
    """

    def __init__(self) -> None:
        self._inflight: dict[str, asyncio.Task] = {}

    async def do(self, key: str, fn: Callable[[], Awaitable[T]]) -> T:
        """Run ``fn`` for ``key`` unless a run is already in flight; join it if so."""
        task = self._inflight.get(key)

        if task is None:
            task = asyncio.ensure_future(fn())
            self._inflight[key] = task
            task.add_done_callback(lambda done: self._release(key, done))
        else:
            logger.debug(f"Joining in-flight computation for {key}")

        return await asyncio.shield(task)

    def _release(self, key: str, task: asyncio.Task) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        # Mark the outcome retrieved even if every caller went away
        if not task.cancelled():
            task.exception()

    def in_flight(self, key: str) -> bool:
        return key in self._inflight

    def __len__(self) -> int:
        return len(self._inflight)
