"""Fixed-interval background task with a deterministic start/stop lifecycle."""
from __future__ import annotations

import asyncio
import logging

logger = logging.getLogger(__name__)


class PeriodicWorker:
    """Runs ``tick`` every ``interval`` seconds until stopped.

    The first tick happens one interval after ``start``. Exceptions from a
    tick are logged and the next tick still runs.
    """

    name = "periodic-worker"

    def __init__(self, interval: float) -> None:
        self._interval = interval
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name=self.name)
        logger.info("%s started (interval=%.1fs)", self.name, self._interval)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("%s stopped", self.name)

    async def tick(self) -> None:
        raise NotImplementedError

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.tick()
            except Exception:
                logger.exception("%s tick failed", self.name)
