"""Fire-and-forget read receipts."""
from __future__ import annotations

import asyncio
import logging

from chat_client.application.ports.api import ConversationApi

logger = logging.getLogger(__name__)


class ReadReceipts:
    def __init__(self, api: ConversationApi) -> None:
        self._api = api
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def mark(self, conversation_id: str) -> asyncio.Task[None]:
        task = asyncio.create_task(self._send(conversation_id), name=f"read-receipt-{conversation_id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def aclose(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _send(self, conversation_id: str) -> None:
        try:
            await self._api.mark_read(conversation_id)
        except Exception:
            logger.exception("Error marking conversation %s as read", conversation_id)
