"""Forward sync: fetch messages newer than the last one we know about."""
from __future__ import annotations

import logging

from chat_client.application.ports.api import MessageApi
from chat_client.config import settings
from chat_client.domain.value_objects.enums import MergeOrigin
from chat_client.services.message_store import MessageStore
from chat_client.services.read_receipts import ReadReceipts
from chat_client.workers.periodic import PeriodicWorker

logger = logging.getLogger(__name__)


class PollSyncLoop(PeriodicWorker):
    def __init__(
        self,
        store: MessageStore,
        api: MessageApi,
        read_receipts: ReadReceipts,
        *,
        interval: float | None = None,
    ) -> None:
        super().__init__(interval if interval is not None else settings.POLL_INTERVAL_SECONDS)
        self.name = f"poll-sync-{store.conversation_id}"
        self._store = store
        self._api = api
        self._read_receipts = read_receipts

    async def tick(self) -> None:
        await self.poll_once()

    async def poll_once(self) -> int:
        """One sync round; returns how many messages were added."""
        after = self._store.last_durable_id
        if after is None:
            # Initial population belongs to the history pager.
            return 0
        conversation_id = self._store.conversation_id
        try:
            page = await self._api.list_messages(conversation_id, after=after)
        except Exception as exc:
            logger.warning("Error loading new messages for %s: %s", conversation_id, exc)
            return 0
        if not page.messages:
            return 0
        added = self._store.merge(page.messages, MergeOrigin.POLL)
        self._read_receipts.mark(conversation_id)
        return added
