from __future__ import annotations

from chat_client.config import settings
from chat_client.services.inbox import Inbox
from chat_client.workers.periodic import PeriodicWorker


class InboxPoller(PeriodicWorker):
    name = "inbox-poller"

    def __init__(self, inbox: Inbox, *, interval: float | None = None) -> None:
        super().__init__(interval if interval is not None else settings.INBOX_POLL_INTERVAL_SECONDS)
        self._inbox = inbox

    async def tick(self) -> None:
        await self._inbox.refresh()
