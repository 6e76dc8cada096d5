from __future__ import annotations

import logging

from chat_client.application.dto.message import MessagePage
from chat_client.application.ports.api import MessageApi
from chat_client.config import settings
from chat_client.domain.value_objects.enums import MergeOrigin
from chat_client.services.message_store import MessageStore

logger = logging.getLogger(__name__)


class HistoryPager:
    """Backward cursor pagination into the message store.

    A call made while another load is running is dropped, not queued.
    Failed loads leave ``cursor``/``has_more`` untouched so they can be retried.
    """

    def __init__(self, store: MessageStore, api: MessageApi, *, page_size: int | None = None) -> None:
        self._store = store
        self._api = api
        self._page_size = page_size or settings.HISTORY_PAGE_SIZE
        self.cursor: str | None = None
        self.has_more = True
        self._loading = False

    @property
    def is_loading(self) -> bool:
        return self._loading

    async def load_initial(self) -> int:
        if self._loading:
            return 0
        return await self._load(cursor=None)

    async def load_older(self) -> int:
        if self._loading or not self.has_more:
            return 0
        return await self._load(cursor=self.cursor)

    async def _load(self, cursor: str | None) -> int:
        self._loading = True
        try:
            page: MessagePage = await self._api.list_messages(
                self._store.conversation_id,
                cursor=cursor,
                limit=self._page_size,
            )
        except Exception:
            logger.exception("Error loading messages for %s", self._store.conversation_id)
            return 0
        finally:
            self._loading = False

        added = self._store.merge(page.messages, MergeOrigin.HISTORY)
        self.has_more = page.has_more
        self.cursor = page.next_cursor
        logger.debug(
            "Loaded history page for %s: %d new, has_more=%s",
            self._store.conversation_id, added, self.has_more,
        )
        return added
