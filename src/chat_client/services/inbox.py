from __future__ import annotations

import logging

from chat_client.application.ports.api import ConversationApi
from chat_client.domain.entities.conversation import ConversationSummary

logger = logging.getLogger(__name__)


class Inbox:
    """Conversation list with client-side search."""

    def __init__(self, api: ConversationApi) -> None:
        self._api = api
        self.conversations: list[ConversationSummary] = []
        self.loaded = False

    async def refresh(self) -> list[ConversationSummary]:
        try:
            self.conversations = await self._api.list_conversations()
        except Exception:
            logger.exception("Error loading conversations")
        else:
            self.loaded = True
        return self.conversations

    def search(self, query: str) -> list[ConversationSummary]:
        needle = query.strip().lower()
        if not needle:
            return list(self.conversations)
        return [c for c in self.conversations if _matches(c, needle)]

    @property
    def unread_total(self) -> int:
        return sum(c.unread_count for c in self.conversations)


def _matches(conversation: ConversationSummary, needle: str) -> bool:
    user = conversation.other_user
    last = conversation.last_message
    haystack = [user.name, user.email, last.text if last else None]
    return any(needle in value.lower() for value in haystack if value)
