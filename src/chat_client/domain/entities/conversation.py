from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from chat_client.domain.value_objects.enums import MessageKind


@dataclass(frozen=True, slots=True)
class OtherUser:
    id: str
    name: str
    email: str | None = None


@dataclass(frozen=True, slots=True)
class ConversationInfo:
    id: str
    other_user: OtherUser


@dataclass(frozen=True, slots=True)
class LastMessagePreview:
    kind: MessageKind
    text: str | None
    created_at: datetime | None


@dataclass(frozen=True, slots=True)
class ConversationSummary:
    """Inbox row: one conversation with its latest activity."""

    id: str
    other_user: OtherUser
    last_message: LastMessagePreview | None
    last_message_at: datetime | None
    unread_count: int = 0
