from __future__ import annotations

from dataclasses import dataclass, field

from chat_client.domain.entities.message import Message
from chat_client.domain.value_objects.enums import MessageKind


@dataclass(frozen=True, slots=True)
class MessagePage:
    messages: list[Message]
    has_more: bool = False
    next_cursor: str | None = None


@dataclass(frozen=True, slots=True)
class CreateMessageDTO:
    type: MessageKind
    text: str | None = None
    attachment_ids: list[str] = field(default_factory=list)
    voice_id: str | None = None
