from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Union, assert_never

from chat_client.domain.value_objects.enums import DeliveryState, MessageKind
from chat_client.domain.value_objects.ids import is_temp_id


@dataclass(frozen=True, slots=True)
class AttachmentDescriptor:
    url: str | None
    file_name: str
    mime_type: str
    size: int


@dataclass(frozen=True, slots=True)
class VoiceDescriptor:
    url: str | None
    duration_ms: int
    mime_type: str
    size: int


@dataclass(frozen=True, slots=True)
class TextPayload:
    text: str


@dataclass(frozen=True, slots=True)
class FilePayload:
    attachments: tuple[AttachmentDescriptor, ...]


@dataclass(frozen=True, slots=True)
class VoicePayload:
    voice: VoiceDescriptor


MessagePayload = Union[TextPayload, FilePayload, VoicePayload]


def payload_kind(payload: MessagePayload) -> MessageKind:
    if isinstance(payload, TextPayload):
        return MessageKind.TEXT
    if isinstance(payload, FilePayload):
        return MessageKind.FILE
    if isinstance(payload, VoicePayload):
        return MessageKind.VOICE
    assert_never(payload)


@dataclass(frozen=True, slots=True)
class Message:
    id: str
    conversation_id: str
    sender_id: str
    payload: MessagePayload
    created_at: datetime
    delivery_state: DeliveryState | None = None
    sender_name: str | None = None

    @property
    def kind(self) -> MessageKind:
        return payload_kind(self.payload)

    @property
    def is_optimistic(self) -> bool:
        return is_temp_id(self.id)

    def with_state(self, state: DeliveryState) -> Message:
        return replace(self, delivery_state=state)
