"""Shared test fixtures."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import pytest

from chat_client.application.dto.message import CreateMessageDTO, MessagePage
from chat_client.application.dto.upload import UploadInitDTO
from chat_client.application.exceptions import ApiError, PermissionDeniedError
from chat_client.domain.entities.conversation import ConversationInfo, ConversationSummary, OtherUser
from chat_client.domain.entities.message import (
    AttachmentDescriptor,
    FilePayload,
    Message,
    MessagePayload,
    TextPayload,
    VoiceDescriptor,
    VoicePayload,
)
from chat_client.domain.entities.upload import UploadTicket
from chat_client.domain.value_objects.enums import DeliveryState, MessageKind

T0 = datetime(2025, 3, 5, 12, 0, tzinfo=timezone.utc)
CONVERSATION_ID = "conv-1"
ME = "user-me"
PEER = "user-peer"


def at(seconds: float) -> datetime:
    return T0 + timedelta(seconds=seconds)


def make_message(
    message_id: str,
    seconds: float = 0,
    *,
    sender_id: str = PEER,
    text: str = "hello",
    conversation_id: str = CONVERSATION_ID,
    delivery_state: DeliveryState | None = None,
) -> Message:
    return Message(
        id=message_id,
        conversation_id=conversation_id,
        sender_id=sender_id,
        payload=TextPayload(text=text),
        created_at=at(seconds),
        delivery_state=delivery_state,
    )


@dataclass
class ManualClock:
    current: datetime = T0
    mono: float = 0.0

    def now(self) -> datetime:
        return self.current

    def monotonic(self) -> float:
        return self.mono

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)
        self.mono += seconds


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@dataclass
class FakeChatApi:
    """In-memory chat server for unit tests.

    ``fail_on`` names operations that raise ApiError; ``errors`` maps an
    operation to any other exception it raises; ``gates`` holds operations
    until the matching event is set.
    """

    conversation: ConversationInfo = field(
        default_factory=lambda: ConversationInfo(id=CONVERSATION_ID, other_user=OtherUser(id=PEER, name="Peer"))
    )
    summaries: list[ConversationSummary] = field(default_factory=list)
    history_pages: dict[str | None, MessagePage] = field(default_factory=dict)
    poll_pages: list[MessagePage] = field(default_factory=list)
    fail_on: set[str] = field(default_factory=set)
    errors: dict[str, Exception] = field(default_factory=dict)
    gates: dict[str, asyncio.Event] = field(default_factory=dict)
    server_clock: Callable[[], datetime] = lambda: at(60)
    id_prefix: str = "m"
    calls: list[tuple[str, Any]] = field(default_factory=list)
    uploads: dict[str, UploadInitDTO] = field(default_factory=dict)
    created: list[Message] = field(default_factory=list)

    def ops(self, name: str) -> list[Any]:
        return [arg for op, arg in self.calls if op == name]

    async def _enter(self, name: str, arg: Any = None) -> None:
        self.calls.append((name, arg))
        gate = self.gates.get(name)
        if gate is not None:
            await gate.wait()
        if name in self.fail_on:
            raise ApiError(f"{name} failed", status_code=500)
        if name in self.errors:
            raise self.errors[name]

    async def get_conversation(self, conversation_id: str) -> ConversationInfo:
        await self._enter("get_conversation", conversation_id)
        return self.conversation

    async def list_conversations(self) -> list[ConversationSummary]:
        await self._enter("list_conversations")
        return list(self.summaries)

    async def mark_read(self, conversation_id: str) -> None:
        await self._enter("read", conversation_id)

    async def list_messages(
        self,
        conversation_id: str,
        *,
        cursor: str | None = None,
        limit: int | None = None,
        after: str | None = None,
    ) -> MessagePage:
        if after is not None:
            await self._enter("poll", after)
            return self.poll_pages.pop(0) if self.poll_pages else MessagePage(messages=[])
        await self._enter("history", cursor)
        return self.history_pages.get(cursor, MessagePage(messages=[]))

    async def create_message(self, conversation_id: str, request: CreateMessageDTO) -> Message:
        await self._enter("create", request)
        msg = Message(
            id=f"{self.id_prefix}{len(self.created) + 1}",
            conversation_id=conversation_id,
            sender_id=ME,
            payload=self._payload(request),
            created_at=self.server_clock(),
        )
        self.created.append(msg)
        return msg

    async def init_upload(self, request: UploadInitDTO) -> UploadTicket:
        await self._enter("init", request)
        attachment_id = f"att{len(self.uploads) + 1}"
        self.uploads[attachment_id] = request
        return UploadTicket(attachment_id=attachment_id, upload_url=f"https://storage.test/{attachment_id}")

    async def transfer(self, upload_url: str, data: bytes, mime_type: str) -> None:
        await self._enter("transfer", (upload_url, mime_type, len(data)))

    async def complete_upload(self, attachment_id: str) -> None:
        await self._enter("complete", attachment_id)

    def _payload(self, request: CreateMessageDTO) -> MessagePayload:
        if request.type is MessageKind.TEXT:
            return TextPayload(text=request.text or "")
        if request.type is MessageKind.FILE:
            return FilePayload(
                attachments=tuple(
                    AttachmentDescriptor(
                        url=f"https://cdn.test/{aid}",
                        file_name=self.uploads[aid].file_name,
                        mime_type=self.uploads[aid].mime_type,
                        size=self.uploads[aid].size,
                    )
                    for aid in request.attachment_ids
                )
            )
        assert request.voice_id is not None
        init = self.uploads[request.voice_id]
        return VoicePayload(
            voice=VoiceDescriptor(
                url=f"https://cdn.test/{request.voice_id}",
                duration_ms=init.duration_ms or 0,
                mime_type=init.mime_type,
                size=init.size,
            )
        )


@pytest.fixture
def api() -> FakeChatApi:
    return FakeChatApi()


@dataclass
class FakeAudioStream:
    chunks: list[bytes] = field(default_factory=list)
    tail: bytes = b""
    mime_type: str = "audio/webm"
    closed: bool = False
    stop_error: Exception | None = None
    _sink: Callable[[bytes], None] | None = None

    def start(self, on_chunk: Callable[[bytes], None]) -> None:
        self._sink = on_chunk
        for chunk in self.chunks:
            on_chunk(chunk)

    async def stop(self) -> None:
        if self.stop_error is not None:
            raise self.stop_error
        assert self._sink is not None
        self._sink(self.tail)

    def close(self) -> None:
        self.closed = True


@dataclass
class FakeMicrophone:
    stream: FakeAudioStream = field(default_factory=FakeAudioStream)
    denied: bool = False
    opened: int = 0

    async def open(self) -> FakeAudioStream:
        if self.denied:
            raise PermissionDeniedError("Failed to access microphone. Please check permissions.")
        self.opened += 1
        return self.stream


@dataclass
class FakePlayer:
    playing: bool = False
    plays: int = 0
    pauses: int = 0

    def play(self) -> None:
        self.playing = True
        self.plays += 1

    def pause(self) -> None:
        self.playing = False
        self.pauses += 1
