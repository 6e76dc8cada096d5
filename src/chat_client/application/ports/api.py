from __future__ import annotations

from typing import Protocol

from chat_client.application.dto.message import CreateMessageDTO, MessagePage
from chat_client.application.dto.upload import UploadInitDTO
from chat_client.domain.entities.conversation import ConversationInfo, ConversationSummary
from chat_client.domain.entities.message import Message
from chat_client.domain.entities.upload import UploadTicket


class ConversationApi(Protocol):
    async def get_conversation(self, conversation_id: str) -> ConversationInfo: ...

    async def list_conversations(self) -> list[ConversationSummary]: ...

    async def mark_read(self, conversation_id: str) -> None: ...


class MessageApi(Protocol):
    async def list_messages(
        self,
        conversation_id: str,
        *,
        cursor: str | None = None,
        limit: int | None = None,
        after: str | None = None,
    ) -> MessagePage: ...

    async def create_message(self, conversation_id: str, request: CreateMessageDTO) -> Message: ...


class UploadApi(Protocol):
    async def init_upload(self, request: UploadInitDTO) -> UploadTicket: ...

    async def transfer(self, upload_url: str, data: bytes, mime_type: str) -> None:
        """PUT raw bytes to the pre-authorized URL (no bearer credential)."""
        ...

    async def complete_upload(self, attachment_id: str) -> None: ...


class ChatApi(ConversationApi, MessageApi, UploadApi, Protocol):
    pass
