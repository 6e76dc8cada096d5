from __future__ import annotations

from typing import assert_never

from chat_client.application.dto.message import CreateMessageDTO
from chat_client.application.dto.upload import UploadInitDTO
from chat_client.domain.entities.conversation import (
    ConversationInfo,
    ConversationSummary,
    LastMessagePreview,
    OtherUser,
)
from chat_client.domain.entities.message import (
    AttachmentDescriptor,
    FilePayload,
    Message,
    MessagePayload,
    TextPayload,
    VoiceDescriptor,
    VoicePayload,
)
from chat_client.domain.value_objects.enums import MessageKind
from chat_client.infrastructure.http.schemas import (
    ConversationSchema,
    ConversationSummarySchema,
    CreateMessageRequest,
    MessageSchema,
    OtherUserSchema,
    UploadInitRequest,
)


def _payload(schema: MessageSchema) -> MessagePayload:
    kind = schema.type
    if kind is MessageKind.TEXT:
        return TextPayload(text=schema.text or "")
    if kind is MessageKind.FILE:
        return FilePayload(
            attachments=tuple(
                AttachmentDescriptor(
                    url=a.url,
                    file_name=a.file_name,
                    mime_type=a.mime_type,
                    size=a.size,
                )
                for a in schema.attachments
            )
        )
    if kind is MessageKind.VOICE:
        voice = schema.voice
        assert voice is not None
        return VoicePayload(
            voice=VoiceDescriptor(
                url=voice.url,
                duration_ms=voice.duration_ms,
                mime_type=voice.mime_type,
                size=voice.size,
            )
        )
    assert_never(kind)


def schema_to_message(schema: MessageSchema, conversation_id: str) -> Message:
    return Message(
        id=schema.id,
        conversation_id=schema.conversation_id or conversation_id,
        sender_id=schema.sender_id,
        sender_name=schema.sender_name,
        payload=_payload(schema),
        created_at=schema.created_at,
        delivery_state=schema.status,
    )


def _other_user(schema: OtherUserSchema) -> OtherUser:
    return OtherUser(id=schema.id, name=schema.name, email=schema.email)


def schema_to_conversation(schema: ConversationSchema) -> ConversationInfo:
    return ConversationInfo(id=schema.id, other_user=_other_user(schema.other_user))


def schema_to_summary(schema: ConversationSummarySchema) -> ConversationSummary:
    last = schema.last_message
    return ConversationSummary(
        id=schema.id,
        other_user=_other_user(schema.other_user),
        last_message=(
            LastMessagePreview(kind=last.type, text=last.text, created_at=last.created_at)
            if last is not None
            else None
        ),
        last_message_at=schema.last_message_at,
        unread_count=schema.unread_count,
    )


def create_dto_to_request(dto: CreateMessageDTO) -> CreateMessageRequest:
    kind = dto.type
    if kind is MessageKind.TEXT:
        return CreateMessageRequest(type=kind, text=dto.text)
    if kind is MessageKind.FILE:
        return CreateMessageRequest(type=kind, attachment_ids=list(dto.attachment_ids))
    if kind is MessageKind.VOICE:
        return CreateMessageRequest(type=kind, voice_id=dto.voice_id)
    assert_never(kind)


def init_dto_to_request(dto: UploadInitDTO) -> UploadInitRequest:
    return UploadInitRequest(
        file_name=dto.file_name,
        mime_type=dto.mime_type,
        size=dto.size,
        is_voice=True if dto.is_voice else None,
        duration_ms=dto.duration_ms if dto.is_voice else None,
    )
