"""Wire schemas for the chat REST API (camelCase JSON)."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, model_validator
from pydantic.alias_generators import to_camel

from chat_client.domain.value_objects.enums import DeliveryState, MessageKind


def _coerce_timestamp(value: Any) -> Any:
    # Firestore timestamps serialise as {"_seconds": .., "_nanoseconds": ..}
    if isinstance(value, dict):
        seconds = value.get("_seconds", value.get("seconds"))
        nanos = value.get("_nanoseconds", value.get("nanoseconds", 0)) or 0
        if seconds is None:
            raise ValueError("timestamp object without seconds")
        return datetime.fromtimestamp(seconds + nanos / 1e9, tz=timezone.utc)
    return value


def _ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


WireTimestamp = Annotated[datetime, BeforeValidator(_coerce_timestamp), AfterValidator(_ensure_utc)]


class WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class AttachmentSchema(WireModel):
    url: str | None = None
    file_name: str
    mime_type: str
    size: int = 0


class VoiceSchema(WireModel):
    url: str | None = None
    duration_ms: int = 0
    mime_type: str = "audio/webm"
    size: int = 0


class MessageSchema(WireModel):
    id: str
    conversation_id: str | None = None
    sender_id: str
    sender_name: str | None = None
    type: MessageKind = MessageKind.TEXT
    text: str | None = None
    attachments: list[AttachmentSchema] = []
    voice: VoiceSchema | None = None
    created_at: WireTimestamp
    status: DeliveryState | None = None

    @model_validator(mode="after")
    def _payload_matches_type(self) -> MessageSchema:
        if self.type is MessageKind.VOICE and self.voice is None:
            raise ValueError("voice message without voice descriptor")
        return self


class MessagePageSchema(WireModel):
    messages: list[MessageSchema] = []
    has_more: bool = False
    next_cursor: str | None = None


class OtherUserSchema(WireModel):
    id: str
    name: str = ""
    email: str | None = None


class ConversationSchema(WireModel):
    id: str
    other_user: OtherUserSchema


class ConversationEnvelope(WireModel):
    conversation: ConversationSchema


class LastMessageSchema(WireModel):
    type: MessageKind = MessageKind.TEXT
    text: str | None = None
    created_at: WireTimestamp | None = None


class ConversationSummarySchema(WireModel):
    id: str
    other_user: OtherUserSchema
    last_message: LastMessageSchema | None = None
    last_message_at: WireTimestamp | None = None
    unread_count: int = 0


class ConversationListSchema(WireModel):
    conversations: list[ConversationSummarySchema] = []


class CreateMessageRequest(WireModel):
    type: MessageKind
    text: str | None = None
    attachment_ids: list[str] | None = None
    voice_id: str | None = None


class UploadInitRequest(WireModel):
    file_name: str
    mime_type: str
    size: int
    is_voice: bool | None = None
    duration_ms: int | None = None


class UploadInitResponse(WireModel):
    attachment_id: str
    upload_url: str


class UploadCompleteRequest(WireModel):
    attachment_id: str
