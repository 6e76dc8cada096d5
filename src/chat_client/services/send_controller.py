"""Optimistic sends: placeholder first, then upload/create, then reconcile."""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Sequence

from chat_client.application.dto.message import CreateMessageDTO
from chat_client.application.exceptions import AppError, SendError, UploadError, ValidationError
from chat_client.application.ports.api import MessageApi
from chat_client.application.ports.clock import Clock, SystemClock
from chat_client.config import settings
from chat_client.domain.entities.message import (
    AttachmentDescriptor,
    FilePayload,
    Message,
    MessagePayload,
    TextPayload,
    VoiceDescriptor,
    VoicePayload,
)
from chat_client.domain.entities.upload import LocalFile, VoiceClip
from chat_client.domain.value_objects.enums import DeliveryState, MergeOrigin, MessageKind
from chat_client.domain.value_objects.ids import new_temp_id
from chat_client.services.message_store import MessageStore
from chat_client.services.read_receipts import ReadReceipts
from chat_client.services.upload_pipeline import UploadPipeline

logger = logging.getLogger(__name__)

PrepareRequest = Callable[[], Awaitable[CreateMessageDTO]]


class SendController:
    """Drives each send through ``sending → sent | failed``.

    Sends are independent: several placeholders may be in flight at once and
    may complete in any order.
    """

    def __init__(
        self,
        store: MessageStore,
        api: MessageApi,
        uploads: UploadPipeline,
        *,
        sender_id: str,
        sender_name: str | None = None,
        clock: Clock | None = None,
        read_receipts: ReadReceipts | None = None,
        timeout: float | None = None,
    ) -> None:
        self._store = store
        self._api = api
        self._uploads = uploads
        self._sender_id = sender_id
        self._sender_name = sender_name
        self._clock = clock or SystemClock()
        self._read_receipts = read_receipts
        self._timeout = timeout if timeout is not None else settings.SEND_TIMEOUT_SECONDS
        self._failures: dict[str, AppError] = {}

    def failure(self, temp_id: str) -> AppError | None:
        """Why a placeholder ended up ``failed``, if it did."""
        return self._failures.get(temp_id)

    async def send_text(self, text: str) -> Message:
        body = text.strip()
        if not body:
            raise ValidationError("Message text is empty")

        async def prepare() -> CreateMessageDTO:
            return CreateMessageDTO(type=MessageKind.TEXT, text=body)

        return await self._deliver(TextPayload(text=body), prepare)

    async def send_file(self, file: LocalFile) -> Message:
        return await self.send_files([file])

    async def send_files(self, files: Sequence[LocalFile]) -> Message:
        if not files:
            raise ValidationError("No files selected")
        for file in files:
            self._uploads.validate_file(file)

        async def prepare() -> CreateMessageDTO:
            results = await asyncio.gather(
                *(self._uploads.upload_file(f) for f in files),
                return_exceptions=True,
            )
            attachment_ids: list[str] = []
            for result in results:
                if isinstance(result, BaseException):
                    raise result
                attachment_ids.append(result)
            return CreateMessageDTO(type=MessageKind.FILE, attachment_ids=attachment_ids)

        payload = FilePayload(
            attachments=tuple(
                AttachmentDescriptor(url=None, file_name=f.file_name, mime_type=f.mime_type, size=f.size)
                for f in files
            )
        )
        return await self._deliver(payload, prepare)

    async def send_voice(self, clip: VoiceClip) -> Message:
        self._uploads.validate_voice(clip)
        duration_ms = await self._uploads.measure_duration(clip)

        async def prepare() -> CreateMessageDTO:
            voice_id = await self._uploads.upload_voice(clip, duration_ms=duration_ms)
            return CreateMessageDTO(type=MessageKind.VOICE, voice_id=voice_id)

        payload = VoicePayload(
            voice=VoiceDescriptor(
                url=None,
                duration_ms=duration_ms,
                mime_type=clip.mime_type,
                size=clip.size,
            )
        )
        return await self._deliver(payload, prepare)

    async def _deliver(self, payload: MessagePayload, prepare: PrepareRequest) -> Message:
        placeholder = Message(
            id=new_temp_id(),
            conversation_id=self._store.conversation_id,
            sender_id=self._sender_id,
            sender_name=self._sender_name,
            payload=payload,
            created_at=self._clock.now(),
            delivery_state=DeliveryState.SENDING,
        )
        self._store.merge([placeholder], MergeOrigin.OPTIMISTIC)

        try:
            async with asyncio.timeout(self._timeout):
                request = await prepare()
                confirmed = await self._api.create_message(self._store.conversation_id, request)
        except UploadError as exc:
            return self._fail(placeholder.id, exc)
        except TimeoutError:
            return self._fail(placeholder.id, SendError(f"Send timed out after {self._timeout:g}s"))
        except AppError as exc:
            return self._fail(placeholder.id, SendError(f"Failed to send message: {exc.detail}"))
        except Exception as exc:
            logger.exception("Send %s raised unexpectedly", placeholder.id)
            return self._fail(placeholder.id, SendError(f"Failed to send message: {exc}"))

        confirmed = confirmed.with_state(DeliveryState.SENT)
        self._store.merge([confirmed], MergeOrigin.OPTIMISTIC, replace_id=placeholder.id)
        if self._read_receipts is not None:
            self._read_receipts.mark(self._store.conversation_id)
        return self._store.get(confirmed.id) or confirmed

    def _fail(self, temp_id: str, exc: AppError) -> Message:
        logger.warning("Send %s failed: %s", temp_id, exc.detail)
        self._failures[temp_id] = exc
        failed = self._store.mark_failed(temp_id)
        assert failed is not None
        return failed
