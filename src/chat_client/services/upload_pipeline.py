"""Three-phase upload: init → transfer → complete.

An ``UploadSession`` is a small state machine that refuses to run a phase
out of order; ``UploadPipeline`` validates the input, measures voice clips
and drives one session per upload.
"""
from __future__ import annotations

import logging
import math

from chat_client.application.dto.upload import UploadInitDTO
from chat_client.application.exceptions import AppError, UploadError, ValidationError
from chat_client.application.ports.api import UploadApi
from chat_client.application.ports.media import DurationProbe
from chat_client.config import settings
from chat_client.domain.entities.upload import LocalFile, UploadTicket, VoiceClip
from chat_client.domain.value_objects.enums import UploadPhase

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES: frozenset[str] = frozenset(
    {
        "image/jpeg",
        "image/png",
        "image/webp",
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/vnd.ms-powerpoint",
        "application/vnd.openxmlformats-officedocument.presentationml.presentation",
        "text/plain",
        "application/zip",
    }
)


def _max_mb(max_bytes: int) -> str:
    return f"{max_bytes / (1024 * 1024):g}MB"


def _reason(exc: Exception) -> str:
    return exc.detail if isinstance(exc, AppError) else str(exc) or type(exc).__name__


def validate_attachment(file: LocalFile, *, max_bytes: int | None = None) -> None:
    limit = max_bytes if max_bytes is not None else settings.MAX_UPLOAD_BYTES
    if file.size > limit:
        raise ValidationError(f"File too large: maximum file size is {_max_mb(limit)}")
    if file.mime_type not in ALLOWED_MIME_TYPES:
        raise ValidationError(
            f"File type not allowed: {file.mime_type or 'unknown'}. "
            "Please select an image, document, or zip file"
        )


def validate_voice(clip: VoiceClip, *, max_bytes: int | None = None) -> None:
    limit = max_bytes if max_bytes is not None else settings.MAX_UPLOAD_BYTES
    if clip.size == 0:
        raise ValidationError("Voice recording is empty")
    if clip.size > limit:
        raise ValidationError(f"Voice recording too large: maximum size is {_max_mb(limit)}")


class UploadSession:
    """One upload. ``phase`` only moves forward; any failure ends in FAILED."""

    def __init__(self, api: UploadApi, request: UploadInitDTO, data: bytes) -> None:
        self._api = api
        self._request = request
        self._data = data
        self.phase = UploadPhase.NEW
        self.ticket: UploadTicket | None = None
        self._in_flight = False

    @property
    def attachment_id(self) -> str | None:
        return self.ticket.attachment_id if self.ticket else None

    async def init(self) -> UploadTicket:
        self._begin(UploadPhase.NEW, UploadPhase.INITIATED)
        try:
            self.ticket = await self._api.init_upload(self._request)
        except Exception as exc:
            raise self._fail(UploadPhase.INITIATED, f"Failed to initialize upload: {_reason(exc)}") from exc
        self._advance(UploadPhase.INITIATED)
        logger.debug("Upload %s initiated (%d bytes)", self.ticket.attachment_id, self._request.size)
        return self.ticket

    async def transfer(self) -> None:
        self._begin(UploadPhase.INITIATED, UploadPhase.TRANSFERRED)
        assert self.ticket is not None
        try:
            await self._api.transfer(self.ticket.upload_url, self._data, self._request.mime_type)
        except Exception as exc:
            # The attachment id stays orphaned server-side.
            raise self._fail(UploadPhase.TRANSFERRED, f"Failed to upload file: {_reason(exc)}") from exc
        self._advance(UploadPhase.TRANSFERRED)

    async def complete(self) -> str:
        self._begin(UploadPhase.TRANSFERRED, UploadPhase.COMPLETED)
        assert self.ticket is not None
        try:
            await self._api.complete_upload(self.ticket.attachment_id)
        except Exception as exc:
            raise self._fail(UploadPhase.COMPLETED, f"Failed to complete upload: {_reason(exc)}") from exc
        self._advance(UploadPhase.COMPLETED)
        logger.debug("Upload %s completed", self.ticket.attachment_id)
        return self.ticket.attachment_id

    async def run(self) -> str:
        await self.init()
        await self.transfer()
        return await self.complete()

    def _begin(self, required: UploadPhase, target: UploadPhase) -> None:
        if self._in_flight:
            raise UploadError(f"Cannot start {target} while another phase is running", phase=target)
        if self.phase is not required:
            raise UploadError(f"Cannot reach {target} from {self.phase}", phase=target)
        self._in_flight = True

    def _advance(self, phase: UploadPhase) -> None:
        self.phase = phase
        self._in_flight = False

    def _fail(self, target: UploadPhase, detail: str) -> UploadError:
        self.phase = UploadPhase.FAILED
        self._in_flight = False
        logger.warning("Upload failed before %s: %s", target, detail)
        return UploadError(detail, phase=target)


class UploadPipeline:
    def __init__(
        self,
        api: UploadApi,
        *,
        duration_probe: DurationProbe | None = None,
        max_bytes: int | None = None,
    ) -> None:
        self._api = api
        self._probe = duration_probe
        self._max_bytes = max_bytes

    def validate_file(self, file: LocalFile) -> None:
        validate_attachment(file, max_bytes=self._max_bytes)

    def validate_voice(self, clip: VoiceClip) -> None:
        validate_voice(clip, max_bytes=self._max_bytes)

    def session_for_file(self, file: LocalFile) -> UploadSession:
        request = UploadInitDTO(file_name=file.file_name, mime_type=file.mime_type, size=file.size)
        return UploadSession(self._api, request, file.data)

    async def upload_file(self, file: LocalFile) -> str:
        self.validate_file(file)
        return await self.session_for_file(file).run()

    async def upload_voice(self, clip: VoiceClip, *, duration_ms: int | None = None) -> str:
        """Upload a recording and return its attachment id.

        ``duration_ms`` is measured here unless the caller already did.
        """
        self.validate_voice(clip)
        if duration_ms is None:
            duration_ms = await self.measure_duration(clip)
        request = UploadInitDTO(
            file_name=settings.VOICE_FILE_NAME,
            mime_type=clip.mime_type,
            size=clip.size,
            is_voice=True,
            duration_ms=duration_ms,
        )
        return await UploadSession(self._api, request, clip.data).run()

    async def measure_duration(self, clip: VoiceClip) -> int:
        """Clip length in ms; 0 when it cannot be measured."""
        if self._probe is None:
            return clip.recorded_ms
        try:
            seconds = await self._probe.duration_seconds(clip.data, clip.mime_type)
        except Exception as exc:
            logger.warning("Could not get audio duration: %s", exc)
            return 0
        if not math.isfinite(seconds) or seconds < 0:
            logger.warning("Could not get audio duration: probe returned %r", seconds)
            return 0
        return round(seconds * 1000)
