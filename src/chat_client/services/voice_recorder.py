from __future__ import annotations

import logging

from chat_client.application.exceptions import PermissionDeniedError
from chat_client.application.ports.clock import Clock, SystemClock
from chat_client.application.ports.media import AudioStream, Microphone
from chat_client.config import settings
from chat_client.domain.entities.upload import VoiceClip
from chat_client.domain.value_objects.enums import RecorderState

logger = logging.getLogger(__name__)


class VoiceRecorder:
    """``idle → recording → recorded``; ``cancel`` goes back to ``idle``.

    Holds the microphone only while recording. Starting a second recording
    while one is active is the caller's responsibility to prevent.
    """

    def __init__(self, microphone: Microphone, *, clock: Clock | None = None) -> None:
        self._microphone = microphone
        self._clock = clock or SystemClock()
        self.state = RecorderState.IDLE
        self._stream: AudioStream | None = None
        self._chunks: list[bytes] = []
        self._started_at = 0.0
        self._clip: VoiceClip | None = None

    @property
    def clip(self) -> VoiceClip | None:
        return self._clip

    async def start(self) -> None:
        try:
            stream = await self._microphone.open()
        except PermissionDeniedError:
            logger.warning("Microphone access denied")
            self.state = RecorderState.IDLE
            raise

        self._clip = None
        self._chunks = []
        self._stream = stream
        self._started_at = self._clock.monotonic()
        stream.start(self._on_chunk)
        self.state = RecorderState.RECORDING

    async def stop(self) -> VoiceClip | None:
        if self.state is not RecorderState.RECORDING or self._stream is None:
            return self._clip
        stream = self._stream
        try:
            await stream.stop()
        except Exception:
            self._chunks = []
            self.state = RecorderState.IDLE
            raise
        finally:
            self._release()
        elapsed_ms = round((self._clock.monotonic() - self._started_at) * 1000)
        self._clip = VoiceClip(
            data=b"".join(self._chunks),
            mime_type=getattr(stream, "mime_type", None) or settings.VOICE_MIME_TYPE,
            recorded_ms=max(elapsed_ms, 0),
        )
        self._chunks = []
        self.state = RecorderState.RECORDED
        return self._clip

    async def cancel(self) -> None:
        if self.state is RecorderState.RECORDING:
            await self.stop()
        self.discard()

    def take(self) -> VoiceClip | None:
        """Hand the recorded clip to the caller and return to ``idle``."""
        clip = self._clip
        self.discard()
        return clip

    def discard(self) -> None:
        self._clip = None
        self._chunks = []
        self.state = RecorderState.IDLE

    def _on_chunk(self, chunk: bytes) -> None:
        if chunk:
            self._chunks.append(chunk)

    def _release(self) -> None:
        if self._stream is not None:
            self._stream.close()
            self._stream = None
