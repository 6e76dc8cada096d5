"""Audio device ports: microphone capture, duration probing, playback."""
from __future__ import annotations

from typing import Callable, Protocol


class AudioStream(Protocol):
    """An open microphone stream. Chunks are pushed to the sink while started."""

    mime_type: str

    def start(self, on_chunk: Callable[[bytes], None]) -> None: ...

    async def stop(self) -> None:
        """Stop capture and flush any buffered chunk to the sink."""
        ...

    def close(self) -> None:
        """Release the device."""
        ...


class Microphone(Protocol):
    async def open(self) -> AudioStream:
        """Raise PermissionDeniedError when access is refused."""
        ...


class DurationProbe(Protocol):
    async def duration_seconds(self, data: bytes, mime_type: str) -> float: ...


class AudioPlayer(Protocol):
    def play(self) -> None: ...

    def pause(self) -> None: ...
