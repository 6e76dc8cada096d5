from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class LocalFile:
    """A file picked by the user, not yet uploaded."""

    file_name: str
    mime_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True, slots=True)
class VoiceClip:
    """A finished recording handed over by the voice recorder."""

    data: bytes
    mime_type: str
    recorded_ms: int = 0

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True, slots=True)
class UploadTicket:
    attachment_id: str
    upload_url: str
