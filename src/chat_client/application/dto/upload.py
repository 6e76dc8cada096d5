from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class UploadInitDTO:
    file_name: str
    mime_type: str
    size: int
    is_voice: bool = False
    duration_ms: int | None = None
