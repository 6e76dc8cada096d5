from __future__ import annotations

from enum import StrEnum


class MessageKind(StrEnum):
    TEXT = "text"
    FILE = "file"
    VOICE = "voice"


class DeliveryState(StrEnum):
    SENDING = "sending"
    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"
    FAILED = "failed"


class MergeOrigin(StrEnum):
    OPTIMISTIC = "optimistic"
    POLL = "poll"
    HISTORY = "history"


class UploadPhase(StrEnum):
    NEW = "new"
    INITIATED = "initiated"
    TRANSFERRED = "transferred"
    COMPLETED = "completed"
    FAILED = "failed"


class RecorderState(StrEnum):
    IDLE = "idle"
    RECORDING = "recording"
    RECORDED = "recorded"
