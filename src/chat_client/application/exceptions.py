from __future__ import annotations

from chat_client.domain.value_objects.enums import UploadPhase


class AppError(Exception):
    """Base client error."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class ValidationError(AppError):
    """Rejected locally, before any network call."""


class UploadError(AppError):
    def __init__(self, detail: str = "", phase: UploadPhase = UploadPhase.NEW) -> None:
        self.phase = phase
        super().__init__(detail)


class SendError(AppError):
    pass


class SyncError(AppError):
    pass


class PermissionDeniedError(AppError):
    pass


class ApiError(AppError):
    def __init__(self, detail: str = "", status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(detail)
