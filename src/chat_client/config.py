from __future__ import annotations

from typing import Literal

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    API_BASE_URL: str = "http://localhost:5000"
    API_TOKEN: str = ""

    HTTP_TIMEOUT_SECONDS: float = 30.0
    SEND_TIMEOUT_SECONDS: float = 60.0

    POLL_INTERVAL_SECONDS: float = 5.0
    INBOX_POLL_INTERVAL_SECONDS: float = 10.0
    HISTORY_PAGE_SIZE: int = 30

    MAX_UPLOAD_BYTES: int = 25 * 1024 * 1024
    VOICE_MIME_TYPE: str = "audio/webm"
    VOICE_FILE_NAME: str = "voice.webm"

    TOKEN_REFRESH_SKEW_SECONDS: int = 60

    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()
