from __future__ import annotations

import uuid
from contextvars import ContextVar

request_id_ctx: ContextVar[str] = ContextVar("request_id", default="")

HEADER = "X-Request-ID"


def current_request_id() -> str:
    """Request id bound to the current task, or a fresh one per call."""
    return request_id_ctx.get() or uuid.uuid4().hex
