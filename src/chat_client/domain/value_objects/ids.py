from __future__ import annotations

import uuid
from typing import NewType

ConversationId = NewType("ConversationId", str)
MessageId = NewType("MessageId", str)
AttachmentId = NewType("AttachmentId", str)

TEMP_ID_PREFIX = "temp_"


def new_temp_id() -> MessageId:
    """Client-side placeholder id; uuid4 so rapid sends never collide."""
    return MessageId(f"{TEMP_ID_PREFIX}{uuid.uuid4().hex}")


def is_temp_id(message_id: str) -> bool:
    return message_id.startswith(TEMP_ID_PREFIX)
