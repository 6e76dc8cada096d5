"""Formatting helpers for thread and inbox views."""
from __future__ import annotations

from datetime import datetime, timedelta

from chat_client.domain.value_objects.enums import MessageKind


def format_file_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


def last_message_preview(kind: MessageKind | None, text: str | None) -> str:
    if kind is None:
        return "No messages yet"
    if kind is MessageKind.FILE:
        return "📎 File"
    if kind is MessageKind.VOICE:
        return "🎤 Voice message"
    return text or "No messages yet"


def day_label(ts: datetime, now: datetime) -> str:
    """``Today`` / ``Yesterday`` / ``March 5, 2025`` in ``now``'s timezone."""
    local = ts.astimezone(now.tzinfo) if ts.tzinfo and now.tzinfo else ts
    day = local.date()
    if day == now.date():
        return "Today"
    if day == (now - timedelta(days=1)).date():
        return "Yesterday"
    return f"{local.strftime('%B')} {day.day}, {day.year}"


def is_image(mime_type: str) -> bool:
    return mime_type.startswith("image/")
