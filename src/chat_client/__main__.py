"""Entrypoint: python -m chat_client <conversation_id>

Opens the thread, prints it whenever it changes and sends each stdin line
as a text message.
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import assert_never

from chat_client.application.exceptions import ValidationError
from chat_client.config import settings
from chat_client.domain.entities.message import FilePayload, Message, TextPayload, VoicePayload
from chat_client.infrastructure.auth.token_provider import StaticTokenProvider
from chat_client.infrastructure.http.client import HttpChatApi
from chat_client.services.presentation import format_file_size
from chat_client.services.thread_session import ThreadSession

def _render(message: Message) -> str:
    payload = message.payload
    if isinstance(payload, TextPayload):
        body = payload.text
    elif isinstance(payload, FilePayload):
        body = ", ".join(f"[{a.file_name} {format_file_size(a.size)}]" for a in payload.attachments)
    elif isinstance(payload, VoicePayload):
        body = f"[voice {payload.voice.duration_ms / 1000:.1f}s]"
    else:
        assert_never(payload)
    state = f" ({message.delivery_state})" if message.delivery_state else ""
    stamp = message.created_at.strftime("%H:%M")
    return f"{stamp} {message.sender_name or message.sender_id}: {body}{state}"


async def _read_lines(session: ThreadSession) -> None:
    loop = asyncio.get_running_loop()
    while True:
        line = await loop.run_in_executor(None, sys.stdin.readline)
        if not line:
            return
        try:
            await session.sender.send_text(line)
        except ValidationError:
            continue


async def run(conversation_id: str, sender_id: str) -> None:
    async with HttpChatApi(StaticTokenProvider(settings.API_TOKEN)) as api:
        session = ThreadSession(conversation_id, api, sender_id=sender_id)

        def _print() -> None:
            print("\033[2J\033[H", end="")
            for message in session.store:
                print(_render(message))

        session.store.subscribe(_print)
        async with session:
            _print()
            await _read_lines(session)


def main() -> None:
    parser = argparse.ArgumentParser(prog="chat_client")
    parser.add_argument("conversation_id")
    parser.add_argument("--sender-id", required=True, help="id of the signed-in user")
    args = parser.parse_args()

    logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        asyncio.run(run(args.conversation_id, args.sender_id))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
