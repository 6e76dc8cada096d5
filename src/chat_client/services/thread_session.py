"""One open conversation view: history, polling, sending and playback."""
from __future__ import annotations

import logging

from chat_client.application.exceptions import ValidationError
from chat_client.application.ports.api import ChatApi
from chat_client.application.ports.clock import Clock
from chat_client.application.ports.media import DurationProbe, Microphone
from chat_client.domain.entities.conversation import ConversationInfo
from chat_client.domain.entities.message import Message
from chat_client.services.history_pager import HistoryPager
from chat_client.services.message_store import MessageStore
from chat_client.services.playback import PlaybackController
from chat_client.services.read_receipts import ReadReceipts
from chat_client.services.send_controller import SendController
from chat_client.services.upload_pipeline import UploadPipeline
from chat_client.services.voice_recorder import VoiceRecorder
from chat_client.workers.poll_sync import PollSyncLoop

logger = logging.getLogger(__name__)


class ThreadSession:
    """Owns every per-thread component.

    ``close`` must be called (or the session used as an async context
    manager) when the view goes away or the conversation changes, so the
    poll loop never outlives the thread.
    """

    def __init__(
        self,
        conversation_id: str,
        api: ChatApi,
        *,
        sender_id: str,
        sender_name: str | None = None,
        clock: Clock | None = None,
        duration_probe: DurationProbe | None = None,
        microphone: Microphone | None = None,
        poll_interval: float | None = None,
        page_size: int | None = None,
        send_timeout: float | None = None,
    ) -> None:
        self.conversation_id = conversation_id
        self._api = api
        self.conversation: ConversationInfo | None = None
        self.store = MessageStore(conversation_id)
        self.read_receipts = ReadReceipts(api)
        self.history = HistoryPager(self.store, api, page_size=page_size)
        self.poller = PollSyncLoop(self.store, api, self.read_receipts, interval=poll_interval)
        self.uploads = UploadPipeline(api, duration_probe=duration_probe)
        self.sender = SendController(
            self.store,
            api,
            self.uploads,
            sender_id=sender_id,
            sender_name=sender_name,
            clock=clock,
            read_receipts=self.read_receipts,
            timeout=send_timeout,
        )
        self.playback = PlaybackController()
        self.recorder = VoiceRecorder(microphone, clock=clock) if microphone is not None else None
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    async def __aenter__(self) -> ThreadSession:
        await self.open()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def open(self) -> None:
        if self._open:
            return
        self._open = True
        await self._load_conversation()
        await self.history.load_initial()
        self.read_receipts.mark(self.conversation_id)
        await self.poller.start()
        logger.info("Thread %s opened with %d messages", self.conversation_id, len(self.store))

    async def close(self) -> None:
        if not self._open:
            return
        self._open = False
        await self.poller.stop()
        self.playback.pause()
        if self.recorder is not None:
            await self.recorder.cancel()
        await self.read_receipts.aclose()
        logger.info("Thread %s closed", self.conversation_id)

    async def send_recording(self) -> Message:
        """Stop the recorder if needed and send its clip as a voice message."""
        if self.recorder is None:
            raise ValidationError("No microphone configured")
        await self.recorder.stop()
        clip = self.recorder.take()
        if clip is None:
            raise ValidationError("Nothing recorded")
        return await self.sender.send_voice(clip)

    async def _load_conversation(self) -> None:
        try:
            self.conversation = await self._api.get_conversation(self.conversation_id)
        except Exception:
            logger.exception("Error loading conversation %s", self.conversation_id)
