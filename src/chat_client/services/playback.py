from __future__ import annotations

import logging
import math

from chat_client.application.ports.media import AudioPlayer

logger = logging.getLogger(__name__)


class PlaybackController:
    """At most one voice message plays at a time.

    ``progress`` is view state (0–100 per message id) and is never written
    back to the message store.
    """

    def __init__(self) -> None:
        self._players: dict[str, AudioPlayer] = {}
        self.playing_message_id: str | None = None
        self.progress: dict[str, float] = {}

    def register(self, message_id: str, player: AudioPlayer) -> None:
        self._players[message_id] = player

    def unregister(self, message_id: str) -> None:
        if self.playing_message_id == message_id:
            self.pause()
        self._players.pop(message_id, None)
        self.progress.pop(message_id, None)

    def play(self, message_id: str) -> None:
        player = self._players.get(message_id)
        if player is None:
            logger.debug("No player registered for %s", message_id)
            return
        current = self.playing_message_id
        if current is not None and current != message_id:
            other = self._players.get(current)
            if other is not None:
                other.pause()
        player.play()
        self.playing_message_id = message_id

    def pause(self) -> None:
        current = self.playing_message_id
        if current is None:
            return
        player = self._players.get(current)
        if player is not None:
            player.pause()
        self.playing_message_id = None

    def toggle(self, message_id: str) -> None:
        if self.playing_message_id == message_id:
            self.pause()
        else:
            self.play(message_id)

    def on_time_update(self, message_id: str, position: float, duration: float) -> None:
        if not math.isfinite(duration) or duration <= 0:
            return
        self.progress[message_id] = min(max(position / duration * 100, 0.0), 100.0)

    def on_ended(self, message_id: str) -> None:
        if self.playing_message_id == message_id:
            self.playing_message_id = None
        self.progress[message_id] = 0.0
