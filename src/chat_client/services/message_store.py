"""Canonical message list for one conversation.

Every producer (optimistic sends, the poll loop, the history pager) goes
through ``merge``. A merge never awaits, so on the event loop each call is
applied as a whole; afterwards the list is sorted by ``(created_at, seq)``
where ``seq`` is the insertion sequence (history batches get sequences below
everything already present, appends get sequences above).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, Sequence, assert_never

from chat_client.domain.entities.message import Message
from chat_client.domain.value_objects.enums import DeliveryState, MergeOrigin
from chat_client.domain.value_objects.ids import is_temp_id

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


@dataclass(slots=True)
class _Entry:
    message: Message
    seq: int


class MessageStore:
    def __init__(self, conversation_id: str) -> None:
        self.conversation_id = conversation_id
        self._entries: list[_Entry] = []
        self._by_id: dict[str, _Entry] = {}
        self._next_tail_seq = 0
        self._next_head_seq = -1
        self._listeners: list[Listener] = []

    # -- reading -----------------------------------------------------------

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(e.message for e in self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Message]:
        return iter(self.messages)

    def __contains__(self, message_id: object) -> bool:
        return message_id in self._by_id

    def get(self, message_id: str) -> Message | None:
        entry = self._by_id.get(message_id)
        return entry.message if entry else None

    @property
    def last_durable_id(self) -> str | None:
        """Newest server-assigned id; placeholders are skipped."""
        for entry in reversed(self._entries):
            if not is_temp_id(entry.message.id):
                return entry.message.id
        return None

    # -- writing -----------------------------------------------------------

    def merge(
        self,
        incoming: Sequence[Message],
        origin: MergeOrigin,
        *,
        replace_id: str | None = None,
    ) -> int:
        """Merge a batch and return how many entries were added or replaced."""
        if origin is MergeOrigin.OPTIMISTIC:
            changed = self._merge_optimistic(incoming, replace_id)
        elif origin is MergeOrigin.POLL:
            changed = self._append_unseen(incoming)
        elif origin is MergeOrigin.HISTORY:
            changed = self._prepend_unseen(incoming)
        else:
            assert_never(origin)

        if changed:
            self._entries.sort(key=lambda e: (e.message.created_at, e.seq))
            self._notify()
        return changed

    def mark_failed(self, temp_id: str) -> Message | None:
        entry = self._by_id.get(temp_id)
        if entry is None:
            return None
        entry.message = entry.message.with_state(DeliveryState.FAILED)
        self._notify()
        return entry.message

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # -- internals ---------------------------------------------------------

    def _merge_optimistic(self, incoming: Sequence[Message], replace_id: str | None) -> int:
        if replace_id is not None and len(incoming) != 1:
            raise ValueError("replace_id requires exactly one incoming message")

        changed = 0
        for msg in incoming:
            placeholder = self._by_id.get(replace_id) if replace_id is not None else None
            if replace_id is not None and placeholder is not None:
                self._confirm(placeholder, replace_id, msg)
            elif msg.id in self._by_id:
                self._by_id[msg.id].message = msg
            else:
                self._add(msg, self._take_tail_seq())
            changed += 1
        return changed

    def _confirm(self, placeholder: _Entry, temp_id: str, confirmed: Message) -> None:
        del self._by_id[temp_id]
        existing = self._by_id.get(confirmed.id)
        if existing is not None and existing is not placeholder:
            # The poll loop delivered the durable copy first: keep that
            # entry and drop the placeholder.
            self._entries.remove(placeholder)
            existing.message = confirmed
            logger.debug("Placeholder %s superseded by polled %s", temp_id, confirmed.id)
            return
        placeholder.message = confirmed
        self._by_id[confirmed.id] = placeholder

    def _append_unseen(self, incoming: Iterable[Message]) -> int:
        added = 0
        for msg in incoming:
            if msg.id in self._by_id:
                continue
            self._add(msg, self._take_tail_seq())
            added += 1
        return added

    def _prepend_unseen(self, incoming: Sequence[Message]) -> int:
        fresh: list[Message] = []
        seen: set[str] = set()
        for msg in incoming:
            if msg.id in self._by_id or msg.id in seen:
                continue
            seen.add(msg.id)
            fresh.append(msg)
        # Keep the batch's own order below everything already present.
        first_seq = self._next_head_seq - len(fresh) + 1
        for offset, msg in enumerate(fresh):
            self._add(msg, first_seq + offset)
        self._next_head_seq = first_seq - 1
        return len(fresh)

    def _add(self, msg: Message, seq: int) -> None:
        entry = _Entry(message=msg, seq=seq)
        self._entries.append(entry)
        self._by_id[msg.id] = entry

    def _take_tail_seq(self) -> int:
        seq = self._next_tail_seq
        self._next_tail_seq += 1
        return seq

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("Message store listener failed")
