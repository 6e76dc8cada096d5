from __future__ import annotations

import asyncio

import pytest

from chat_client.application.dto.message import MessagePage
from chat_client.domain.value_objects.enums import DeliveryState
from chat_client.services.thread_session import ThreadSession
from chat_client.domain.entities.message import VoicePayload
from chat_client.domain.value_objects.enums import RecorderState
from tests.conftest import CONVERSATION_ID, ME, FakeAudioStream, FakeMicrophone, FakePlayer, make_message


@pytest.fixture
def seeded_api(api):
    api.id_prefix = "srv"
    api.history_pages[None] = MessagePage(
        messages=[make_message("m1", 10), make_message("m2", 20)],
        has_more=False,
    )
    return api


def _session(api, clock, **kwargs) -> ThreadSession:
    return ThreadSession(CONVERSATION_ID, api, sender_id=ME, clock=clock, poll_interval=0.01, **kwargs)


@pytest.mark.asyncio
async def test_open_loads_conversation_history_and_marks_read(seeded_api, clock):
    session = _session(seeded_api, clock)

    await session.open()
    await asyncio.sleep(0)

    assert session.conversation is not None
    assert session.conversation.other_user.name == "Peer"
    assert [m.id for m in session.store.messages] == ["m1", "m2"]
    assert seeded_api.ops("read") == [CONVERSATION_ID]
    assert session.poller.running
    await session.close()


@pytest.mark.asyncio
async def test_close_stops_polling(seeded_api, clock):
    async with _session(seeded_api, clock) as session:
        await asyncio.sleep(0.05)

    polls = len(seeded_api.ops("poll"))
    await asyncio.sleep(0.05)

    assert polls >= 1
    assert len(seeded_api.ops("poll")) == polls
    assert not session.is_open
    assert not session.poller.running


@pytest.mark.asyncio
async def test_conversation_failure_does_not_block_open(seeded_api, clock):
    seeded_api.fail_on.add("get_conversation")

    async with _session(seeded_api, clock) as session:
        assert session.conversation is None
        assert len(session.store) == 2


@pytest.mark.asyncio
async def test_send_and_poll_merge_into_one_thread(seeded_api, clock):
    seeded_api.poll_pages.append(MessagePage(messages=[make_message("m3", 30)]))

    async with _session(seeded_api, clock) as session:
        sent = await session.sender.send_text("Hello")
        await asyncio.sleep(0.05)
        ids = [m.id for m in session.store.messages]

    assert sent.delivery_state is DeliveryState.SENT
    assert ids == ["m1", "m2", "m3", sent.id]
    assert len(ids) == len(set(ids))


@pytest.mark.asyncio
async def test_close_pauses_playback(seeded_api, clock):
    session = _session(seeded_api, clock)
    player = FakePlayer()
    await session.open()
    session.playback.register("m1", player)
    session.playback.play("m1")

    await session.close()

    assert player.playing is False
    assert session.playback.playing_message_id is None


@pytest.mark.asyncio
async def test_record_stop_and_send_voice(seeded_api, clock):
    microphone = FakeMicrophone(stream=FakeAudioStream(chunks=[b"\x1a" * 512]))

    async with _session(seeded_api, clock, microphone=microphone) as session:
        await session.recorder.start()
        clock.advance(10)
        sent = await session.send_recording()

    init = seeded_api.ops("init")[0]
    assert init.is_voice is True
    assert init.duration_ms == 10_000
    assert seeded_api.ops("create")[0].voice_id == "att1"
    assert isinstance(sent.payload, VoicePayload)
    assert sent.delivery_state is DeliveryState.SENT
    assert session.recorder.state is RecorderState.IDLE
    assert microphone.stream.closed is True
