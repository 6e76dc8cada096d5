from __future__ import annotations

import asyncio

import pytest

from chat_client.application.dto.message import MessagePage
from chat_client.services.history_pager import HistoryPager
from chat_client.services.message_store import MessageStore
from tests.conftest import CONVERSATION_ID, make_message


@pytest.fixture
def store() -> MessageStore:
    return MessageStore(CONVERSATION_ID)


@pytest.fixture
def paged_api(api):
    api.history_pages[None] = MessagePage(
        messages=[make_message("m3", 30), make_message("m4", 40)],
        has_more=True,
        next_cursor="c1",
    )
    api.history_pages["c1"] = MessagePage(
        messages=[make_message("m1", 10), make_message("m2", 20)],
        has_more=False,
        next_cursor=None,
    )
    return api


@pytest.mark.asyncio
async def test_load_initial_then_older(store, paged_api):
    pager = HistoryPager(store, paged_api, page_size=2)

    assert await pager.load_initial() == 2
    assert pager.cursor == "c1"
    assert pager.has_more is True

    assert await pager.load_older() == 2
    assert [m.id for m in store.messages] == ["m1", "m2", "m3", "m4"]
    assert pager.has_more is False
    assert paged_api.ops("history") == [None, "c1"]


@pytest.mark.asyncio
async def test_load_older_is_noop_without_more(store, paged_api):
    pager = HistoryPager(store, paged_api)
    await pager.load_initial()
    await pager.load_older()

    assert await pager.load_older() == 0
    assert len(paged_api.ops("history")) == 2


@pytest.mark.asyncio
async def test_concurrent_load_older_issues_one_request(store, paged_api):
    pager = HistoryPager(store, paged_api)
    await pager.load_initial()
    gate = asyncio.Event()
    paged_api.gates["history"] = gate

    first = asyncio.create_task(pager.load_older())
    await asyncio.sleep(0)
    assert pager.is_loading

    second = await pager.load_older()
    gate.set()
    await first

    assert second == 0
    assert paged_api.ops("history") == [None, "c1"]


@pytest.mark.asyncio
async def test_failed_page_is_retryable(store, paged_api):
    pager = HistoryPager(store, paged_api)
    await pager.load_initial()
    paged_api.fail_on.add("history")

    assert await pager.load_older() == 0
    assert pager.cursor == "c1"
    assert pager.has_more is True
    assert not pager.is_loading
    assert len(store) == 2

    paged_api.fail_on.clear()
    assert await pager.load_older() == 2


@pytest.mark.asyncio
async def test_page_overlapping_store_is_deduplicated(store, api):
    api.history_pages[None] = MessagePage(messages=[make_message("m1", 10), make_message("m2", 20)], has_more=True, next_cursor="c1")
    api.history_pages["c1"] = MessagePage(messages=[make_message("m0", 0), make_message("m1", 10)], has_more=False)
    pager = HistoryPager(store, api)

    await pager.load_initial()
    added = await pager.load_older()

    assert added == 1
    assert [m.id for m in store.messages] == ["m0", "m1", "m2"]
