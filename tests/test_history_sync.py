"""Tests for the client history synchronizer."""

import httpx
import pytest

from calculator_app.history import HISTORY_LIMIT, HistoryEntry, HistorySync

BASE_URL = "http://history.test/api/history"


@pytest.mark.asyncio
async def test_save_then_load_maps_records(history, store):
    entries = await history.save("12 + 4", "16")

    assert len(entries) == 1
    entry = entries[0]
    assert entry.eq == "12 + 4"
    assert entry.res == "16"
    assert entry.id == store.list_recent()[0].id
    assert not entry.is_local


@pytest.mark.asyncio
async def test_load_is_newest_first(history, store):
    store.create("1 + 1", "2")
    store.create("2 + 2", "4")

    entries = await history.load()
    assert [e.res for e in entries] == ["4", "2"]


@pytest.mark.asyncio
async def test_load_failure_keeps_view(offline_history):
    offline_history.remote = [HistoryEntry(id="abc", eq="1 + 1", res="2")]

    entries = await offline_history.load()
    assert [e.id for e in entries] == ["abc"]


@pytest.mark.asyncio
async def test_load_failure_on_server_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(500, json={"message": "boom"}))
    sync = HistorySync(BASE_URL, transport=transport)
    sync.remote = [HistoryEntry(id="abc", eq="1 + 1", res="2")]

    assert [e.id for e in await sync.load()] == ["abc"]


@pytest.mark.asyncio
async def test_save_offline_creates_local_entry(offline_history):
    entries = await offline_history.save("7 * 0.1", "0.7")

    assert len(entries) == 1
    assert entries[0].is_local
    assert (entries[0].eq, entries[0].res) == ("7 * 0.1", "0.7")


@pytest.mark.asyncio
async def test_local_view_never_exceeds_limit(offline_history):
    offline_history.remote = [HistoryEntry(id=f"r{i}", eq="1 + 1", res="2") for i in range(HISTORY_LIMIT)]

    for i in range(HISTORY_LIMIT + 5):
        entries = await offline_history.save(f"{i} + 0", str(i))
        assert len(entries) <= HISTORY_LIMIT

    entries = offline_history.entries
    assert len(entries) == HISTORY_LIMIT
    assert entries[0].res == str(HISTORY_LIMIT + 4)
    assert all(e.is_local for e in entries)
    assert len({e.id for e in entries}) == HISTORY_LIMIT


@pytest.mark.asyncio
async def test_successful_fetch_discards_local_entries(history, offline_transport, forwarding_transport, store):
    history.transport = offline_transport
    await history.save("1 + 1", "2")
    assert history.entries[0].is_local

    store.create("3 + 3", "6")
    history.transport = forwarding_transport
    entries = await history.load()

    assert [e.res for e in entries] == ["6"]
    assert history.local == []


@pytest.mark.asyncio
async def test_delete_confirmed(history, store):
    await history.save("1 + 1", "2")
    await history.save("2 + 2", "4")
    target = history.entries[0]

    assert await history.delete(target.id) is True
    assert [e.res for e in history.entries] == ["2"]
    assert [r.result for r in store.list_recent()] == ["2"]


@pytest.mark.asyncio
async def test_delete_not_found_keeps_view(history):
    history.remote = [HistoryEntry(id="missing", eq="1 + 1", res="2")]

    assert await history.delete("missing") is False
    assert [e.id for e in history.entries] == ["missing"]


@pytest.mark.asyncio
async def test_delete_offline_keeps_view(offline_history):
    offline_history.remote = [HistoryEntry(id="abc", eq="1 + 1", res="2")]

    assert await offline_history.delete("abc") is False
    assert len(offline_history.entries) == 1


@pytest.mark.asyncio
async def test_delete_local_entry_without_request(offline_history):
    await offline_history.save("1 + 1", "2")
    local_id = offline_history.entries[0].id

    assert await offline_history.delete(local_id) is True
    assert offline_history.entries == []


@pytest.mark.asyncio
async def test_clear(history, store):
    await history.save("1 + 1", "2")
    await history.save("2 + 2", "4")

    assert await history.clear() is True
    assert history.entries == []
    assert store.list_recent() == []


@pytest.mark.asyncio
async def test_clear_offline_keeps_view(offline_history):
    offline_history.remote = [HistoryEntry(id="abc", eq="1 + 1", res="2")]

    assert await offline_history.clear() is False
    assert len(offline_history.entries) == 1


def test_find():
    sync = HistorySync(BASE_URL)
    sync.remote = [HistoryEntry(id="abc", eq="1 + 1", res="2")]
    assert sync.find("abc").res == "2"
    assert sync.find("nope") is None


@pytest.mark.asyncio
async def test_delete_failure_with_non_object_error_body():
    transport = httpx.MockTransport(lambda request: httpx.Response(500, json=["boom"]))
    sync = HistorySync(BASE_URL, transport=transport)
    sync.remote = [HistoryEntry(id="abc", eq="1 + 1", res="2")]

    assert await sync.delete("abc") is False
    assert [e.id for e in sync.entries] == ["abc"]


@pytest.mark.asyncio
async def test_deleting_local_entry_reveals_remote_entries(offline_history):
    offline_history.remote = [HistoryEntry(id=f"r{i}", eq="1 + 1", res="2") for i in range(HISTORY_LIMIT)]

    await offline_history.save("3 + 3", "6")
    local_id = offline_history.entries[0].id
    assert len(offline_history.entries) == HISTORY_LIMIT

    assert await offline_history.delete(local_id) is True
    entries = offline_history.entries
    assert len(entries) == HISTORY_LIMIT
    assert [e.id for e in entries] == [f"r{i}" for i in range(HISTORY_LIMIT)]
