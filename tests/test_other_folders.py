"""Tests for OtherFoldersSyncer."""

import asyncio

import pytest

from mailsync.sync.other_folders import OtherFoldersSyncer
from mailsync.utils.errors import NetworkError

from test_helpers import make_messages, settle


@pytest.mark.asyncio
async def test_sync_others_refreshes_every_folder(other_folders, source, store):
    source.folders["Sent"] = make_messages("s", 2)
    source.folders["Trash"] = make_messages("t", 1)

    result = await other_folders.sync_others()

    assert result == {"Sent": True, "Drafts": True, "Trash": True, "Spam": True}
    assert len(store.folders["Sent"]) == 2
    assert len(store.folders["Trash"]) == 1
    assert store.folders["Drafts"] == []


@pytest.mark.asyncio
async def test_one_failure_does_not_affect_others(other_folders, source, store):
    """Test a failing folder is reported without stopping the rest."""
    source.errors["Drafts"] = NetworkError("Drafts unavailable")
    source.folders["Spam"] = make_messages("x", 3)

    result = await other_folders.sync_others()

    assert result["Drafts"] is False
    assert result["Sent"] and result["Trash"] and result["Spam"]
    assert "Drafts" not in store.folders
    assert len(store.folders["Spam"]) == 3


@pytest.mark.asyncio
async def test_sync_others_never_touches_visible_state(other_folders, source, state, recorder):
    source.folders["Sent"] = make_messages("s", 2)

    await other_folders.sync_others()

    assert recorder.snapshots == []


@pytest.mark.asyncio
async def test_spawn_runs_in_background(other_folders, source, spawner):
    task = other_folders.spawn()

    assert source.fetch_calls == []
    assert await task == {"Sent": True, "Drafts": True, "Trash": True, "Spam": True}


@pytest.mark.asyncio
async def test_folder_names_are_normalised(orchestrator, spawner, source):
    syncer = OtherFoldersSyncer(orchestrator, spawner, folders=["sent", "spam"], page_size=10)

    await syncer.sync_others()

    assert sorted(source.fetch_calls) == [("Sent", 10, None), ("Spam", 10, None)]


@pytest.mark.asyncio
async def test_visible_folder_is_fetched_once(orchestrator, other_folders, source, state):
    """Test a background sync joins the refresh of the folder on screen."""
    source.folders["Sent"] = make_messages("s", 3)
    network = await orchestrator.switch_folder("Sent")
    await network
    before = source.fetch_count("Sent")

    source.gate = asyncio.Event()
    visible = asyncio.create_task(orchestrator.refresh())
    background = asyncio.create_task(other_folders.sync_others())
    await settle()

    assert source.fetch_count("Sent") == before + 1

    source.gate.set()
    assert await visible is True
    assert (await background)["Sent"] is True
    assert source.fetch_count("Sent") == before + 1
    assert len(state.messages) == 3


@pytest.mark.asyncio
async def test_background_sync_skips_notifier(other_folders, spawner, embedding_indexer, insight_indexer):
    await other_folders.sync_others()
    await spawner.drain()

    assert embedding_indexer.requests == []
    assert insight_indexer.requests == []
