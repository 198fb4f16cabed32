"""Tests for PostRefreshNotifier and TaskSpawner."""

import asyncio

import pytest

from mailsync.sync.notifier import PostRefreshNotifier
from mailsync.sync.tasks import TaskSpawner

from test_helpers import FakeIndexer


@pytest.mark.asyncio
async def test_notify_requests_both_indexers(notifier, spawner, embedding_indexer, insight_indexer):
    tasks = notifier.notify(page_size=50)
    await spawner.drain()

    assert len(tasks) == 2
    assert embedding_indexer.requests == [None]
    assert insight_indexer.requests == [50]


@pytest.mark.asyncio
async def test_busy_indexers_are_skipped(notifier, spawner, embedding_indexer, insight_indexer):
    embedding_indexer.busy = True
    insight_indexer.busy = True

    assert notifier.notify(page_size=50) == []
    await spawner.drain()

    assert embedding_indexer.requests == []
    assert insight_indexer.requests == []


@pytest.mark.asyncio
async def test_embedding_indexer_must_be_ready(notifier, spawner, embedding_indexer, insight_indexer):
    """Test only the embedding indexer waits for initialisation."""
    embedding_indexer.ready = False
    insight_indexer.ready = False

    notifier.notify(page_size=25)
    await spawner.drain()

    assert embedding_indexer.requests == []
    assert insight_indexer.requests == [25]


@pytest.mark.asyncio
async def test_missing_indexers_are_fine(spawner):
    notifier = PostRefreshNotifier(spawner)

    assert notifier.notify(page_size=50) == []


@pytest.mark.asyncio
async def test_indexer_failure_is_contained(spawner):
    """Test a raising indexer neither reaches the caller nor blocks the other."""

    class BrokenIndexer(FakeIndexer):
        def is_busy(self):
            raise RuntimeError("status unavailable")

    insights = FakeIndexer("insights")
    notifier = PostRefreshNotifier(spawner, BrokenIndexer("embeddings"), insights)

    notifier.notify(page_size=10)
    await spawner.drain()

    assert insights.requests == [10]


@pytest.mark.asyncio
async def test_spawner_logs_failures_and_forgets_tasks():
    spawner = TaskSpawner()

    async def boom():
        raise RuntimeError("background failure")

    task = spawner.spawn(boom(), name="boom")
    await spawner.drain()

    assert task.done()
    assert isinstance(task.exception(), RuntimeError)
    assert spawner.pending == 0


@pytest.mark.asyncio
async def test_spawner_drain_waits_for_nested_spawns():
    spawner = TaskSpawner()
    finished = []

    async def child():
        await asyncio.sleep(0)
        finished.append("child")

    async def parent():
        spawner.spawn(child(), name="child")
        finished.append("parent")

    spawner.spawn(parent(), name="parent")
    await spawner.drain()

    assert finished == ["parent", "child"]


@pytest.mark.asyncio
async def test_spawner_cancel_all():
    spawner = TaskSpawner()
    task = spawner.spawn(asyncio.sleep(60), name="sleeper")

    await spawner.cancel_all()

    assert task.cancelled()
    assert spawner.pending == 0
