"""
Shared test fixtures and configuration for pytest
"""
import os
import tempfile
from pathlib import Path

# Keep config and log files out of the real home directory
os.environ["MAILSYNC_HOME"] = tempfile.mkdtemp(prefix="mailsync-tests-")

import pytest

from mailsync.core.email.events import NewMailBus
from mailsync.core.email.services.fetch import FolderCacheReader, RemoteRefreshFetcher
from mailsync.sync.notifier import PostRefreshNotifier
from mailsync.sync.orchestrator import RefreshOrchestrator
from mailsync.sync.other_folders import OtherFoldersSyncer
from mailsync.sync.state import SyncState
from mailsync.sync.tasks import TaskSpawner
from mailsync.utils.config_manager import ConfigManager

from test_helpers import FakeIndexer, FakeMailSource, MemoryStore, SnapshotRecorder


@pytest.fixture
def temp_db():
    """Create a temporary database path for testing"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir) / "test_mailsync.db"


@pytest.fixture
def config_manager(tmp_path):
    """Fresh ConfigManager backed by a temporary config file"""
    ConfigManager.reset_instance()
    manager = ConfigManager(tmp_path / "config.json")
    manager.config.database.database_path = str(tmp_path / "mailsync.db")
    yield manager
    ConfigManager.reset_instance()


@pytest.fixture
def source():
    return FakeMailSource()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
async def spawner():
    spawner = TaskSpawner()
    yield spawner
    await spawner.cancel_all()


@pytest.fixture
def state():
    return SyncState("INBOX")


@pytest.fixture
def recorder(state):
    return SnapshotRecorder(state)


@pytest.fixture
def bus():
    return NewMailBus()


@pytest.fixture
def embedding_indexer():
    return FakeIndexer("embeddings")


@pytest.fixture
def insight_indexer():
    return FakeIndexer("insights")


@pytest.fixture
def fetcher(source, store):
    return RemoteRefreshFetcher(source, store)


@pytest.fixture
def notifier(spawner, embedding_indexer, insight_indexer):
    return PostRefreshNotifier(spawner, embedding_indexer, insight_indexer)


@pytest.fixture
def orchestrator(state, source, store, fetcher, spawner, notifier):
    return RefreshOrchestrator(
        state=state,
        cache_reader=FolderCacheReader(store),
        fetcher=fetcher,
        source=source,
        store=store,
        spawner=spawner,
        notifier=notifier,
        default_page_size=50,
    )


@pytest.fixture
def other_folders(orchestrator, spawner):
    return OtherFoldersSyncer(orchestrator, spawner)
