"""Sync coordination: state, refresh orchestration and background scheduling."""

from .factory import SyncCoordinator, SyncCoordinatorFactory
from .notifier import PostRefreshNotifier
from .orchestrator import RefreshOrchestrator
from .other_folders import OtherFoldersSyncer
from .scheduler import BackgroundSyncScheduler, SchedulerState
from .state import SyncSnapshot, SyncState
from .tasks import TaskSpawner

__all__ = [
    "BackgroundSyncScheduler",
    "OtherFoldersSyncer",
    "PostRefreshNotifier",
    "RefreshOrchestrator",
    "SchedulerState",
    "SyncCoordinator",
    "SyncCoordinatorFactory",
    "SyncSnapshot",
    "SyncState",
    "TaskSpawner",
]
