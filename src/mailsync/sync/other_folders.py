"""Background refresh of the non-primary folders."""

import asyncio
from typing import Dict, Iterable, List

from mailsync.core.models.message import normalise_folder
from mailsync.utils.logging import async_log_call, get_logger

from .orchestrator import RefreshOrchestrator
from .tasks import TaskSpawner

logger = get_logger(__name__)

DEFAULT_OTHER_FOLDERS = ("Sent", "Drafts", "Trash", "Spam")


class OtherFoldersSyncer:
    """Keeps the local copies of Sent, Drafts, Trash and Spam fresh.

    Each folder goes through the orchestrator's per-folder refresh, so a
    folder that is also being refreshed for the visible view is fetched once.
    Folders that are not on screen only land in the local store.
    """

    def __init__(
        self,
        orchestrator: RefreshOrchestrator,
        spawner: TaskSpawner,
        folders: Iterable[str] = DEFAULT_OTHER_FOLDERS,
        page_size: int = 50,
    ):
        self.orchestrator = orchestrator
        self.spawner = spawner
        self.folders: List[str] = [normalise_folder(folder) for folder in folders]
        self.page_size = page_size

    @async_log_call
    async def sync_others(self) -> Dict[str, bool]:
        """Refresh every configured folder concurrently.

        One folder failing does not affect the others.

        Returns:
            Mapping of folder name to whether its refresh succeeded
        """
        results = await asyncio.gather(
            *(self.orchestrator.request_refresh(folder, self.page_size) for folder in self.folders)
        )
        outcome = dict(zip(self.folders, results))

        failed = [folder for folder, ok in outcome.items() if not ok]
        if failed:
            logger.warning(f"Other-folders sync finished with failures: {', '.join(failed)}")
        else:
            logger.info(f"Other-folders sync finished ({len(outcome)} folders)")

        return outcome

    def spawn(self) -> asyncio.Task:
        """Run ``sync_others`` in the background."""
        return self.spawner.spawn(self.sync_others(), name="sync-other-folders")
