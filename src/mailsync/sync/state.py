"""Observable sync state shared by the orchestrator and the scheduler.

All mutation goes through ``SyncState.apply()`` (or the helpers built on it),
which checks that ``loading`` and ``refreshing`` are never both set and then
publishes an immutable ``SyncSnapshot`` to every listener.

Two pieces of bookkeeping keep concurrent loads from stepping on each other:

- ``generation`` is bumped by every folder switch. A load captures it when it
  is issued and drops its result if it changed in the meantime.
- ``begin()`` raises a load flag on behalf of an owner token. Only the current
  owner may clear the flags again through ``finish()``.

Usage Examples
--------------

    >>> state = SyncState("INBOX")
    >>> unsubscribe = state.subscribe(lambda snap: print(snap.loading))
    >>> owner = object()
    >>> state.begin("loading", owner)
    >>> state.finish(owner, messages=[])
    True
"""

import contextlib
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

from mailsync.core.models.message import FolderStats, MessageDetail, MessageSummary
from mailsync.utils.errors import ErrorHandler, StateInvariantError
from mailsync.utils.logging import get_logger

logger = get_logger(__name__)

LOAD_FLAGS = ("loading", "refreshing")
_FIELDS = ("current_folder", "messages", "loading", "refreshing", "error", "selected", "folder_stats")

SnapshotListener = Callable[["SyncSnapshot"], None]


@dataclass(frozen=True)
class SyncSnapshot:
    """Point-in-time copy of the sync state."""

    current_folder: str
    messages: Tuple[MessageSummary, ...] = ()
    loading: bool = False
    refreshing: bool = False
    error: Optional[str] = None
    selected: Optional[MessageDetail] = None
    folder_stats: Tuple[FolderStats, ...] = ()
    generation: int = 0

    @property
    def total_unread(self) -> int:
        return sum(stats.unread_count for stats in self.folder_stats)


class SyncState:
    """Mutable owner of the current folder view."""

    def __init__(self, current_folder: str = "INBOX"):
        self._values = {
            "current_folder": current_folder,
            "messages": (),
            "loading": False,
            "refreshing": False,
            "error": None,
            "selected": None,
            "folder_stats": (),
        }
        self._generation = 0
        self._flag_owner: Optional[object] = None
        self._listeners: List[SnapshotListener] = []

    ## Read access

    @property
    def current_folder(self) -> str:
        return self._values["current_folder"]

    @property
    def messages(self) -> Tuple[MessageSummary, ...]:
        return self._values["messages"]

    @property
    def loading(self) -> bool:
        return self._values["loading"]

    @property
    def refreshing(self) -> bool:
        return self._values["refreshing"]

    @property
    def error(self) -> Optional[str]:
        return self._values["error"]

    @property
    def selected(self) -> Optional[MessageDetail]:
        return self._values["selected"]

    @property
    def folder_stats(self) -> Tuple[FolderStats, ...]:
        return self._values["folder_stats"]

    @property
    def generation(self) -> int:
        return self._generation

    def snapshot(self) -> SyncSnapshot:
        return SyncSnapshot(generation=self._generation, **self._values)

    ## Listeners

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register ``listener`` for snapshots and return its unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                ErrorHandler.handle(e, "State listener failed", log_traceback=False)

    ## Mutation

    def apply(self, **changes: Any) -> SyncSnapshot:
        """Apply ``changes`` as one mutation and publish the result.

        Sequences are stored as tuples so snapshots never share mutable data.

        Raises:
            StateInvariantError: On an unknown field, or if the change would
                leave both ``loading`` and ``refreshing`` set
        """
        unknown = set(changes) - set(_FIELDS)
        if unknown:
            raise StateInvariantError(f"Unknown state field(s): {', '.join(sorted(unknown))}")

        for key in ("messages", "folder_stats"):
            if key in changes:
                changes[key] = tuple(changes[key] or ())

        loading = changes.get("loading", self._values["loading"])
        refreshing = changes.get("refreshing", self._values["refreshing"])
        if loading and refreshing:
            raise StateInvariantError(
                "loading and refreshing cannot both be set",
                details={"folder": self.current_folder},
            )

        self._values.update(changes)
        if not (loading or refreshing):
            self._flag_owner = None

        self._publish()
        return self.snapshot()

    def begin(self, flag: str, owner: object) -> None:
        """Raise ``flag`` on behalf of ``owner``, lowering the other load flag.

        Any earlier error is cleared in the same mutation. The newest operation
        always takes the flags over, so an older one that finishes later cannot
        clear them.
        """
        if flag not in LOAD_FLAGS:
            raise StateInvariantError(f"Not a load flag: {flag}")

        other = "refreshing" if flag == "loading" else "loading"
        self.apply(**{flag: True, other: False, "error": None})
        self._flag_owner = owner

    def owns_flags(self, owner: object) -> bool:
        return owner is not None and self._flag_owner is owner

    def finish(self, owner: object, **changes: Any) -> bool:
        """Apply ``changes`` and clear the load flags if ``owner`` still holds them.

        Returns:
            True if the flags were cleared
        """
        cleared = self.owns_flags(owner)
        if cleared:
            changes.update(loading=False, refreshing=False)

        if changes:
            self.apply(**changes)

        return cleared

    def switch_to(self, folder: str) -> int:
        """Make ``folder`` current, dropping everything scoped to the old one.

        Returns:
            The new generation
        """
        self._generation += 1
        self._flag_owner = None
        self.apply(
            current_folder=folder,
            messages=(),
            selected=None,
            loading=False,
            refreshing=False,
        )
        logger.debug(f"Switched to {folder} (generation {self._generation})")
        return self._generation

    def is_current(self, folder: str, generation: int) -> bool:
        """Whether a result for ``folder`` issued at ``generation`` may still be shown."""
        return generation == self._generation and folder == self.current_folder
