"""In-process push channel for new-mail notifications.

Publishers (the live monitor, or a host integration) call ``publish``;
subscribers register a handler taking ``(account_id, folder)`` and get back
an unsubscribe callable.

Usage Examples
--------------

    >>> bus = NewMailBus()
    >>> unsubscribe = bus.subscribe(lambda account_id, folder: print(folder))
    >>> await bus.publish(NewMailEvent("me@example.com", "INBOX"))
    >>> unsubscribe()
"""

import asyncio
import contextlib
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Union

from mailsync.utils.errors import ErrorHandler
from mailsync.utils.logging import get_logger, log_event

logger = get_logger(__name__)

NewMailHandler = Callable[[str, str], Union[None, Awaitable[None]]]


@dataclass(frozen=True)
class NewMailEvent:
    """Signal that new mail has arrived for an account/folder."""

    account_id: str
    folder: str


class NewMailBus:
    """Fan-out of new-mail events to subscribed handlers."""

    def __init__(self) -> None:
        self._handlers: List[NewMailHandler] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._handlers)

    def subscribe(self, handler: NewMailHandler) -> Callable[[], None]:
        """Register ``handler`` and return a callable that removes it again."""
        self._handlers.append(handler)
        logger.debug(f"New-mail subscriber added ({len(self._handlers)} active)")

        def unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._handlers.remove(handler)
                logger.debug(f"New-mail subscriber removed ({len(self._handlers)} active)")

        return unsubscribe

    async def publish(self, event: NewMailEvent) -> int:
        """Deliver ``event`` to every current subscriber.

        A failing handler is logged and does not stop delivery to the others.

        Returns:
            Number of handlers that ran without raising
        """
        log_event("new_mail", {"account_id": event.account_id, "folder": event.folder})

        delivered = 0
        for handler in list(self._handlers):
            try:
                result = handler(event.account_id, event.folder)
                if asyncio.iscoroutine(result):
                    await result
                delivered += 1

            except Exception as e:
                ErrorHandler.handle(e, f"New-mail handler failed for {event.folder}", log_traceback=False)

        return delivered
