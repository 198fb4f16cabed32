"""Mail source interfaces, the push channel and live monitoring."""

from .events import NewMailBus, NewMailEvent
from .monitor import LiveMonitor
from .source import Indexer, MailSource

__all__ = [
    "Indexer",
    "LiveMonitor",
    "MailSource",
    "NewMailBus",
    "NewMailEvent",
]
