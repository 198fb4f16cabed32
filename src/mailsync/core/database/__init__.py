"""Local message store - public API."""

from .base import create_engine, dispose_engine, metadata
from .engine_manager import EngineManager
from .repositories import MessageRepository, MessageStore

__all__ = [
    "EngineManager",
    "MessageRepository",
    "MessageStore",
    "create_engine",
    "dispose_engine",
    "metadata",
]
