"""Repositories for the local message store."""

from .base import MessageStore
from .message import MessageRepository

__all__ = ["MessageStore", "MessageRepository"]
