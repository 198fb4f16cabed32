"""Domain models."""

from .message import (
    FolderName,
    FolderStats,
    MessageDetail,
    MessageSummary,
    normalise_folder,
)

__all__ = [
    "FolderName",
    "FolderStats",
    "MessageDetail",
    "MessageSummary",
    "normalise_folder",
]
