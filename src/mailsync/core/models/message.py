"""Message domain models"""

from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from mailsync.utils.errors import InvalidFolderError


class FolderName(Enum):
    """Well-known folders and their canonical server names."""

    INBOX = "INBOX"
    SENT = "Sent"
    DRAFTS = "Drafts"
    TRASH = "Trash"
    SPAM = "Spam"

    @classmethod
    def from_string(cls, value: str) -> Optional["FolderName"]:
        """Look up a well-known folder case-insensitively.

        Returns:
            The matching FolderName, or None for custom folders.
        """
        lowered = value.strip().lower()
        for member in cls:
            if member.value.lower() == lowered:
                return member
        return None


def normalise_folder(name: str) -> str:
    """Map a folder alias to the name the server and local store use.

    ``"inbox"`` and ``"Inbox"`` both become ``"INBOX"``; custom folders pass
    through with surrounding whitespace removed.

    Raises:
        InvalidFolderError: If the name is empty.
    """
    if name is None or not str(name).strip():
        raise InvalidFolderError("Folder name cannot be empty")

    known = FolderName.from_string(str(name))
    if known is not None:
        return known.value

    return str(name).strip()


@dataclass(frozen=True)
class MessageSummary:
    """List-row view of a message, as cached per folder."""

    id: str
    thread_id: str = ""
    subject: str = ""
    sender: str = ""
    sender_email: str = ""
    date: str = ""
    snippet: str = ""
    is_read: bool = False
    is_starred: bool = False
    has_attachments: bool = False

    def __post_init__(self):
        if not self.id or not str(self.id).strip():
            raise ValueError("Message ID cannot be empty")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MessageSummary":
        """Create a summary from a dict, ignoring unknown keys."""
        names = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in names})

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class MessageDetail:
    """Full message shown in the reading pane."""

    id: str
    thread_id: str = ""
    subject: str = ""
    sender: str = ""
    sender_email: str = ""
    date: str = ""
    snippet: str = ""
    is_read: bool = False
    is_starred: bool = False
    has_attachments: bool = False
    to: Tuple[str, ...] = field(default_factory=tuple)
    body_html: Optional[str] = None
    body_plain: Optional[str] = None
    labels: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not self.id or not str(self.id).strip():
            raise ValueError("Message ID cannot be empty")
        # Lists are accepted for convenience but stored as tuples
        object.__setattr__(self, "to", tuple(self.to))
        object.__setattr__(self, "labels", tuple(self.labels))

    @property
    def summary(self) -> MessageSummary:
        """The list-row part of this message."""
        return MessageSummary.from_dict(asdict(self))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MessageDetail":
        names = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in names})

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["to"] = list(self.to)
        data["labels"] = list(self.labels)
        return data


@dataclass(frozen=True)
class FolderStats:
    """Server-side message counts for a folder."""

    folder_name: str
    total_count: int = 0
    unread_count: int = 0
