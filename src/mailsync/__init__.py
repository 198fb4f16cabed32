"""mailsync - local-first mail synchronisation coordinator."""

__version__ = "0.1.0"
