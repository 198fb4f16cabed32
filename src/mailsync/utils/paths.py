"""Centralized path definitions for mailsync.

All on-disk locations hang off a single application directory which
defaults to ``~/.mailsync`` and can be relocated with ``MAILSYNC_HOME``.
"""

import os
from pathlib import Path

# Base application directory
APP_DIR = Path(os.getenv("MAILSYNC_HOME", str(Path.home() / ".mailsync")))

# Subdirectories
DATA_DIR = APP_DIR / "data"
LOGS_DIR = APP_DIR / "logs"

# Specific files
DATABASE_PATH = DATA_DIR / "mailsync.db"
CONFIG_PATH = APP_DIR / "config.json"
