"""Configuration paths and defaults for quick open."""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(os.environ.get("QUICKOPEN_HOME", str(Path.home() / ".quickopen"))).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"

# Directories whose presence marks a workspace root
DEFAULT_VCS_MARKERS = [".git", ".hg", ".svn"]

# Ignore files read at every directory level, gitignore syntax
DEFAULT_IGNORE_FILES = [".gitignore", ".ignore"]

DEFAULT_MAX_FILES = 50_000
DEFAULT_RESULT_LIMIT = 50

# Exhaustive matcher bounds
DEFAULT_MAX_RECURSION = 16
DEFAULT_MAX_MATCHES = 1000


def ensure_base_dirs() -> None:
    """Create the config directory if needed."""
    BASE_DIR.mkdir(parents=True, exist_ok=True)
