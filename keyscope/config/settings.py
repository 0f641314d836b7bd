"""Configuration utilities for keyscope."""

import os
from pathlib import Path
from typing import Optional

from .constants import KEYMAP_FILENAMES, KEYSCOPE_CONFIG_DIR


def get_config_dir() -> Path:
    """Get the config directory, respecting KEYSCOPE_CONFIG_DIR."""
    override = os.environ.get("KEYSCOPE_CONFIG_DIR")
    if override:
        return Path(override).expanduser()
    return KEYSCOPE_CONFIG_DIR


def get_keymap_path(config_dir: Optional[Path] = None) -> Path:
    """Get the user keymap path.

    KEYSCOPE_KEYMAP wins when set. Otherwise the first existing file from
    KEYMAP_FILENAMES in the config directory is returned, falling back to
    keymap.yaml when none exists yet.
    """
    explicit = os.environ.get("KEYSCOPE_KEYMAP")
    if explicit:
        return Path(explicit).expanduser()

    base = config_dir or get_config_dir()
    for name in KEYMAP_FILENAMES:
        candidate = base / name
        if candidate.exists():
            return candidate
    return base / KEYMAP_FILENAMES[0]
