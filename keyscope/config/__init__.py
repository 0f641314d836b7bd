"""Configuration for keyscope."""

from .constants import KEYMAP_FILENAMES, KEYSCOPE_CONFIG_DIR
from .settings import get_config_dir, get_keymap_path

__all__ = [
    "KEYMAP_FILENAMES",
    "KEYSCOPE_CONFIG_DIR",
    "get_config_dir",
    "get_keymap_path",
]
