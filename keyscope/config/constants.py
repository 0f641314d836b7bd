"""
Centralized constants for keyscope.
"""

from pathlib import Path

# =============================================================================
# PATHS
# =============================================================================

KEYSCOPE_CONFIG_DIR = Path.home() / ".config" / "keyscope"

# Searched in order; the first existing file wins
KEYMAP_FILENAMES = ("keymap.yaml", "keymap.yml", "keymap.json")

# =============================================================================
# ENGINE LIMITS
# =============================================================================

DEFAULT_EVAL_CACHE_SIZE = 1024  # Memoized (expression, active set) pairs
MAX_EXPRESSION_DEPTH = 64  # Nested '!', '(' and chained operators in one context
