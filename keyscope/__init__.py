"""
keyscope - Context-aware keybinding engine
"""

__version__ = "0.3.0"
