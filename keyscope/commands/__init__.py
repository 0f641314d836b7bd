"""CLI command modules for keyscope."""
