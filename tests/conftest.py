"""Shared pytest fixtures for keyscope tests."""

import pytest

from keyscope.keymap import build_table


@pytest.fixture(autouse=True)
def isolated_config_dir(tmp_path, monkeypatch):
    """Point the config directory at a temp dir so tests never touch ~/.config."""
    config_dir = tmp_path / "config"
    monkeypatch.setenv("KEYSCOPE_CONFIG_DIR", str(config_dir))
    monkeypatch.delenv("KEYSCOPE_KEYMAP", raising=False)
    return config_dir


@pytest.fixture
def override_groups():
    """A global close binding plus a drawer-scoped override of the same chord."""
    defaults = [{"context": None, "bindings": {"cmd-w": "app::close"}}]
    users = [{"context": "drawerFocused", "bindings": {"cmd-w": "drawer::closeTab"}}]
    return defaults, users


@pytest.fixture
def override_table(override_groups):
    defaults, users = override_groups
    return build_table(defaults, users)
