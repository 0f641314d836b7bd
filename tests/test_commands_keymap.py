"""Tests for the keymap CLI commands."""

import json
import logging
import re

import pytest
from typer.testing import CliRunner

from keyscope import __version__
from keyscope.commands.keymap import app
from keyscope.keymap.defaults import DEFAULT_GROUPS
from keyscope.main import app as main_app

runner = CliRunner()


def _out(result) -> str:
    """Strip ANSI escape sequences and rich line wrapping from CliRunner output."""
    text = re.sub(r"\x1b\[[0-9;]*m", "", result.output)
    return " ".join(text.split())


@pytest.fixture(autouse=True)
def reset_keyscope_logger():
    """setup_logging() attaches handlers bound to CliRunner's streams."""
    yield
    logger = logging.getLogger("keyscope")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


@pytest.fixture
def user_keymap(tmp_path):
    path = tmp_path / "keymap.yaml"
    path.write_text(
        "- context: drawerFocused\n"
        "  bindings:\n"
        "    cmd-k: drawer::newTab\n"
    )
    return path


# ---------------------------------------------------------------------------
# keymap (summary via callback)
# ---------------------------------------------------------------------------
class TestKeymapSummary:
    def test_defaults_summary(self):
        result = runner.invoke(app, [])
        assert result.exit_code == 0
        out = _out(result)
        assert "Keymap Summary" in out
        assert "No shadowed bindings!" in out

    def test_summary_lists_shadowed(self, tmp_path):
        path = tmp_path / "keymap.yaml"
        path.write_text("- bindings:\n    cmd-w: app::quit\n")
        result = runner.invoke(app, ["--file", str(path)])
        assert result.exit_code == 0
        assert "Shadowed bindings:" in _out(result)

    def test_summary_json(self, user_keymap):
        result = runner.invoke(app, ["--file", str(user_keymap), "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert len(data["groups"]) == len(DEFAULT_GROUPS) + 1
        assert data["groups"][-1]["source"] == "user"
        assert data["error"] is None
        assert data["shadowed"] == []

    def test_broken_file_falls_back(self, tmp_path):
        path = tmp_path / "keymap.yaml"
        path.write_text("- context: 'drawerFocused ||'\n  bindings:\n    cmd-k: drawer::newTab\n")
        result = runner.invoke(app, ["--file", str(path)])
        assert result.exit_code == 0
        out = _out(result)
        assert "Falling back to the default keymap." in out
        assert "Keymap Summary" in out


# ---------------------------------------------------------------------------
# keymap show
# ---------------------------------------------------------------------------
class TestShowCommand:
    def test_show_without_context(self):
        result = runner.invoke(app, ["show"])
        assert result.exit_code == 0
        out = _out(result)
        assert "Effective Mappings" in out
        assert "app::close" in out
        assert "drawer::closeTab" not in out

    def test_show_with_contexts(self):
        result = runner.invoke(app, ["show", "--context", "drawerFocused,drawerOpen"])
        assert result.exit_code == 0
        out = _out(result)
        assert "drawer::closeTab" in out
        assert "focus::switch" in out

    def test_show_json(self):
        result = runner.invoke(
            app, ["show", "-c", "modalOpen", "-c", "paletteOpen", "--json"]
        )
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["active"] == ["modalOpen", "paletteOpen"]
        escape = [m for m in data["mappings"] if m["chord"] == "escape"]
        assert escape[0]["action"] == "palette::close"

    def test_show_all_groups(self):
        result = runner.invoke(app, ["show", "--all"])
        assert result.exit_code == 0
        out = _out(result)
        assert f"Keymap Groups ({len(DEFAULT_GROUPS)})" in out
        assert "CmdOrCtrl+Q" in out

    def test_unknown_context_flag(self):
        result = runner.invoke(app, ["show", "--context", "sidebarFocused"])
        assert result.exit_code == 1
        assert "Unknown Context Flag" in _out(result)


# ---------------------------------------------------------------------------
# keymap resolve
# ---------------------------------------------------------------------------
class TestResolveCommand:
    def test_resolve_default(self):
        result = runner.invoke(app, ["resolve", "cmd-w"])
        assert result.exit_code == 0
        assert "cmd-w -> app::close" in _out(result)

    def test_resolve_in_context(self):
        result = runner.invoke(app, ["resolve", "Cmd+W", "--context", "drawerFocused"])
        assert result.exit_code == 0
        out = _out(result)
        assert "cmd-w -> drawer::closeTab" in out
        assert "default#10 (drawerFocused)" in out

    def test_resolve_user_binding(self, user_keymap):
        result = runner.invoke(
            app, ["resolve", "cmd-k", "-c", "drawerFocused", "--file", str(user_keymap)]
        )
        assert result.exit_code == 0
        out = _out(result)
        assert "cmd-k -> drawer::newTab" in out
        assert "user#0 (drawerFocused)" in out

    def test_resolve_no_match(self):
        result = runner.invoke(app, ["resolve", "cmd-k"])
        assert result.exit_code == 0
        assert "no match (passed through)" in _out(result)

    def test_resolve_json(self):
        result = runner.invoke(app, ["resolve", "escape", "-c", "modalOpen", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["chord"] == "escape"
        assert data["match"]["action"] == "modal::cancel"

    def test_resolve_json_no_match(self):
        result = runner.invoke(app, ["resolve", "cmd-k", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.stdout)["match"] is None

    def test_resolve_bad_chord(self):
        result = runner.invoke(app, ["resolve", "hyper-w"])
        assert result.exit_code == 1
        assert "Key Chord Error" in _out(result)


# ---------------------------------------------------------------------------
# keymap check
# ---------------------------------------------------------------------------
class TestCheckCommand:
    def test_valid_file(self, user_keymap):
        result = runner.invoke(app, ["check", str(user_keymap)])
        assert result.exit_code == 0
        assert "is valid (1 groups, 1 bindings)" in _out(result)

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["check", str(tmp_path / "missing.yaml")])
        assert result.exit_code == 1
        assert "No keymap file at" in _out(result)

    def test_syntax_error(self, tmp_path):
        path = tmp_path / "keymap.yaml"
        path.write_text("- context: '(drawerFocused'\n  bindings:\n    cmd-k: drawer::newTab\n")
        result = runner.invoke(app, ["check", str(path)])
        assert result.exit_code == 1
        assert "Context Syntax Error" in _out(result)

    def test_duplicate_chord(self, tmp_path):
        path = tmp_path / "keymap.json"
        path.write_text(json.dumps([{"bindings": {"cmd-k": "app::quit", "Cmd+K": "app::close"}}]))
        result = runner.invoke(app, ["check", str(path)])
        assert result.exit_code == 1
        assert "Keymap Validation Error" in _out(result)

    def test_checks_config_dir_by_default(self, isolated_config_dir):
        isolated_config_dir.mkdir(parents=True)
        (isolated_config_dir / "keymap.yaml").write_text("- bindings:\n    cmd-k: palette::toggle\n")
        result = runner.invoke(app, ["check"])
        assert result.exit_code == 0
        assert "is valid" in _out(result)


# ---------------------------------------------------------------------------
# keymap contexts / actions / init
# ---------------------------------------------------------------------------
class TestListingCommands:
    def test_contexts(self):
        result = runner.invoke(app, ["contexts"])
        assert result.exit_code == 0
        out = _out(result)
        assert "Available Context Flags" in out
        assert "drawerFocused" in out
        assert "hasTasks" in out

    def test_actions(self):
        result = runner.invoke(app, ["actions"])
        assert result.exit_code == 0
        assert "drawer::closeTab" in _out(result)

    def test_actions_json(self):
        result = runner.invoke(app, ["actions", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert "drawer::closeTab" in data["drawer"]
        assert "app::quit" in data["app"]


class TestInitCommand:
    def test_init_creates_file(self, tmp_path):
        path = tmp_path / "keymap.yaml"
        result = runner.invoke(app, ["init", "--file", str(path)])
        assert result.exit_code == 0
        assert "Created keymap config at" in _out(result)
        assert path.exists()

    def test_init_keeps_existing_file(self, user_keymap):
        before = user_keymap.read_text()
        result = runner.invoke(app, ["init", "--file", str(user_keymap)])
        assert result.exit_code == 0
        assert "Config file already exists at" in _out(result)
        assert user_keymap.read_text() == before

    def test_init_defaults_to_config_dir(self, isolated_config_dir):
        result = runner.invoke(app, ["init"])
        assert result.exit_code == 0
        assert (isolated_config_dir / "keymap.yaml").exists()


# ---------------------------------------------------------------------------
# top-level app
# ---------------------------------------------------------------------------
class TestMainApp:
    def test_version(self):
        result = runner.invoke(main_app, ["version"])
        assert result.exit_code == 0
        assert f"keyscope version {__version__}" in _out(result)

    def test_verbose_and_quiet_conflict(self):
        result = runner.invoke(main_app, ["--verbose", "--quiet", "version"])
        assert result.exit_code == 1

    def test_keymap_subcommand(self):
        result = runner.invoke(main_app, ["keymap", "resolve", "cmd-q"])
        assert result.exit_code == 0
        assert "cmd-q -> app::quit" in _out(result)
