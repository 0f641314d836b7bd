"""
Built-in keymap.

Groups are listed from least to most specific: later groups win for the
same chord, so scoped overrides (drawer, modal, ...) come after the global
group they override. User groups from keymap.yaml are appended after all of
these.
"""

from functools import lru_cache
from typing import Any, Dict, List

from .registry import MappingTable, build_table

DEFAULT_GROUPS: List[Dict[str, Any]] = [
    {
        "context": None,
        "bindings": {
            "cmd-q": "app::quit",
            "cmd-w": "app::close",
            "cmd-o": "app::addProject",
            "cmd-,": "app::openSettings",
            "cmd-alt-,": "app::openMappings",
            "cmd-shift-p": "palette::toggle",
            "cmd-p": "palette::projectSwitcher",
            "cmd-=": "view::zoomIn",
            "cmd--": "view::zoomOut",
            "cmd-0": "view::zoomReset",
        },
    },
    {
        "context": "hasOpenProjects",
        "bindings": {
            "cmd-n": "worktree::new",
            "cmd-shift-n": "scratch::new",
            "cmd-j": "drawer::toggle",
            "cmd-shift-j": "drawer::expand",
            "cmd-b": "rightPanel::toggle",
        },
    },
    {
        "context": "hasTasks",
        "bindings": {
            "cmd-r": "task::run",
            "cmd-shift-r": "task::switcher",
        },
    },
    {
        "context": "hasMultipleEntities",
        "bindings": {
            "cmd-shift-[": "navigate::prev",
            "cmd-shift-]": "navigate::next",
            "cmd-1": "navigate::toEntity1",
            "cmd-2": "navigate::toEntity2",
            "cmd-3": "navigate::toEntity3",
            "cmd-4": "navigate::toEntity4",
            "cmd-5": "navigate::toEntity5",
            "cmd-6": "navigate::toEntity6",
            "cmd-7": "navigate::toEntity7",
            "cmd-8": "navigate::toEntity8",
            "cmd-9": "navigate::toEntity9",
        },
    },
    {
        "context": "hasPreviousView",
        "bindings": {"ctrl--": "navigate::back"},
    },
    {
        "context": "hasNextView",
        "bindings": {"ctrl-shift--": "navigate::forward"},
    },
    {
        "context": "drawerOpen",
        "bindings": {"ctrl-`": "focus::switch"},
    },
    {
        "context": "worktreeFocused && mainFocused",
        "bindings": {
            "cmd-w": "worktree::close",
            "cmd-t": "session::newTab",
            "cmd-shift-w": "session::closeTab",
        },
    },
    {
        "context": "scratchFocused && mainFocused",
        "bindings": {
            "cmd-w": "scratch::close",
            "cmd-t": "session::newTab",
        },
    },
    {
        "context": "projectFocused && !drawerFocused",
        "bindings": {"cmd-w": "project::close"},
    },
    {
        "context": "drawerFocused",
        "bindings": {
            "cmd-t": "drawer::newTab",
            "cmd-w": "drawer::closeTab",
            "ctrl-tab": "drawer::nextTab",
            "ctrl-shift-tab": "drawer::prevTab",
        },
    },
    {
        "context": "(diffViewOpen || rightPanelOpen) && hasChangedFiles && !modalOpen",
        "bindings": {
            "alt-down": "diff::nextFile",
            "alt-up": "diff::prevFile",
        },
    },
    {
        "context": "diffViewOpen && !modalOpen",
        "bindings": {"escape": "diff::close"},
    },
    {
        "context": "paletteOpen",
        "bindings": {"escape": "palette::close"},
    },
    {
        "context": "modalOpen && !paletteOpen",
        "bindings": {
            "escape": "modal::cancel",
            "enter": "modal::confirm",
        },
    },
]


@lru_cache(maxsize=1)
def default_table() -> MappingTable:
    """The validated defaults-only table, built once per process."""
    return build_table(DEFAULT_GROUPS)
