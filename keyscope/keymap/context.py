"""
Context flags for the keybinding system.

A context flag is a named boolean fact about the current UI state, such as
"a drawer panel has keyboard focus". Binding groups are scoped by boolean
expressions over these flags (see expression.py).

The active flag set is recomputed from a state snapshot on every relevant
state change. Computation is pure and total: a partial or unrecognized
snapshot yields a well-defined, possibly empty, set.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, FrozenSet, Mapping, Optional, Union


class ContextFlag(str, Enum):
    """
    Every context flag a binding group may reference.

    Groups:
        entity focus  - exactly one of SCRATCH/WORKTREE/PROJECT, or none
        pane focus    - exactly one of DRAWER/MAIN, or none
        panels        - DRAWER_OPEN, RIGHT_PANEL_OPEN, DIFF_VIEW_OPEN
        overlays      - PICKER_OPEN, MODAL_OPEN, PALETTE_OPEN
        derived       - counts and navigation history
    """

    # Entity focus (mutually exclusive)
    SCRATCH_FOCUSED = "scratchFocused"
    WORKTREE_FOCUSED = "worktreeFocused"
    PROJECT_FOCUSED = "projectFocused"

    # Pane focus (mutually exclusive)
    DRAWER_FOCUSED = "drawerFocused"
    MAIN_FOCUSED = "mainFocused"

    # Panels
    DRAWER_OPEN = "drawerOpen"
    RIGHT_PANEL_OPEN = "rightPanelOpen"
    DIFF_VIEW_OPEN = "diffViewOpen"

    # Overlays
    PICKER_OPEN = "pickerOpen"
    MODAL_OPEN = "modalOpen"
    PALETTE_OPEN = "paletteOpen"

    # Derived
    HAS_MULTIPLE_ENTITIES = "hasMultipleEntities"
    HAS_PREVIOUS_VIEW = "hasPreviousView"
    HAS_NEXT_VIEW = "hasNextView"
    HAS_CHANGED_FILES = "hasChangedFiles"
    HAS_OPEN_PROJECTS = "hasOpenProjects"
    HAS_TASKS = "hasTasks"

    @classmethod
    def names(cls) -> FrozenSet[str]:
        """All flag identifiers as they appear in context expressions."""
        return frozenset(flag.value for flag in cls)

    @classmethod
    def lookup(cls, name: str) -> Optional["ContextFlag"]:
        """Map an identifier to its flag, or None if it is not a flag."""
        try:
            return cls(name)
        except ValueError:
            return None


ENTITY_FOCUS_FLAGS = frozenset(
    {ContextFlag.SCRATCH_FOCUSED, ContextFlag.WORKTREE_FOCUSED, ContextFlag.PROJECT_FOCUSED}
)
PANE_FOCUS_FLAGS = frozenset({ContextFlag.DRAWER_FOCUSED, ContextFlag.MAIN_FOCUSED})

_ENTITY_FOCUS = {
    "scratch": ContextFlag.SCRATCH_FOCUSED,
    "worktree": ContextFlag.WORKTREE_FOCUSED,
    "project": ContextFlag.PROJECT_FOCUSED,
}

_PANE_FOCUS = {
    "drawer": ContextFlag.DRAWER_FOCUSED,
    "main": ContextFlag.MAIN_FOCUSED,
}

ActiveContexts = FrozenSet[ContextFlag]


@dataclass(frozen=True)
class UIState:
    """Snapshot of the UI state that context flags are derived from."""

    focused_entity: Optional[str] = None  # "scratch" | "worktree" | "project"
    focused_pane: Optional[str] = None  # "drawer" | "main"
    drawer_open: bool = False
    right_panel_open: bool = False
    diff_view_open: bool = False
    picker_open: bool = False
    modal_open: bool = False
    palette_open: bool = False
    open_entity_count: int = 0
    open_project_count: int = 0
    history_back: int = 0
    history_forward: int = 0
    changed_file_count: int = 0
    task_count: int = 0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "UIState":
        """Build a snapshot from a loose mapping, ignoring unknown keys.

        Values of the wrong type are dropped rather than raising, so any
        mapping yields a valid snapshot.
        """
        values: dict[str, Any] = {}
        for f in fields(cls):
            if f.name not in data:
                continue
            raw = data[f.name]
            default = f.default
            if isinstance(default, bool):
                values[f.name] = bool(raw)
            elif isinstance(default, int):
                count = _as_count(raw)
                if count is not None:
                    values[f.name] = count
            elif raw is None or isinstance(raw, str):
                values[f.name] = raw
        return cls(**values)


def _as_count(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return max(value, 0)
    if isinstance(value, (list, tuple, set, frozenset)):
        return len(value)
    return None


Snapshot = Union[UIState, Mapping[str, Any], None]


def compute_active_contexts(snapshot: Snapshot) -> ActiveContexts:
    """
    Compute the set of context flags that are true for a state snapshot.

    Entity and pane focus are each read from a single field, so at most one
    flag of each focus group can be set. DRAWER_FOCUSED additionally requires
    the drawer to be open; a focused-but-closed drawer sets no pane flag.
    """
    if snapshot is None:
        return frozenset()
    state = snapshot if isinstance(snapshot, UIState) else UIState.from_mapping(snapshot)

    active: set[ContextFlag] = set()

    entity_flag = _ENTITY_FOCUS.get(state.focused_entity or "")
    if entity_flag is not None:
        active.add(entity_flag)

    pane_flag = _PANE_FOCUS.get(state.focused_pane or "")
    if pane_flag is ContextFlag.DRAWER_FOCUSED and not state.drawer_open:
        pane_flag = None
    if pane_flag is not None:
        active.add(pane_flag)

    if state.drawer_open:
        active.add(ContextFlag.DRAWER_OPEN)
    if state.right_panel_open:
        active.add(ContextFlag.RIGHT_PANEL_OPEN)
    if state.diff_view_open:
        active.add(ContextFlag.DIFF_VIEW_OPEN)

    if state.picker_open:
        # Pickers are modal overlays
        active.add(ContextFlag.PICKER_OPEN)
        active.add(ContextFlag.MODAL_OPEN)
    if state.modal_open:
        active.add(ContextFlag.MODAL_OPEN)
    if state.palette_open:
        active.add(ContextFlag.PALETTE_OPEN)

    if state.open_entity_count > 1:
        active.add(ContextFlag.HAS_MULTIPLE_ENTITIES)
    if state.open_project_count > 0:
        active.add(ContextFlag.HAS_OPEN_PROJECTS)
    if state.history_back > 0:
        active.add(ContextFlag.HAS_PREVIOUS_VIEW)
    if state.history_forward > 0:
        active.add(ContextFlag.HAS_NEXT_VIEW)
    if state.changed_file_count > 0:
        active.add(ContextFlag.HAS_CHANGED_FILES)
    if state.task_count > 0:
        active.add(ContextFlag.HAS_TASKS)

    return frozenset(active)


def coerce_active(active: Any) -> ActiveContexts:
    """Normalize an iterable of flags or flag names into an active set.

    Names that are not flags are dropped: they can never be referenced by a
    validated expression, so they cannot change any result.
    """
    if not active:
        return frozenset()
    result: set[ContextFlag] = set()
    for item in active:
        if isinstance(item, ContextFlag):
            result.add(item)
        else:
            flag = ContextFlag.lookup(str(item))
            if flag is not None:
                result.add(flag)
    return frozenset(result)
