"""
keyscope keymap engine.

Resolves key chords to namespaced actions based on which context flags are
active. Binding groups are scoped by boolean context expressions; the user's
groups are merged after the built-in defaults and win ties.

Usage:
    from keyscope.keymap import KeymapHolder, UIState, compute_active_contexts

    # At app startup, and whenever the user keymap file changes
    holder = KeymapHolder()
    result = holder.reload()
    if result.error:
        logger.warning(result.error)

    # On every key event
    active = compute_active_contexts(UIState(focused_pane="drawer", drawer_open=True))
    action = holder.resolve("cmd-w", active)   # "drawer::closeTab" or None
"""

from .actions import Action, ActionRouter, is_action_id
from .chord import KeyChord
from .config import (
    EXAMPLE_CONFIG,
    KeymapHolder,
    LoadResult,
    load_table,
    read_user_groups,
    save_example_config,
)
from .context import ContextFlag, UIState, compute_active_contexts
from .defaults import DEFAULT_GROUPS, default_table
from .evaluator import CachedEvaluator, evaluate
from .expression import And, Flag, Not, Or, flags_in, format_expression, parse, validate_flags
from .registry import (
    BindingGroup,
    MappingTable,
    ShadowedBinding,
    build_table,
    compile_group,
    find_shadowed,
)
from .resolver import (
    Match,
    action_availability,
    chords_for_action,
    effective_mappings,
    resolve,
    resolve_match,
)

__all__ = [
    "Action",
    "ActionRouter",
    "is_action_id",
    "KeyChord",
    "EXAMPLE_CONFIG",
    "KeymapHolder",
    "LoadResult",
    "load_table",
    "read_user_groups",
    "save_example_config",
    "ContextFlag",
    "UIState",
    "compute_active_contexts",
    "DEFAULT_GROUPS",
    "default_table",
    "CachedEvaluator",
    "evaluate",
    "And",
    "Flag",
    "Not",
    "Or",
    "flags_in",
    "format_expression",
    "parse",
    "validate_flags",
    "BindingGroup",
    "MappingTable",
    "ShadowedBinding",
    "build_table",
    "compile_group",
    "find_shadowed",
    "Match",
    "action_availability",
    "chords_for_action",
    "effective_mappings",
    "resolve",
    "resolve_match",
]
