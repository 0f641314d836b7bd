"""
Binding groups and the merged mapping table.

A binding group pairs an optional context expression with a chord->action
table. The mapping table is the ordered concatenation of the built-in default
groups followed by the user's groups; order decides priority at resolution
time (later groups win, see resolver.py).

Tables are immutable. A reload builds a new table from scratch and swaps it
in; nothing mutates a table that readers may hold.
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..exceptions import (
    ContextSyntaxError,
    KeymapError,
    ValidationError,
    with_group,
)
from .actions import is_action_id
from .chord import KeyChord
from .expression import Expr, parse

logger = logging.getLogger(__name__)

SOURCE_DEFAULT = "default"
SOURCE_USER = "user"

_GROUP_KEYS = frozenset({"context", "bindings"})

RawGroup = Mapping[str, Any]


@dataclass(frozen=True)
class BindingGroup:
    """One context expression plus its chord->action bindings."""

    context: Optional[str]
    expression: Optional[Expr]
    bindings: Mapping[KeyChord, str] = field(hash=False)
    source: str = SOURCE_DEFAULT
    index: int = 0

    @property
    def label(self) -> str:
        """Short identity for diagnostics, e.g. 'user#2 (drawerFocused)'."""
        scope = self.context if self.context else "global"
        return f"{self.source}#{self.index} ({scope})"

    def to_dict(self) -> dict:
        return {
            "source": self.source,
            "index": self.index,
            "context": self.context,
            "bindings": {str(chord): action for chord, action in self.bindings.items()},
        }


@dataclass(frozen=True)
class MappingTable:
    """Ordered binding groups: defaults first, user groups appended."""

    groups: Tuple[BindingGroup, ...] = ()

    @property
    def default_groups(self) -> Tuple[BindingGroup, ...]:
        return tuple(g for g in self.groups if g.source == SOURCE_DEFAULT)

    @property
    def user_groups(self) -> Tuple[BindingGroup, ...]:
        return tuple(g for g in self.groups if g.source == SOURCE_USER)

    def chords(self) -> List[KeyChord]:
        """Every chord bound anywhere, in first-appearance order."""
        seen: Dict[KeyChord, None] = {}
        for group in self.groups:
            for chord in group.bindings:
                seen.setdefault(chord, None)
        return list(seen)

    def actions(self) -> List[str]:
        """Every action bound anywhere, in first-appearance order."""
        seen: Dict[str, None] = {}
        for group in self.groups:
            for action in group.bindings.values():
                seen.setdefault(action, None)
        return list(seen)

    def summary(self) -> str:
        lines = [
            "Keymap Summary:",
            f"  Groups: {len(self.groups)} "
            f"({len(self.default_groups)} default, {len(self.user_groups)} user)",
            f"  Bindings: {sum(len(g.bindings) for g in self.groups)}",
            f"  Unique chords: {len(self.chords())}",
        ]
        return "\n".join(lines)

    def to_dict(self) -> dict:
        return {"groups": [g.to_dict() for g in self.groups]}


def compile_group(raw: RawGroup, source: str = SOURCE_DEFAULT, index: int = 0) -> BindingGroup:
    """
    Validate and compile one raw group.

    Raw format:
        {"context": "drawerFocused && !pickerOpen", "bindings": {"cmd-w": "drawer::closeTab"}}

    Raises:
        ContextSyntaxError: malformed context expression
        UnknownFlagError: context names a flag that does not exist
        ValidationError: bad structure, bad chord, bad action or duplicate chord
    """
    try:
        return _compile_group(raw, source, index)
    except KeymapError as e:
        raise with_group(e, source, index)


def _compile_group(raw: RawGroup, source: str, index: int) -> BindingGroup:
    if not isinstance(raw, Mapping):
        raise ValidationError(f"Binding group must be a mapping, got {type(raw).__name__}")

    unknown = set(raw) - _GROUP_KEYS
    if unknown:
        raise ValidationError(f"Unknown group keys: {', '.join(sorted(map(str, unknown)))}")

    context = raw.get("context")
    if context is not None and not isinstance(context, str):
        raise ContextSyntaxError(
            f"Context expression must be a string, got {type(context).__name__}"
        )
    if context is not None and not context.strip():
        # An explicitly empty context reads as "unconditional"
        context = None

    expression = parse(context) if context is not None else None

    raw_bindings = raw.get("bindings")
    if raw_bindings is None:
        raise ValidationError("Binding group has no 'bindings' table")
    if not isinstance(raw_bindings, Mapping):
        raise ValidationError(
            f"'bindings' must be a mapping, got {type(raw_bindings).__name__}"
        )

    bindings: Dict[KeyChord, str] = {}
    spelled: Dict[KeyChord, str] = {}
    for chord_text, action in raw_bindings.items():
        if isinstance(chord_text, int) and not isinstance(chord_text, bool):
            # YAML reads bare digit keys such as `1:` as integers
            chord_text = str(chord_text)
        chord = KeyChord.parse(chord_text)
        if not is_action_id(action):
            raise ValidationError(
                f"Action for '{chord_text}' must look like 'namespace::verb'",
                action=action,
            )
        if chord in bindings:
            raise ValidationError(
                f"Duplicate chord '{chord}' in one group",
                chord=chord_text,
                previous=spelled[chord],
            )
        bindings[chord] = action
        spelled[chord] = chord_text

    return BindingGroup(
        context=context.strip() if context is not None else None,
        expression=expression,
        bindings=MappingProxyType(bindings),
        source=source,
        index=index,
    )


def compile_groups(raw_groups: Optional[Iterable[RawGroup]], source: str) -> List[BindingGroup]:
    """Compile a whole table; the first failing group fails all of it."""
    if raw_groups is None:
        return []
    if isinstance(raw_groups, (str, bytes, Mapping)):
        raise ValidationError(
            f"Binding table must be a list of groups, got {type(raw_groups).__name__}",
            source=source,
        )
    return [compile_group(raw, source, i) for i, raw in enumerate(raw_groups)]


def build_table(
    default_groups: Optional[Sequence[RawGroup]],
    user_groups: Optional[Sequence[RawGroup]] = None,
) -> MappingTable:
    """
    Merge default and user groups into a validated, immutable table.

    Defaults come first, user groups after, so user groups take precedence
    for the same chord. Duplicate chords across groups are allowed. Any
    error rejects the call outright; no recovery happens here.
    """
    defaults = compile_groups(default_groups, SOURCE_DEFAULT)
    users = compile_groups(user_groups, SOURCE_USER)
    table = MappingTable(groups=tuple(defaults + users))
    logger.debug(
        f"Built keymap with {len(defaults)} default and {len(users)} user groups"
    )
    return table


@dataclass(frozen=True)
class ShadowedBinding:
    """A binding that can never win because a later group always does."""

    chord: KeyChord
    action: str
    group: BindingGroup
    shadowed_by: BindingGroup

    def to_string(self) -> str:
        return (
            f"'{self.chord}' -> {self.action} in {self.group.label} "
            f"is shadowed by {self.shadowed_by.label} "
            f"({self.shadowed_by.bindings[self.chord]})"
        )

    def to_dict(self) -> dict:
        return {
            "chord": str(self.chord),
            "action": self.action,
            "group": self.group.label,
            "shadowed_by": self.shadowed_by.label,
            "winning_action": self.shadowed_by.bindings[self.chord],
        }


def find_shadowed(table: MappingTable) -> List[ShadowedBinding]:
    """
    List bindings made unreachable by a later unconditional group.

    A group with no context matches every active set, so any earlier binding
    of the same chord can never be resolved.
    """
    shadowed: List[ShadowedBinding] = []
    latest_global: Dict[KeyChord, BindingGroup] = {}
    for group in reversed(table.groups):
        for chord, action in group.bindings.items():
            winner = latest_global.get(chord)
            if winner is not None:
                shadowed.append(ShadowedBinding(chord, action, group, winner))
        if group.expression is None:
            for chord in group.bindings:
                latest_global.setdefault(chord, group)
    shadowed.reverse()
    return shadowed

