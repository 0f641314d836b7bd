"""
Chord resolution.

Priority rule: groups are scanned in reverse source order, so user groups are
checked before defaults and, within one source, later groups before earlier
ones. The first group whose context holds and which binds the chord wins.
Mapping authors control priority purely through group order.

Resolution is a pure function of (table, chord, active set). Given a
validated table it always returns an action or None and never raises.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional

from ..exceptions import ChordError
from .chord import ChordLike, KeyChord, to_chord
from .evaluator import active_names, evaluate
from .registry import BindingGroup, MappingTable

logger = logging.getLogger(__name__)

Evaluator = Callable[..., bool]


@dataclass(frozen=True)
class Match:
    """The winning binding for a chord."""

    action: str
    chord: KeyChord
    group: BindingGroup

    def to_dict(self) -> dict:
        return {
            "action": self.action,
            "chord": str(self.chord),
            "group": self.group.label,
            "context": self.group.context,
        }


def resolve_match(
    table: MappingTable,
    chord: ChordLike,
    active: Optional[Iterable] = None,
    evaluator: Evaluator = evaluate,
) -> Optional[Match]:
    """Find the winning binding for a chord, or None to pass the event on."""
    try:
        key = to_chord(chord)
    except ChordError:
        logger.debug(f"Unparsable chord {chord!r}, no match")
        return None

    names = active_names(active)
    for group in reversed(table.groups):
        action = group.bindings.get(key)
        if action is None:
            continue
        if evaluator(group.expression, names):
            return Match(action=action, chord=key, group=group)

    logger.debug(f"No binding for {key} in contexts {sorted(names)}")
    return None


def resolve(
    table: MappingTable,
    chord: ChordLike,
    active: Optional[Iterable] = None,
    evaluator: Evaluator = evaluate,
) -> Optional[str]:
    """Resolve a chord to an action identifier, or None when nothing matches."""
    match = resolve_match(table, chord, active, evaluator)
    return match.action if match else None


def effective_mappings(
    table: MappingTable,
    active: Optional[Iterable] = None,
    evaluator: Evaluator = evaluate,
) -> List[Match]:
    """Every chord that resolves under the active set, with its winner."""
    names = active_names(active)
    matches = []
    for chord in table.chords():
        match = resolve_match(table, chord, names, evaluator)
        if match is not None:
            matches.append(match)
    return matches


def action_availability(
    table: MappingTable,
    active: Optional[Iterable] = None,
    evaluator: Evaluator = evaluate,
) -> Dict[str, bool]:
    """
    Map every bound action to whether some chord reaches it right now.

    Menu layers use this to enable or disable items whose shortcuts would
    currently do nothing.
    """
    available = {action: False for action in table.actions()}
    for match in effective_mappings(table, active, evaluator):
        available[match.action] = True
    return available


def chords_for_action(
    table: MappingTable,
    action: str,
    active: Optional[Iterable] = None,
    evaluator: Evaluator = evaluate,
) -> List[KeyChord]:
    """Chords that currently resolve to an action, e.g. for menu accelerators."""
    return [
        match.chord
        for match in effective_mappings(table, active, evaluator)
        if match.action == action
    ]
