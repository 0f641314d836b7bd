"""
Key chord normalization.

A chord is a set of modifiers plus exactly one base key. Textual encodings
that differ only in modifier order, separator, alias or letter case normalize
to the same KeyChord:

    >>> KeyChord.parse("Shift+Cmd+W") == KeyChord.parse("cmd-shift-w")
    True
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import FrozenSet, Tuple, Union

from ..exceptions import ChordError

# Canonical modifier order used for rendering
MODIFIER_ORDER: Tuple[str, ...] = ("cmd", "ctrl", "alt", "shift")

MODIFIER_ALIASES = {
    "cmd": "cmd",
    "command": "cmd",
    "super": "cmd",
    "meta": "cmd",
    "win": "cmd",
    "ctrl": "ctrl",
    "control": "ctrl",
    "alt": "alt",
    "opt": "alt",
    "option": "alt",
    "shift": "shift",
}

KEY_ALIASES = {
    "esc": "escape",
    "return": "enter",
    "del": "delete",
    "bksp": "backspace",
    "spacebar": "space",
    "pgup": "pageup",
    "pgdn": "pagedown",
    "pagedn": "pagedown",
    "ins": "insert",
    "arrowup": "up",
    "arrowdown": "down",
    "arrowleft": "left",
    "arrowright": "right",
    "plus": "+",
    "minus": "-",
}

# Menu accelerator spelling, as used by desktop menu layers
_ACCELERATOR_MODIFIERS = {
    "cmd": "CmdOrCtrl",
    "ctrl": "Ctrl",
    "alt": "Alt",
    "shift": "Shift",
}

_ACCELERATOR_KEYS = {
    "escape": "Escape",
    "enter": "Enter",
    "delete": "Delete",
    "backspace": "Backspace",
    "space": "Space",
    "tab": "Tab",
    "pageup": "PageUp",
    "pagedown": "PageDown",
    "home": "Home",
    "end": "End",
    "insert": "Insert",
    "up": "Up",
    "down": "Down",
    "left": "Left",
    "right": "Right",
    "+": "Plus",
    "-": "-",
}

_KEY_PATTERN = re.compile(r"^(?:[a-z0-9]+|[^\sa-z0-9])$")


@dataclass(frozen=True)
class KeyChord:
    """Normalized modifier set plus one base key."""

    modifiers: FrozenSet[str]
    key: str

    @classmethod
    def parse(cls, text: str) -> "KeyChord":
        """Normalize chord text such as 'cmd-shift-w' or 'Ctrl+Tab'.

        Raises:
            ChordError: empty text, unknown modifier, or more than one base key
        """
        if not isinstance(text, str):
            raise ChordError("Key chord must be a string", chord=repr(text))
        raw = text.strip()
        if not raw:
            raise ChordError("Key chord is empty", chord=text)

        parts = _split(raw)
        *modifier_parts, key_part = parts

        modifiers = set()
        for part in modifier_parts:
            name = MODIFIER_ALIASES.get(part.lower())
            if name is None:
                raise ChordError(f"Unknown modifier '{part}'", chord=text)
            if name in modifiers:
                raise ChordError(f"Duplicate modifier '{part}'", chord=text)
            modifiers.add(name)

        key = _normalize_key(key_part)
        if key in MODIFIER_ALIASES:
            raise ChordError("Key chord has no base key", chord=text)
        if not _KEY_PATTERN.match(key):
            raise ChordError(f"Invalid key '{key_part}'", chord=text)

        return cls(modifiers=frozenset(modifiers), key=key)

    @property
    def ordered_modifiers(self) -> Tuple[str, ...]:
        return tuple(m for m in MODIFIER_ORDER if m in self.modifiers)

    def __str__(self) -> str:
        return "-".join(self.ordered_modifiers + (self.key,))

    def to_accelerator(self) -> str:
        """Render as a menu accelerator, e.g. 'CmdOrCtrl+Shift+W'."""
        key = _ACCELERATOR_KEYS.get(self.key)
        if key is None:
            key = self.key.upper() if len(self.key) == 1 else self.key.capitalize()
        mods = [_ACCELERATOR_MODIFIERS[m] for m in self.ordered_modifiers]
        return "+".join(mods + [key])


ChordLike = Union[KeyChord, str]


def to_chord(chord: ChordLike) -> KeyChord:
    """Accept either a KeyChord or chord text."""
    if isinstance(chord, KeyChord):
        return chord
    return KeyChord.parse(chord)


def _split(raw: str) -> list:
    """Split on '-' and '+' while keeping a trailing separator as the key.

    'cmd--' -> ['cmd', '-'], 'cmd-+' -> ['cmd', '+'], '-' -> ['-']
    """
    if len(raw) == 1:
        return [raw]
    parts = []
    current = ""
    i = 0
    while i < len(raw):
        ch = raw[i]
        if ch in "-+" and current:
            parts.append(current)
            current = ""
            # A final separator right after a separator is the key itself
            if i + 1 < len(raw) and raw[i + 1] in "-+" and i + 2 == len(raw):
                parts.append(raw[i + 1])
                return [p.strip() for p in parts]
            i += 1
            continue
        current += ch
        i += 1
    if not current:
        raise ChordError("Key chord has no base key", chord=raw)
    parts.append(current)
    return [p.strip() for p in parts]


def _normalize_key(part: str) -> str:
    key = part.strip()
    if len(key) > 1:
        key = key.lower()
        return KEY_ALIASES.get(key, key)
    return key.lower()
