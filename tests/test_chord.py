"""Tests for key chord normalization."""

import pytest

from keyscope.exceptions import ChordError, ValidationError
from keyscope.keymap.chord import KeyChord, to_chord


class TestKeyChordParse:
    """Tests for KeyChord.parse."""

    @pytest.mark.parametrize(
        "text",
        ["cmd-w", "Cmd+W", "command-w", "super+w", "CMD-w", " cmd - w "],
    )
    def test_equivalent_spellings(self, text):
        assert KeyChord.parse(text) == KeyChord(frozenset({"cmd"}), "w")

    def test_modifier_order_is_irrelevant(self):
        assert KeyChord.parse("shift-cmd-w") == KeyChord.parse("cmd+shift+w")

    def test_canonical_rendering(self):
        assert str(KeyChord.parse("Shift+Alt+Ctrl+Cmd+K")) == "cmd-ctrl-alt-shift-k"

    @pytest.mark.parametrize(
        "text,key",
        [("cmd--", "-"), ("cmd-+", "+"), ("ctrl-shift--", "-"), ("-", "-"), ("cmd-plus", "+")],
    )
    def test_separator_as_key(self, text, key):
        assert KeyChord.parse(text).key == key

    @pytest.mark.parametrize(
        "alias,key",
        [("esc", "escape"), ("Return", "enter"), ("PgUp", "pageup"), ("ArrowDown", "down")],
    )
    def test_key_aliases(self, alias, key):
        assert KeyChord.parse(f"ctrl-{alias}").key == key

    def test_named_keys_are_lowercased(self):
        assert KeyChord.parse("ctrl-Tab").key == "tab"
        assert KeyChord.parse("F12").key == "f12"

    def test_punctuation_keys(self):
        assert KeyChord.parse("cmd-shift-[").key == "["
        assert KeyChord.parse("ctrl-`").key == "`"

    @pytest.mark.parametrize(
        "text",
        ["", "   ", "cmd-", "cmd", "cmd-shift", "hyper-w", "cmd-cmd-w", "cmd-a-b"],
    )
    def test_invalid_chords(self, text):
        with pytest.raises(ChordError):
            KeyChord.parse(text)

    def test_chord_error_is_validation_error(self):
        with pytest.raises(ValidationError):
            KeyChord.parse("hyper-w")

    def test_non_string_rejected(self):
        with pytest.raises(ChordError):
            KeyChord.parse(None)


class TestAccelerator:
    @pytest.mark.parametrize(
        "text,accelerator",
        [
            ("cmd-w", "CmdOrCtrl+W"),
            ("cmd-shift-p", "CmdOrCtrl+Shift+P"),
            ("ctrl-tab", "Ctrl+Tab"),
            ("cmd-=", "CmdOrCtrl+="),
            ("cmd-+", "CmdOrCtrl+Plus"),
            ("alt-down", "Alt+Down"),
            ("f5", "F5"),
        ],
    )
    def test_to_accelerator(self, text, accelerator):
        assert KeyChord.parse(text).to_accelerator() == accelerator


def test_to_chord_accepts_both_forms():
    chord = KeyChord.parse("cmd-w")
    assert to_chord(chord) is chord
    assert to_chord("Cmd+W") == chord
