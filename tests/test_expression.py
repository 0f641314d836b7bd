"""Tests for the context expression parser."""

import pytest

from keyscope.config.constants import MAX_EXPRESSION_DEPTH
from keyscope.exceptions import ContextSyntaxError, KeymapError, UnknownFlagError
from keyscope.keymap.expression import (
    And,
    Flag,
    Not,
    Or,
    TokenKind,
    flags_in,
    format_expression,
    parse,
    tokenize,
    validate_flags,
)

ANY = None  # skip flag validation for abstract a/b/c expressions


class TestTokenize:
    def test_tokens_and_positions(self):
        tokens = tokenize("!a && (b || c)")
        kinds = [t.kind for t in tokens]
        assert kinds == [
            TokenKind.NOT,
            TokenKind.IDENT,
            TokenKind.AND,
            TokenKind.LPAREN,
            TokenKind.IDENT,
            TokenKind.OR,
            TokenKind.IDENT,
            TokenKind.RPAREN,
            TokenKind.END,
        ]
        assert [t.position for t in tokens[:3]] == [0, 1, 3]

    def test_whitespace_is_ignored(self):
        assert [t.text for t in tokenize("  a\t&&\nb  ")][:3] == ["a", "&&", "b"]

    def test_identifiers_may_contain_digits(self):
        assert tokenize("pane2Open")[0].text == "pane2Open"

    @pytest.mark.parametrize(
        "text,position", [("a & b", 2), ("a | b", 2), ("a && $b", 5), ("drawer_focused", 6)]
    )
    def test_bad_characters(self, text, position):
        with pytest.raises(ContextSyntaxError) as exc_info:
            tokenize(text)
        assert exc_info.value.position == position


class TestParse:
    """Tests for parse()."""

    def test_single_flag(self):
        assert parse("drawerFocused") == Flag("drawerFocused")

    def test_not(self):
        assert parse("!modalOpen") == Not(Flag("modalOpen"))

    def test_double_not(self):
        assert parse("!!a", known_flags=ANY) == Not(Not(Flag("a")))

    def test_precedence(self):
        assert parse("!a && b || c", known_flags=ANY) == Or(
            And(Not(Flag("a")), Flag("b")), Flag("c")
        )

    def test_and_binds_tighter_than_or(self):
        assert parse("a || b && c", known_flags=ANY) == Or(
            Flag("a"), And(Flag("b"), Flag("c"))
        )

    def test_left_associative(self):
        assert parse("a && b && c", known_flags=ANY) == And(
            And(Flag("a"), Flag("b")), Flag("c")
        )
        assert parse("a || b || c", known_flags=ANY) == Or(
            Or(Flag("a"), Flag("b")), Flag("c")
        )

    def test_parentheses_override_precedence(self):
        assert parse("!(a && (b || c))", known_flags=ANY) == Not(
            And(Flag("a"), Or(Flag("b"), Flag("c")))
        )

    def test_deterministic(self):
        text = "(worktreeFocused || scratchFocused) && !modalOpen"
        assert parse(text) == parse(text)


class TestParseErrors:
    """Every malformed expression raises with the offending position."""

    @pytest.mark.parametrize(
        "text,position",
        [
            ("drawerFocused &&", 16),
            ("", 0),
            ("   ", 3),
            ("a && && b", 5),
            ("|| a", 0),
            ("(a", 2),
            ("a)", 1),
            ("((a)", 4),
            ("()", 1),
            ("a b", 2),
            ("!", 1),
            ("a || (b &&)", 10),
        ],
    )
    def test_syntax_errors(self, text, position):
        with pytest.raises(ContextSyntaxError) as exc_info:
            parse(text, known_flags=ANY)
        assert exc_info.value.position == position
        assert exc_info.value.expression == text

    def test_non_string(self):
        with pytest.raises(ContextSyntaxError):
            parse(42)

    def test_error_message_mentions_position(self):
        with pytest.raises(ContextSyntaxError, match="position=16"):
            parse("drawerFocused &&")

    def test_underscore_is_not_an_identifier_character(self):
        with pytest.raises(ContextSyntaxError) as exc_info:
            parse("drawer_focused")
        assert exc_info.value.position == 6


class TestNestingLimit:
    def test_deep_negation_rejected(self):
        text = "!" * 3000 + "drawerFocused"
        with pytest.raises(ContextSyntaxError) as exc_info:
            parse(text)
        assert exc_info.value.position == MAX_EXPRESSION_DEPTH

    def test_deep_parentheses_rejected(self):
        text = "(" * 3000 + "a" + ")" * 3000
        with pytest.raises(ContextSyntaxError) as exc_info:
            parse(text, known_flags=ANY)
        assert exc_info.value.position == MAX_EXPRESSION_DEPTH

    def test_long_operator_chain_rejected(self):
        text = " && ".join(["a"] * 3000)
        with pytest.raises(ContextSyntaxError) as exc_info:
            parse(text, known_flags=ANY)
        # "a && " repeats every 5 characters
        assert exc_info.value.position == 2 + 5 * MAX_EXPRESSION_DEPTH

    def test_limit_itself_is_accepted(self):
        expr = parse("!" * MAX_EXPRESSION_DEPTH + "drawerFocused")
        assert isinstance(expr, Not)
        assert format_expression(expr).endswith("drawerFocused")

    def test_depth_resets_between_siblings(self):
        half = MAX_EXPRESSION_DEPTH // 2
        operand = "(" * half + "a" + ")" * half
        assert parse(f"{operand} || {operand}", known_flags=ANY) == Or(Flag("a"), Flag("a"))


class TestFlagValidation:
    def test_unknown_flag_rejected_at_parse(self):
        with pytest.raises(UnknownFlagError) as exc_info:
            parse("drawerFocused && unknownFlag")
        assert exc_info.value.flag == "unknownFlag"
        assert exc_info.value.position == 17

    def test_unknown_flag_is_a_keymap_error(self):
        with pytest.raises(KeymapError):
            parse("unknownFlag")

    def test_syntax_checked_before_flags(self):
        with pytest.raises(ContextSyntaxError):
            parse("unknownFlag &&")

    def test_deferred_validation(self):
        expr = parse("drawerFocused || unknownFlag", known_flags=None)
        with pytest.raises(UnknownFlagError):
            validate_flags(expr)

    def test_custom_flag_set(self):
        expr = parse("a && !b", known_flags={"a", "b"})
        validate_flags(expr, {"a", "b"})
        with pytest.raises(UnknownFlagError):
            parse("a && c", known_flags={"a", "b"})

    def test_validate_none_is_noop(self):
        validate_flags(None)


class TestHelpers:
    def test_flags_in(self):
        expr = parse("(a || b) && !a && c", known_flags=ANY)
        assert flags_in(expr) == {"a", "b", "c"}
        assert flags_in(None) == frozenset()

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("a", "a"),
            ("!a && b || c", "!a && b || c"),
            ("(a || b) && c", "(a || b) && c"),
            ("a && (b && c)", "a && (b && c)"),
            ("((a))", "a"),
            ("!(a || b)", "!(a || b)"),
            ("!!a", "!!a"),
        ],
    )
    def test_format_expression(self, text, expected):
        expr = parse(text, known_flags=ANY)
        assert format_expression(expr) == expected
        assert parse(format_expression(expr), known_flags=ANY) == expr

    def test_format_none(self):
        assert format_expression(None) == ""
