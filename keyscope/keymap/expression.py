"""
Context expression language.

Binding groups are scoped by boolean expressions over context flags:

    drawerFocused && !pickerOpen
    (worktreeFocused || scratchFocused) && hasMultipleEntities

Grammar (precedence NOT > AND > OR, binary operators left-associative):

    expr      := orExpr
    orExpr    := andExpr ( "||" andExpr )*
    andExpr   := unary ( "&&" unary )*
    unary     := "!" unary | atom
    atom      := IDENT | "(" expr ")"

parse() produces an immutable tree of Flag / Not / And / Or nodes. Every
syntax error carries the 0-based offset of the offending token. Expressions
nested or chained deeper than MAX_EXPRESSION_DEPTH are syntax errors.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import AbstractSet, FrozenSet, Iterator, List, Optional, Union

from ..config.constants import MAX_EXPRESSION_DEPTH
from ..exceptions import ContextSyntaxError, UnknownFlagError
from .context import ContextFlag


# =============================================================================
# AST
# =============================================================================


@dataclass(frozen=True)
class Flag:
    name: str


@dataclass(frozen=True)
class Not:
    operand: "Expr"


@dataclass(frozen=True)
class And:
    left: "Expr"
    right: "Expr"


@dataclass(frozen=True)
class Or:
    left: "Expr"
    right: "Expr"


Expr = Union[Flag, Not, And, Or]


# =============================================================================
# Lexer
# =============================================================================


class TokenKind(Enum):
    IDENT = "identifier"
    NOT = "'!'"
    AND = "'&&'"
    OR = "'||'"
    LPAREN = "'('"
    RPAREN = "')'"
    END = "end of expression"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    position: int


_IDENT = re.compile(r"[A-Za-z][A-Za-z0-9]*")

_PUNCTUATION = {
    "&&": TokenKind.AND,
    "||": TokenKind.OR,
    "!": TokenKind.NOT,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
}


def tokenize(text: str) -> List[Token]:
    """Split an expression into tokens, ending with an END token."""
    tokens: List[Token] = []
    pos = 0
    length = len(text)
    while pos < length:
        ch = text[pos]
        if ch.isspace():
            pos += 1
            continue

        two = text[pos:pos + 2]
        if two in _PUNCTUATION:
            tokens.append(Token(_PUNCTUATION[two], two, pos))
            pos += 2
            continue
        if ch in _PUNCTUATION:
            tokens.append(Token(_PUNCTUATION[ch], ch, pos))
            pos += 1
            continue

        match = _IDENT.match(text, pos)
        if match:
            tokens.append(Token(TokenKind.IDENT, match.group(0), pos))
            pos = match.end()
            continue

        if ch in "&|":
            raise ContextSyntaxError(
                f"Expected '{ch}{ch}' but found a single '{ch}'",
                position=pos,
                expression=text,
            )
        raise ContextSyntaxError(
            f"Unexpected character '{ch}'", position=pos, expression=text
        )

    tokens.append(Token(TokenKind.END, "", length))
    return tokens


# =============================================================================
# Parser
# =============================================================================


class _Parser:
    """Recursive-descent parser over a token list."""

    def __init__(self, text: str):
        self.text = text
        self.tokens = tokenize(text)
        self.index = 0
        self.depth = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.index]

    def advance(self) -> Token:
        token = self.tokens[self.index]
        if token.kind is not TokenKind.END:
            self.index += 1
        return token

    def error(self, message: str, token: Optional[Token] = None) -> ContextSyntaxError:
        token = token or self.current
        return ContextSyntaxError(message, position=token.position, expression=self.text)

    def parse(self) -> Expr:
        if self.current.kind is TokenKind.END:
            raise self.error("Empty context expression")
        expr = self.parse_or()
        token = self.current
        if token.kind is TokenKind.RPAREN:
            raise self.error("Unbalanced ')'")
        if token.kind is not TokenKind.END:
            raise self.error(f"Unexpected {token.kind.value} after complete expression")
        return expr

    def enter(self, token: Token) -> None:
        # Operator chains build left-deep trees, so they count toward depth too
        self.depth += 1
        if self.depth > MAX_EXPRESSION_DEPTH:
            raise self.error(
                f"Context expression nests deeper than {MAX_EXPRESSION_DEPTH} levels", token
            )

    def parse_or(self) -> Expr:
        left = self.parse_and()
        chained = 0
        while self.current.kind is TokenKind.OR:
            self.enter(self.advance())
            chained += 1
            left = Or(left, self.parse_and())
        self.depth -= chained
        return left

    def parse_and(self) -> Expr:
        left = self.parse_unary()
        chained = 0
        while self.current.kind is TokenKind.AND:
            self.enter(self.advance())
            chained += 1
            left = And(left, self.parse_unary())
        self.depth -= chained
        return left

    def parse_unary(self) -> Expr:
        if self.current.kind is TokenKind.NOT:
            self.enter(self.advance())
            operand = self.parse_unary()
            self.depth -= 1
            return Not(operand)
        return self.parse_atom()

    def parse_atom(self) -> Expr:
        token = self.current
        if token.kind is TokenKind.IDENT:
            self.advance()
            return Flag(token.text)
        if token.kind is TokenKind.LPAREN:
            self.enter(self.advance())
            if self.current.kind is TokenKind.RPAREN:
                raise self.error("Empty parentheses")
            inner = self.parse_or()
            if self.current.kind is not TokenKind.RPAREN:
                raise self.error(f"Unbalanced '(' opened at position {token.position}")
            self.advance()
            self.depth -= 1
            return inner
        if token.kind is TokenKind.END:
            raise self.error("Expression ends where an operand is required")
        if token.kind in (TokenKind.AND, TokenKind.OR):
            raise self.error(f"Expected an operand before {token.kind.value}")
        if token.kind is TokenKind.RPAREN:
            raise self.error("Unbalanced ')'")
        raise self.error(f"Unexpected {token.kind.value}")


_ALL_FLAGS = ContextFlag.names()


def parse(text: str, known_flags: Optional[AbstractSet[str]] = _ALL_FLAGS) -> Expr:
    """
    Compile a context expression.

    Args:
        text: Expression source, e.g. "drawerFocused && !pickerOpen"
        known_flags: Identifiers allowed as flags. Defaults to every
            ContextFlag. Pass None to defer the check to validate_flags().

    Raises:
        ContextSyntaxError: malformed expression
        UnknownFlagError: identifier not in known_flags
    """
    if not isinstance(text, str):
        raise ContextSyntaxError(
            f"Context expression must be a string, got {type(text).__name__}"
        )
    parser = _Parser(text)
    expr = parser.parse()
    if known_flags is not None:
        _check_tokens(parser.tokens, known_flags, text)
    return expr


def _check_tokens(tokens: List[Token], known_flags: AbstractSet[str], text: str) -> None:
    for token in tokens:
        if token.kind is TokenKind.IDENT and token.text not in known_flags:
            raise UnknownFlagError(
                f"Unknown context flag '{token.text}'",
                flag=token.text,
                position=token.position,
                expression=text,
            )


def iter_flags(expr: Optional[Expr]) -> Iterator[str]:
    """Yield flag names in source order, duplicates included."""
    if expr is None:
        return
    stack: List[Expr] = [expr]
    while stack:
        node = stack.pop()
        if isinstance(node, Flag):
            yield node.name
        elif isinstance(node, Not):
            stack.append(node.operand)
        else:
            stack.append(node.right)
            stack.append(node.left)


def flags_in(expr: Optional[Expr]) -> FrozenSet[str]:
    """Return the set of flag names an expression references."""
    return frozenset(iter_flags(expr))


def validate_flags(expr: Optional[Expr], known_flags: AbstractSet[str] = _ALL_FLAGS) -> None:
    """Raise UnknownFlagError if the expression references an unknown flag."""
    for name in iter_flags(expr):
        if name not in known_flags:
            raise UnknownFlagError(f"Unknown context flag '{name}'", flag=name)


_PRECEDENCE = {Or: 1, And: 2, Not: 3, Flag: 4}


def format_expression(expr: Optional[Expr]) -> str:
    """Render an expression with the minimum parentheses needed to reparse it."""
    if expr is None:
        return ""
    return _format(expr)


def _format(expr: Expr) -> str:
    if isinstance(expr, Flag):
        return expr.name
    if isinstance(expr, Not):
        return "!" + _wrap(expr.operand, _PRECEDENCE[Not])
    op = " || " if isinstance(expr, Or) else " && "
    level = _PRECEDENCE[type(expr)]
    # Left-associative: a right operand of equal precedence needs parentheses
    return _wrap(expr.left, level) + op + _wrap(expr.right, level + 1)


def _wrap(expr: Expr, min_level: int) -> str:
    text = _format(expr)
    if _PRECEDENCE[type(expr)] < min_level:
        return f"({text})"
    return text
