"""Custom exception hierarchy for keyscope.

Exception Hierarchy:
    KeyscopeError (base)
    ├── KeymapError - binding tables and context expressions
    │   ├── ContextSyntaxError - malformed context expression
    │   └── ValidationError - structural table defects
    │       ├── UnknownFlagError - expression names a flag outside the enumeration
    │       └── ChordError - malformed key chord text
    └── ConfigurationError - unreadable or unparsable user keymap file

Usage:
    from keyscope.exceptions import ContextSyntaxError

    try:
        expr = parse(text)
    except ContextSyntaxError as e:
        print(e.position)
"""

from typing import Any, Optional


class KeyscopeError(Exception):
    """Base exception for all keyscope errors.

    Attributes:
        message: Human-readable error description
        context: Additional context about the error (e.g., positions, paths)
    """

    def __init__(self, message: str, **context: Any) -> None:
        self.message = message
        self.context = {k: v for k, v in context.items() if v is not None}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with context."""
        if self.context:
            context_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


# =============================================================================
# Keymap Errors
# =============================================================================


class KeymapError(KeyscopeError):
    """Base exception for binding tables and context expressions."""

    pass


class ContextSyntaxError(KeymapError):
    """A context expression could not be parsed."""

    def __init__(
        self,
        message: str = "Invalid context expression",
        *,
        position: Optional[int] = None,
        expression: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.position = position
        self.expression = expression
        super().__init__(message, position=position, expression=expression, **context)


class ValidationError(KeymapError):
    """A binding group or table is structurally invalid."""

    def __init__(
        self,
        message: str = "Invalid binding table",
        *,
        source: Optional[str] = None,
        group_index: Optional[int] = None,
        **context: Any,
    ) -> None:
        self.source = source
        self.group_index = group_index
        super().__init__(message, source=source, group_index=group_index, **context)


class UnknownFlagError(ValidationError):
    """A context expression references a flag that does not exist."""

    def __init__(
        self,
        message: str = "Unknown context flag",
        *,
        flag: Optional[str] = None,
        position: Optional[int] = None,
        **context: Any,
    ) -> None:
        self.flag = flag
        self.position = position
        super().__init__(message, flag=flag, position=position, **context)


class ChordError(ValidationError):
    """A key chord string could not be normalized."""

    def __init__(
        self,
        message: str = "Invalid key chord",
        *,
        chord: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.chord = chord
        super().__init__(message, chord=chord, **context)


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(KeyscopeError):
    """The user keymap file could not be read or decoded."""

    def __init__(
        self,
        message: str = "Configuration error",
        *,
        path: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.path = path
        super().__init__(message, path=path, **context)


def with_group(error: KeymapError, source: str, group_index: int) -> KeymapError:
    """Attach table location to an error raised below the group level."""
    error.source = source
    error.group_index = group_index
    error.context["source"] = source
    error.context["group_index"] = group_index
    error.args = (error._format_message(),)
    return error
