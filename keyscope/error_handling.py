"""
Centralized error handling for the keyscope CLI

This module provides:
- Rich Console for user-facing error messages
- Logging setup for developer diagnostics
- Consistent formatting and exit codes
"""

import logging
import sys
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from .exceptions import (
    ChordError,
    ConfigurationError,
    ContextSyntaxError,
    KeyscopeError,
    UnknownFlagError,
    ValidationError,
)

# Global console instance for error display
console = Console(stderr=True, force_terminal=True, color_system="auto")

# Global logger for diagnostics
logger = logging.getLogger("keyscope")


class ErrorSeverity(Enum):
    """Error severity levels for categorization"""
    WARNING = "warning"
    ERROR = "error"


def setup_logging(
    verbose: bool = False,
    quiet: bool = False,
    log_file: Optional[Path] = None
) -> None:
    """
    Set up logging for keyscope

    Args:
        verbose: Enable verbose (DEBUG) logging
        quiet: Disable INFO and WARNING logs to console
        log_file: Optional log file path (defaults to <config dir>/keyscope.log)
    """
    from .config.settings import get_config_dir

    if verbose:
        console_level = logging.DEBUG
    elif quiet:
        console_level = logging.ERROR
    else:
        console_level = logging.WARNING

    detailed_formatter = logging.Formatter(
        '%(asctime)s | %(name)s | %(levelname)s | %(funcName)s:%(lineno)d | %(message)s'
    )
    simple_formatter = logging.Formatter('%(levelname)s: %(message)s')

    logger.handlers.clear()
    logger.setLevel(logging.DEBUG)

    if not quiet:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(console_level)
        console_handler.setFormatter(simple_formatter)
        logger.addHandler(console_handler)

    if log_file is None:
        log_file = get_config_dir() / "keyscope.log"

    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(detailed_formatter)
        logger.addHandler(file_handler)
    except OSError as e:
        # If we can't create log file, continue without it
        if verbose:
            console.print(f"[yellow]Warning: Could not create log file {log_file}: {e}[/yellow]")


def _title_for(error: KeyscopeError) -> str:
    if isinstance(error, ContextSyntaxError):
        return "Context Syntax Error"
    if isinstance(error, UnknownFlagError):
        return "Unknown Context Flag"
    if isinstance(error, ChordError):
        return "Key Chord Error"
    if isinstance(error, ValidationError):
        return "Keymap Validation Error"
    if isinstance(error, ConfigurationError):
        return "Configuration Error"
    return "Error"


def _suggestion_for(error: KeyscopeError) -> Optional[str]:
    if isinstance(error, UnknownFlagError):
        return "Run 'keyscope keymap contexts' to list the available flags."
    if isinstance(error, ContextSyntaxError):
        return "Context expressions combine flags with '!', '&&', '||' and parentheses."
    if isinstance(error, ChordError):
        return "Write chords as modifiers plus one key, e.g. 'cmd-shift-w'."
    return None


def display_error(
    error: KeyscopeError,
    show_details: bool = True,
    severity: ErrorSeverity = ErrorSeverity.ERROR,
) -> None:
    """Display error to user with Rich formatting"""
    color = {
        ErrorSeverity.WARNING: "yellow",
        ErrorSeverity.ERROR: "red",
    }[severity]

    message = Text()
    message.append(error.message, style=f"bold {color}")

    if show_details and error.context:
        details_text = "\n".join(f"• {k}: {v}" for k, v in error.context.items())
        message.append(f"\n\nDetails:\n{details_text}", style=f"dim {color}")

    suggestion = _suggestion_for(error)
    if suggestion:
        message.append(f"\n\nSuggestion: {suggestion}", style="cyan")

    panel = Panel(
        message,
        title=f"[bold]{_title_for(error)}[/bold]",
        title_align="left",
        border_style=color,
        padding=(0, 1)
    )

    console.print(panel)


def handle_error(
    error: Exception,
    operation: str = "unknown",
    context: Optional[Dict[str, Any]] = None,
    show_details: bool = True
) -> None:
    """
    Handle errors with consistent formatting and logging, then exit

    Args:
        error: The exception to handle
        operation: Description of the operation that failed
        context: Additional context for logging
        show_details: Whether to show technical details to user
    """
    context = context or {}

    if isinstance(error, KeyscopeError):
        logger.error(f"{operation} failed: {error} {context or ''}".rstrip())
        display_error(error, show_details)
        raise typer.Exit(1)

    logger.error(f"Unexpected error during {operation}: {error}", exc_info=True)
    display_error(
        KeyscopeError(
            f"An unexpected error occurred during {operation}",
            original_error=str(error),
            error_type=type(error).__name__,
        ),
        show_details,
    )
    raise typer.Exit(1)


def warn_user(error: KeyscopeError) -> None:
    """Display a non-fatal error as a warning"""
    display_error(error, show_details=True, severity=ErrorSeverity.WARNING)
