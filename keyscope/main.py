#!/usr/bin/env python3
"""
Main CLI entry point for keyscope
"""

import typer

from keyscope import __version__
from keyscope.commands.keymap import app as keymap_app
from keyscope.error_handling import setup_logging

app = typer.Typer(
    help="keyscope - context-aware keybinding engine",
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-error output"),
):
    """
    keyscope - context-aware keybinding engine

    Resolves key chords to namespaced actions based on which UI contexts
    are active, merging your keymap file over the built-in defaults.

    [bold]Examples:[/bold]

    Show what cmd-w does while the drawer has focus:
        [cyan]keyscope keymap resolve cmd-w --context drawerFocused,drawerOpen[/cyan]

    Check your keymap file:
        [cyan]keyscope keymap check[/cyan]
    """
    if verbose and quiet:
        typer.echo("Error: --verbose and --quiet are mutually exclusive", err=True)
        raise typer.Exit(1)

    setup_logging(verbose=verbose, quiet=quiet)


@app.command()
def version():
    """Show keyscope version"""
    typer.echo(f"keyscope version {__version__}")


app.add_typer(keymap_app, name="keymap")


def run():
    """Entry point for the CLI"""
    app()


if __name__ == "__main__":
    run()
