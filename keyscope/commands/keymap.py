"""Keymap inspection commands for keyscope."""

from pathlib import Path
from typing import List, Optional

import typer
from rich.table import Table

from keyscope.error_handling import display_error, handle_error, warn_user
from keyscope.exceptions import KeyscopeError
from keyscope.utils.output import console, print_json

app = typer.Typer(help="Inspect and validate keybindings")


def _active_from_options(contexts: Optional[List[str]]) -> frozenset:
    """Turn repeated --context options into an active flag set."""
    from keyscope.exceptions import UnknownFlagError
    from keyscope.keymap import ContextFlag

    active = set()
    for value in contexts or []:
        for name in value.split(","):
            name = name.strip()
            if not name:
                continue
            flag = ContextFlag.lookup(name)
            if flag is None:
                handle_error(
                    UnknownFlagError(f"Unknown context flag '{name}'", flag=name),
                    "reading --context",
                )
            active.add(flag)
    return frozenset(active)


def _load(path: Optional[Path]):
    from keyscope.keymap import load_table

    result = load_table(path)
    if result.error:
        warn_user(result.error)
        console.print("[yellow]Falling back to the default keymap.[/yellow]\n")
    return result


@app.callback(invoke_without_command=True)
def keymap(
    ctx: typer.Context,
    path: Optional[Path] = typer.Option(
        None, "--file", "-f", help="User keymap file (default: config dir)"
    ),
    json_output: bool = typer.Option(
        False, "--json", "-j", help="Output as JSON"
    ),
):
    """
    Inspect the merged keymap.

    By default, shows a summary of the merged table and any shadowed bindings.
    """
    if ctx.invoked_subcommand is not None:
        return

    from keyscope.keymap import find_shadowed

    result = _load(path)
    table = result.table
    shadowed = find_shadowed(table)

    if json_output:
        print_json({
            **table.to_dict(),
            "path": str(result.path) if result.path else None,
            "error": str(result.error) if result.error else None,
            "shadowed": [s.to_dict() for s in shadowed],
        })
        return

    _show_summary(result, shadowed)


def _show_summary(result, shadowed):
    """Show keymap summary."""
    table = result.table
    console.print("\n[bold]Keymap Summary[/bold]\n")

    summary = Table(show_header=False, box=None)
    summary.add_column("Metric", style="dim")
    summary.add_column("Value", style="bold")

    summary.add_row("User file", str(result.path) if result.user_file_found else "(none)")
    summary.add_row("Default groups", str(len(table.default_groups)))
    summary.add_row("User groups", str(len(table.user_groups)))
    summary.add_row("Bindings", str(sum(len(g.bindings) for g in table.groups)))
    summary.add_row("Unique chords", str(len(table.chords())))
    summary.add_row("Shadowed", str(len(shadowed)))

    console.print(summary)
    console.print()

    if shadowed:
        console.print("[bold]Shadowed bindings:[/bold]")
        for item in shadowed[:20]:  # Limit to 20
            console.print(f"  [yellow]{item.to_string()}[/yellow]")
        if len(shadowed) > 20:
            console.print(f"  [dim]... and {len(shadowed) - 20} more[/dim]")
    else:
        console.print("[green]No shadowed bindings![/green]")

    console.print()


@app.command()
def show(
    contexts: Optional[List[str]] = typer.Option(
        None, "--context", "-c", help="Active context flag (repeatable or comma-separated)"
    ),
    path: Optional[Path] = typer.Option(
        None, "--file", "-f", help="User keymap file (default: config dir)"
    ),
    all_groups: bool = typer.Option(
        False, "--all", "-a", help="List every group instead of the effective mappings"
    ),
    json_output: bool = typer.Option(
        False, "--json", "-j", help="Output as JSON"
    ),
):
    """Show the mappings in effect for a set of active contexts."""
    from keyscope.keymap import effective_mappings

    active = _active_from_options(contexts)
    result = _load(path)

    if all_groups:
        _show_groups(result.table, json_output)
        return

    matches = effective_mappings(result.table, active)

    if json_output:
        print_json({
            "active": sorted(flag.value for flag in active),
            "mappings": [m.to_dict() for m in matches],
        })
        return

    names = ", ".join(sorted(flag.value for flag in active)) or "(none)"
    console.print(f"\n[bold]Effective Mappings ({len(matches)})[/bold]")
    console.print(f"Active contexts: [cyan]{names}[/cyan]\n")

    table = Table(show_header=True, box=None, padding=(0, 1))
    table.add_column("Chord", style="bold", width=16)
    table.add_column("Action", width=28)
    table.add_column("Group", style="dim")

    for match in sorted(matches, key=lambda m: str(m.chord)):
        table.add_row(str(match.chord), match.action, match.group.label)

    console.print(table)
    console.print()


def _show_groups(mapping_table, json_output: bool):
    """Show every group in source order."""
    if json_output:
        print_json(mapping_table.to_dict())
        return

    console.print(f"\n[bold]Keymap Groups ({len(mapping_table.groups)})[/bold]\n")
    for group in mapping_table.groups:
        console.print(f"[bold]{group.label}[/bold] ({len(group.bindings)} bindings)")

        table = Table(show_header=True, box=None, padding=(0, 1))
        table.add_column("Chord", style="bold", width=16)
        table.add_column("Action", width=28)
        table.add_column("Accelerator", style="dim")

        for chord, action in sorted(group.bindings.items(), key=lambda item: str(item[0])):
            table.add_row(str(chord), action, chord.to_accelerator())

        console.print(table)
        console.print()


@app.command()
def resolve(
    chord: str = typer.Argument(..., help="Key chord, e.g. cmd-shift-w"),
    contexts: Optional[List[str]] = typer.Option(
        None, "--context", "-c", help="Active context flag (repeatable or comma-separated)"
    ),
    path: Optional[Path] = typer.Option(
        None, "--file", "-f", help="User keymap file (default: config dir)"
    ),
    json_output: bool = typer.Option(
        False, "--json", "-j", help="Output as JSON"
    ),
):
    """Resolve one chord against the merged keymap."""
    from keyscope.keymap import KeyChord, resolve_match

    active = _active_from_options(contexts)
    try:
        key = KeyChord.parse(chord)
    except KeyscopeError as e:
        handle_error(e, "parsing chord")

    result = _load(path)
    match = resolve_match(result.table, key, active)

    if json_output:
        print_json({
            "chord": str(key),
            "active": sorted(flag.value for flag in active),
            "match": match.to_dict() if match else None,
        })
        return

    if match is None:
        console.print(f"[dim]{key}[/dim] -> [yellow]no match (passed through)[/yellow]")
        return

    console.print(f"[bold]{key}[/bold] -> [green]{match.action}[/green]")
    console.print(f"  [dim]from {match.group.label}[/dim]")


@app.command()
def check(
    path: Optional[Path] = typer.Argument(
        None, help="Keymap file to validate (default: config dir)"
    ),
):
    """Validate a user keymap file without installing it."""
    from keyscope.config.settings import get_keymap_path
    from keyscope.keymap import DEFAULT_GROUPS, build_table, read_user_groups

    target = path or get_keymap_path()

    try:
        groups = read_user_groups(target)
        if groups is None:
            console.print(f"[yellow]No keymap file at {target}[/yellow]")
            raise typer.Exit(1)
        table = build_table(DEFAULT_GROUPS, groups)
    except KeyscopeError as e:
        display_error(e)
        raise typer.Exit(1)

    console.print(
        f"[green]{target} is valid[/green] "
        f"({len(table.user_groups)} groups, "
        f"{sum(len(g.bindings) for g in table.user_groups)} bindings)"
    )


@app.command()
def contexts():
    """List all available context flags."""
    from keyscope.keymap import ContextFlag

    console.print("\n[bold]Available Context Flags[/bold]\n")
    for flag in ContextFlag:
        console.print(f"  {flag.value}")
    console.print()


@app.command()
def actions(
    json_output: bool = typer.Option(
        False, "--json", "-j", help="Output as JSON"
    ),
):
    """List the known actions, grouped by namespace."""
    from keyscope.keymap import Action

    groups = {}
    for action in Action:
        groups.setdefault(action.namespace, []).append(action.value)

    if json_output:
        print_json(groups)
        return

    console.print("\n[bold]Known Actions[/bold]\n")
    for namespace in sorted(groups):
        console.print(f"[bold]{namespace}[/bold]")
        for action_id in groups[namespace]:
            console.print(f"  {action_id}")
        console.print()


@app.command()
def init(
    path: Optional[Path] = typer.Option(
        None, "--file", "-f", help="Where to create the file (default: config dir)"
    ),
):
    """Create an example keymap config file."""
    from keyscope.config.settings import get_keymap_path
    from keyscope.keymap import save_example_config

    target = path or get_keymap_path()

    try:
        created = save_example_config(target)
    except KeyscopeError as e:
        handle_error(e, "creating keymap config")

    if created:
        console.print(f"[green]Created keymap config at {target}[/green]")
    else:
        console.print(f"[yellow]Config file already exists at {target}[/yellow]")
