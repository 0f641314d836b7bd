"""
User keymap loading.

Loads user binding groups from ~/.config/keyscope/keymap.yaml (or .yml /
.json) and merges them over the defaults. A broken user file never breaks
key handling: the loader falls back to the defaults-only table and reports
the error for display.
"""

import json
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import yaml

from ..config.settings import get_keymap_path
from ..exceptions import ConfigurationError, KeyscopeError, ValidationError
from .chord import ChordLike
from .defaults import DEFAULT_GROUPS, default_table
from .registry import MappingTable, RawGroup, build_table
from .resolver import Match, resolve_match

logger = logging.getLogger(__name__)

# Example config content for new users
EXAMPLE_CONFIG = """# keyscope keymap
#
# Groups are checked from the bottom of this file to the top, and all of
# them are checked before the built-in defaults. The first group whose
# context holds and which binds the pressed chord wins.
#
# Format:
#   - context: "drawerFocused && !pickerOpen"   # optional, omit for always
#     bindings:
#       cmd-w: drawer::closeTab                 # chord: namespace::verb
#
# Contexts combine flags with ! (not), && (and), || (or) and parentheses.
# Run `keyscope keymap contexts` for the flags and
# `keyscope keymap actions` for the actions.
#
# Example: close the drawer tab instead of the worktree while the drawer
# has focus, and use cmd-shift-k for the command palette everywhere.
#
# - context: drawerFocused
#   bindings:
#     cmd-w: drawer::closeTab
# - bindings:
#     cmd-shift-k: palette::toggle

[]
"""


def _duplicate_key(key: Any, line: Optional[int] = None) -> ValidationError:
    return ValidationError(
        f"Duplicate key '{key}' in keymap file", source="user", line=line
    )


class _UniqueKeyLoader(yaml.SafeLoader):
    """SafeLoader that rejects repeated keys instead of keeping the last one."""

    def construct_mapping(self, node, deep=False):
        seen = set()
        for key_node, _ in node.value:
            if not isinstance(key_node, yaml.ScalarNode):
                continue
            key = self.construct_object(key_node, deep=deep)
            if key in seen:
                raise _duplicate_key(key, key_node.start_mark.line + 1)
            seen.add(key)
        return super().construct_mapping(node, deep=deep)


def _unique_json_object(pairs: List[Tuple[str, Any]]) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    for key, value in pairs:
        if key in result:
            raise _duplicate_key(key)
        result[key] = value
    return result


def read_user_groups(path: Path) -> Optional[List[RawGroup]]:
    """
    Read raw user groups from a YAML or JSON file.

    Accepts either a top-level list of groups or a mapping with a 'groups'
    list. An empty file reads as no groups.

    Returns:
        The raw groups, or None if the file does not exist

    Raises:
        ConfigurationError: the file cannot be read or decoded
        ValidationError: the decoded document has the wrong shape or repeats
            a key within one mapping
    """
    if not path.exists():
        return None

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Cannot read keymap file: {e}", path=str(path)) from e

    try:
        if path.suffix == ".json":
            data = (
                json.loads(text, object_pairs_hook=_unique_json_object)
                if text.strip()
                else None
            )
        else:
            data = yaml.load(text, Loader=_UniqueKeyLoader)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Cannot parse keymap file: {e}", path=str(path)) from e

    if data is None:
        return []
    if isinstance(data, dict):
        if set(data) != {"groups"}:
            raise ValidationError(
                "Keymap file must be a list of groups or contain only a 'groups' key",
                source="user",
            )
        data = data["groups"] or []
    if not isinstance(data, list):
        raise ValidationError(
            f"Keymap file must hold a list of groups, got {type(data).__name__}",
            source="user",
        )
    return data


@dataclass(frozen=True)
class LoadResult:
    """Outcome of loading the keymap: the table in force plus any error."""

    table: MappingTable
    path: Optional[Path] = None
    error: Optional[KeyscopeError] = None
    user_file_found: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


def load_table(
    path: Optional[Path] = None,
    default_groups: Optional[Sequence[RawGroup]] = None,
) -> LoadResult:
    """
    Build the keymap from defaults plus the user file at path.

    A missing file yields the defaults. Any error in the user file yields
    the defaults plus the error; errors in the defaults themselves propagate.
    """
    path = path or get_keymap_path()
    defaults_only = default_table() if default_groups is None else build_table(default_groups)
    groups = DEFAULT_GROUPS if default_groups is None else default_groups

    try:
        user_groups = read_user_groups(path)
        if user_groups is None:
            logger.debug(f"No user keymap at {path}, using defaults")
            return LoadResult(table=defaults_only, path=path)
        table = build_table(groups, user_groups)
    except KeyscopeError as e:
        logger.warning(f"Ignoring user keymap {path}: {e}")
        return LoadResult(table=defaults_only, path=path, error=e, user_file_found=True)

    logger.info(f"Loaded {len(table.user_groups)} user keymap groups from {path}")
    return LoadResult(table=table, path=path, user_file_found=True)


def save_example_config(path: Optional[Path] = None) -> bool:
    """
    Save example config file if it doesn't exist.

    Returns:
        True if file was created, False if it already exists
    """
    config_path = path or get_keymap_path()

    if config_path.exists():
        return False

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(EXAMPLE_CONFIG, encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(
            f"Failed to create keymap config: {e}", path=str(config_path)
        ) from e

    logger.info(f"Created example keymap config at {config_path}")
    return True


class KeymapHolder:
    """
    Owns the current keymap table.

    Readers call resolve() or read `table` without locking: the reference
    is replaced in a single assignment and tables are immutable, so a reader
    sees either the old table or the new one, never a mix. Writers serialize
    on a lock so two reloads cannot interleave their reads and swaps.

    Usage:
        holder = KeymapHolder()
        holder.reload()                 # at startup, and on file change

        if holder.last_error:
            warn_user(holder.last_error)

        action = holder.resolve("cmd-w", active)
    """

    def __init__(
        self,
        path: Optional[Path] = None,
        default_groups: Optional[Sequence[RawGroup]] = None,
    ):
        self.path = path
        self.default_groups = default_groups
        self._write_lock = threading.Lock()
        self._result = LoadResult(
            table=default_table() if default_groups is None else build_table(default_groups)
        )

    @property
    def table(self) -> MappingTable:
        return self._result.table

    @property
    def last_error(self) -> Optional[KeyscopeError]:
        return self._result.error

    @property
    def last_result(self) -> LoadResult:
        return self._result

    def reload(self) -> LoadResult:
        """Re-read the user file and swap in the rebuilt table."""
        with self._write_lock:
            result = load_table(self.path, self.default_groups)
            self._result = result
        return result

    def replace_user_groups(self, user_groups: Optional[Sequence[RawGroup]]) -> MappingTable:
        """
        Swap in a table built from in-memory user groups.

        Unlike reload(), a failure raises and leaves the current table alone.
        """
        groups = DEFAULT_GROUPS if self.default_groups is None else self.default_groups
        with self._write_lock:
            table = build_table(groups, user_groups)
            self._result = LoadResult(table=table, path=self.path)
        return table

    def resolve(self, chord: ChordLike, active: Optional[Iterable[Any]] = None) -> Optional[str]:
        match = self.resolve_match(chord, active)
        return match.action if match else None

    def resolve_match(
        self, chord: ChordLike, active: Optional[Iterable[Any]] = None
    ) -> Optional[Match]:
        return resolve_match(self.table, chord, active)
