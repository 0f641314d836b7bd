"""
Namespaced actions and the action router.

Actions are identified by 'namespace::verb' strings. The set the application
ships is the closed Action enum; well-formed identifiers outside it are still
accepted in binding tables so user keymaps can name experimental actions.
The engine never interprets an action beyond its identifier: executing it is
the router's job, and the router passes events through when no handler is
registered.
"""

import logging
import re
from enum import Enum
from typing import Callable, Dict, Iterable, Optional, Union

logger = logging.getLogger(__name__)

ACTION_ID_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9]*::[A-Za-z][A-Za-z0-9]*$")


class Action(str, Enum):
    """Every action the application ships, grouped by namespace."""

    # app
    QUIT = "app::quit"
    CLOSE = "app::close"
    ADD_PROJECT = "app::addProject"
    OPEN_SETTINGS = "app::openSettings"
    OPEN_MAPPINGS = "app::openMappings"
    OPEN_IN_FINDER = "app::openInFinder"
    OPEN_IN_TERMINAL = "app::openInTerminal"
    OPEN_IN_EDITOR = "app::openInEditor"
    HELP_DOCS = "app::helpDocs"

    # drawer
    DRAWER_TOGGLE = "drawer::toggle"
    DRAWER_EXPAND = "drawer::expand"
    DRAWER_NEW_TAB = "drawer::newTab"
    DRAWER_CLOSE_TAB = "drawer::closeTab"
    DRAWER_NEXT_TAB = "drawer::nextTab"
    DRAWER_PREV_TAB = "drawer::prevTab"

    # scratch / worktree / project
    SCRATCH_NEW = "scratch::new"
    SCRATCH_CLOSE = "scratch::close"
    WORKTREE_NEW = "worktree::new"
    WORKTREE_CLOSE = "worktree::close"
    WORKTREE_MERGE = "worktree::merge"
    WORKTREE_DELETE = "worktree::delete"
    PROJECT_CLOSE = "project::close"

    # session tabs
    SESSION_NEW_TAB = "session::newTab"
    SESSION_CLOSE_TAB = "session::closeTab"

    # navigation
    NAVIGATE_PREV = "navigate::prev"
    NAVIGATE_NEXT = "navigate::next"
    NAVIGATE_BACK = "navigate::back"
    NAVIGATE_FORWARD = "navigate::forward"
    NAVIGATE_TO_ENTITY_1 = "navigate::toEntity1"
    NAVIGATE_TO_ENTITY_2 = "navigate::toEntity2"
    NAVIGATE_TO_ENTITY_3 = "navigate::toEntity3"
    NAVIGATE_TO_ENTITY_4 = "navigate::toEntity4"
    NAVIGATE_TO_ENTITY_5 = "navigate::toEntity5"
    NAVIGATE_TO_ENTITY_6 = "navigate::toEntity6"
    NAVIGATE_TO_ENTITY_7 = "navigate::toEntity7"
    NAVIGATE_TO_ENTITY_8 = "navigate::toEntity8"
    NAVIGATE_TO_ENTITY_9 = "navigate::toEntity9"

    # focus
    FOCUS_SWITCH = "focus::switch"

    # view
    VIEW_ZOOM_IN = "view::zoomIn"
    VIEW_ZOOM_OUT = "view::zoomOut"
    VIEW_ZOOM_RESET = "view::zoomReset"
    RIGHT_PANEL_TOGGLE = "rightPanel::toggle"

    # diff
    DIFF_NEXT_FILE = "diff::nextFile"
    DIFF_PREV_FILE = "diff::prevFile"
    DIFF_CLOSE = "diff::close"

    # palette / pickers
    PALETTE_TOGGLE = "palette::toggle"
    PALETTE_PROJECT_SWITCHER = "palette::projectSwitcher"
    PALETTE_CLOSE = "palette::close"
    MODAL_CANCEL = "modal::cancel"
    MODAL_CONFIRM = "modal::confirm"

    # tasks
    TASK_RUN = "task::run"
    TASK_SWITCHER = "task::switcher"

    @property
    def namespace(self) -> str:
        return self.value.split("::", 1)[0]

    @classmethod
    def lookup(cls, action_id: str) -> Optional["Action"]:
        """Return the known Action for an identifier, or None."""
        try:
            return cls(action_id)
        except ValueError:
            return None


def is_action_id(value: object) -> bool:
    """Check that a value is a well-formed 'namespace::verb' identifier."""
    return isinstance(value, str) and bool(ACTION_ID_PATTERN.match(value))


ActionLike = Union[Action, str]
Handler = Callable[[], None]


def _action_id(action: ActionLike) -> str:
    return action.value if isinstance(action, Action) else action


class ActionRouter:
    """
    Map resolved action identifiers to handlers.

    dispatch() returns False when nothing handled the action, signalling the
    host to pass the key event on to its next handler (for instance terminal
    copy/paste that bypasses the keymap). Handler exceptions propagate.

    Usage:
        router = ActionRouter()
        router.register(Action.DRAWER_TOGGLE, toggle_drawer)

        action = holder.resolve("cmd-j", active)
        if not router.dispatch(action):
            forward_key_event()
    """

    def __init__(self, handlers: Optional[Dict[ActionLike, Handler]] = None):
        self._handlers: Dict[str, Handler] = {}
        for action, handler in (handlers or {}).items():
            self.register(action, handler)

    def register(self, action: ActionLike, handler: Handler) -> None:
        action_id = _action_id(action)
        if not is_action_id(action_id):
            raise ValueError(f"Invalid action identifier: {action_id!r}")
        if not callable(handler):
            raise ValueError(f"Handler for {action_id} must be callable")
        if Action.lookup(action_id) is None:
            logger.debug(f"Registering handler for unlisted action {action_id}")
        self._handlers[action_id] = handler

    def unregister(self, action: ActionLike) -> bool:
        return self._handlers.pop(_action_id(action), None) is not None

    def has_handler(self, action: ActionLike) -> bool:
        return _action_id(action) in self._handlers

    @property
    def registered(self) -> Iterable[str]:
        return tuple(self._handlers)

    def dispatch(self, action: Optional[ActionLike]) -> bool:
        """Run the handler for an action; False means pass the event through."""
        if action is None:
            return False
        action_id = _action_id(action)
        handler = self._handlers.get(action_id)
        if handler is None:
            logger.debug(f"No handler for {action_id}, passing through")
            return False
        handler()
        return True

    def dispatch_chord(self, source, chord, active=None) -> bool:
        """Resolve a chord against a MappingTable or KeymapHolder, then dispatch."""
        from .registry import MappingTable
        from .resolver import resolve

        if isinstance(source, MappingTable):
            action = resolve(source, chord, active)
        else:
            action = source.resolve(chord, active)
        return self.dispatch(action)
