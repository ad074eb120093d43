"""
Bounded undo/redo history over editor states.
"""

import logging
from typing import List, Optional

from .state import EditorState

logger = logging.getLogger(__name__)


class HistoryManager:
    """
    Keeps the live editor state plus undo and redo stacks of snapshots.

    States are frozen values, so storing the value itself is a full,
    independent snapshot: nothing reachable from one entry can be
    changed through another.

    Ephemeral updates (mid-drag) replace the live state without touching
    the stacks. The state they started from is remembered so that the
    next commit records it as a single undo entry.
    """

    def __init__(self, initial_state: EditorState, max_history_size: int = 50):
        if max_history_size < 1:
            raise ValueError("max_history_size must be at least 1")

        self.max_history_size = max_history_size
        self.current_state = initial_state

        self._undo_stack: List[EditorState] = []
        self._redo_stack: List[EditorState] = []

        # Last committed state before a run of ephemeral updates
        self._ephemeral_base: Optional[EditorState] = None

    def push_state(self, next_state: EditorState):
        """Commit ``next_state``, recording the previous one for undo."""
        base = self._ephemeral_base or self.current_state
        self._ephemeral_base = None

        self._undo_stack.append(base)
        self._redo_stack.clear()
        self.current_state = next_state

        # Limit history size
        if len(self._undo_stack) > self.max_history_size:
            self._undo_stack.pop(0)

    def update_current_state(self, next_state: EditorState):
        """Replace the live state without creating an undo checkpoint."""
        if self._ephemeral_base is None:
            self._ephemeral_base = self.current_state
        self.current_state = next_state

    def replace_current_state(self, next_state: EditorState):
        """
        Replace the live state for changes that are not part of the
        edit history at all (selection, mode).
        """
        self.current_state = next_state

    def undo(self) -> Optional[EditorState]:
        """
        Step back one entry.

        Returns:
            The restored state, or None if there is nothing to undo
        """
        if not self._undo_stack:
            return None

        self._ephemeral_base = None
        self._redo_stack.append(self.current_state)
        self.current_state = self._undo_stack.pop()
        logger.debug("Undo: %d left", len(self._undo_stack))
        return self.current_state

    def redo(self) -> Optional[EditorState]:
        """
        Step forward one entry.

        Returns:
            The restored state, or None if there is nothing to redo
        """
        if not self._redo_stack:
            return None

        self._ephemeral_base = None
        self._undo_stack.append(self.current_state)
        if len(self._undo_stack) > self.max_history_size:
            self._undo_stack.pop(0)
        self.current_state = self._redo_stack.pop()
        logger.debug("Redo: %d left", len(self._redo_stack))
        return self.current_state

    def can_undo(self) -> bool:
        return bool(self._undo_stack)

    def can_redo(self) -> bool:
        return bool(self._redo_stack)

    @property
    def undo_depth(self) -> int:
        return len(self._undo_stack)

    @property
    def redo_depth(self) -> int:
        return len(self._redo_stack)

    @property
    def has_pending_ephemeral(self) -> bool:
        return self._ephemeral_base is not None

    def clear(self):
        self._undo_stack.clear()
        self._redo_stack.clear()
        self._ephemeral_base = None
