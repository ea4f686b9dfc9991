# netmap/core/history.py
"""
Undo/redo stacks for editing actions. Each action knows how to apply and
revert itself; the history only orders them.
"""
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, List

from netmap.utils.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class Action:
    execute: Callable[[], Any]
    undo: Callable[[], Any]
    description: str = ""


class HistoryManager:
    def __init__(self, max_size: int = 50) -> None:
        self.max_size = max_size
        self.undo_stack: Deque[Action] = deque(maxlen=max_size)
        self.redo_stack: List[Action] = []

    def add_action(self, action: Action) -> None:
        """Record an action that has already been applied. Clears the redo stack."""
        self.redo_stack.clear()
        self.undo_stack.append(action)
        logger.debug("Action added to history: %s (undo stack %d)", action.description, len(self.undo_stack))

    def undo(self) -> bool:
        if not self.undo_stack:
            logger.info("No actions to undo")
            return False
        action = self.undo_stack.pop()
        try:
            action.undo()
        except Exception:
            logger.exception("Error undoing '%s'", action.description)
            return False
        self.redo_stack.append(action)
        logger.debug("Action undone: %s", action.description)
        return True

    def redo(self) -> bool:
        if not self.redo_stack:
            logger.info("No actions to redo")
            return False
        action = self.redo_stack.pop()
        try:
            action.execute()
        except Exception:
            logger.exception("Error redoing '%s'", action.description)
            return False
        self.undo_stack.append(action)
        logger.debug("Action redone: %s", action.description)
        return True

    def clear(self) -> None:
        self.undo_stack.clear()
        self.redo_stack.clear()
        logger.info("History cleared")

    def get_state(self) -> Dict[str, Any]:
        return {
            "canUndo": bool(self.undo_stack),
            "canRedo": bool(self.redo_stack),
            "undoStackSize": len(self.undo_stack),
            "redoStackSize": len(self.redo_stack),
        }
