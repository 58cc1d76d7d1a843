"""
UndoManager - Edit history for a circuit.

Every edit made through the Circuit facade runs as a Command here. The
history only ever holds edits that were actually applied: a command the
circuit rejects (unknown id, bad pin, invalid property value) raises out
of execute() and leaves both stacks as they were. The same holds for a
redo that can no longer be applied.
"""

import logging
from typing import Optional

from controllers.commands import Command
from models.errors import CircuitError

logger = logging.getLogger(__name__)


class UndoManager:
    """
    Applies circuit edits and keeps a bounded undo/redo history.

    A newly applied edit clears the redo stack. Topology edits take effect
    at the next simulation tick, exactly like direct API calls.
    """

    def __init__(self, max_depth: int = 100):
        """
        Args:
            max_depth: Number of edits kept for undo; older ones are forgotten
        """
        self.max_depth = max_depth
        self._undo_stack: list[Command] = []
        self._redo_stack: list[Command] = []

    def execute(self, command: Command) -> None:
        """
        Apply an edit and record it.

        Raises:
            CircuitError: If the circuit rejects the edit. Nothing is recorded.
        """
        try:
            command.execute()
        except CircuitError as e:
            logger.debug("Edit '%s' rejected, history unchanged: %s", command.get_description(), e)
            raise

        self._undo_stack.append(command)
        if len(self._undo_stack) > self.max_depth:
            forgotten = self._undo_stack.pop(0)
            logger.debug("Edit history full; '%s' can no longer be undone", forgotten.get_description())
        self._redo_stack.clear()

    def undo(self) -> bool:
        """
        Revert the most recent edit.

        Returns:
            False if there was nothing to undo
        """
        if not self._undo_stack:
            return False

        command = self._undo_stack.pop()
        command.undo()
        self._redo_stack.append(command)
        logger.debug("Undid '%s'", command.get_description())
        return True

    def redo(self) -> bool:
        """
        Re-apply the most recently undone edit.

        Returns:
            False if there was nothing to redo

        Raises:
            CircuitError: If the edit no longer applies; it stays on the redo stack.
        """
        if not self._redo_stack:
            return False

        command = self._redo_stack[-1]
        try:
            command.execute()
        except CircuitError as e:
            logger.warning("Cannot redo '%s': %s", command.get_description(), e)
            raise
        self._undo_stack.append(self._redo_stack.pop())
        logger.debug("Redid '%s'", command.get_description())
        return True

    def can_undo(self) -> bool:
        return bool(self._undo_stack)

    def can_redo(self) -> bool:
        return bool(self._redo_stack)

    def get_undo_count(self) -> int:
        return len(self._undo_stack)

    def get_redo_count(self) -> int:
        return len(self._redo_stack)

    def get_undo_description(self) -> Optional[str]:
        return self._undo_stack[-1].get_description() if self._undo_stack else None

    def get_redo_description(self) -> Optional[str]:
        return self._redo_stack[-1].get_description() if self._redo_stack else None

    def history(self) -> list[str]:
        """Descriptions of the undoable edits, oldest first."""
        return [command.get_description() for command in self._undo_stack]

    def clear(self) -> None:
        """Forget all edits (after loading or clearing a circuit)."""
        self._undo_stack.clear()
        self._redo_stack.clear()
