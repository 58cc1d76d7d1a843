"""
Command Pattern Implementation for Undo/Redo.

Each command stores the minimal state needed to undo/redo an operation.
Commands are executed through the CircuitController to keep the model
consistent. Commands that change the node graph capture an exact
topology snapshot (node ids, memberships, pin references) and restore it
on undo, so undo never renumbers nodes.
"""

import copy
from abc import ABC, abstractmethod
from typing import Any, Optional

from models.component import ComponentData, PinRef


class Command(ABC):
    """Base class for undoable commands."""

    @abstractmethod
    def execute(self) -> None:
        """Execute the command (perform the action)."""
        pass

    @abstractmethod
    def undo(self) -> None:
        """Undo the command (reverse the action)."""
        pass

    def get_description(self) -> str:
        """Return a human-readable description of this command."""
        return self.__class__.__name__


class AddComponentCommand(Command):
    """Command to add a component to the circuit."""

    def __init__(self, controller, component_type: str,
                 position: tuple[float, float] = (0.0, 0.0),
                 properties: Optional[dict] = None, rotation: int = 0):
        self.controller = controller
        self.component_type = component_type
        self.position = position
        self.properties = dict(properties or {})
        self.rotation = rotation
        self.component_id: Optional[str] = None

    def execute(self) -> None:
        """Add the component; a redo reuses the id assigned the first time."""
        component = self.controller.add_component(
            self.component_type, self.position, self.properties,
            component_id=self.component_id, rotation=self.rotation,
        )
        self.component_id = component.component_id

    def undo(self) -> None:
        """Remove the added component."""
        if self.component_id:
            self.controller.remove_component(self.component_id)

    def get_description(self) -> str:
        return f"Add {self.component_id or self.component_type}"


class RemoveComponentCommand(Command):
    """Command to remove a component and all of its connections."""

    def __init__(self, controller, component_id: str):
        self.controller = controller
        self.component_id = component_id
        self.component_data: Optional[ComponentData] = None
        self.topology: Optional[dict] = None

    def execute(self) -> None:
        """Store the component and the topology, then remove it."""
        component = self.controller.model.components.get(self.component_id)
        if component is None:
            self.component_data = None
            return
        self.component_data = copy.deepcopy(component)
        self.topology = self.controller.model.topology_snapshot()
        self.controller.remove_component(self.component_id)

    def undo(self) -> None:
        """Re-insert the component and rewire it exactly as before."""
        if self.component_data is None:
            return
        self.controller.restore_component(copy.deepcopy(self.component_data))
        self.controller.model.restore_topology(self.topology)

    def get_description(self) -> str:
        return f"Remove {self.component_id}"


class TopologyCommand(Command):
    """Base for commands that change the node graph and undo by snapshot."""

    def __init__(self, controller):
        self.controller = controller
        self.topology: Optional[dict] = None

    def execute(self) -> None:
        self.topology = self.controller.model.topology_snapshot()
        self.apply()

    @abstractmethod
    def apply(self) -> None:
        """Perform the topology change."""
        pass

    def undo(self) -> None:
        if self.topology is not None:
            self.controller.model.restore_topology(self.topology)


class ConnectCommand(TopologyCommand):
    """Command to wire two pins together."""

    def __init__(self, controller, first: PinRef, second: PinRef):
        super().__init__(controller)
        self.first = first
        self.second = second
        self.node_id: Optional[int] = None

    def execute(self) -> None:
        # Validate before snapshotting so a rejected call records nothing
        self.controller.resolve_pin(self.first)
        self.controller.resolve_pin(self.second)
        super().execute()

    def apply(self) -> None:
        self.node_id = self.controller.connect(self.first, self.second)

    def get_description(self) -> str:
        return f"Connect {self.first[0]}.{self.first[1]} to {self.second[0]}.{self.second[1]}"


class DisconnectCommand(TopologyCommand):
    """Command to remove a pin from its node."""

    def __init__(self, controller, pin_ref: PinRef):
        super().__init__(controller)
        self.pin_ref = pin_ref

    def execute(self) -> None:
        self.controller.resolve_pin(self.pin_ref)
        super().execute()

    def apply(self) -> None:
        self.controller.disconnect(self.pin_ref)

    def get_description(self) -> str:
        return f"Disconnect {self.pin_ref[0]}.{self.pin_ref[1]}"


class SetPropertyCommand(Command):
    """Command to change a user-settable property."""

    def __init__(self, controller, component_id: str, key: str, value: Any):
        self.controller = controller
        self.component_id = component_id
        self.key = key
        self.value = value
        self.old_value: Any = None

    def execute(self) -> None:
        self.old_value = self.controller.set_property(self.component_id, self.key, self.value)

    def undo(self) -> None:
        self.controller.set_property(self.component_id, self.key, self.old_value)

    def get_description(self) -> str:
        return f"Set {self.component_id}.{self.key} = {self.value}"


class MoveComponentCommand(Command):
    """Command to move a component to a new position."""

    def __init__(
        self,
        controller,
        component_id: str,
        new_position: tuple[float, float],
        old_position: Optional[tuple[float, float]] = None,
    ):
        self.controller = controller
        self.component_id = component_id
        self.new_position = new_position
        self.old_position = old_position

    def execute(self) -> None:
        """Move the component and store the old position."""
        component = self.controller.get_component(self.component_id)
        if self.old_position is None:
            self.old_position = component.position
        self.controller.move_component(self.component_id, self.new_position)

    def undo(self) -> None:
        """Move the component back to its old position."""
        if self.old_position is not None:
            self.controller.move_component(self.component_id, self.old_position)

    def get_description(self) -> str:
        return f"Move {self.component_id}"


class RotateComponentCommand(Command):
    """Command to rotate a component by 90 degrees."""

    def __init__(self, controller, component_id: str, clockwise: bool = True):
        self.controller = controller
        self.component_id = component_id
        self.clockwise = clockwise

    def execute(self) -> None:
        self.controller.rotate_component(self.component_id, self.clockwise)

    def undo(self) -> None:
        self.controller.rotate_component(self.component_id, not self.clockwise)

    def get_description(self) -> str:
        direction = "clockwise" if self.clockwise else "counter-clockwise"
        return f"Rotate {self.component_id} {direction}"
