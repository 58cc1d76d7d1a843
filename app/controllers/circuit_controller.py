"""
CircuitController - Orchestrates component and connection operations.

Every call validates its arguments, applies one mutation to the
CircuitModel, and leaves the topology consistent before returning.
Misuse (unknown id, bad pin, bad property) is logged and raised to the
caller; the model is left untouched in that case.
"""

import logging
from typing import Any, Optional

from models.circuit import CircuitModel
from models.component import (
    ID_PREFIXES,
    ComponentData,
    PinRef,
    coerce_property,
    normalize_component_type,
)
from models.errors import CircuitError, InvalidPropertyError

logger = logging.getLogger(__name__)


class CircuitController:
    """
    Controller for circuit component and connection operations.

    Views do not subscribe to changes; they read a SimulationState
    snapshot from the SimulationController after each tick.
    """

    def __init__(self, model: Optional[CircuitModel] = None):
        self.model = model or CircuitModel()

    # --- Component operations ---

    def add_component(self, component_type: str,
                      position: tuple[float, float] = (0.0, 0.0),
                      properties: Optional[dict] = None,
                      component_id: Optional[str] = None,
                      rotation: int = 0) -> ComponentData:
        """
        Create and add a new component to the circuit. Its pins start floating.

        Generates a unique ID from the type prefix and a counter (R1, R2,
        V1, ...) unless ``component_id`` is given.

        Returns:
            The newly created ComponentData.

        Raises:
            UnknownComponentTypeError: If the type is not in the catalogue.
            InvalidPropertyError: If a property key or value is invalid.
            CircuitError: If ``component_id`` is already in use.
        """
        try:
            component_type = normalize_component_type(component_type)
            coerced = {
                key: coerce_property(component_type, key, value)
                for key, value in (properties or {}).items()
            }
            if component_id is not None and component_id in self.model.components:
                raise CircuitError(f"Component id '{component_id}' is already in use.")
        except CircuitError as e:
            logger.warning("Rejected add_component(%r): %s", component_type, e)
            raise

        if component_id is None:
            component_id = self._next_component_id(component_type)

        component = ComponentData(
            component_id=component_id,
            component_type=component_type,
            position=(float(position[0]), float(position[1])),
            rotation=int(rotation) % 360,
            properties=coerced,
        )
        self.model.add_component(component)
        logger.debug("Added %s (%s)", component_id, component_type)
        return component

    def _next_component_id(self, component_type: str) -> str:
        prefix = ID_PREFIXES[component_type]
        count = self.model.component_counter.get(prefix, 0)
        while True:
            count += 1
            component_id = f"{prefix}{count}"
            if component_id not in self.model.components:
                break
        self.model.component_counter[prefix] = count
        return component_id

    def restore_component(self, component: ComponentData) -> None:
        """Re-insert a previously removed component (pins floating)."""
        for pin in component.pins:
            pin.node_id = None
        self.model.add_component(component)

    def remove_component(self, component_id: str) -> bool:
        """
        Disconnect every pin of a component, then remove it.

        Removing an unknown id is a no-op.

        Returns:
            True if a component was removed.
        """
        removed = self.model.remove_component(component_id)
        if removed:
            logger.debug("Removed %s", component_id)
        else:
            logger.debug("remove_component(%r): no such component", component_id)
        return removed

    def get_component(self, component_id: str) -> ComponentData:
        try:
            return self.model.get_component(component_id)
        except CircuitError as e:
            logger.warning("%s", e)
            raise

    def set_property(self, component_id: str, key: str, value: Any) -> Any:
        """
        Validate and apply a user-settable property.

        Returns:
            The previous value.

        Raises:
            UnknownComponentError: If the component does not exist.
            InvalidPropertyError: If the key or value is invalid for the type.
        """
        component = self.get_component(component_id)
        try:
            new_value = coerce_property(component.component_type, key, value)
        except CircuitError as e:
            logger.warning("Rejected set_property(%r, %r): %s", component_id, key, e)
            raise

        old_value = component.properties.get(key)
        component.properties[key] = new_value
        logger.debug("%s.%s: %r -> %r", component_id, key, old_value, new_value)
        return old_value

    def toggle_switch(self, component_id: str) -> bool:
        """
        Flip a switch between open and closed.

        Returns:
            The new ``closed`` value.
        """
        component = self.get_component(component_id)
        if component.component_type != "Switch":
            error = InvalidPropertyError(f"{component_id} is a {component.component_type}, not a Switch.")
            logger.warning("%s", error)
            raise error
        closed = not component.properties["closed"]
        self.set_property(component_id, "closed", closed)
        return closed

    def rotate_component(self, component_id: str, clockwise: bool = True) -> None:
        """Rotate a component 90 degrees."""
        component = self.get_component(component_id)
        delta = 90 if clockwise else -90
        component.rotation = (component.rotation + delta) % 360

    def flip_component(self, component_id: str, horizontal: bool = True) -> None:
        """Mirror a component horizontally or vertically."""
        component = self.get_component(component_id)
        if horizontal:
            component.flip_h = not component.flip_h
        else:
            component.flip_v = not component.flip_v

    def move_component(self, component_id: str,
                       position: tuple[float, float]) -> None:
        """Move a component to a new position."""
        component = self.get_component(component_id)
        component.position = (float(position[0]), float(position[1]))

    # --- Connection operations ---

    def resolve_pin(self, pin_ref: PinRef) -> tuple[str, int]:
        """
        Turn a (component_id, pin index or pin name) reference into a membership.

        Raises:
            UnknownComponentError: If the component does not exist.
            InvalidPinError: If the pin does not exist on the component.
        """
        component_id, pin = pin_ref
        component = self.get_component(component_id)
        try:
            return component_id, component.get_pin_index(pin)
        except CircuitError as e:
            logger.warning("%s", e)
            raise

    def connect(self, first: PinRef, second: PinRef) -> Optional[int]:
        """
        Wire two pins together, merging nodes as needed.

        Connecting pins that already share a node is a no-op.

        Returns:
            The id of the node both pins now belong to.
        """
        return self.model.connect_pins(self.resolve_pin(first), self.resolve_pin(second))

    def disconnect(self, pin_ref: PinRef) -> None:
        """Remove a pin from its node. Disconnecting a floating pin is a no-op."""
        membership = self.resolve_pin(pin_ref)
        self.model.disconnect_pin(membership)
        logger.debug("Disconnected %s", membership)

    # --- Circuit operations ---

    def clear_circuit(self) -> None:
        """Remove every component and node."""
        self.model.clear()
        logger.debug("Cleared circuit")
