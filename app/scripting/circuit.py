"""
Circuit: high-level scripting API for the circuit engine.

No GUI dependency. Wraps the model, controller and simulation layers
behind one object: every edit is undoable, every tick returns a
SimulationState snapshot.
"""

import logging
from pathlib import Path
from typing import Any, Optional, Union

from controllers.circuit_controller import CircuitController
from controllers.commands import (
    AddComponentCommand,
    ConnectCommand,
    DisconnectCommand,
    MoveComponentCommand,
    RemoveComponentCommand,
    RotateComponentCommand,
    SetPropertyCommand,
)
from controllers.file_controller import FileController
from controllers.simulation_controller import SimulationController, SimulationStatus
from controllers.undo_manager import UndoManager
from models.circuit import CircuitModel
from models.component import COMPONENT_TYPES, ComponentData, PinRef
from models.node import NodeData
from models.state import SimulationState
from simulation.circuit_validator import validate_circuit
from simulation.devices import visual_properties
from simulation.options import EngineOptions
from simulation.trace import TraceRecorder

logger = logging.getLogger(__name__)


class Circuit:
    """A circuit that can be built, simulated, and saved programmatically.

    Pins are referenced as ``(component_id, pin)`` where ``pin`` is a
    0-based index or a pin name (``("V1", "positive")``, ``("R1", 0)``).

    Args:
        options: Engine tunables. Defaults to EngineOptions().
        model: An existing CircuitModel to wrap. If None, creates an empty circuit.
    """

    def __init__(self, options: Optional[EngineOptions] = None,
                 model: Optional[CircuitModel] = None):
        self._model = model or CircuitModel()
        self._controller = CircuitController(self._model)
        self._sim = SimulationController(self._model, options)
        self._files = FileController(self._model, self._sim)
        self._undo = UndoManager()

    # --- Factory methods ---

    @classmethod
    def load(cls, path: Union[str, Path], options: Optional[EngineOptions] = None) -> "Circuit":
        """Load a circuit from a JSON file.

        Raises:
            FileNotFoundError: If the file does not exist.
            json.JSONDecodeError: If the file is not valid JSON.
            ValueError: If the JSON structure is invalid.
        """
        circuit = cls(options)
        circuit._files.load_circuit(path)
        return circuit

    # --- Component operations ---

    def add_component(
        self,
        component_type: str,
        position: tuple[float, float] = (0.0, 0.0),
        properties: Optional[dict] = None,
        rotation: int = 0,
    ) -> str:
        """Add a component to the circuit. Its pins start floating.

        Args:
            component_type: One of ``Circuit.component_types`` (lenient
                spellings such as "battery" or "led" are accepted).
            position: (x, y) position on the canvas.
            properties: Initial user-settable properties, e.g.
                ``{"resistance": "4.7k"}``.
            rotation: Rotation in degrees (0, 90, 180, 270).

        Returns:
            The generated component ID (e.g. "R1", "V1", "LED1").

        Raises:
            UnknownComponentTypeError: If the type is not recognized.
            InvalidPropertyError: If a property is invalid for the type.
        """
        command = AddComponentCommand(self._controller, component_type, position, properties, rotation)
        self._undo.execute(command)
        return command.component_id

    def remove_component(self, component_id: str) -> bool:
        """Disconnect and remove a component. Unknown ids are a no-op.

        Returns:
            True if a component was removed.
        """
        if component_id not in self._model.components:
            logger.debug("remove_component(%r): no such component", component_id)
            return False
        self._undo.execute(RemoveComponentCommand(self._controller, component_id))
        return True

    def set_property(self, component_id: str, key: str, value: Any) -> None:
        """Change a user-settable property (resistance, voltage, closed, ...).

        Raises:
            UnknownComponentError: If the component does not exist.
            InvalidPropertyError: If the key or value is invalid for the type.
        """
        self._undo.execute(SetPropertyCommand(self._controller, component_id, key, value))

    def toggle_switch(self, component_id: str) -> bool:
        """Open a closed switch or close an open one. Returns the new state."""
        component = self._controller.get_component(component_id)
        closed = not component.properties.get("closed", False)
        self.set_property(component_id, "closed", closed)
        return closed

    def move_component(self, component_id: str, position: tuple[float, float]) -> None:
        self._undo.execute(MoveComponentCommand(self._controller, component_id, position))

    def rotate_component(self, component_id: str, clockwise: bool = True) -> None:
        self._undo.execute(RotateComponentCommand(self._controller, component_id, clockwise))

    # --- Connection operations ---

    def connect(self, first: PinRef, second: PinRef) -> Optional[int]:
        """Wire two pins together.

        Returns:
            The id of the node both pins now belong to.

        Raises:
            UnknownComponentError: If either component does not exist.
            InvalidPinError: If either pin does not exist.
        """
        command = ConnectCommand(self._controller, first, second)
        self._undo.execute(command)
        return command.node_id

    def disconnect(self, pin_ref: PinRef) -> None:
        """Remove a pin from its node."""
        self._undo.execute(DisconnectCommand(self._controller, pin_ref))

    # --- Undo / redo ---

    def undo(self) -> bool:
        return self._undo.undo()

    def redo(self) -> bool:
        return self._undo.redo()

    def can_undo(self) -> bool:
        return self._undo.can_undo()

    def can_redo(self) -> bool:
        return self._undo.can_redo()

    @property
    def history(self) -> list[str]:
        """Undoable edits, oldest first (e.g. ["Add R1", "Add R2", "Remove R1"])."""
        return self._undo.history()

    # --- Simulation clock ---

    def start(self) -> None:
        self._sim.start()

    def stop(self) -> None:
        self._sim.stop()

    def reset(self) -> None:
        """Zero voltages, currents, device state and time. Keeps the run state."""
        self._sim.reset()

    def set_speed(self, factor: float) -> float:
        """Set the speed factor (clamped to [0.1, 10]). Returns the applied value."""
        return self._sim.set_speed(factor)

    def tick(self, wall_delta: Optional[float] = None) -> SimulationState:
        """Advance one tick if running; see SimulationController.tick()."""
        return self._sim.tick(wall_delta)

    def step(self, time_step: Optional[float] = None) -> SimulationState:
        """Solve one tick regardless of the run state."""
        return self._sim.step(time_step)

    def run_for(self, duration: float, time_step: Optional[float] = None) -> SimulationState:
        return self._sim.run_for(duration, time_step)

    def get_state(self) -> SimulationState:
        """Snapshot reflecting the most recently completed tick."""
        return self._sim.get_state()

    def enable_trace(self) -> TraceRecorder:
        """Record every subsequent tick; returns the recorder."""
        if self._sim.recorder is None:
            self._sim.recorder = TraceRecorder()
        return self._sim.recorder

    # --- Queries ---

    def validate(self) -> tuple[bool, list[str], list[str]]:
        """Check the circuit without simulating. Returns (is_valid, errors, warnings)."""
        return validate_circuit(self._model)

    def pin_voltage(self, pin_ref: PinRef) -> Optional[float]:
        """Solved voltage at a pin, or None when the pin is floating."""
        node = self._model.node_of(self._controller.resolve_pin(pin_ref))
        return None if node is None else node.voltage

    def current(self, component_id: str) -> float:
        """Current through a component from its last solved tick (A)."""
        return self._controller.get_component(component_id).properties.get("current", 0.0)

    def visual_state(self, component_id: str) -> dict:
        """Display values for a component (brightness capped to [0, 1])."""
        return visual_properties(self._controller.get_component(component_id))

    # --- Persistence ---

    def save(self, path: Union[str, Path]) -> None:
        """Save the circuit (structure, properties and speed) to a JSON file."""
        self._files.save_circuit(path)

    def to_dict(self) -> dict:
        return self._files.to_document()

    # --- Properties ---

    @property
    def components(self) -> dict[str, ComponentData]:
        """All components in the circuit, keyed by ID."""
        return self._model.components

    @property
    def nodes(self) -> dict[int, NodeData]:
        return self._model.nodes

    @property
    def wires(self) -> list:
        return self._model.wires

    @property
    def status(self) -> SimulationStatus:
        return self._sim.status

    @property
    def is_running(self) -> bool:
        return self._sim.is_running

    @property
    def elapsed_time(self) -> float:
        return self._sim.elapsed_time

    @property
    def speed(self) -> float:
        return self._sim.speed

    @property
    def options(self) -> EngineOptions:
        return self._sim.options

    @property
    def model(self) -> CircuitModel:
        """Direct access to the underlying CircuitModel."""
        return self._model

    @property
    def component_types(self) -> list[str]:
        """List of all supported component types."""
        return list(COMPONENT_TYPES)
