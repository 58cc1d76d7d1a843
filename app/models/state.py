"""
SimulationState - Read-only snapshot handed to the rendering layer.

Snapshots hold copies of the circuit data, so later ticks or edits never
change a snapshot that has already been handed out.
"""

import copy
from dataclasses import dataclass
from typing import Optional

from .circuit import CircuitModel
from .component import ComponentData
from .node import NodeData
from .wire import WireData


@dataclass(frozen=True)
class SimulationState:
    """Components, nodes, wires, elapsed time and running flag after the last completed tick."""

    components: tuple[ComponentData, ...]
    nodes: tuple[NodeData, ...]
    wires: tuple[WireData, ...]
    time: float
    running: bool
    reference_node_id: Optional[int] = None

    @classmethod
    def capture(cls, model: CircuitModel, time: float, running: bool,
                reference_node_id: Optional[int] = None) -> "SimulationState":
        """Build a snapshot from the live model."""
        return cls(
            components=tuple(copy.deepcopy(list(model.components.values()))),
            nodes=tuple(copy.deepcopy([model.nodes[node_id] for node_id in sorted(model.nodes)])),
            wires=tuple(copy.deepcopy(model.wires)),
            time=time,
            running=running,
            reference_node_id=reference_node_id,
        )

    def component(self, component_id: str) -> Optional[ComponentData]:
        for comp in self.components:
            if comp.component_id == component_id:
                return comp
        return None

    def node(self, node_id: int) -> Optional[NodeData]:
        for node in self.nodes:
            if node.node_id == node_id:
                return node
        return None

    def node_voltages(self) -> dict[str, float]:
        """Node voltages keyed by node label."""
        return {node.get_label(): node.voltage for node in self.nodes}

    def pin_voltage(self, component_id: str, pin_index: int) -> Optional[float]:
        """Voltage at a pin, or None when the pin is floating."""
        comp = self.component(component_id)
        if comp is None:
            return None
        node_id = comp.pins[pin_index].node_id
        if node_id is None:
            return None
        node = self.node(node_id)
        return None if node is None else node.voltage

    def wire_currents(self) -> dict[str, float]:
        return {wire.wire_id: wire.current for wire in self.wires}

    def to_dict(self) -> dict:
        """Plain-data form for JSON output."""
        return {
            "time": self.time,
            "running": self.running,
            "reference_node": self.reference_node_id,
            "nodes": [
                {
                    "id": node.node_id,
                    "label": node.get_label(),
                    "voltage": node.voltage,
                    "connections": [list(c) for c in node.connections],
                }
                for node in self.nodes
            ],
            "wires": [wire.to_dict() for wire in self.wires],
            "components": [
                {
                    "id": comp.component_id,
                    "type": comp.component_type,
                    "pins": comp.node_ids(),
                    "pin_positions": [list(p) for p in comp.get_terminal_positions()],
                    "properties": dict(comp.properties),
                }
                for comp in self.components
            ],
        }
