"""
WireData - Pure Python data model for displayed wires.

Wires are output of the topology, not input: they are rebuilt from node
memberships after every connect/disconnect and carry a derived current
for display. They have no effect on the solve.
"""

from dataclasses import dataclass


def make_wire_id(start: tuple[str, int], end: tuple[str, int]) -> str:
    """Stable wire id built from its two pin memberships."""
    return f"{start[0]}:{start[1]}-{end[0]}:{end[1]}"


@dataclass
class WireData:
    """
    A wire between two pin memberships of the same node.

    ``current`` is signed: positive means current flows from the start
    pin toward the end pin.
    """

    node_id: int
    start_component_id: str
    start_pin: int
    end_component_id: str
    end_pin: int
    current: float = 0.0

    @property
    def wire_id(self) -> str:
        return make_wire_id(self.start, self.end)

    @property
    def start(self) -> tuple[str, int]:
        return (self.start_component_id, self.start_pin)

    @property
    def end(self) -> tuple[str, int]:
        return (self.end_component_id, self.end_pin)

    def connects_component(self, component_id: str) -> bool:
        """Check if this wire touches the given component."""
        return self.start_component_id == component_id or self.end_component_id == component_id

    def connects_pin(self, component_id: str, pin: int) -> bool:
        """Check if this wire touches the given pin."""
        return self.start == (component_id, pin) or self.end == (component_id, pin)

    def to_dict(self) -> dict:
        return {
            "id": self.wire_id,
            "node": self.node_id,
            "start": [self.start_component_id, self.start_pin],
            "end": [self.end_component_id, self.end_pin],
            "current": self.current,
        }

    def __repr__(self) -> str:
        return (
            f"WireData({self.start_component_id}[{self.start_pin}] -> "
            f"{self.end_component_id}[{self.end_pin}], I={self.current:.4g})"
        )
