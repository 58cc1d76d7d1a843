"""
NodeData - Pure Python data model for electrical nodes.

An electrical node is the set of component pins that are electrically
the same point. Nodes live in an arena keyed by integer id (see
CircuitModel); pins refer to them by id, never by object reference.
"""

from dataclasses import dataclass, field


def _generate_label(index: int) -> str:
    """
    Generate label like nodeA, nodeB, ..., nodeZ, nodeAA, nodeAB...

    Args:
        index: Zero-based index for the node.

    Returns:
        A string label like "nodeA", "nodeB", etc.
    """
    if index < 26:
        return "node" + chr(ord('A') + index)
    else:
        first = (index // 26) - 1
        second = index % 26
        return "node" + chr(ord('A') + first) + chr(ord('A') + second)


@dataclass
class NodeData:
    """
    An equivalence class of pins sharing one voltage.

    The membership list keeps connection order and is never empty while
    the node exists in a CircuitModel.
    """
    node_id: int

    # Ordered (component_id, pin_index) memberships
    connections: list[tuple[str, int]] = field(default_factory=list)

    # Solved every tick; zero until the first solve
    voltage: float = 0.0

    # Set by the simulation when this node was the reference of the last solve
    is_reference: bool = False

    def get_label(self) -> str:
        """Display label derived from the node id (node 0 -> nodeA)."""
        return _generate_label(self.node_id)

    def add_connection(self, component_id: str, pin_index: int) -> None:
        """Add a membership unless it is already present."""
        membership = (component_id, pin_index)
        if membership not in self.connections:
            self.connections.append(membership)

    def remove_connection(self, component_id: str, pin_index: int) -> None:
        """Remove a membership if present."""
        membership = (component_id, pin_index)
        if membership in self.connections:
            self.connections.remove(membership)

    def has_component(self, component_id: str) -> bool:
        return any(comp_id == component_id for comp_id, _ in self.connections)

    def is_empty(self) -> bool:
        return len(self.connections) == 0

    def __repr__(self) -> str:
        return f"NodeData({self.get_label()}, id={self.node_id}, connections={self.connections}, v={self.voltage:.4g})"
