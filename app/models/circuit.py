"""
CircuitModel - Central data store for circuit state.

Holds all circuit data (components, node arena, derived wires) and
provides the node graph operations: connect, disconnect, merge, and
the wire rebuild that follows every topology change.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from .component import ComponentData, PinData
from .errors import UnknownComponentError
from .node import NodeData
from .wire import WireData

logger = logging.getLogger(__name__)

Membership = tuple[str, int]


@dataclass
class CircuitModel:
    """
    Central data store holding all circuit state.

    Nodes live in an arena keyed by integer id. Pins store the id of
    their node (or None when floating); merging is a bulk re-pointing
    pass over the arena. Every public mutation leaves the topology
    consistent before returning.
    """

    components: dict[str, ComponentData] = field(default_factory=dict)
    nodes: dict[int, NodeData] = field(default_factory=dict)
    wires: list[WireData] = field(default_factory=list)
    component_counter: dict[str, int] = field(default_factory=dict)
    next_node_id: int = 0

    # --- Component operations ---

    def add_component(self, component: ComponentData) -> None:
        """Add a component to the circuit. Its pins start floating."""
        self.components[component.component_id] = component

    def remove_component(self, component_id: str) -> bool:
        """
        Disconnect every pin of a component, then remove it.

        Returns:
            True if the component existed, False otherwise (no-op).
        """
        component = self.components.get(component_id)
        if component is None:
            return False

        for pin_index, pin in enumerate(component.pins):
            if pin.node_id is not None:
                self._detach(component_id, pin_index)

        del self.components[component_id]
        self.rebuild_wires()
        return True

    def get_component(self, component_id: str) -> ComponentData:
        """
        Raises:
            UnknownComponentError: If no component has this id.
        """
        component = self.components.get(component_id)
        if component is None:
            raise UnknownComponentError(component_id)
        return component

    def get_pin(self, membership: Membership) -> PinData:
        component_id, pin_index = membership
        return self.get_component(component_id).pins[pin_index]

    def node_of(self, membership: Membership) -> Optional[NodeData]:
        """Return the node a pin is wired into, or None when floating."""
        node_id = self.get_pin(membership).node_id
        return None if node_id is None else self.nodes.get(node_id)

    # --- Node graph operations ---

    def connect_pins(self, first: Membership, second: Membership) -> Optional[int]:
        """
        Wire two pins together.

        - Neither pin in a node: create a node holding both.
        - One pin in a node: attach the other to it.
        - Pins in different nodes: merge the later-created node into the
          earlier one.
        - Pins already in the same node (or the same pin twice): no-op.

        Returns:
            The id of the node both pins now belong to, or None for a
            self-connection of a floating pin.
        """
        if first == second:
            return self.get_pin(first).node_id

        first_node = self.get_pin(first).node_id
        second_node = self.get_pin(second).node_id

        if first_node is not None and first_node == second_node:
            return first_node

        if first_node is None and second_node is None:
            node = self._create_node()
            self._attach(first, node.node_id)
            self._attach(second, node.node_id)
            result = node.node_id
        elif first_node is None:
            self._attach(first, second_node)
            result = second_node
        elif second_node is None:
            self._attach(second, first_node)
            result = first_node
        else:
            keep, absorb = sorted((first_node, second_node))
            self._merge_nodes(keep, absorb)
            result = keep

        logger.debug("Connected %s and %s into node %d", first, second, result)
        self.rebuild_wires()
        return result

    def disconnect_pin(self, membership: Membership) -> None:
        """
        Remove a pin's membership from its node.

        A node left with no memberships is deleted; a node left with one
        membership persists. Disconnecting a floating pin is a no-op.
        """
        if self.get_pin(membership).node_id is None:
            return
        self._detach(*membership)
        self.rebuild_wires()

    def _create_node(self) -> NodeData:
        node = NodeData(node_id=self.next_node_id)
        self.nodes[node.node_id] = node
        self.next_node_id += 1
        return node

    def _attach(self, membership: Membership, node_id: int) -> None:
        self.nodes[node_id].add_connection(*membership)
        self.get_pin(membership).node_id = node_id

    def _detach(self, component_id: str, pin_index: int) -> None:
        pin = self.components[component_id].pins[pin_index]
        node = self.nodes.get(pin.node_id)
        pin.node_id = None
        if node is None:
            return

        node.remove_connection(component_id, pin_index)
        if node.is_empty():
            del self.nodes[node.node_id]
            logger.debug("Deleted empty node %d", node.node_id)

    def _merge_nodes(self, keep_id: int, absorb_id: int) -> None:
        """Move every membership of node ``absorb_id`` into ``keep_id`` and delete it."""
        keep = self.nodes[keep_id]
        absorb = self.nodes.pop(absorb_id)
        for membership in absorb.connections:
            keep.add_connection(*membership)
            self.get_pin(membership).node_id = keep_id
        logger.debug("Merged node %d into node %d", absorb_id, keep_id)

    def rebuild_wires(self) -> None:
        """Rebuild one wire per pair of memberships within each node. Safe on an empty circuit."""
        wires = []
        for node_id in sorted(self.nodes):
            connections = self.nodes[node_id].connections
            for i in range(len(connections)):
                for j in range(i + 1, len(connections)):
                    start, end = connections[i], connections[j]
                    wires.append(
                        WireData(
                            node_id=node_id,
                            start_component_id=start[0],
                            start_pin=start[1],
                            end_component_id=end[0],
                            end_pin=end[1],
                        )
                    )
        self.wires = wires

    def topology_problems(self) -> list[str]:
        """
        Check the node graph invariants.

        Returns:
            A list of human-readable problems; empty when consistent.
        """
        problems = []
        seen: dict[Membership, int] = {}
        for node_id, node in self.nodes.items():
            if node.node_id != node_id:
                problems.append(f"node {node_id} is stored under the wrong key")
            if node.is_empty():
                problems.append(f"node {node_id} has no memberships")
            for membership in node.connections:
                if membership in seen:
                    problems.append(f"{membership} belongs to nodes {seen[membership]} and {node_id}")
                seen[membership] = node_id
                component = self.components.get(membership[0])
                if component is None:
                    problems.append(f"node {node_id} references missing component {membership[0]}")
                elif component.pins[membership[1]].node_id != node_id:
                    problems.append(f"{membership} is listed in node {node_id} but points elsewhere")

        for component_id, component in self.components.items():
            for pin_index, pin in enumerate(component.pins):
                if pin.node_id is not None and seen.get((component_id, pin_index)) != pin.node_id:
                    problems.append(f"({component_id!r}, {pin_index}) points at node {pin.node_id} without membership")
        return problems

    # --- Snapshots for undo ---

    def topology_snapshot(self) -> dict:
        """Capture node ids, memberships and pin references exactly."""
        return {
            "next_node_id": self.next_node_id,
            "nodes": {node_id: list(node.connections) for node_id, node in self.nodes.items()},
        }

    def restore_topology(self, snapshot: dict) -> None:
        """
        Restore a topology captured by topology_snapshot().

        Memberships that reference components no longer in the circuit
        are dropped; nodes left empty by that are not recreated.
        """
        for component in self.components.values():
            for pin in component.pins:
                pin.node_id = None

        self.nodes = {}
        for node_id, connections in sorted(snapshot["nodes"].items()):
            node = NodeData(node_id=node_id)
            for component_id, pin_index in connections:
                component = self.components.get(component_id)
                if component is None:
                    continue
                node.add_connection(component_id, pin_index)
                component.pins[pin_index].node_id = node_id
            if not node.is_empty():
                self.nodes[node_id] = node

        self.next_node_id = snapshot["next_node_id"]
        self.rebuild_wires()

    # --- Circuit operations ---

    def clear(self) -> None:
        """Clear all circuit data."""
        self.components.clear()
        self.nodes.clear()
        self.wires.clear()
        self.component_counter.clear()
        self.next_node_id = 0

    def connection_pairs(self) -> list[tuple[Membership, Membership]]:
        """
        Pairs that reproduce the node partition when replayed through connect_pins().

        Each node contributes (first membership, other membership) pairs.
        Single-membership nodes cannot be replayed and are omitted.
        """
        pairs = []
        for node_id in sorted(self.nodes):
            connections = self.nodes[node_id].connections
            for other in connections[1:]:
                pairs.append((connections[0], other))
        return pairs

    # --- Serialization ---

    def to_dict(self) -> dict:
        """Serialize circuit structure to a dictionary (no solved values)."""
        return {
            "components": [c.to_dict() for c in self.components.values()],
            "connections": [[list(a), list(b)] for a, b in self.connection_pairs()],
            "counters": self.component_counter.copy(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CircuitModel":
        """
        Deserialize circuit from dictionary.

        Rebuilds the node graph by replaying every connection.
        """
        model = cls()
        model.component_counter = dict(data.get("counters", {}))

        for comp_data in data.get("components", []):
            component = ComponentData.from_dict(comp_data)
            model.add_component(component)

        for first, second in data.get("connections", []):
            first_comp = model.get_component(first[0])
            second_comp = model.get_component(second[0])
            model.connect_pins(
                (first[0], first_comp.get_pin_index(first[1])),
                (second[0], second_comp.get_pin_index(second[1])),
            )

        model.rebuild_wires()
        return model
