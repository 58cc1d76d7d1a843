"""
simulation/wire_currents.py

Distributes each node's pin currents over the wires of that node.

A node with n memberships has a wire for every pair. The wire from
membership a to membership b carries ``(I_a - I_b) / n``, where I is the
current a device pushes into the node through that pin. When the pin
currents of a node sum to zero, the net wire outflow at each membership
equals the current its pin injects, so KCL holds at every pin.
"""

from models.circuit import CircuitModel

from . import devices


def derive_wire_currents(model: CircuitModel) -> None:
    """Set ``current`` on every wire of the model from the device currents."""
    pin_currents = {
        component_id: devices.pin_currents(component)
        for component_id, component in model.components.items()
    }

    for wire in model.wires:
        node = model.nodes.get(wire.node_id)
        if node is None or not node.connections:
            wire.current = 0.0
            continue
        start_current = pin_currents[wire.start_component_id][wire.start_pin]
        end_current = pin_currents[wire.end_component_id][wire.end_pin]
        wire.current = (start_current - end_current) / len(node.connections)


def node_current_imbalance(model: CircuitModel, node_id: int) -> float:
    """Sum of pin currents entering a node; zero up to solver precision."""
    total = 0.0
    for component_id, pin_index in model.nodes[node_id].connections:
        total += devices.pin_currents(model.components[component_id])[pin_index]
    return total
