"""
simulation/mna_builder.py

Assembles the nodal conductance matrix and current vector from the
device stamps of the live circuit.

One unknown per non-reference node, indexed in ascending node id. Device
stamps are scattered by node id and accumulated additively, so the
result does not depend on component insertion order beyond floating
point rounding.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from models.circuit import CircuitModel

from . import devices
from .options import EngineOptions

logger = logging.getLogger(__name__)


@dataclass
class MnaSystem:
    """Nodal equations ``matrix @ x = rhs`` for one tick."""

    matrix: np.ndarray
    rhs: np.ndarray
    node_ids: list[int] = field(default_factory=list)  # unknown index -> node id
    reference_node_id: Optional[int] = None

    @property
    def size(self) -> int:
        return len(self.node_ids)

    def index_of(self, node_id: int) -> Optional[int]:
        """Unknown index of a node, or None for the reference node."""
        try:
            return self.node_ids.index(node_id)
        except ValueError:
            return None


def ground_node_ids(model: CircuitModel) -> list[int]:
    """Sorted ids of every node holding a Ground pin."""
    grounded = set()
    for component in model.components.values():
        if component.component_type == "Ground" and component.pins[0].node_id is not None:
            grounded.add(component.pins[0].node_id)
    return sorted(grounded)


def choose_reference_node(model: CircuitModel) -> Optional[int]:
    """
    Pick the node held at 0 V.

    In order: the lowest-id node containing a Ground pin, the node of the
    negative pin of the first fully wired voltage source, the lowest node id.
    Returns None when the circuit has no nodes.
    """
    if not model.nodes:
        return None

    grounded = ground_node_ids(model)
    if grounded:
        return grounded[0]

    for component in model.components.values():
        if component.component_type == "Voltage Source" and component.is_fully_connected():
            return component.pins[1].node_id

    return min(model.nodes)


def build_system(model: CircuitModel, time_step: float, options: Optional[EngineOptions] = None) -> MnaSystem:
    """
    Build the nodal equations for the present operating point.

    Devices with a floating pin contribute nothing. Nodes holding a Ground
    pin other than the reference are tied to it through the source
    conductance.
    """
    options = options or EngineOptions()
    reference = choose_reference_node(model)
    node_ids = sorted(node_id for node_id in model.nodes if node_id != reference)
    index = {node_id: i for i, node_id in enumerate(node_ids)}

    size = len(node_ids)
    matrix = np.zeros((size, size))
    rhs = np.zeros(size)

    for component in model.components.values():
        stamp = devices.stamp(component, time_step, options)
        if stamp.is_empty:
            continue
        for i, row_node in enumerate(stamp.node_ids):
            row = index.get(row_node)
            if row is None:
                continue
            rhs[row] += stamp.current[i]
            for j, col_node in enumerate(stamp.node_ids):
                col = index.get(col_node)
                if col is not None:
                    matrix[row, col] += stamp.conductance[i, j]

    for node_id in ground_node_ids(model):
        row = index.get(node_id)
        if row is not None:
            matrix[row, row] += options.source_conductance

    logger.debug("Built %dx%d system, reference node %s", size, size, reference)
    return MnaSystem(matrix=matrix, rhs=rhs, node_ids=node_ids, reference_node_id=reference)
