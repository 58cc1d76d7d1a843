"""
Pure Python data models for the circuit engine.

This package contains the data classes that represent circuit elements
and the node graph. No numerics live here; see the simulation package.
"""

from .circuit import CircuitModel
from .component import (
    COMPONENT_TYPES,
    DEFAULT_PROPERTIES,
    DERIVED_PROPERTIES,
    ID_PREFIXES,
    PIN_NAMES,
    ComponentData,
    PinData,
    normalize_component_type,
)
from .errors import (
    CircuitError,
    InvalidPinError,
    InvalidPropertyError,
    UnknownComponentError,
    UnknownComponentTypeError,
)
from .node import NodeData
from .state import SimulationState
from .wire import WireData

__all__ = [
    "CircuitModel",
    "ComponentData",
    "PinData",
    "COMPONENT_TYPES",
    "DEFAULT_PROPERTIES",
    "DERIVED_PROPERTIES",
    "ID_PREFIXES",
    "PIN_NAMES",
    "normalize_component_type",
    "NodeData",
    "WireData",
    "SimulationState",
    "CircuitError",
    "InvalidPinError",
    "InvalidPropertyError",
    "UnknownComponentError",
    "UnknownComponentTypeError",
]
