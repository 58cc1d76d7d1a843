from .circuit_validator import validate_circuit
from .devices import DeviceStamp, pin_currents, reset_state, stamp, update_state, visual_properties
from .linear_solver import solve_linear_system
from .mna_builder import MnaSystem, build_system, choose_reference_node
from .options import EngineOptions, load_options
from .trace import TraceRecorder
from .wire_currents import derive_wire_currents

__all__ = [
    'DeviceStamp',
    'EngineOptions',
    'MnaSystem',
    'TraceRecorder',
    'build_system',
    'choose_reference_node',
    'derive_wire_currents',
    'load_options',
    'pin_currents',
    'reset_state',
    'solve_linear_system',
    'stamp',
    'update_state',
    'validate_circuit',
    'visual_properties',
]
