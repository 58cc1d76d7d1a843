"""
Controllers for the circuit engine.

This package contains the classes that orchestrate operations on the
models: circuit edits, the simulation clock, undo/redo and file I/O.
"""

from .circuit_controller import CircuitController
from .file_controller import FileController, validate_circuit_data
from .simulation_controller import SimulationController, SimulationStatus
from .undo_manager import UndoManager

__all__ = [
    "CircuitController",
    "SimulationController",
    "SimulationStatus",
    "FileController",
    "UndoManager",
    "validate_circuit_data",
]
