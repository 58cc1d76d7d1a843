"""
Error types raised at the circuit API boundary.

A simulation tick never raises for circuit content; these are only
raised synchronously to the caller when the public API is misused.
"""


class CircuitError(ValueError):
    """Base class for rejected circuit edits."""


class UnknownComponentError(CircuitError):
    """Raised when a component id does not exist in the circuit."""

    def __init__(self, component_id):
        super().__init__(f"Unknown component '{component_id}'.")
        self.component_id = component_id


class UnknownComponentTypeError(CircuitError):
    """Raised when a component type name is not in the catalogue."""


class InvalidPinError(CircuitError):
    """Raised when a pin reference does not name a pin of its component."""


class InvalidPropertyError(CircuitError):
    """Raised when a property key or value is not valid for a component type."""
