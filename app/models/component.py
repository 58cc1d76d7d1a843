"""
ComponentData - Pure Python data model for circuit components.

All positions are represented as tuples (x, y). Position, rotation and
flips only matter to rendering; the solver only looks at pins, their
node references and the property bag.

Component types use display names as canonical identifiers:
'Voltage Source', 'Resistor', 'Switch', 'LED', 'Diode', 'Capacitor', 'Ground'
"""

import math
from dataclasses import dataclass, field
from typing import Optional, Union

from .errors import InvalidPinError, InvalidPropertyError, UnknownComponentTypeError
from .units import parse_value

COMPONENT_TYPES = [
    "Voltage Source",
    "Resistor",
    "Switch",
    "LED",
    "Diode",
    "Capacitor",
    "Ground",
]

# Prefix used when generating component ids (V1, R1, LED1...)
ID_PREFIXES = {
    "Voltage Source": "V",
    "Resistor": "R",
    "Switch": "S",
    "LED": "LED",
    "Diode": "D",
    "Capacitor": "C",
    "Ground": "GND",
}

# Ordered pin names per component type; the index is the pin index
PIN_NAMES = {
    "Voltage Source": ["positive", "negative"],
    "Resistor": ["p1", "p2"],
    "Switch": ["p1", "p2"],
    "LED": ["anode", "cathode"],
    "Diode": ["anode", "cathode"],
    "Capacitor": ["positive", "negative"],
    "Ground": ["gnd"],
}

# Local pin positions relative to the component center (before rotation)
TERMINAL_GEOMETRY = {
    "Voltage Source": [(0.0, -40.0), (0.0, 40.0)],
    "Resistor": [(-40.0, 0.0), (40.0, 0.0)],
    "Switch": [(-40.0, 0.0), (40.0, 0.0)],
    "LED": [(-30.0, 0.0), (30.0, 0.0)],
    "Diode": [(-30.0, 0.0), (30.0, 0.0)],
    "Capacitor": [(-20.0, 0.0), (20.0, 0.0)],
    "Ground": [(0.0, -10.0)],
}

# User-settable properties and their defaults
DEFAULT_PROPERTIES = {
    "Voltage Source": {"voltage": 5.0},
    "Resistor": {"resistance": 1000.0},
    "Switch": {"closed": False},
    "LED": {
        "forward_voltage": 1.7,
        "forward_current": 0.020,
        "emission_intensity": 1.0,
        "color": "red",
    },
    "Diode": {"forward_voltage": 0.7},
    "Capacitor": {"capacitance": 100e-6, "voltage_rating": 5.0},
    "Ground": {},
}

# Engine-owned properties, recomputed every tick and zeroed on reset
DERIVED_PROPERTIES = {
    "Voltage Source": {"current": 0.0},
    "Resistor": {"current": 0.0},
    "Switch": {"current": 0.0},
    "LED": {"current": 0.0, "voltage_drop": 0.0, "forward_biased": False, "brightness": 0.0},
    "Diode": {"current": 0.0, "voltage_drop": 0.0, "forward_biased": False},
    "Capacitor": {"voltage": 0.0, "current": 0.0, "charge": 0.0, "charge_percent": 0.0},
    "Ground": {},
}

# Value kind per user-settable property, used by coerce_property()
PROPERTY_KINDS = {
    "voltage": "float",
    "resistance": "positive",
    "closed": "bool",
    "forward_voltage": "nonnegative",
    "forward_current": "positive",
    "emission_intensity": "nonnegative",
    "color": "str",
    "capacitance": "positive",
    "voltage_rating": "positive",
}

# Lenient spellings accepted for component types
_TYPE_ALIASES = {
    "battery": "Voltage Source",
    "dcvoltagesource": "Voltage Source",
    "voltagesource": "Voltage Source",
    "voltage source": "Voltage Source",
    "resistor": "Resistor",
    "switch": "Switch",
    "led": "LED",
    "diode": "Diode",
    "capacitor": "Capacitor",
    "ground": "Ground",
    "gnd": "Ground",
}

_TRUE_STRINGS = {"true", "on", "closed", "1"}
_FALSE_STRINGS = {"false", "off", "open", "0"}

PinRef = tuple[str, Union[int, str]]


def normalize_component_type(component_type: str) -> str:
    """Return the canonical display name for a component type.

    Raises:
        UnknownComponentTypeError: If the name is not in the catalogue.
    """
    if component_type in COMPONENT_TYPES:
        return component_type
    if isinstance(component_type, str):
        canonical = _TYPE_ALIASES.get(component_type.strip().lower())
        if canonical is not None:
            return canonical
    raise UnknownComponentTypeError(
        f"Unknown component type '{component_type}'. "
        f"Supported types: {', '.join(COMPONENT_TYPES)}."
    )


def coerce_property(component_type: str, key: str, value):
    """
    Validate and convert a user-supplied property value for a component type.

    Numeric properties accept numbers or SI strings ("4.7k", "100u").

    Returns:
        The converted value.

    Raises:
        InvalidPropertyError: If the key is unknown, engine-owned, or the value is invalid.
    """
    allowed = DEFAULT_PROPERTIES.get(component_type, {})
    if key not in allowed:
        if key in DERIVED_PROPERTIES.get(component_type, {}):
            raise InvalidPropertyError(
                f"'{key}' is computed by the simulation and cannot be set on a {component_type}."
            )
        raise InvalidPropertyError(f"{component_type} has no property '{key}'.")

    kind = PROPERTY_KINDS[key]

    if kind == "bool":
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in _TRUE_STRINGS:
                return True
            if lowered in _FALSE_STRINGS:
                return False
        raise InvalidPropertyError(f"{component_type} property '{key}' must be true or false (got {value!r}).")

    if kind == "str":
        if not isinstance(value, str) or not value.strip():
            raise InvalidPropertyError(f"{component_type} property '{key}' must be a non-empty string.")
        return value.strip()

    try:
        number = parse_value(value)
    except ValueError:
        raise InvalidPropertyError(
            f"Invalid value {value!r} for {component_type} '{key}'. "
            f"Use a number with optional suffix (e.g. 10k, 100u, 4.7M)."
        ) from None

    if not math.isfinite(number):
        raise InvalidPropertyError(f"{component_type} property '{key}' must be finite (got {value!r}).")
    if kind == "positive" and number <= 0:
        raise InvalidPropertyError(f"{component_type} property '{key}' must be positive (got {value!r}).")
    if kind == "nonnegative" and number < 0:
        raise InvalidPropertyError(f"{component_type} property '{key}' cannot be negative (got {value!r}).")
    return number


@dataclass
class PinData:
    """A component pin: a local position and an optional reference to the node it is wired into."""

    name: str
    position: tuple[float, float]
    node_id: Optional[int] = None

    @property
    def is_floating(self) -> bool:
        return self.node_id is None


@dataclass
class ComponentData:
    """
    Pure Python data class representing a circuit component.

    Identity and pin count never change after creation; the property bag
    holds both user-settable values and engine-owned derived values.
    """

    component_id: str
    component_type: str
    position: tuple[float, float] = (0.0, 0.0)
    rotation: int = 0  # degrees: 0, 90, 180, 270
    flip_h: bool = False
    flip_v: bool = False
    properties: dict = field(default_factory=dict)
    pins: list[PinData] = field(default_factory=list)

    def __post_init__(self):
        """Fill in default properties and create the fixed pin array."""
        merged = dict(DEFAULT_PROPERTIES.get(self.component_type, {}))
        merged.update(DERIVED_PROPERTIES.get(self.component_type, {}))
        merged.update(self.properties)
        self.properties = merged

        if not self.pins:
            names = PIN_NAMES.get(self.component_type, ["p1", "p2"])
            geometry = TERMINAL_GEOMETRY.get(self.component_type, [(-30.0, 0.0), (30.0, 0.0)])
            self.pins = [PinData(name=name, position=pos) for name, pos in zip(names, geometry)]

    def get_pin_count(self) -> int:
        return len(self.pins)

    def get_pin_index(self, pin: Union[int, str]) -> int:
        """
        Resolve a pin given by index or by name.

        Raises:
            InvalidPinError: If the pin does not exist on this component.
        """
        if isinstance(pin, bool):
            raise InvalidPinError(f"Invalid pin {pin!r} for {self.component_id}.")
        if isinstance(pin, int):
            if 0 <= pin < len(self.pins):
                return pin
        elif isinstance(pin, str):
            for index, candidate in enumerate(self.pins):
                if candidate.name == pin:
                    return index
        names = ", ".join(p.name for p in self.pins)
        raise InvalidPinError(f"{self.component_id} has no pin {pin!r} (pins: {names}).")

    def is_fully_connected(self) -> bool:
        """True when every pin is wired into a node."""
        return all(pin.node_id is not None for pin in self.pins)

    def node_ids(self) -> list[Optional[int]]:
        return [pin.node_id for pin in self.pins]

    def user_properties(self) -> dict:
        """Return only the user-settable properties."""
        keys = DEFAULT_PROPERTIES.get(self.component_type, {})
        return {key: self.properties[key] for key in keys if key in self.properties}

    def get_terminal_positions(self) -> list[tuple[float, float]]:
        """
        Return pin positions in world coordinates (after flip, rotation, and translation).
        """
        rad = math.radians(self.rotation)
        cos_a = math.cos(rad)
        sin_a = math.sin(rad)

        rotated = []
        for pin in self.pins:
            tx, ty = pin.position
            if self.flip_h:
                tx = -tx
            if self.flip_v:
                ty = -ty
            new_x = tx * cos_a - ty * sin_a
            new_y = tx * sin_a + ty * cos_a
            rotated.append((self.position[0] + new_x, self.position[1] + new_y))

        return rotated

    def to_dict(self) -> dict:
        """Serialize component to dictionary. Derived properties and wiring are not stored."""
        return {
            "id": self.component_id,
            "type": self.component_type,
            "pos": {"x": self.position[0], "y": self.position[1]},
            "rotation": self.rotation,
            "flip_h": self.flip_h,
            "flip_v": self.flip_v,
            "properties": self.user_properties(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ComponentData":
        """
        Deserialize component from dictionary.

        Accepts lenient type names (battery, led, ...) in the 'type' field.
        Properties are validated through coerce_property().
        """
        component_type = normalize_component_type(data["type"])
        properties = {
            key: coerce_property(component_type, key, value)
            for key, value in data.get("properties", {}).items()
        }
        return cls(
            component_id=data["id"],
            component_type=component_type,
            position=(data["pos"]["x"], data["pos"]["y"]),
            rotation=int(data.get("rotation", 0)) % 360,
            flip_h=data.get("flip_h", False),
            flip_v=data.get("flip_v", False),
            properties=properties,
        )

    def __repr__(self) -> str:
        return (
            f"ComponentData(id={self.component_id!r}, type={self.component_type!r}, "
            f"pins={self.node_ids()}, pos={self.position}, rot={self.rotation})"
        )
