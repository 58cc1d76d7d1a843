"""
simulation/devices.py

Device models for every component type.

Each type provides the same contract, resolved by a single dispatch on
``component_type``:

- ``stamp(component, time_step, options)``: the linearized conductance
  block and current vector of the device at its present operating point,
  plus the node id of each local index. A device with any floating pin
  returns an empty stamp.
- ``update_state(component, pin_voltages, time_step, options)``: recompute
  the device current and derived properties from solved pin voltages, for
  display and for the next tick's stamp.

Nonlinear devices (LED, diode) are linearized at the previous tick's bias
region; there is no iteration within a tick.
"""

import logging
from typing import NamedTuple, Optional

import numpy as np

from models.component import DERIVED_PROPERTIES, ComponentData

from .options import EngineOptions

logger = logging.getLogger(__name__)


class DeviceStamp(NamedTuple):
    """Device contribution to the nodal equations.

    Attributes:
        conductance: Local conductance block, shape (k, k)
        current: Local current injections, shape (k,)
        node_ids: Node id of each local index (may repeat for a shorted device)
    """
    conductance: np.ndarray
    current: np.ndarray
    node_ids: tuple[int, ...]

    @property
    def is_empty(self) -> bool:
        return len(self.node_ids) == 0


def empty_stamp() -> DeviceStamp:
    return DeviceStamp(np.zeros((0, 0)), np.zeros(0), ())


def two_terminal_stamp(conductance: float, injected: float, node_ids: tuple[int, int]) -> DeviceStamp:
    """Generic two-terminal stamp.

    Args:
        conductance: Conductance between the two pins (S)
        injected: Constant current injected into the first pin's node (A);
            the same current is drawn from the second pin's node
        node_ids: Node ids of the first and second pin
    """
    g = conductance
    return DeviceStamp(
        conductance=np.array([[g, -g], [-g, g]], dtype=float),
        current=np.array([injected, -injected], dtype=float),
        node_ids=node_ids,
    )


# --- Stamping ---

def stamp(component: ComponentData, time_step: float, options: EngineOptions) -> DeviceStamp:
    """Return the device's contribution at the present operating point."""
    if not component.is_fully_connected():
        return empty_stamp()

    ctype = component.component_type
    props = component.properties

    if ctype == "Ground":
        return empty_stamp()

    nodes = (component.pins[0].node_id, component.pins[1].node_id)

    if ctype == "Voltage Source":
        # Penalty method: Norton equivalent with a tiny internal resistance
        g = options.source_conductance
        return two_terminal_stamp(g, g * props["voltage"], nodes)

    if ctype == "Resistor":
        return two_terminal_stamp(1.0 / props["resistance"], 0.0, nodes)

    if ctype == "Switch":
        return two_terminal_stamp(_switch_conductance(props, options), 0.0, nodes)

    if ctype in ("LED", "Diode"):
        if props["forward_biased"]:
            g = 1.0 / options.diode_forward_resistance
            return two_terminal_stamp(g, g * props["forward_voltage"], nodes)
        return two_terminal_stamp(1.0 / options.diode_reverse_resistance, 0.0, nodes)

    if ctype == "Capacitor":
        if time_step <= 0:
            # Zero-length step: the capacitor holds its voltage
            g = options.source_conductance
        else:
            g = props["capacitance"] / time_step
        return two_terminal_stamp(g, g * props["voltage"], nodes)

    logger.warning("No device model for %s (%s); excluded from the solve", component.component_id, ctype)
    return empty_stamp()


def _switch_conductance(props: dict, options: EngineOptions) -> float:
    if props["closed"]:
        return options.switch_closed_conductance
    return options.switch_open_conductance


# --- State update ---

def update_state(component: ComponentData, pin_voltages: list[Optional[float]],
                 time_step: float, options: EngineOptions) -> None:
    """Recompute current and derived properties from solved pin voltages."""
    ctype = component.component_type
    props = component.properties

    if ctype == "Ground":
        return

    if any(v is None for v in pin_voltages):
        _mark_idle(component)
        return

    v_drop = pin_voltages[0] - pin_voltages[1]

    if ctype == "Voltage Source":
        # Discrepancy between commanded and realized voltage over the internal resistance
        props["current"] = (props["voltage"] - v_drop) / options.source_resistance

    elif ctype == "Resistor":
        props["current"] = v_drop / props["resistance"]

    elif ctype == "Switch":
        props["current"] = v_drop * _switch_conductance(props, options)

    elif ctype in ("LED", "Diode"):
        forward_voltage = props["forward_voltage"]
        props["voltage_drop"] = v_drop
        props["forward_biased"] = v_drop >= forward_voltage
        if props["forward_biased"]:
            props["current"] = (v_drop - forward_voltage) / options.diode_forward_resistance
        else:
            props["current"] = v_drop / options.diode_reverse_resistance
        if ctype == "LED":
            props["brightness"] = _led_brightness(props, options)

    elif ctype == "Capacitor":
        if time_step > 0:
            g = props["capacitance"] / time_step
        else:
            g = options.source_conductance
        props["current"] = g * (v_drop - props["voltage"])
        props["voltage"] = v_drop
        props["charge"] = props["capacitance"] * v_drop
        props["charge_percent"] = _charge_percent(props)


def _led_brightness(props: dict, options: EngineOptions) -> float:
    """Brightness proportional to forward current, limited to the headroom."""
    if not props["forward_biased"] or props["current"] <= 0:
        return 0.0
    relative = min(props["current"] / props["forward_current"], options.brightness_headroom)
    return relative * props["emission_intensity"]


def _charge_percent(props: dict) -> float:
    percent = 100.0 * abs(props["voltage"]) / props["voltage_rating"]
    return min(max(percent, 0.0), 100.0)


def _mark_idle(component: ComponentData) -> None:
    """A device that is not fully wired carries no current."""
    props = component.properties
    props["current"] = 0.0
    if component.component_type in ("LED", "Diode"):
        props["voltage_drop"] = 0.0
        props["forward_biased"] = False
    if component.component_type == "LED":
        props["brightness"] = 0.0


def reset_state(component: ComponentData) -> None:
    """Restore engine-owned properties to their initial values (discharges capacitors)."""
    component.properties.update(DERIVED_PROPERTIES.get(component.component_type, {}))


# --- Outputs ---

def pin_currents(component: ComponentData) -> list[float]:
    """
    Current leaving the device through each pin into that pin's node (A).

    Sums to zero over the pins of every device.
    """
    ctype = component.component_type
    if ctype == "Ground" or not component.is_fully_connected():
        return [0.0] * component.get_pin_count()

    current = component.properties.get("current", 0.0)
    if ctype == "Voltage Source":
        # Sources push current out of the positive pin
        return [current, -current]
    # Passive devices conduct from pin 0 to pin 1 internally
    return [-current, current]


def visual_properties(component: ComponentData) -> dict:
    """Derived values for rendering, with brightness capped to [0, 1]."""
    ctype = component.component_type
    props = component.properties
    visual = {"current": props.get("current", 0.0)}
    if ctype == "LED":
        visual["brightness"] = min(max(props["brightness"], 0.0), 1.0)
        visual["color"] = props["color"]
    elif ctype == "Switch":
        visual["closed"] = props["closed"]
    elif ctype == "Capacitor":
        visual["charge_percent"] = props["charge_percent"]
    return visual
