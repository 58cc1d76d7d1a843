"""
Shared test fixtures for the circuit engine test suite.

All fixtures build pure-Python model objects; nothing here needs a display.
"""

import sys
from pathlib import Path

# Ensure app/ is on sys.path so bare imports (models, simulation, controllers)
# work when running individual test files (e.g., python -m pytest app/tests/unit/test_foo.py).
_app_dir = str(Path(__file__).resolve().parent.parent)
if _app_dir not in sys.path:
    sys.path.insert(0, _app_dir)

import pytest
from controllers.circuit_controller import CircuitController
from controllers.simulation_controller import SimulationController
from models.circuit import CircuitModel
from scripting.circuit import Circuit


class FakeClock:
    """Manually advanced stand-in for time.perf_counter."""

    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def model():
    return CircuitModel()


@pytest.fixture
def controller(model):
    return CircuitController(model)


@pytest.fixture
def sim(model, fake_clock):
    return SimulationController(model, clock=fake_clock)


@pytest.fixture
def divider_model():
    """
    V1(10V)+ -- R1(1k) -- R2(1k) -- V1-

    Nodes: 0 (V1+, R1.p1), 1 (R1.p2, R2.p1), 2 (R2.p2, V1-)
    """
    ctrl = CircuitController()
    ctrl.add_component("Voltage Source", properties={"voltage": 10.0})
    ctrl.add_component("Resistor", properties={"resistance": 1000.0})
    ctrl.add_component("Resistor", properties={"resistance": 1000.0})
    ctrl.connect(("V1", "positive"), ("R1", "p1"))
    ctrl.connect(("R1", "p2"), ("R2", "p1"))
    ctrl.connect(("R2", "p2"), ("V1", "negative"))
    return ctrl.model


def build_led_circuit(voltage=9.0, resistance=330.0, with_switch=False):
    """
    Battery + resistor + LED in series, optionally with a switch.

    V1+ -- R1 -- [S1 --] LED1 -- V1-
    """
    circuit = Circuit()
    circuit.add_component("Voltage Source", properties={"voltage": voltage})
    circuit.add_component("Resistor", properties={"resistance": resistance})
    circuit.add_component("LED")
    circuit.connect(("V1", "positive"), ("R1", "p1"))
    if with_switch:
        circuit.add_component("Switch")
        circuit.connect(("R1", "p2"), ("S1", "p1"))
        circuit.connect(("S1", "p2"), ("LED1", "anode"))
    else:
        circuit.connect(("R1", "p2"), ("LED1", "anode"))
    circuit.connect(("LED1", "cathode"), ("V1", "negative"))
    return circuit


@pytest.fixture
def led_circuit_factory():
    return build_led_circuit


@pytest.fixture
def led_circuit():
    return build_led_circuit()


@pytest.fixture
def divider_circuit():
    """Circuit facade version of the 10V / 1k / 1k divider."""
    circuit = Circuit()
    circuit.add_component("Voltage Source", properties={"voltage": 10.0})
    circuit.add_component("Resistor", properties={"resistance": "1k"})
    circuit.add_component("Resistor", properties={"resistance": "1k"})
    circuit.connect(("V1", "positive"), ("R1", "p1"))
    circuit.connect(("R1", "p2"), ("R2", "p1"))
    circuit.connect(("R2", "p2"), ("V1", "negative"))
    return circuit
