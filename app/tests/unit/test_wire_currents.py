"""Tests for per-wire current attribution (simulation/wire_currents.py)."""

import pytest
from controllers.simulation_controller import SimulationController
from models.circuit import CircuitModel
from models.component import ComponentData
from simulation.wire_currents import derive_wire_currents, node_current_imbalance


def _wire(model, wire_id):
    return next(w for w in model.wires if w.wire_id == wire_id)


def _star_model(pin_current_values):
    """Three resistors meeting at one node, with chosen device currents."""
    model = CircuitModel()
    for comp_id in ("R1", "R2", "R3"):
        model.add_component(ComponentData(component_id=comp_id, component_type="Resistor"))
    model.connect_pins(("R1", 1), ("R2", 0))
    model.connect_pins(("R1", 1), ("R3", 0))
    # Far ends share a second node so every device is fully wired
    model.connect_pins(("R1", 0), ("R2", 1))
    model.connect_pins(("R1", 0), ("R3", 1))
    for comp_id, current in pin_current_values.items():
        model.components[comp_id].properties["current"] = current
    return model


class TestDivider:
    def test_series_wires_carry_loop_current(self, divider_model):
        SimulationController(divider_model).step(0.01)
        assert _wire(divider_model, "V1:0-R1:0").current == pytest.approx(0.005, rel=1e-5)
        assert _wire(divider_model, "R1:1-R2:0").current == pytest.approx(0.005, rel=1e-5)
        assert _wire(divider_model, "R2:1-V1:1").current == pytest.approx(0.005, rel=1e-5)

    def test_kcl_at_every_node(self, divider_model):
        SimulationController(divider_model).step(0.01)
        for node_id in divider_model.nodes:
            assert node_current_imbalance(divider_model, node_id) == pytest.approx(0.0, abs=1e-7)


class TestStarNode:
    def test_flow_balances_each_membership(self):
        # R1 pushes 3 mA into the centre node, R2 and R3 draw 1 mA and 2 mA
        model = _star_model({"R1": 0.003, "R2": 0.001, "R3": 0.002})
        derive_wire_currents(model)

        injected = {("R1", 1): 0.003, ("R2", 0): -0.001, ("R3", 0): -0.002}
        for membership, current in injected.items():
            outflow = 0.0
            for wire in model.wires:
                if wire.node_id != 0:
                    continue
                if wire.start == membership:
                    outflow += wire.current
                elif wire.end == membership:
                    outflow -= wire.current
            assert outflow == pytest.approx(current)

    def test_pairwise_formula(self):
        model = _star_model({"R1": 0.003, "R2": 0.001, "R3": 0.002})
        derive_wire_currents(model)
        # (I_a - I_b) / n with n = 3
        assert _wire(model, "R1:1-R2:0").current == pytest.approx((0.003 + 0.001) / 3)
        assert _wire(model, "R2:0-R3:0").current == pytest.approx((-0.001 + 0.002) / 3)


class TestIdle:
    def test_floating_device_carries_nothing(self):
        model = CircuitModel()
        model.add_component(ComponentData(component_id="R1", component_type="Resistor"))
        model.add_component(ComponentData(component_id="R2", component_type="Resistor"))
        model.connect_pins(("R1", 1), ("R2", 0))
        model.components["R1"].properties["current"] = 1.0
        derive_wire_currents(model)
        assert model.wires[0].current == 0.0
