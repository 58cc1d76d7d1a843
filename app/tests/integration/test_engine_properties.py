"""
End-to-end behaviour of the engine through the Circuit facade.

Each test builds a small lesson circuit, runs the clock and checks the
solved values against hand calculations.
"""

import math

import pytest
from scripting import Circuit
from simulation.wire_currents import node_current_imbalance


def _partition(circuit):
    return {node_id: sorted(node.connections) for node_id, node in circuit.nodes.items()}


def _series_circuit(voltage=10.0, with_switch=True):
    """V1+ -- R1(1k) -- [S1 --] R2(1k) -- V1-"""
    circuit = Circuit()
    circuit.add_component("Voltage Source", properties={"voltage": voltage})
    circuit.add_component("Resistor", properties={"resistance": "1k"})
    circuit.add_component("Resistor", properties={"resistance": "1k"})
    circuit.connect(("V1", "positive"), ("R1", "p1"))
    if with_switch:
        circuit.add_component("Switch")
        circuit.connect(("R1", "p2"), ("S1", "p1"))
        circuit.connect(("S1", "p2"), ("R2", "p1"))
    else:
        circuit.connect(("R1", "p2"), ("R2", "p1"))
    circuit.connect(("R2", "p2"), ("V1", "negative"))
    return circuit


class TestOhmsLaw:
    @pytest.mark.parametrize("v, r1, r2", [
        (10.0, 1e3, 1e3), (9.0, 330.0, 1e3), (5.0, 4.7e3, 100.0), (-3.0, 1.0, 2.0),
        (5.0, 1e8, 1e8), (5.0, 1e8, 1e9), (5.0, 1e9, 1e9),
    ])
    def test_divider_after_one_tick(self, v, r1, r2):
        circuit = Circuit()
        circuit.add_component("Voltage Source", properties={"voltage": v})
        circuit.add_component("Resistor", properties={"resistance": r1})
        circuit.add_component("Resistor", properties={"resistance": r2})
        circuit.connect(("V1", "positive"), ("R1", 0))
        circuit.connect(("R1", 1), ("R2", 0))
        circuit.connect(("R2", 1), ("V1", "negative"))

        circuit.step()
        expected = v * r2 / (r1 + r2)
        assert circuit.pin_voltage(("R1", 1)) == pytest.approx(expected, rel=1e-4)
        assert circuit.current("R1") == pytest.approx(v / (r1 + r2), rel=1e-4)

    def test_grounded_divider(self, divider_circuit):
        divider_circuit.add_component("Ground")
        divider_circuit.connect(("GND1", 0), ("V1", "negative"))
        state = divider_circuit.step()
        assert state.pin_voltage("V1", 1) == 0.0
        assert state.pin_voltage("V1", 0) == pytest.approx(10.0, rel=1e-6)

    def test_kcl_holds_everywhere(self, led_circuit_factory):
        circuit = led_circuit_factory(with_switch=True)
        circuit.toggle_switch("S1")
        circuit.run_for(0.05, 0.01)
        for node_id in circuit.nodes:
            assert node_current_imbalance(circuit.model, node_id) == pytest.approx(0.0, abs=1e-6)


class TestLedThreshold:
    def test_lights_above_forward_voltage(self, led_circuit):
        led_circuit.run_for(0.05, 0.01)
        led = led_circuit.components["LED1"]
        # Steady state: (9 - 1.7) / (330 + 10)
        assert led.properties["current"] == pytest.approx(7.3 / 340.0, rel=1e-3)
        assert led.properties["brightness"] > 0
        assert led.properties["forward_biased"] is True

    def test_dark_below_forward_voltage(self, led_circuit_factory):
        circuit = led_circuit_factory(voltage=1.5)
        circuit.run_for(0.05, 0.01)
        led = circuit.components["LED1"]
        assert abs(led.properties["current"]) < 1e-5
        assert led.properties["brightness"] == 0.0
        assert circuit.visual_state("LED1")["brightness"] == 0.0

    def test_reverse_polarity_stays_dark(self):
        circuit = Circuit()
        circuit.add_component("Voltage Source", properties={"voltage": 9})
        circuit.add_component("Resistor", properties={"resistance": 330})
        circuit.add_component("LED")
        circuit.connect(("V1", "positive"), ("R1", 0))
        circuit.connect(("R1", 1), ("LED1", "cathode"))
        circuit.connect(("LED1", "anode"), ("V1", "negative"))
        circuit.run_for(0.05, 0.01)
        assert circuit.components["LED1"].properties["brightness"] == 0.0

    def test_overdriven_led_capped_for_display(self, led_circuit_factory):
        circuit = led_circuit_factory(voltage=20.0, resistance=100.0)
        circuit.run_for(0.05, 0.01)
        assert circuit.components["LED1"].properties["brightness"] > 1.0
        assert circuit.visual_state("LED1")["brightness"] == 1.0

    def test_bias_follows_previous_tick(self, led_circuit):
        # The first tick stamps the LED as reverse biased
        led_circuit.step(0.01)
        assert led_circuit.components["LED1"].properties["forward_biased"] is True
        first = led_circuit.current("LED1")
        led_circuit.step(0.01)
        assert led_circuit.current("LED1") != pytest.approx(first)


class TestSwitchGating:
    def test_open_switch_blocks_current(self):
        circuit = _series_circuit()
        circuit.run_for(0.03, 0.01)
        for comp_id in ("V1", "R1", "S1", "R2"):
            assert abs(circuit.current(comp_id)) < 1e-7

    def test_closing_restores_divider_current(self):
        circuit = _series_circuit()
        reference = _series_circuit(with_switch=False)
        circuit.run_for(0.03, 0.01)

        circuit.toggle_switch("S1")
        circuit.run_for(0.03, 0.01)
        reference.run_for(0.06, 0.01)

        assert circuit.current("R1") == pytest.approx(0.005, rel=1e-4)
        assert circuit.current("R1") == pytest.approx(reference.current("R1"), rel=1e-4)

    def test_toggle_while_running_applies_next_tick(self, led_circuit_factory):
        circuit = led_circuit_factory(with_switch=True)
        circuit.start()
        for _ in range(3):
            circuit.tick(0.01)
        assert circuit.components["LED1"].properties["brightness"] == 0.0

        circuit.toggle_switch("S1")
        # Not solved yet
        assert circuit.components["LED1"].properties["brightness"] == 0.0
        for _ in range(3):
            circuit.tick(0.01)
        assert circuit.components["LED1"].properties["brightness"] > 0.0


class TestTopology:
    def test_merge_idempotence(self):
        def build(reverse_twice):
            circuit = Circuit()
            circuit.add_component("Resistor")
            circuit.add_component("Resistor")
            circuit.connect(("R1", 1), ("R2", 0))
            if reverse_twice:
                circuit.connect(("R2", 0), ("R1", 1))
            return circuit

        once, twice = build(False), build(True)
        assert _partition(once) == _partition(twice)
        assert len(once.wires) == len(twice.wires) == 1

    def test_merge_chain_collapses_to_one_node(self):
        circuit = Circuit()
        for _ in range(4):
            circuit.add_component("Resistor")
        circuit.connect(("R1", 0), ("R2", 0))
        circuit.connect(("R3", 0), ("R4", 0))
        node_id = circuit.connect(("R2", 0), ("R4", 0))
        assert node_id == 0
        assert list(circuit.nodes) == [0]
        assert len(circuit.nodes[0].connections) == 4
        # One wire per pair of memberships
        assert len(circuit.wires) == 6

    def test_deletion_removes_memberships(self, divider_circuit):
        divider_circuit.add_component("Resistor")
        divider_circuit.connect(("R3", 0), ("R3", 1))
        assert 3 in divider_circuit.nodes

        divider_circuit.remove_component("R3")
        assert 3 not in divider_circuit.nodes

        divider_circuit.remove_component("R1")
        assert _partition(divider_circuit) == {
            0: [("V1", 0)],
            1: [("R2", 0)],
            2: [("R2", 1), ("V1", 1)],
        }
        assert divider_circuit.model.topology_problems() == []

    def test_edit_between_ticks(self, divider_circuit):
        divider_circuit.run_for(0.02, 0.01)
        divider_circuit.disconnect(("R2", "p2"))
        assert divider_circuit.current("R1") == pytest.approx(0.005, rel=1e-5)
        divider_circuit.step(0.01)
        assert divider_circuit.current("R1") == pytest.approx(0.0, abs=1e-9)
        assert divider_circuit.current("R2") == 0.0

    def test_open_circuit_is_not_an_error(self):
        circuit = Circuit()
        circuit.add_component("Voltage Source")
        circuit.add_component("Resistor")
        circuit.connect(("V1", "positive"), ("R1", 0))
        state = circuit.run_for(0.03, 0.01)
        assert all(math.isfinite(node.voltage) for node in state.nodes)


class TestReset:
    @pytest.mark.parametrize("keep_running", [True, False])
    def test_reset_invariant(self, led_circuit, keep_running):
        led_circuit.start()
        for _ in range(5):
            led_circuit.tick(0.01)
        if not keep_running:
            led_circuit.stop()

        led_circuit.reset()
        state = led_circuit.get_state()
        assert state.time == 0.0
        assert all(node.voltage == 0.0 for node in state.nodes)
        assert all(wire.current == 0.0 for wire in state.wires)
        assert state.component("LED1").properties["brightness"] == 0.0
        assert led_circuit.is_running is keep_running


class TestCapacitor:
    def test_rc_charging(self):
        circuit = Circuit()
        circuit.add_component("Voltage Source", properties={"voltage": 5})
        circuit.add_component("Resistor", properties={"resistance": "1k"})
        circuit.add_component("Capacitor", properties={"capacitance": "100u"})
        circuit.connect(("V1", "positive"), ("R1", 0))
        circuit.connect(("R1", 1), ("C1", "positive"))
        circuit.connect(("C1", "negative"), ("V1", "negative"))

        # One time constant (0.1 s) in small steps
        circuit.run_for(0.1, 0.001)
        capacitor = circuit.components["C1"]
        assert capacitor.properties["voltage"] == pytest.approx(5.0 * (1 - math.exp(-1)), rel=0.02)

        circuit.run_for(1.0, 0.01)
        assert capacitor.properties["charge_percent"] > 99.0
        assert circuit.current("R1") == pytest.approx(0.0, abs=1e-5)

    def test_reset_discharges(self):
        circuit = Circuit()
        circuit.add_component("Voltage Source", properties={"voltage": 5})
        circuit.add_component("Capacitor")
        circuit.connect(("V1", "positive"), ("C1", "positive"))
        circuit.connect(("V1", "negative"), ("C1", "negative"))
        circuit.step(0.01)
        circuit.reset()
        assert circuit.visual_state("C1")["charge_percent"] == 0.0
