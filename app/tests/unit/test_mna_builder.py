"""Tests for matrix assembly and reference node choice (simulation/mna_builder.py)."""

import numpy as np
import pytest
from controllers.circuit_controller import CircuitController
from models.circuit import CircuitModel
from simulation.mna_builder import build_system, choose_reference_node, ground_node_ids
from simulation.options import EngineOptions

OPTIONS = EngineOptions()


class TestReferenceNode:
    def test_empty_circuit(self):
        assert choose_reference_node(CircuitModel()) is None

    def test_source_negative_without_ground(self, divider_model):
        # V1- shares node 2 with R2.p2
        assert choose_reference_node(divider_model) == 2

    def test_ground_wins(self, divider_model):
        ctrl = CircuitController(divider_model)
        ctrl.add_component("Ground")
        ctrl.connect(("GND1", 0), ("R1", "p2"))
        assert choose_reference_node(divider_model) == 1

    def test_lowest_ground_node(self, divider_model):
        ctrl = CircuitController(divider_model)
        ctrl.add_component("Ground")
        ctrl.add_component("Ground")
        ctrl.connect(("GND1", 0), ("R2", "p2"))
        ctrl.connect(("GND2", 0), ("R1", "p1"))
        assert ground_node_ids(divider_model) == [0, 2]
        assert choose_reference_node(divider_model) == 0

    def test_falls_back_to_lowest_node(self):
        ctrl = CircuitController()
        ctrl.add_component("Resistor")
        ctrl.add_component("Resistor")
        ctrl.connect(("R1", 0), ("R2", 0))
        ctrl.connect(("R1", 1), ("R2", 1))
        assert choose_reference_node(ctrl.model) == 0

    def test_floating_source_ignored(self):
        ctrl = CircuitController()
        ctrl.add_component("Voltage Source")
        ctrl.add_component("Resistor")
        ctrl.add_component("Resistor")
        ctrl.connect(("R2", 0), ("R2", 1))  # node 0
        ctrl.connect(("V1", "negative"), ("R1", 0))  # node 1, V1+ floating
        assert choose_reference_node(ctrl.model) == 0


class TestBuildSystem:
    def test_empty_circuit(self):
        system = build_system(CircuitModel(), 0.01, OPTIONS)
        assert system.size == 0
        assert system.matrix.shape == (0, 0)
        assert system.rhs.shape == (0,)
        assert system.reference_node_id is None

    def test_divider_matrix(self, divider_model):
        system = build_system(divider_model, 0.01, OPTIONS)
        g = OPTIONS.source_conductance
        assert system.node_ids == [0, 1]
        assert system.reference_node_id == 2
        np.testing.assert_allclose(
            system.matrix,
            [[g + 1e-3, -1e-3], [-1e-3, 2e-3]],
        )
        np.testing.assert_allclose(system.rhs, [g * 10.0, 0.0])

    def test_index_of(self, divider_model):
        system = build_system(divider_model, 0.01, OPTIONS)
        assert system.index_of(1) == 1
        assert system.index_of(2) is None

    def test_floating_device_excluded(self, divider_model):
        before = build_system(divider_model, 0.01, OPTIONS)
        ctrl = CircuitController(divider_model)
        ctrl.add_component("Resistor", properties={"resistance": 1.0})
        ctrl.connect(("R3", 0), ("R1", "p2"))  # second pin floating
        after = build_system(divider_model, 0.01, OPTIONS)
        np.testing.assert_array_equal(before.matrix, after.matrix)

    def test_contributions_accumulate(self, divider_model):
        ctrl = CircuitController(divider_model)
        ctrl.add_component("Resistor", properties={"resistance": 500.0})
        ctrl.connect(("R3", 0), ("R1", "p2"))
        ctrl.connect(("R3", 1), ("R2", "p2"))
        system = build_system(divider_model, 0.01, OPTIONS)
        # R2 (1 mS) and R3 (2 mS) in parallel to the reference, plus R1
        assert system.matrix[1, 1] == pytest.approx(1e-3 + 1e-3 + 2e-3)

    def test_insertion_order_independent(self):
        def build(order):
            ctrl = CircuitController()
            for component_type, component_id, props in order:
                ctrl.add_component(component_type, properties=props, component_id=component_id)
            ctrl.connect(("V1", "positive"), ("R1", 0))
            ctrl.connect(("R1", 1), ("R2", 0))
            ctrl.connect(("R2", 1), ("V1", "negative"))
            return build_system(ctrl.model, 0.01, OPTIONS)

        parts = [
            ("Voltage Source", "V1", {"voltage": 5.0}),
            ("Resistor", "R1", {"resistance": 100.0}),
            ("Resistor", "R2", {"resistance": 300.0}),
        ]
        forward = build(parts)
        backward = build(list(reversed(parts)))
        np.testing.assert_allclose(forward.matrix, backward.matrix)
        np.testing.assert_allclose(forward.rhs, backward.rhs)

    def test_extra_ground_tied_to_reference(self):
        ctrl = CircuitController()
        ctrl.add_component("Resistor")
        ctrl.add_component("Resistor")
        ctrl.add_component("Ground")
        ctrl.add_component("Ground")
        ctrl.connect(("R1", 0), ("R2", 0))  # node 0
        ctrl.connect(("R1", 1), ("R2", 1))  # node 1
        ctrl.connect(("GND1", 0), ("R1", 0))  # reference
        ctrl.connect(("GND2", 0), ("R1", 1))  # tied
        system = build_system(ctrl.model, 0.01, OPTIONS)
        assert system.reference_node_id == 0
        assert system.node_ids == [1]
        assert system.matrix[0, 0] == pytest.approx(2e-3 + OPTIONS.source_conductance)

    def test_shorted_resistor_adds_nothing(self, divider_model):
        before = build_system(divider_model, 0.01, OPTIONS)
        ctrl = CircuitController(divider_model)
        ctrl.add_component("Resistor", properties={"resistance": 1.0})
        ctrl.connect(("R3", 0), ("R1", "p2"))
        ctrl.connect(("R3", 1), ("R1", "p2"))
        after = build_system(divider_model, 0.01, OPTIONS)
        np.testing.assert_allclose(before.matrix, after.matrix)
