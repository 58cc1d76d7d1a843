"""Tests for NodeData and WireData."""

from models.component import ComponentData
from models.node import NodeData, _generate_label
from models.wire import WireData, make_wire_id


class TestNodeLabels:
    def test_first_labels(self):
        assert _generate_label(0) == "nodeA"
        assert _generate_label(25) == "nodeZ"

    def test_two_letter_labels(self):
        assert _generate_label(26) == "nodeAA"
        assert _generate_label(27) == "nodeAB"

    def test_label_follows_id(self):
        assert NodeData(node_id=2).get_label() == "nodeC"


class TestNodeMembership:
    def test_add_is_idempotent(self):
        node = NodeData(node_id=0)
        node.add_connection("R1", 0)
        node.add_connection("R1", 0)
        assert node.connections == [("R1", 0)]

    def test_remove(self):
        node = NodeData(node_id=0)
        node.add_connection("R1", 0)
        node.add_connection("R2", 1)
        node.remove_connection("R1", 0)
        node.remove_connection("R9", 0)
        assert node.connections == [("R2", 1)]
        assert node.has_component("R2")
        assert not node.has_component("R1")

    def test_is_empty(self):
        node = NodeData(node_id=0)
        assert node.is_empty()
        node.add_connection("R1", 0)
        assert not node.is_empty()


class TestWireData:
    def test_ids_and_ends(self):
        wire = WireData(node_id=0, start_component_id="V1", start_pin=0, end_component_id="R1", end_pin=1)
        assert wire.wire_id == make_wire_id(("V1", 0), ("R1", 1)) == "V1:0-R1:1"
        assert wire.start == ("V1", 0)
        assert wire.end == ("R1", 1)
        assert wire.current == 0.0

    def test_connects(self):
        wire = WireData(node_id=0, start_component_id="V1", start_pin=0, end_component_id="R1", end_pin=1)
        assert wire.connects_component("R1")
        assert wire.connects_pin("V1", 0)
        assert not wire.connects_pin("V1", 1)

    def test_to_dict(self):
        wire = WireData(0, "V1", 0, "R1", 1, current=0.005)
        assert wire.to_dict() == {
            "id": "V1:0-R1:1",
            "node": 0,
            "start": ["V1", 0],
            "end": ["R1", 1],
            "current": 0.005,
        }
