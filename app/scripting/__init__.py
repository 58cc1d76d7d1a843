"""
Scripting API: programmatic circuit building and simulation.

Usage::

    from scripting import Circuit

    circuit = Circuit()
    circuit.add_component("Voltage Source", properties={"voltage": 9})
    circuit.add_component("Resistor", properties={"resistance": "330"})
    circuit.add_component("LED")
    circuit.connect(("V1", "positive"), ("R1", 0))
    circuit.connect(("R1", 1), ("LED1", "anode"))
    circuit.connect(("LED1", "cathode"), ("V1", "negative"))

    circuit.start()
    state = circuit.tick()
    print(state.component("LED1").properties["brightness"])

    circuit.save("my_circuit.json")
"""

from controllers.simulation_controller import SimulationStatus
from models.state import SimulationState
from scripting.circuit import Circuit

__all__ = ["Circuit", "SimulationState", "SimulationStatus"]
