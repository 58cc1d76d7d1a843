"""
SimulationController - The simulation clock.

Two states, stopped and running. Each tick while running clamps the
wall-clock delta, scales it by the speed factor, then runs
build_system -> solve_linear_system -> update_state per device ->
derive_wire_currents, and returns one SimulationState snapshot. There
are no listeners; callers use the returned snapshot or get_state().
"""

import logging
import math
import time
from enum import Enum
from typing import Callable, Optional

from models.circuit import CircuitModel
from models.state import SimulationState
from simulation.devices import reset_state, update_state
from simulation.linear_solver import solve_linear_system
from simulation.mna_builder import build_system
from simulation.options import EngineOptions
from simulation.trace import TraceRecorder
from simulation.wire_currents import derive_wire_currents

logger = logging.getLogger(__name__)


class SimulationStatus(Enum):
    """Run state of the simulation clock."""

    STOPPED = "stopped"
    RUNNING = "running"


class SimulationController:
    """
    Controller for the time-stepped simulation.

    Owns elapsed time, the speed factor and the run state. Circuit edits
    go through CircuitController on the same model; they take effect at
    the start of the next tick.
    """

    def __init__(self, model: Optional[CircuitModel] = None,
                 options: Optional[EngineOptions] = None,
                 clock: Callable[[], float] = time.perf_counter):
        self.model = model or CircuitModel()
        self.options = options or EngineOptions()
        self.status = SimulationStatus.STOPPED
        self.speed = 1.0
        self.elapsed_time = 0.0
        self.tick_count = 0
        self.reference_node_id: Optional[int] = None
        self.recorder: Optional[TraceRecorder] = None
        self._clock = clock
        self._last_wall: Optional[float] = None
        self._in_tick = False

    @property
    def is_running(self) -> bool:
        return self.status == SimulationStatus.RUNNING

    # --- State machine ---

    def start(self) -> None:
        """Stopped -> Running. Starting a running simulation is a no-op."""
        if self.is_running:
            return
        self.status = SimulationStatus.RUNNING
        self._last_wall = self._clock()
        logger.info("Simulation started at t=%.4fs", self.elapsed_time)

    def stop(self) -> None:
        """Running -> Stopped. All values freeze until the next start()."""
        if not self.is_running:
            return
        self.status = SimulationStatus.STOPPED
        self._last_wall = None
        logger.info("Simulation stopped at t=%.4fs", self.elapsed_time)

    def reset(self) -> None:
        """
        Zero node voltages, wire currents, device state and elapsed time.

        Valid in either state; does not change the run state.
        """
        for node in self.model.nodes.values():
            node.voltage = 0.0
        for wire in self.model.wires:
            wire.current = 0.0
        for component in self.model.components.values():
            reset_state(component)
        self.elapsed_time = 0.0
        self.tick_count = 0
        if self.is_running:
            self._last_wall = self._clock()
        if self.recorder is not None:
            self.recorder.clear()
        logger.info("Simulation reset")

    def set_speed(self, factor) -> float:
        """
        Set the simulation speed factor, clamped to [min_speed, max_speed].

        Returns:
            The factor actually applied.

        Raises:
            ValueError: If ``factor`` is not a finite number.
        """
        if isinstance(factor, bool) or not isinstance(factor, (int, float)) or not math.isfinite(factor):
            logger.warning("Rejected set_speed(%r)", factor)
            raise ValueError(f"Simulation speed must be a finite number (got {factor!r}).")
        applied = min(max(float(factor), self.options.min_speed), self.options.max_speed)
        if applied != factor:
            logger.debug("Speed %r clamped to %g", factor, applied)
        self.speed = applied
        return applied

    # --- Ticking ---

    def tick(self, wall_delta: Optional[float] = None) -> SimulationState:
        """
        Advance the simulation by one tick if running.

        Args:
            wall_delta: Wall-clock seconds since the previous tick. Measured
                with the controller's clock when omitted.

        Returns:
            The snapshot after the tick (unchanged when stopped).
        """
        if not self.is_running:
            return self.get_state()

        now = self._clock()
        if wall_delta is None:
            wall_delta = now - self._last_wall
        self._last_wall = now

        if not math.isfinite(wall_delta):
            raise ValueError(f"Wall-clock delta must be finite (got {wall_delta!r}).")
        clamped = min(max(wall_delta, 0.0), self.options.max_step)
        return self.step(clamped * self.speed)

    def step(self, time_step: Optional[float] = None) -> SimulationState:
        """
        Solve one tick of ``time_step`` simulated seconds, whatever the run state.

        Raises:
            RuntimeError: If called while another tick is in progress.
        """
        if self._in_tick:
            raise RuntimeError("A simulation tick is already in progress.")
        if time_step is None:
            time_step = self.options.default_time_step

        self._in_tick = True
        try:
            self._solve(time_step)
            self.elapsed_time += time_step
            self.tick_count += 1
        finally:
            self._in_tick = False

        state = self.get_state()
        if self.recorder is not None:
            self.recorder.record(state)
        return state

    def run_for(self, duration: float, time_step: Optional[float] = None) -> SimulationState:
        """
        Step repeatedly until ``duration`` simulated seconds are covered.

        Raises:
            ValueError: If duration is negative or time_step is not positive.
        """
        if time_step is None:
            time_step = self.options.default_time_step
        if not (time_step > 0):
            raise ValueError(f"Time step must be positive (got {time_step!r}).")
        if not (duration >= 0):
            raise ValueError(f"Duration cannot be negative (got {duration!r}).")

        steps = math.ceil(duration / time_step - 1e-9)
        state = self.get_state()
        for _ in range(steps):
            state = self.step(time_step)
        return state

    def _solve(self, time_step: float) -> None:
        model = self.model
        system = build_system(model, time_step, self.options)
        voltages = solve_linear_system(system.matrix, system.rhs, self.options)
        self.reference_node_id = system.reference_node_id

        for node_id, node in model.nodes.items():
            node.voltage = 0.0
            node.is_reference = node_id == system.reference_node_id
        for index, node_id in enumerate(system.node_ids):
            model.nodes[node_id].voltage = float(voltages[index])

        for component in model.components.values():
            pin_voltages = [
                None if pin.node_id is None else model.nodes[pin.node_id].voltage
                for pin in component.pins
            ]
            update_state(component, pin_voltages, time_step, self.options)

        derive_wire_currents(model)
        logger.debug("Tick %d: dt=%.4gs, %d unknowns", self.tick_count + 1, time_step, system.size)

    def get_state(self) -> SimulationState:
        """Snapshot of the circuit as of the most recently completed tick."""
        return SimulationState.capture(
            self.model, self.elapsed_time, self.is_running, self.reference_node_id
        )
