"""
Engine tunables.

Every numeric constant of the device models, the solver and the clock
lives here so lessons (or tests) can override them from a JSON file.
"""

import json
import logging
import math
from dataclasses import asdict, dataclass, fields
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class EngineOptions:
    """Tunable defaults for the simulation engine."""

    # Clock
    max_step: float = 0.02           # largest wall-clock delta accepted per tick (s)
    default_time_step: float = 0.01  # step used by single solves (s)
    min_speed: float = 0.1
    max_speed: float = 10.0

    # Device models
    source_conductance: float = 1e6         # penalty conductance of voltage sources (S)
    switch_closed_conductance: float = 1e3  # 1 mOhm
    switch_open_conductance: float = 1e-9   # 1 GOhm
    diode_forward_resistance: float = 10.0
    diode_reverse_resistance: float = 1e6
    brightness_headroom: float = 1.5        # over-driven LEDs may report up to this

    # Linear solver
    pivot_epsilon: float = 1e-10            # absolute; pivots below this get leakage
    singular_leakage: float = 1e-9

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"Engine option '{f.name}' must be a number (got {value!r}).")
            if not math.isfinite(value) or value <= 0:
                raise ValueError(f"Engine option '{f.name}' must be positive (got {value!r}).")
            setattr(self, f.name, float(value))
        if self.min_speed > self.max_speed:
            raise ValueError("Engine option 'min_speed' cannot exceed 'max_speed'.")

    @property
    def source_resistance(self) -> float:
        """Internal resistance implied by the source penalty conductance."""
        return 1.0 / self.source_conductance

    @classmethod
    def from_dict(cls, data: dict) -> "EngineOptions":
        """
        Build options from a dictionary of overrides.

        Raises:
            ValueError: On unknown keys or invalid values.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown engine option(s): {', '.join(unknown)}.")
        return cls(**data)

    def to_dict(self) -> dict:
        return asdict(self)


def load_options(path) -> EngineOptions:
    """
    Load engine options from a JSON file of overrides.

    Raises:
        OSError: If the file cannot be read.
        json.JSONDecodeError: If the file is not valid JSON.
        ValueError: If the content is not a valid set of overrides.
    """
    path = Path(path)
    with open(path, "r") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path} does not contain an options object.")
    options = EngineOptions.from_dict(data)
    logger.debug("Loaded engine options from %s: %s", path, data)
    return options
