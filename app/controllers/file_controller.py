"""
FileController - Handles circuit file I/O.

Circuits are stored as JSON: components with their user-settable
properties, and connections as pin pairs. Loading replays every
component and connection through the node graph, so a loaded circuit has
the same node partition as the one that was saved. Solved values are
never stored.
"""

import json
import logging
import math
from pathlib import Path
from typing import Optional

from models.circuit import CircuitModel
from models.component import normalize_component_type

logger = logging.getLogger(__name__)

AUTOSAVE_FILE = ".autosave_recovery.json"


def validate_circuit_data(data) -> None:
    """
    Validate JSON structure before loading.

    Raises ValueError with a descriptive message if anything is wrong.
    """
    if not isinstance(data, dict):
        raise ValueError("File does not contain a valid circuit object.")

    if "components" not in data or not isinstance(data["components"], list):
        raise ValueError("Missing or invalid 'components' list.")
    if not isinstance(data.get("connections", []), list):
        raise ValueError("Invalid 'connections' list.")

    comp_ids = set()
    for i, comp in enumerate(data["components"]):
        if not isinstance(comp, dict):
            raise ValueError(f"Component #{i + 1} is not an object.")
        for key in ("id", "type", "pos"):
            if key not in comp:
                raise ValueError(f"Component #{i + 1} is missing required field '{key}'.")
        if not isinstance(comp["id"], str) or not comp["id"]:
            raise ValueError(f"Component #{i + 1} has an invalid id.")
        if comp["id"] in comp_ids:
            raise ValueError(f"Duplicate component id '{comp['id']}'.")
        normalize_component_type(comp["type"])
        pos = comp["pos"]
        if not isinstance(pos, dict) or "x" not in pos or "y" not in pos:
            raise ValueError(f"Component '{comp['id']}' has invalid position data.")
        if not _is_number(pos["x"]) or not _is_number(pos["y"]):
            raise ValueError(f"Component '{comp['id']}' position values must be numeric.")
        rotation = comp.get("rotation", 0)
        if not _is_number(rotation) or not math.isfinite(rotation):
            raise ValueError(f"Component '{comp['id']}' rotation must be a finite number.")
        for flag in ("flip_h", "flip_v"):
            if not isinstance(comp.get(flag, False), bool):
                raise ValueError(f"Component '{comp['id']}' {flag} must be true or false.")
        if not isinstance(comp.get("properties", {}), dict):
            raise ValueError(f"Component '{comp['id']}' properties must be an object.")
        comp_ids.add(comp["id"])

    for i, connection in enumerate(data.get("connections", [])):
        if not isinstance(connection, list) or len(connection) != 2:
            raise ValueError(f"Connection #{i + 1} must be a pair of pins.")
        for pin_ref in connection:
            if not isinstance(pin_ref, list) or len(pin_ref) != 2:
                raise ValueError(f"Connection #{i + 1} has an invalid pin reference {pin_ref!r}.")
            if not isinstance(pin_ref[0], str) or pin_ref[0] not in comp_ids:
                raise ValueError(f"Connection #{i + 1} references unknown component '{pin_ref[0]}'.")

    counters = data.get("counters", {})
    if not isinstance(counters, dict):
        raise ValueError("'counters' must be an object.")
    for prefix, count in counters.items():
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise ValueError(f"Counter '{prefix}' must be a non-negative integer.")

    speed = data.get("speed", 1.0)
    if not _is_number(speed) or not math.isfinite(speed):
        raise ValueError("'speed' must be a finite number.")


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class FileController:
    """
    Manages circuit file I/O.

    Tracks the current file path for quick-save. When a simulation
    controller is given, its speed factor is saved and restored too.
    """

    def __init__(self, model: Optional[CircuitModel] = None, sim_ctrl=None,
                 autosave_file=AUTOSAVE_FILE):
        self.model = model or CircuitModel()
        self.sim_ctrl = sim_ctrl
        self.current_file: Optional[Path] = None
        self._autosave_file = Path(autosave_file)

    def new_circuit(self) -> None:
        """Clear the circuit and reset file state."""
        self.model.clear()
        self.current_file = None

    def to_document(self) -> dict:
        data = self.model.to_dict()
        data["speed"] = self.sim_ctrl.speed if self.sim_ctrl is not None else 1.0
        return data

    def save_circuit(self, filepath) -> None:
        """
        Save circuit to JSON file.

        Raises:
            OSError: If the file cannot be written.
        """
        filepath = Path(filepath)
        with open(filepath, "w") as f:
            json.dump(self.to_document(), f, indent=2)
        self.current_file = filepath
        logger.info("Saved circuit to %s", filepath)

    def load_circuit(self, filepath) -> None:
        """
        Load circuit from JSON file.

        Validates the JSON structure, then replays it. Updates the model
        in place so controllers sharing it stay connected.

        Raises:
            json.JSONDecodeError: If file is not valid JSON.
            ValueError: If file structure or content is invalid.
            OSError: If the file cannot be read.
        """
        filepath = Path(filepath)
        with open(filepath, "r") as f:
            data = json.load(f)

        self.load_document(data)
        self.current_file = filepath
        logger.info("Loaded circuit from %s (%d components)", filepath, len(self.model.components))

    def load_document(self, data: dict) -> None:
        """
        Replace the circuit with a parsed document (see load_circuit).

        The current circuit is left untouched if the document is rejected.
        """
        validate_circuit_data(data)
        new_model = CircuitModel.from_dict(data)
        if self.sim_ctrl is not None:
            self.sim_ctrl.set_speed(data.get("speed", 1.0))

        self.model.clear()
        self.model.components = new_model.components
        self.model.nodes = new_model.nodes
        self.model.wires = new_model.wires
        self.model.component_counter = new_model.component_counter
        self.model.next_node_id = new_model.next_node_id

        if self.sim_ctrl is not None:
            self.sim_ctrl.reset()

    def has_file(self) -> bool:
        """Return whether a current file path is set (for quick-save)."""
        return self.current_file is not None

    # ------------------------------------------------------------------
    # Auto-save and crash recovery
    # ------------------------------------------------------------------

    def auto_save(self) -> None:
        """Save circuit to the auto-save recovery file.

        Unlike save_circuit(), this does NOT update current_file.
        """
        try:
            data = self.to_document()
            data["_autosave_source"] = str(self.current_file) if self.current_file else ""
            with open(self._autosave_file, "w") as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            logger.warning("Auto-save to %s failed: %s", self._autosave_file, e)

    def has_auto_save(self) -> bool:
        return self._autosave_file.exists()

    def load_auto_save(self) -> Optional[str]:
        """Load circuit from the auto-save recovery file.

        Returns:
            The original file path (str) the auto-save was based on,
            or empty string if it was an unsaved circuit. Returns None
            on failure.
        """
        try:
            with open(self._autosave_file, "r") as f:
                data = json.load(f)
            source_path = data.pop("_autosave_source", "") if isinstance(data, dict) else ""
            self.load_document(data)
        except (OSError, ValueError) as e:
            logger.warning("Could not recover auto-save %s: %s", self._autosave_file, e)
            return None

        self.current_file = Path(source_path) if source_path else None
        return source_path

    def clear_auto_save(self) -> None:
        """Delete the auto-save recovery file if it exists."""
        try:
            self._autosave_file.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not delete auto-save %s: %s", self._autosave_file, e)
