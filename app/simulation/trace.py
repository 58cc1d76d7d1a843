"""
simulation/trace.py

Per-tick trace of a running circuit: node voltages and component derived
values over simulated time, exportable to CSV and plottable with
matplotlib. No GUI dependencies; the figure is returned to the caller.
"""

import csv
import io
import logging
from datetime import datetime
from typing import Optional

from models.component import DERIVED_PROPERTIES
from models.state import SimulationState

logger = logging.getLogger(__name__)


class TraceRecorder:
    """
    Collects one row per recorded SimulationState.

    Columns are the time, every node voltage (``V(nodeA)``) and every
    numeric derived value of every component (``I(R1)``, ``brightness(LED1)``).
    Columns first seen mid-run are back-filled with empty cells on export.
    """

    def __init__(self):
        self.rows: list[dict] = []
        self._columns: list[str] = []

    def __len__(self):
        return len(self.rows)

    @property
    def columns(self) -> list[str]:
        return ["time"] + self._columns

    def clear(self) -> None:
        self.rows.clear()
        self._columns.clear()

    def record(self, state: SimulationState) -> dict:
        """Append a row for ``state`` and return it."""
        row = {"time": state.time}
        for label, voltage in state.node_voltages().items():
            row[f"V({label})"] = voltage
        for comp in state.components:
            for key in DERIVED_PROPERTIES.get(comp.component_type, {}):
                value = comp.properties.get(key)
                if isinstance(value, bool):
                    value = int(value)
                column = "I" if key == "current" else key
                row[f"{column}({comp.component_id})"] = value

        for key in row:
            if key != "time" and key not in self._columns:
                self._columns.append(key)
        self.rows.append(row)
        return row

    def series(self, column: str) -> list:
        """Values of one column, None where a row lacks it."""
        return [row.get(column) for row in self.rows]

    def voltage_columns(self) -> list[str]:
        return [c for c in self._columns if c.startswith("V(")]

    def to_csv(self, circuit_name: str = "") -> str:
        """
        Export the trace to a CSV string.

        Returns:
            str: CSV content with a short comment header
        """
        output = io.StringIO()
        writer = csv.writer(output)

        writer.writerow(["# Analysis Type", "Time-stepped simulation"])
        writer.writerow(["# Date", datetime.now().strftime("%Y-%m-%d %H:%M:%S")])
        if circuit_name:
            writer.writerow(["# Circuit", circuit_name])
        writer.writerow([])

        columns = self.columns
        writer.writerow(columns)
        for row in self.rows:
            writer.writerow(["" if row.get(c) is None else row.get(c) for c in columns])

        return output.getvalue()

    def write_csv(self, filepath, circuit_name: str = "") -> None:
        with open(filepath, "w", newline="") as f:
            f.write(self.to_csv(circuit_name))
        logger.info("Wrote %d trace rows to %s", len(self.rows), filepath)

    def plot(self, title: str = "Node voltages", columns: Optional[list[str]] = None):
        """
        Time-series plot of the traced node voltages.

        Args:
            title: Plot title
            columns: Columns to plot; defaults to every node voltage

        Returns:
            A matplotlib Figure, or None if nothing was recorded.
        """
        if not self.rows:
            return None

        import matplotlib.pyplot as plt

        fig, ax = plt.subplots(figsize=(10, 5))
        times = self.series("time")
        for column in columns or self.voltage_columns():
            values = [float("nan") if v is None else float(v) for v in self.series(column)]
            ax.plot(times, values, label=column)

        ax.set_xlabel("Time (s)")
        ax.set_ylabel("Voltage (V)")
        ax.set_title(title)
        if ax.get_legend_handles_labels()[0]:
            ax.legend()
        ax.grid(alpha=0.3)
        fig.tight_layout()
        return fig
