"""
simulation/linear_solver.py

Dense Gaussian elimination with partial pivoting.

Singular or near-singular systems (floating nodes, disconnected
subcircuits) are not errors: a pivot whose magnitude is below the absolute
``pivot_epsilon`` gets a small leakage added to it and elimination
continues, so every tick produces finite voltages. The threshold does not
scale with the largest matrix entry.
"""

import logging
import math
from typing import Optional

import numpy as np

from .options import EngineOptions

logger = logging.getLogger(__name__)


def solve_linear_system(matrix, rhs, options: Optional[EngineOptions] = None) -> np.ndarray:
    """
    Solve ``matrix @ x = rhs``.

    Inputs are copied; the caller's arrays are not modified.

    Args:
        matrix: Square (n, n) array-like
        rhs: Length-n array-like
        options: Engine options (pivot thresholds and leakage)

    Returns:
        Solution vector of length n (empty for n == 0).

    Raises:
        ValueError: If the shapes do not match.
    """
    options = options or EngineOptions()
    a = np.array(matrix, dtype=float)
    b = np.array(rhs, dtype=float).reshape(-1)
    n = b.shape[0]

    if n == 0:
        return np.zeros(0)
    if a.shape != (n, n):
        raise ValueError(f"Matrix of shape {a.shape} does not match right-hand side of length {n}.")

    tolerance = options.pivot_epsilon

    for k in range(n):
        pivot_row = k + int(np.argmax(np.abs(a[k:, k])))
        if pivot_row != k:
            a[[k, pivot_row]] = a[[pivot_row, k]]
            b[[k, pivot_row]] = b[[pivot_row, k]]

        if abs(a[k, k]) < tolerance:
            logger.debug("Pivot %d is %.3g (below %.3g); adding leakage", k, a[k, k], tolerance)
            a[k, k] += math.copysign(options.singular_leakage, a[k, k])

        factors = a[k + 1:, k] / a[k, k]
        a[k + 1:, k:] -= np.outer(factors, a[k, k:])
        b[k + 1:] -= factors * b[k]

    x = np.zeros(n)
    for k in range(n - 1, -1, -1):
        x[k] = (b[k] - a[k, k + 1:] @ x[k + 1:]) / a[k, k]
    return x
