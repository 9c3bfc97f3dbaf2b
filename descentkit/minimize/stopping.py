"""Scale-invariant stopping criterion shared by the gradient-based minimizers.

Both the step and the gradient are measured relative to the magnitude of the
current coordinates (floored at one), so variables with large absolute values
neither stop the search early nor keep it running forever.

References:
    - Press et al., *Numerical Recipes*, 3rd ed., section 10.7 (dfpmin)
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from .core import Array, check_dimensionality

# Relative step size below which the iterate is considered stationary.
TOLERANCE_DELTA_X = 1e-7


def convergence(
    x_new: Array,
    f_new: Optional[float],
    gradient: Array,
    delta: Array,
    tolerance: float,
) -> bool:
    """Return True if either the relative step or the relative gradient is small.

    Parameters
    ----------
    x_new:
        The new iterate.
    f_new:
        Objective value at ``x_new``. When None the gradient is not scaled by
        the function value.
    gradient:
        Gradient at ``x_new``.
    delta:
        Step just taken, ``x_new - x_old``.
    tolerance:
        Threshold on the largest relative gradient component.
    """
    x_new = np.asarray(x_new, dtype=float)
    gradient = np.asarray(gradient, dtype=float)
    delta = np.asarray(delta, dtype=float)
    check_dimensionality(x_new.size, gradient.size, "gradient")
    check_dimensionality(x_new.size, delta.size, "delta")

    normalized_x = np.maximum(np.abs(x_new), 1.0)
    grad_denom = max(f_new, 1.0) if f_new is not None else 1.0

    max_delta_x = relative_step(x_new, delta)
    max_grad = float(np.max(np.abs(gradient) * normalized_x / grad_denom, initial=0.0))

    return max_delta_x < TOLERANCE_DELTA_X or max_grad < tolerance


def relative_step(x_new: Array, delta: Array) -> float:
    """Largest step component relative to the coordinate magnitude (floored at one)."""
    x_new = np.asarray(x_new, dtype=float)
    delta = np.asarray(delta, dtype=float)
    check_dimensionality(x_new.size, delta.size, "delta")
    normalized_x = np.maximum(np.abs(x_new), 1.0)
    return float(np.max(np.abs(delta) / normalized_x, initial=0.0))


__all__ = ["TOLERANCE_DELTA_X", "convergence", "relative_step"]
