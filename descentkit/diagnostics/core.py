"""Core diagnostic checks for iterates and curvature matrices."""

from __future__ import annotations

import numpy as np


def is_symmetric(
    mat: np.ndarray,
    atol: float = 0.0,
) -> bool:
    """
    Check whether a square matrix is symmetric.

    Parameters
    ----------
    mat:
        Real array with shape (n, n).
    atol:
        Absolute tolerance for checking equality. The default of zero
        demands exact symmetry, which the quasi-Newton updates guarantee.

    Returns
    -------
    bool
        True if mat is symmetric within the tolerance, False otherwise.
    """
    if mat.ndim != 2 or mat.shape[0] != mat.shape[1]:
        return False

    diff = np.abs(mat - mat.T)
    if diff.size == 0:
        return True
    max_dev = diff.max()
    if not np.isfinite(max_dev):
        return False

    return bool(max_dev <= atol)


def assert_symmetric(
    mat: np.ndarray,
    atol: float = 0.0,
) -> None:
    """
    Assert that a square matrix is symmetric.

    Raises
    ------
    ValueError
        If the matrix is not symmetric within the tolerance.
    """
    if not is_symmetric(mat, atol=atol):
        raise ValueError(f"Matrix is not symmetric within tolerance {atol}.")


def assert_finite(values: np.ndarray, name: str = "array") -> None:
    """
    Assert that every entry of an array is finite.

    Raises
    ------
    ValueError
        If any entry is NaN or infinite.
    """
    if not np.all(np.isfinite(values)):
        raise ValueError(f"{name} contains non-finite values.")


__all__ = ["assert_finite", "assert_symmetric", "is_symmetric"]
