"""Core interfaces shared across the function minimizers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol

import numpy as np

from .utils import approx_grad

Array = np.ndarray
Objective = Callable[[Array], float]
Gradient = Callable[[Array], Array]


class DimensionalityMismatchError(ValueError):
    """Raised when vectors or matrices that must agree in size do not."""


def check_dimensionality(expected: int, actual: int, what: str = "vector") -> None:
    """Raise DimensionalityMismatchError unless ``expected == actual``."""
    if expected != actual:
        raise DimensionalityMismatchError(
            f"Expected {what} of dimensionality {expected}, got {actual}."
        )


class DifferentiableFunction(Protocol):
    """A scalar function of a vector that can also report its gradient."""

    def evaluate(self, x: Array) -> float:
        ...

    def differentiate(self, x: Array) -> Array:
        ...


@dataclass(frozen=True)
class InputOutputPair:
    """An iterate: a point and the objective value at that point."""

    input: Array
    output: float


@dataclass(frozen=True)
class Problem:
    """Adapt plain callables to the ``DifferentiableFunction`` protocol.

    When ``grad`` is omitted the gradient is approximated with central
    differences. When ``dim`` is given, inputs of any other size are rejected.
    """

    fun: Objective
    grad: Optional[Gradient] = None
    dim: Optional[int] = None

    def _check(self, x: Array) -> Array:
        x = np.asarray(x, dtype=float)
        if self.dim is not None:
            check_dimensionality(self.dim, x.size, "input")
        return x

    def evaluate(self, x: Array) -> float:
        return float(self.fun(self._check(x)))

    def differentiate(self, x: Array) -> Array:
        x = self._check(x)
        if self.grad is not None:
            return np.asarray(self.grad(x), dtype=float)
        return approx_grad(self.fun, x)


@dataclass
class OptimizeResult:
    """Standard result object returned by all minimizers in this module.

    ``nfev`` includes the objective calls spent on finite-difference
    gradients of a :class:`Problem` without ``grad``; ``njev`` counts every
    gradient request. ``grad_norm`` is NaN for minimizers that never
    differentiate.
    """

    x: Array
    fun: float
    nit: int
    success: bool
    message: str
    grad_norm: float
    nfev: int
    njev: int
    history: List[Array] = field(default_factory=list)


__all__ = [
    "Array",
    "Objective",
    "Gradient",
    "DifferentiableFunction",
    "DimensionalityMismatchError",
    "InputOutputPair",
    "OptimizeResult",
    "Problem",
    "check_dimensionality",
]
