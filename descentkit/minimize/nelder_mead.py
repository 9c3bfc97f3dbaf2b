"""Downhill simplex minimization (Nelder-Mead).

The simplex starts at the initial guess plus one vertex per coordinate axis.
Each step reflects the worst vertex through the centroid of the others, then
tries an expansion, a contraction or a shrink toward the best vertex
depending on how the reflected point compares.

References:
    - Press et al., *Numerical Recipes in C*, 2nd ed. (1992), section 10.4
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from ..logging import get_logger
from .anytime import AnytimeFunctionMinimizer
from .core import Array, DifferentiableFunction, InputOutputPair, OptimizeResult
from .directional import DirectionalFunction

logger = get_logger(__name__)

TINY = 1e-10


class NelderMeadMinimizer(AnytimeFunctionMinimizer):
    """
    Simplex minimizer that only evaluates the objective.

    The run stops once the spread of objective values over the simplex,
    ``2 |f_high - f_low| / (|f_high| + |f_low|)``, drops to ``tolerance``.

    Args:
        initial_guess: First vertex of the simplex.
        tolerance: Relative spread of the vertex values that ends the run.
        max_iterations: Iteration budget.
        initial_step: Offset of the remaining vertices along each axis.
        history: Record every iterate.

    Attributes:
        vertices: ``(n + 1, n)`` array of simplex vertices.
        values: Objective value at each vertex.
    """

    DEFAULT_TOLERANCE = 1e-3
    DEFAULT_MAX_ITERATIONS = 4000

    def __init__(
        self,
        initial_guess: Optional[Array] = None,
        tolerance: float = DEFAULT_TOLERANCE,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        initial_step: float = 1.0,
        history: bool = False,
    ) -> None:
        super().__init__(
            initial_guess=initial_guess,
            tolerance=tolerance,
            max_iterations=max_iterations,
            history=history,
        )
        if not initial_step > 0.0:
            raise ValueError(f"initial_step must be positive, got {initial_step}")
        self.initial_step = float(initial_step)
        self.vertices: Optional[Array] = None
        self.values: Optional[Array] = None
        self.shrinks = 0
        self._vertex_sum: Optional[Array] = None
        self._line_function: Optional[DirectionalFunction] = None

    def initialize_algorithm(self) -> None:
        x0 = self._initial_guess.copy()
        n = x0.size
        self.vertices = np.vstack([x0, x0 + self.initial_step * np.eye(n)])
        self.values = np.array([self.function.evaluate(v) for v in self.vertices])
        self._vertex_sum = self.vertices.sum(axis=0)
        self.shrinks = 0
        self._line_function = DirectionalFunction(
            self.function, x0, np.zeros_like(x0)
        )
        self._update_result()

    def _update_result(self) -> None:
        low = int(np.argmin(self.values))
        self.result = InputOutputPair(
            self.vertices[low].copy(), float(self.values[low])
        )

    def _try(self, index: int, factor: float) -> float:
        """Evaluate ``centroid + factor * (vertex - centroid)`` and keep it if better."""
        x_old = self.vertices[index]
        centroid = (self._vertex_sum - x_old) / (self.vertices.shape[0] - 1)
        self._line_function.offset = centroid
        self._line_function.direction = x_old - centroid
        value = self._line_function.evaluate(factor)
        if value < self.values[index]:
            x_new = self._line_function.point(factor)
            self._vertex_sum += x_new - x_old
            self.vertices[index] = x_new
            self.values[index] = value
        return value

    def _shrink(self, low: int) -> None:
        x_low = self.vertices[low]
        for i in range(self.vertices.shape[0]):
            if i != low:
                self.vertices[i] = 0.5 * (self.vertices[i] + x_low)
                self.values[i] = self.function.evaluate(self.vertices[i])
        self._vertex_sum = self.vertices.sum(axis=0)
        self.shrinks += 1

    def step(self) -> bool:
        order = np.argsort(self.values, kind="stable")
        low, second, high = int(order[0]), int(order[-2]), int(order[-1])
        f_low = float(self.values[low])
        f_high = float(self.values[high])

        spread = 2.0 * abs(f_high - f_low) / (abs(f_high) + abs(f_low) + TINY)
        if spread <= self.tolerance:
            self._update_result()
            return False

        value = self._try(high, -1.0)
        if value <= f_low:
            self._try(high, 2.0)
        elif value >= self.values[second]:
            saved = float(self.values[high])
            if self._try(high, 0.5) > saved:
                self._shrink(low)
                logger.debug("iteration %d: shrank simplex", self.iteration + 1)
        self._update_result()
        return True


def nelder_mead(
    function: DifferentiableFunction,
    x0: Array,
    tol: float = NelderMeadMinimizer.DEFAULT_TOLERANCE,
    maxiter: int = NelderMeadMinimizer.DEFAULT_MAX_ITERATIONS,
    initial_step: float = 1.0,
    history: bool = False,
) -> OptimizeResult:
    """Nelder-Mead downhill simplex; the objective is never differentiated."""
    minimizer = NelderMeadMinimizer(
        initial_guess=x0,
        tolerance=tol,
        max_iterations=maxiter,
        initial_step=initial_step,
        history=history,
    )
    return minimizer.minimize(function)


__all__ = ["NelderMeadMinimizer", "nelder_mead"]
