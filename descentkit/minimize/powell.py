"""Powell's direction-set method, which needs objective values only.

Each step minimizes along every direction of the set in turn, then along the
overall move of the sweep. The direction responsible for the largest decrease
is dropped in favour of that overall move, which keeps the set from collapsing
onto a single line too quickly.

References:
    - Press et al., *Numerical Recipes in C*, 2nd ed. (1992), section 10.5
"""

from __future__ import annotations

import math
from typing import List, Optional

import numpy as np

from ..logging import get_logger
from .anytime import AnytimeFunctionMinimizer
from .core import Array, DifferentiableFunction, InputOutputPair, OptimizeResult
from .directional import DirectionalFunction
from .line_search import LineMinimizer, LineMinimizerDerivativeFree
from .stopping import TOLERANCE_DELTA_X, relative_step

logger = get_logger(__name__)


class PowellMinimizer(AnytimeFunctionMinimizer):
    """
    Direction-set minimizer starting from the coordinate axes.

    The tolerance is relative to the objective value: a sweep that lowers
    ``f`` by less than ``tolerance * (|f_old| + |f_new|) / 2`` ends the run.

    Args:
        line_minimizer: Line minimizer for every search. Defaults to a
            :class:`~descentkit.minimize.line_search.LineMinimizerDerivativeFree`,
            so the objective is never differentiated.
        initial_guess: Starting point.
        tolerance: Relative decrease per sweep below which the run stops.
        max_iterations: Iteration budget.
        history: Record every iterate.

    Attributes:
        directions: The current direction set, one direction per entry.
    """

    def __init__(
        self,
        line_minimizer: Optional[LineMinimizer] = None,
        initial_guess: Optional[Array] = None,
        tolerance: float = AnytimeFunctionMinimizer.DEFAULT_TOLERANCE,
        max_iterations: int = AnytimeFunctionMinimizer.DEFAULT_MAX_ITERATIONS,
        history: bool = False,
    ) -> None:
        super().__init__(
            line_minimizer=(
                line_minimizer
                if line_minimizer is not None
                else LineMinimizerDerivativeFree()
            ),
            initial_guess=initial_guess,
            tolerance=tolerance,
            max_iterations=max_iterations,
            history=history,
        )
        self.directions: List[Array] = []
        self.line_function: Optional[DirectionalFunction] = None

    def initialize_algorithm(self) -> None:
        x0 = self._initial_guess.copy()
        self.result = InputOutputPair(x0, self.function.evaluate(x0))
        self.directions = list(np.eye(x0.size))
        self.line_function = DirectionalFunction(
            self.function, x0, np.zeros_like(x0)
        )

    def _search(self, direction: Array) -> Array:
        """Line-minimize from the current iterate and return the move made."""
        x_old = self.result.input
        self.line_function.offset = x_old
        self.line_function.direction = direction
        found = self.line_minimizer.minimize_along_direction(
            self.line_function, self.result.output
        )
        self.result = found.point
        return self.result.input - x_old

    def step(self) -> bool:
        x_start = self.result.input
        f_start = self.result.output

        best_index = 0
        best_decrease = math.inf
        for index, direction in enumerate(self.directions):
            f_old = self.result.output
            move = self._search(direction)
            decrease = self.result.output - f_old
            if decrease < best_decrease:
                best_decrease = decrease
                best_index = index
            if np.any(move):
                self.directions[index] = move

        x_sweep = self.result.input
        f_sweep = self.result.output
        if 2.0 * abs(f_start - f_sweep) <= self.tolerance * (
            abs(f_start) + abs(f_sweep)
        ):
            return False

        move = self._search(x_sweep - x_start)
        if relative_step(self.result.input, self.result.input - x_start) < (
            TOLERANCE_DELTA_X
        ):
            return False

        if np.any(move):
            del self.directions[best_index]
            self.directions.append(move)
            logger.debug(
                "iteration %d: replaced direction %d (decrease %.3e)",
                self.iteration + 1,
                best_index,
                -best_decrease,
            )
        return True


def powell(
    function: DifferentiableFunction,
    x0: Array,
    tol: float = AnytimeFunctionMinimizer.DEFAULT_TOLERANCE,
    maxiter: int = AnytimeFunctionMinimizer.DEFAULT_MAX_ITERATIONS,
    line_minimizer: Optional[LineMinimizer] = None,
    history: bool = False,
) -> OptimizeResult:
    """Powell's direction-set method with a derivative-free line search."""
    minimizer = PowellMinimizer(
        line_minimizer=line_minimizer,
        initial_guess=x0,
        tolerance=tol,
        max_iterations=maxiter,
        history=history,
    )
    return minimizer.minimize(function)


__all__ = ["PowellMinimizer", "powell"]
