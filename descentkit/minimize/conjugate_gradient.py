"""Nonlinear conjugate gradient minimization.

A single driver handles the line search, gradient caching and the periodic
restart to steepest descent; the variants differ only in the scale factor
``beta`` that mixes the previous direction into the new one::

    d_new = beta * d_old - g_new

Every ``2 * n`` iterations ``beta`` is forced to zero to bound the error that
accumulates in nonlinear CG.

References:
    - R. Fletcher, *Practical Methods of Optimization*, 2nd ed. (1987), section 4.1
    - Y. Liu and C. Storey, "Efficient generalized conjugate gradient
      algorithms, Part 1", J. Optim. Theory Appl. 69 (1991)
"""

from __future__ import annotations

import math
from typing import Callable, Optional, Union

import numpy as np

from ..logging import get_logger
from .anytime import AnytimeFunctionMinimizer
from .core import Array, DifferentiableFunction, OptimizeResult
from .directional import DirectionalFunction
from .line_search import LineMinimizer
from .stopping import convergence

logger = get_logger(__name__)

ScaleFactor = Callable[[Array, Array, Array], float]

_EPS = float(np.finfo(float).eps)


def _ratio(numerator: float, denominator: float) -> float:
    # A quotient beyond 1/eps means the denominator is numerically zero.
    if not abs(denominator) > _EPS * abs(numerator):
        return 0.0
    return numerator / denominator


def polak_ribiere_beta(
    gradient: Array, gradient_previous: Array, direction_previous: Array
) -> float:
    """Polak-Ribiere scale factor ``((g - g_old) . g) / |g_old|^2``."""
    numerator = float((gradient - gradient_previous) @ gradient)
    return _ratio(numerator, float(gradient_previous @ gradient_previous))


def liu_storey_beta(
    gradient: Array, gradient_previous: Array, direction_previous: Array
) -> float:
    """Liu-Storey scale factor ``-((g - g_old) . g) / (g_old . d_old)``."""
    numerator = -float((gradient - gradient_previous) @ gradient)
    return _ratio(numerator, float(gradient_previous @ direction_previous))


def fletcher_reeves_beta(
    gradient: Array, gradient_previous: Array, direction_previous: Array
) -> float:
    """Fletcher-Reeves scale factor ``|g|^2 / |g_old|^2``."""
    return _ratio(
        float(gradient @ gradient), float(gradient_previous @ gradient_previous)
    )


SCALE_FACTORS: dict[str, ScaleFactor] = {
    "polak_ribiere": polak_ribiere_beta,
    "liu_storey": liu_storey_beta,
    "fletcher_reeves": fletcher_reeves_beta,
}


class ConjugateGradientMinimizer(AnytimeFunctionMinimizer):
    """
    Conjugate gradient minimizer with an injected scale-factor strategy.

    Args:
        scale_factor: Function ``(g, g_old, d_old) -> beta``.
        line_minimizer: Line minimizer; CG wants a fairly exact one.
        initial_guess: Starting point.
        tolerance: Gradient tolerance for the stopping criterion.
        max_iterations: Iteration budget.
        history: Record every iterate.

    Attributes:
        last_beta: Scale factor used by the most recent direction update,
            0.0 on restarts.
    """

    def __init__(
        self,
        scale_factor: ScaleFactor = polak_ribiere_beta,
        line_minimizer: Optional[LineMinimizer] = None,
        initial_guess: Optional[Array] = None,
        tolerance: float = AnytimeFunctionMinimizer.DEFAULT_TOLERANCE,
        max_iterations: int = AnytimeFunctionMinimizer.DEFAULT_MAX_ITERATIONS,
        history: bool = False,
    ) -> None:
        super().__init__(
            line_minimizer=line_minimizer,
            initial_guess=initial_guess,
            tolerance=tolerance,
            max_iterations=max_iterations,
            history=history,
        )
        self.scale_factor = scale_factor
        self.line_function: Optional[DirectionalFunction] = None
        self.last_beta: Optional[float] = None

    @property
    def direction(self) -> Optional[Array]:
        return None if self.line_function is None else self.line_function.direction

    def initialize_algorithm(self) -> None:
        self._start()
        self.last_beta = None
        self.line_function = DirectionalFunction(
            self.function, self.result.input, -self.gradient
        )

    def step(self) -> bool:
        x_old = self.result.input
        found = self.line_minimizer.minimize_along_direction(
            self.line_function, self.result.output, self.gradient
        )
        self.result = found.point
        x_new = self.result.input
        f_new = self.result.output

        gradient_old = self.gradient
        # The line minimizer's gradient may belong to an earlier trial point.
        self.gradient = self._gradient_at(x_new, found.gradient)

        if convergence(x_new, f_new, self.gradient, x_new - x_old, self.tolerance):
            return False

        reset_period = 2 * self.gradient.size
        if (self.iteration + 1) % reset_period == 0:
            beta = 0.0
            logger.debug("iteration %d: restarting along steepest descent", self.iteration + 1)
        else:
            beta = float(
                self.scale_factor(
                    self.gradient, gradient_old, self.line_function.direction
                )
            )
            if not math.isfinite(beta):
                logger.debug(
                    "iteration %d: non-finite beta, using steepest descent",
                    self.iteration + 1,
                )
                beta = 0.0
        self.last_beta = beta

        self.line_function.direction = beta * self.line_function.direction - self.gradient
        self.line_function.offset = x_new
        return True


def conjugate_gradient(
    function: DifferentiableFunction,
    x0: Array,
    method: Union[str, ScaleFactor] = "polak_ribiere",
    tol: float = AnytimeFunctionMinimizer.DEFAULT_TOLERANCE,
    maxiter: int = AnytimeFunctionMinimizer.DEFAULT_MAX_ITERATIONS,
    line_minimizer: Optional[LineMinimizer] = None,
    history: bool = False,
) -> OptimizeResult:
    """Nonlinear conjugate gradient with a strong Wolfe line search.

    ``method`` names a scale factor (``"polak_ribiere"``, ``"liu_storey"``,
    ``"fletcher_reeves"``) or is the scale-factor function itself.
    """
    if isinstance(method, str):
        try:
            scale_factor = SCALE_FACTORS[method.lower()]
        except KeyError:
            raise ValueError(
                f"Unsupported conjugate gradient method '{method}'. "
                f"Supported methods: {sorted(SCALE_FACTORS)}"
            ) from None
    else:
        scale_factor = method
    minimizer = ConjugateGradientMinimizer(
        scale_factor=scale_factor,
        line_minimizer=line_minimizer,
        initial_guess=x0,
        tolerance=tol,
        max_iterations=maxiter,
        history=history,
    )
    return minimizer.minimize(function)


__all__ = [
    "ConjugateGradientMinimizer",
    "SCALE_FACTORS",
    "ScaleFactor",
    "conjugate_gradient",
    "fletcher_reeves_beta",
    "liu_storey_beta",
    "polak_ribiere_beta",
]
