"""Quasi-Newton minimization with BFGS and DFP inverse-Hessian updates.

The driver keeps an explicit approximation ``H`` of the inverse Hessian,
searches along ``-H g`` with a line minimizer, and then refines ``H`` from the
observed step ``delta = x_new - x_old`` and gradient change
``gamma = g_new - g_old``. An update whose curvature estimate ``delta . gamma``
is unreliable is skipped, leaving ``H`` unchanged for that iteration.

References:
    - R. Fletcher, *Practical Methods of Optimization*, 2nd ed. (1987), ch. 3
"""

from __future__ import annotations

import math
from typing import Callable, Optional

import numpy as np

from ..diagnostics import assert_finite, assert_symmetric, is_debug_enabled
from ..logging import get_logger
from .anytime import AnytimeFunctionMinimizer
from .core import (
    Array,
    DifferentiableFunction,
    DimensionalityMismatchError,
    OptimizeResult,
    check_dimensionality,
)
from .directional import DirectionalFunction
from .line_search import LineMinimizer
from .stopping import convergence
from .utils import is_pos_def, mirror_lower

logger = get_logger(__name__)

UpdateRule = Callable[[Array, Array, Array, float], bool]


def _check_update_args(hessian_inverse: Array, delta: Array, gamma: Array) -> None:
    n = hessian_inverse.shape[0]
    check_dimensionality(n, hessian_inverse.shape[1], "Hessian inverse column count")
    check_dimensionality(n, delta.size, "delta")
    check_dimensionality(n, gamma.size, "gamma")


def bfgs_update(
    hessian_inverse: Array,
    delta: Array,
    gamma: Array,
    tolerance: float,
) -> bool:
    """
    Apply the BFGS rank-2 update to ``hessian_inverse`` in place.

    Implements Fletcher eq. 3.2.12. Only the lower triangle (diagonal
    included) is computed and then mirrored, so the result is exactly
    symmetric.

    Args:
        hessian_inverse: Symmetric ``(n, n)`` float array, modified in place.
        delta: Step ``x_new - x_old``.
        gamma: Gradient change ``g_new - g_old``.
        tolerance: Relative threshold for the curvature guard.

    Returns:
        True if the update was applied, False if it was skipped because
        ``sqrt(tolerance * |delta|^2 * |gamma|^2) >= |delta . gamma|``.
    """
    delta = np.asarray(delta, dtype=float)
    gamma = np.asarray(gamma, dtype=float)
    _check_update_args(hessian_inverse, delta, gamma)

    delta_gamma = float(delta @ gamma)
    guard = math.sqrt(tolerance * float(delta @ delta) * float(gamma @ gamma))
    if not abs(delta_gamma) > guard:
        return False

    h_gamma = hessian_inverse @ gamma
    term1 = 1.0 + float(gamma @ h_gamma) / delta_gamma
    change = (
        term1 * np.outer(delta, delta)
        - np.outer(delta, h_gamma)
        - np.outer(h_gamma, delta)
    ) / delta_gamma

    lower = np.tril_indices(hessian_inverse.shape[0])
    hessian_inverse[lower] += change[lower]
    mirror_lower(hessian_inverse)
    return True


def dfp_update(
    hessian_inverse: Array,
    delta: Array,
    gamma: Array,
    tolerance: float,
) -> bool:
    """
    Apply the Davidon-Fletcher-Powell update to ``hessian_inverse`` in place.

    Implements Fletcher eq. 3.2.11 with the same curvature guard as
    :func:`bfgs_update`, plus a guard on ``gamma . H gamma``.
    """
    delta = np.asarray(delta, dtype=float)
    gamma = np.asarray(gamma, dtype=float)
    _check_update_args(hessian_inverse, delta, gamma)

    delta_gamma = float(delta @ gamma)
    guard = math.sqrt(tolerance * float(delta @ delta) * float(gamma @ gamma))
    if not abs(delta_gamma) > guard:
        return False

    h_gamma = hessian_inverse @ gamma
    gamma_h_gamma = float(gamma @ h_gamma)
    if not abs(gamma_h_gamma) > math.sqrt(tolerance) * float(
        np.linalg.norm(gamma) * np.linalg.norm(h_gamma)
    ):
        return False

    change = (
        np.outer(delta, delta) / delta_gamma
        - np.outer(h_gamma, h_gamma) / gamma_h_gamma
    )

    lower = np.tril_indices(hessian_inverse.shape[0])
    hessian_inverse[lower] += change[lower]
    mirror_lower(hessian_inverse)
    return True


class QuasiNewtonMinimizer(AnytimeFunctionMinimizer):
    """
    Quasi-Newton minimizer with a pluggable inverse-Hessian update rule.

    Args:
        update_rule: Function ``(H, delta, gamma, tolerance) -> bool`` that
            updates ``H`` in place and reports whether it changed anything.
        line_minimizer: Line minimizer for step selection.
        initial_guess: Starting point.
        tolerance: Gradient tolerance, also used by the update guard.
        max_iterations: Iteration budget.
        initial_hessian_inverse: Symmetric starting approximation; the
            identity when omitted. It is copied, never modified.
        history: Record every iterate.

    Attributes:
        hessian_inverse: The current approximation, owned by this instance.
            Copy it to keep a snapshot across steps.
    """

    def __init__(
        self,
        update_rule: UpdateRule = bfgs_update,
        line_minimizer: Optional[LineMinimizer] = None,
        initial_guess: Optional[Array] = None,
        tolerance: float = AnytimeFunctionMinimizer.DEFAULT_TOLERANCE,
        max_iterations: int = AnytimeFunctionMinimizer.DEFAULT_MAX_ITERATIONS,
        initial_hessian_inverse: Optional[Array] = None,
        history: bool = False,
    ) -> None:
        super().__init__(
            line_minimizer=line_minimizer,
            initial_guess=initial_guess,
            tolerance=tolerance,
            max_iterations=max_iterations,
            history=history,
        )
        self.update_rule = update_rule
        self.initial_hessian_inverse = initial_hessian_inverse
        self.hessian_inverse: Optional[Array] = None
        self.line_function: Optional[DirectionalFunction] = None
        self.skipped_updates = 0

    @property
    def direction(self) -> Optional[Array]:
        return None if self.line_function is None else self.line_function.direction

    def _starting_hessian_inverse(self, n: int) -> Array:
        if self.initial_hessian_inverse is None:
            return np.eye(n)
        mat = np.array(self.initial_hessian_inverse, dtype=float)
        if mat.ndim != 2:
            raise DimensionalityMismatchError(
                f"initial_hessian_inverse must be a matrix, got shape {mat.shape}"
            )
        check_dimensionality(n, mat.shape[0], "Hessian inverse row count")
        check_dimensionality(n, mat.shape[1], "Hessian inverse column count")
        if not np.allclose(mat, mat.T):
            raise ValueError("initial_hessian_inverse must be symmetric")
        mirror_lower(mat)
        return mat

    def initialize_algorithm(self) -> None:
        self._start()
        x0 = self.result.input
        self.hessian_inverse = self._starting_hessian_inverse(x0.size)
        self.skipped_updates = 0
        self.line_function = DirectionalFunction(
            self.function, x0, -(self.hessian_inverse @ self.gradient)
        )

    def step(self) -> bool:
        x_old = self.result.input
        found = self.line_minimizer.minimize_along_direction(
            self.line_function, self.result.output, self.gradient
        )
        self.result = found.point
        x_new = self.result.input
        f_new = self.result.output
        self.line_function.offset = x_new

        gradient_old = self.gradient
        self.gradient = self._gradient_at(x_new, found.gradient)

        gamma = self.gradient - gradient_old
        delta = x_new - x_old

        if convergence(x_new, f_new, self.gradient, delta, self.tolerance):
            return False

        if not self.update_rule(self.hessian_inverse, delta, gamma, self.tolerance):
            self.skipped_updates += 1
            logger.debug(
                "iteration %d: skipped inverse-Hessian update (delta.gamma=%.3e)",
                self.iteration + 1,
                float(delta @ gamma),
            )
        if is_debug_enabled():
            assert_finite(self.hessian_inverse, "hessian_inverse")
            assert_symmetric(self.hessian_inverse)
            if not is_pos_def(self.hessian_inverse):
                logger.warning(
                    "iteration %d: inverse Hessian is no longer positive definite",
                    self.iteration + 1,
                )

        self.line_function.direction = -(self.hessian_inverse @ self.gradient)
        return True


def _run(
    update_rule: UpdateRule,
    function: DifferentiableFunction,
    x0: Array,
    tol: float,
    maxiter: int,
    line_minimizer: Optional[LineMinimizer],
    initial_hessian_inverse: Optional[Array],
    history: bool,
) -> OptimizeResult:
    minimizer = QuasiNewtonMinimizer(
        update_rule=update_rule,
        line_minimizer=line_minimizer,
        initial_guess=x0,
        tolerance=tol,
        max_iterations=maxiter,
        initial_hessian_inverse=initial_hessian_inverse,
        history=history,
    )
    return minimizer.minimize(function)


def bfgs(
    function: DifferentiableFunction,
    x0: Array,
    tol: float = AnytimeFunctionMinimizer.DEFAULT_TOLERANCE,
    maxiter: int = AnytimeFunctionMinimizer.DEFAULT_MAX_ITERATIONS,
    line_minimizer: Optional[LineMinimizer] = None,
    initial_hessian_inverse: Optional[Array] = None,
    history: bool = False,
) -> OptimizeResult:
    """Full-memory BFGS with a strong Wolfe line search."""
    return _run(
        bfgs_update,
        function,
        x0,
        tol,
        maxiter,
        line_minimizer,
        initial_hessian_inverse,
        history,
    )


def dfp(
    function: DifferentiableFunction,
    x0: Array,
    tol: float = AnytimeFunctionMinimizer.DEFAULT_TOLERANCE,
    maxiter: int = AnytimeFunctionMinimizer.DEFAULT_MAX_ITERATIONS,
    line_minimizer: Optional[LineMinimizer] = None,
    initial_hessian_inverse: Optional[Array] = None,
    history: bool = False,
) -> OptimizeResult:
    """Davidon-Fletcher-Powell quasi-Newton with a strong Wolfe line search."""
    return _run(
        dfp_update,
        function,
        x0,
        tol,
        maxiter,
        line_minimizer,
        initial_hessian_inverse,
        history,
    )


__all__ = [
    "QuasiNewtonMinimizer",
    "UpdateRule",
    "bfgs",
    "bfgs_update",
    "dfp",
    "dfp_update",
]
