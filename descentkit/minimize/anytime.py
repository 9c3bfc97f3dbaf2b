"""Anytime iterate-until-converged loop shared by the function minimizers.

A minimizer is configured once (initial guess, tolerance, iteration budget)
and then run with :meth:`AnytimeFunctionMinimizer.learn`. Between steps the
current iterate is available through :meth:`~AnytimeFunctionMinimizer.current_best`
and any callback may end the run early with
:meth:`~AnytimeFunctionMinimizer.stop`.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Protocol

import numpy as np

from ..diagnostics import assert_finite, is_debug_enabled
from ..logging import get_logger
from .core import (
    Array,
    DifferentiableFunction,
    InputOutputPair,
    OptimizeResult,
    Problem,
    check_dimensionality,
)
from .line_search import LineMinimizer, LineMinimizerDerivativeBased
from .utils import approx_grad

logger = get_logger(__name__)


@dataclass
class StepInfo:
    """
    Snapshot reported to callbacks after every completed step.

    Args:
        iteration: Number of completed steps (1-indexed).
        x: Current iterate.
        fun: Objective value at ``x``.
        grad_norm: Euclidean norm of the gradient at ``x``, or NaN for
            minimizers that only evaluate the objective.
        converged: Whether this step met the stopping criterion.
    """

    iteration: int
    x: Array
    fun: float
    grad_norm: float
    converged: bool


class MinimizerCallback(Protocol):
    """Callable invoked with a :class:`StepInfo` after each step."""

    def __call__(self, info: StepInfo) -> None:
        ...


class _CountingFunction:
    """Wrap an objective and count value and gradient evaluations.

    Finite-difference gradients of a :class:`Problem` are charged to
    ``nfev`` as well, one per objective call they make.
    """

    def __init__(self, function: DifferentiableFunction) -> None:
        self.function = function
        self.nfev = 0
        self.njev = 0

    def evaluate(self, x: Array) -> float:
        self.nfev += 1
        return float(self.function.evaluate(x))

    def differentiate(self, x: Array) -> Array:
        self.njev += 1
        if isinstance(self.function, Problem) and self.function.grad is None:
            gradient, evals = approx_grad(
                self.function.evaluate, x, return_evals=True
            )
            self.nfev += evals
            return gradient
        return np.asarray(self.function.differentiate(x), dtype=float)


class AnytimeFunctionMinimizer(ABC):
    """
    Base class for iterative minimizers of differentiable functions.

    Subclasses implement :meth:`initialize_algorithm` and :meth:`step`;
    ``step`` returns False once the stopping criterion is met. The iteration
    counter is reset by every call to :meth:`learn` and incremented once per
    completed step, including the step that detects convergence.

    Args:
        line_minimizer: Line minimizer used by every step. Defaults to a
            :class:`~descentkit.minimize.line_search.LineMinimizerDerivativeBased`.
        initial_guess: Starting point. May be set later through the property.
        tolerance: Gradient tolerance handed to the stopping criterion.
        max_iterations: Iteration budget for a single run.
        history: Record every iterate of a run.
    """

    DEFAULT_TOLERANCE = 1e-5
    DEFAULT_MAX_ITERATIONS = 1000

    def __init__(
        self,
        line_minimizer: Optional[LineMinimizer] = None,
        initial_guess: Optional[Array] = None,
        tolerance: float = DEFAULT_TOLERANCE,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        history: bool = False,
    ) -> None:
        self.line_minimizer = (
            line_minimizer
            if line_minimizer is not None
            else LineMinimizerDerivativeBased()
        )
        self._initial_guess: Optional[Array] = None
        self.initial_guess = initial_guess
        self.tolerance = tolerance
        self.max_iterations = max_iterations
        self.history = bool(history)
        self.callbacks: List[MinimizerCallback] = []

        self.function: Optional[_CountingFunction] = None
        self.result: Optional[InputOutputPair] = None
        self.gradient: Optional[Array] = None
        self._iteration = 0
        self._keep_going = False
        self._converged = False
        self._stopped = False
        self._history: List[Array] = []

    @property
    def initial_guess(self) -> Optional[Array]:
        return self._initial_guess

    @initial_guess.setter
    def initial_guess(self, value: Optional[Array]) -> None:
        if value is None:
            self._initial_guess = None
            return
        value = np.array(value, dtype=float)
        if value.ndim != 1:
            raise ValueError(
                f"initial_guess must be a 1D vector, got shape {value.shape}"
            )
        self._initial_guess = value

    @property
    def tolerance(self) -> float:
        return self._tolerance

    @tolerance.setter
    def tolerance(self, value: float) -> None:
        if not value >= 0.0:
            raise ValueError(f"tolerance must be non-negative, got {value}")
        self._tolerance = float(value)

    @property
    def max_iterations(self) -> int:
        return self._max_iterations

    @max_iterations.setter
    def max_iterations(self, value: int) -> None:
        if isinstance(value, bool) or int(value) != value or value <= 0:
            raise ValueError(f"max_iterations must be a positive integer, got {value}")
        self._max_iterations = int(value)

    @property
    def iteration(self) -> int:
        """Number of steps completed in the current (or last) run."""
        return self._iteration

    @property
    def keep_going(self) -> bool:
        return self._keep_going

    @property
    def converged(self) -> bool:
        return self._converged

    @property
    def message(self) -> str:
        if self._converged:
            return "Convergence criterion satisfied."
        if self._stopped:
            return "Stopped by callback."
        return "Maximum iterations reached."

    def add_callback(self, callback: MinimizerCallback) -> None:
        self.callbacks.append(callback)

    def remove_callback(self, callback: MinimizerCallback) -> None:
        self.callbacks.remove(callback)

    def stop(self) -> None:
        """Ask a running minimizer to return after the current step."""
        if self._keep_going:
            self._keep_going = False
            self._stopped = True

    def current_best(self) -> Optional[InputOutputPair]:
        """The latest iterate, or None before the first run has started."""
        return self.result

    @abstractmethod
    def initialize_algorithm(self) -> None:
        """Prepare per-run state; ``self.function`` is already set."""

    @abstractmethod
    def step(self) -> bool:
        """Advance one iteration. Return False when converged."""

    def cleanup_algorithm(self) -> None:
        """Hook run after the last step."""

    def learn(self, function: DifferentiableFunction) -> InputOutputPair:
        """
        Minimize ``function`` starting from the initial guess.

        Returns:
            The final iterate. If the iteration budget runs out this is the
            best point found so far; check :attr:`converged` to tell apart.

        Raises:
            ValueError: If no initial guess has been set.
            DimensionalityMismatchError: If the gradient does not match the
                initial guess.
        """
        if self._initial_guess is None:
            raise ValueError("initial_guess must be set before calling learn().")

        self.function = _CountingFunction(function)
        self.result = None
        self.gradient = None
        self._iteration = 0
        self._converged = False
        self._stopped = False
        self._history = [self._initial_guess.copy()] if self.history else []

        logger.debug(
            "%s: starting from dimension %d, tolerance=%g, max_iterations=%d",
            type(self).__name__,
            self._initial_guess.size,
            self.tolerance,
            self.max_iterations,
        )
        self.initialize_algorithm()

        self._keep_going = True
        try:
            while self._keep_going and self._iteration < self.max_iterations:
                converged = not self.step()
                self._iteration += 1
                if is_debug_enabled():
                    assert_finite(self.result.input, "iterate")
                if self.history:
                    self._history.append(self.result.input.copy())
                if converged:
                    self._converged = True
                    self._keep_going = False
                info = StepInfo(
                    iteration=self._iteration,
                    x=self.result.input,
                    fun=self.result.output,
                    grad_norm=self._gradient_norm(),
                    converged=converged,
                )
                logger.debug(
                    "iteration %d: f=%.10g |g|=%.3e",
                    info.iteration,
                    info.fun,
                    info.grad_norm,
                )
                for callback in list(self.callbacks):
                    callback(info)
        finally:
            self._keep_going = False
        self.cleanup_algorithm()
        logger.info(
            "%s finished after %d iterations: %s (f=%.10g)",
            type(self).__name__,
            self._iteration,
            self.message,
            self.result.output,
        )
        return self.result

    def minimize(self, function: DifferentiableFunction) -> OptimizeResult:
        """Run :meth:`learn` and package the outcome with evaluation counts."""
        best = self.learn(function)
        return OptimizeResult(
            x=best.input,
            fun=float(best.output),
            nit=self._iteration,
            success=self._converged,
            message=self.message,
            grad_norm=self._gradient_norm(),
            nfev=self.function.nfev,
            njev=self.function.njev,
            history=list(self._history),
        )

    def _gradient_norm(self) -> float:
        if self.gradient is None:
            return math.nan
        return float(np.linalg.norm(self.gradient))

    def _start(self) -> None:
        """Evaluate the objective and its gradient at the initial guess."""
        x0 = self._initial_guess.copy()
        self.result = InputOutputPair(x0, self.function.evaluate(x0))
        gradient = self.function.differentiate(x0)
        check_dimensionality(x0.size, gradient.size, "gradient")
        self.gradient = gradient

    def _gradient_at(
        self, x: Array, cached: Optional[tuple[Array, Array]]
    ) -> Array:
        """Reuse ``cached`` only if it was computed at exactly ``x``."""
        if cached is not None and np.array_equal(cached[0], x):
            return np.asarray(cached[1], dtype=float)
        gradient = self.function.differentiate(x)
        check_dimensionality(x.size, gradient.size, "gradient")
        return gradient


__all__ = ["AnytimeFunctionMinimizer", "MinimizerCallback", "StepInfo"]
