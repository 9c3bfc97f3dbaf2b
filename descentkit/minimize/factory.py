"""Factory for creating function minimizers from configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .anytime import AnytimeFunctionMinimizer
from .conjugate_gradient import SCALE_FACTORS, ConjugateGradientMinimizer
from .core import Array
from .line_search import (
    LineMinimizer,
    LineMinimizerBacktracking,
    LineMinimizerDerivativeBased,
    LineMinimizerDerivativeFree,
)
from .nelder_mead import NelderMeadMinimizer
from .powell import PowellMinimizer
from .quasi_newton import QuasiNewtonMinimizer, bfgs_update, dfp_update

_UPDATE_RULES = {"bfgs": bfgs_update, "dfp": dfp_update}
_DERIVATIVE_FREE = ("nelder_mead", "powell")
_LINE_SEARCHES = ("derivative_based", "derivative_free", "backtracking")


@dataclass(frozen=True)
class MinimizerConfig:
    """
    Configuration for creating a function minimizer.

    Args:
        name: Minimizer name. Supported values: "bfgs", "dfp",
            "polak_ribiere", "liu_storey", "fletcher_reeves", "powell",
            "nelder_mead".
        tolerance: Tolerance for the stopping criterion. Must be
            non-negative. Gradient-based minimizers compare it with the
            relative gradient, the derivative-free ones with the relative
            change in objective value.
        max_iterations: Iteration budget. Must be positive.
        line_search: Line minimizer name, "derivative_based" (strong Wolfe),
            "derivative_free" (bracketing with Brent sectioning) or
            "backtracking" (Armijo). None picks "derivative_free" for
            Powell and "derivative_based" otherwise. Nelder-Mead has no line
            search and ignores it.
        line_search_tolerance: Tolerance of the derivative-based or
            derivative-free line search. Ignored by backtracking.
        history: Record every iterate in the returned result.
    """

    name: str
    tolerance: float = AnytimeFunctionMinimizer.DEFAULT_TOLERANCE
    max_iterations: int = AnytimeFunctionMinimizer.DEFAULT_MAX_ITERATIONS
    line_search: Optional[str] = None
    line_search_tolerance: float = 1e-6
    history: bool = False


def create_line_minimizer(name: str, tolerance: float = 1e-6) -> LineMinimizer:
    """
    Create a line minimizer by name.

    Raises:
        ValueError: If the name is not supported.
    """
    name_lower = name.lower()
    if name_lower == "derivative_based":
        return LineMinimizerDerivativeBased(tolerance=tolerance)
    elif name_lower == "derivative_free":
        return LineMinimizerDerivativeFree(tolerance=tolerance)
    elif name_lower == "backtracking":
        return LineMinimizerBacktracking()
    raise ValueError(
        f"Unsupported line search '{name}'. Supported names: {list(_LINE_SEARCHES)}"
    )


def create_minimizer(
    config: MinimizerConfig, initial_guess: Optional[Array] = None
) -> AnytimeFunctionMinimizer:
    """
    Create a minimizer from a configuration.

    Args:
        config: Minimizer configuration.
        initial_guess: Optional starting point; it can also be set later.

    Returns:
        A configured, not yet run, minimizer.

    Raises:
        ValueError: If the minimizer or line search name is not supported,
            or if the tolerance or iteration budget is invalid.
    """
    name_lower = config.name.lower()
    line_search = config.line_search
    if line_search is None:
        line_search = (
            "derivative_free" if name_lower == "powell" else "derivative_based"
        )
    line_minimizer = create_line_minimizer(line_search, config.line_search_tolerance)

    if name_lower in _UPDATE_RULES:
        return QuasiNewtonMinimizer(
            update_rule=_UPDATE_RULES[name_lower],
            line_minimizer=line_minimizer,
            initial_guess=initial_guess,
            tolerance=config.tolerance,
            max_iterations=config.max_iterations,
            history=config.history,
        )
    elif name_lower in SCALE_FACTORS:
        return ConjugateGradientMinimizer(
            scale_factor=SCALE_FACTORS[name_lower],
            line_minimizer=line_minimizer,
            initial_guess=initial_guess,
            tolerance=config.tolerance,
            max_iterations=config.max_iterations,
            history=config.history,
        )
    elif name_lower == "powell":
        return PowellMinimizer(
            line_minimizer=line_minimizer,
            initial_guess=initial_guess,
            tolerance=config.tolerance,
            max_iterations=config.max_iterations,
            history=config.history,
        )
    elif name_lower == "nelder_mead":
        return NelderMeadMinimizer(
            initial_guess=initial_guess,
            tolerance=config.tolerance,
            max_iterations=config.max_iterations,
            history=config.history,
        )
    supported = (
        sorted(_UPDATE_RULES) + sorted(SCALE_FACTORS) + list(_DERIVATIVE_FREE)
    )
    raise ValueError(
        f"Unsupported minimizer name '{config.name}'. Supported names: {supported}"
    )


__all__ = ["MinimizerConfig", "create_line_minimizer", "create_minimizer"]
