"""Unconstrained minimization, gradient-based and derivative-free.

Example
-------
>>> import numpy as np
>>> from descentkit.minimize import Problem, bfgs
>>> def rosen(x):
...     return (1 - x[0])**2 + 100 * (x[1] - x[0]**2)**2
>>> def rosen_grad(x):
...     return np.array([
...         -2 * (1 - x[0]) - 400 * x[0] * (x[1] - x[0] ** 2),
...         200 * (x[1] - x[0] ** 2),
...     ])
>>> problem = Problem(fun=rosen, grad=rosen_grad, dim=2)
>>> res = bfgs(problem, np.array([-1.2, 1.0]), tol=1e-10)
>>> bool(np.allclose(res.x, [1.0, 1.0], atol=1e-5))
True
"""

from .anytime import AnytimeFunctionMinimizer, MinimizerCallback, StepInfo
from .conjugate_gradient import (
    SCALE_FACTORS,
    ConjugateGradientMinimizer,
    conjugate_gradient,
    fletcher_reeves_beta,
    liu_storey_beta,
    polak_ribiere_beta,
)
from .core import (
    DifferentiableFunction,
    DimensionalityMismatchError,
    InputOutputPair,
    OptimizeResult,
    Problem,
)
from .directional import DirectionalFunction
from .factory import MinimizerConfig, create_line_minimizer, create_minimizer
from .line_search import (
    LineMinimizer,
    LineMinimizerBacktracking,
    LineMinimizerDerivativeBased,
    LineMinimizerDerivativeFree,
    LineSearchResult,
    WolfeConditions,
)
from .nelder_mead import NelderMeadMinimizer, nelder_mead
from .powell import PowellMinimizer, powell
from .quasi_newton import QuasiNewtonMinimizer, bfgs, bfgs_update, dfp, dfp_update
from .stopping import TOLERANCE_DELTA_X, convergence, relative_step
from .utils import approx_grad, is_pos_def

__all__ = [
    # Core types
    "DifferentiableFunction",
    "DimensionalityMismatchError",
    "InputOutputPair",
    "OptimizeResult",
    "Problem",
    # Building blocks
    "TOLERANCE_DELTA_X",
    "convergence",
    "relative_step",
    "DirectionalFunction",
    "LineMinimizer",
    "LineMinimizerBacktracking",
    "LineMinimizerDerivativeBased",
    "LineMinimizerDerivativeFree",
    "LineSearchResult",
    "WolfeConditions",
    "AnytimeFunctionMinimizer",
    "MinimizerCallback",
    "StepInfo",
    # Quasi-Newton
    "QuasiNewtonMinimizer",
    "bfgs",
    "bfgs_update",
    "dfp",
    "dfp_update",
    # Conjugate gradient
    "ConjugateGradientMinimizer",
    "SCALE_FACTORS",
    "conjugate_gradient",
    "fletcher_reeves_beta",
    "liu_storey_beta",
    "polak_ribiere_beta",
    # Derivative-free
    "NelderMeadMinimizer",
    "PowellMinimizer",
    "nelder_mead",
    "powell",
    # Configuration
    "MinimizerConfig",
    "create_line_minimizer",
    "create_minimizer",
    # Utilities
    "approx_grad",
    "is_pos_def",
]
