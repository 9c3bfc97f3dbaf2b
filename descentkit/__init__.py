"""descentkit: unconstrained minimization with and without gradients.

Quasi-Newton (BFGS, DFP) and nonlinear conjugate gradient (Polak-Ribiere,
Liu-Storey, Fletcher-Reeves) minimizers, plus the derivative-free Powell and
Nelder-Mead methods, sharing a common anytime loop, line minimizers and
stopping criterion.
"""

from descentkit.logging import configure_logging, get_logger, set_log_level
from descentkit.minimize import (
    AnytimeFunctionMinimizer,
    ConjugateGradientMinimizer,
    DimensionalityMismatchError,
    InputOutputPair,
    MinimizerConfig,
    NelderMeadMinimizer,
    OptimizeResult,
    PowellMinimizer,
    Problem,
    QuasiNewtonMinimizer,
    bfgs,
    conjugate_gradient,
    create_minimizer,
    dfp,
    nelder_mead,
    powell,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Logging
    "configure_logging",
    "get_logger",
    "set_log_level",
    # Minimization
    "AnytimeFunctionMinimizer",
    "ConjugateGradientMinimizer",
    "DimensionalityMismatchError",
    "InputOutputPair",
    "MinimizerConfig",
    "NelderMeadMinimizer",
    "OptimizeResult",
    "PowellMinimizer",
    "Problem",
    "QuasiNewtonMinimizer",
    "bfgs",
    "conjugate_gradient",
    "create_minimizer",
    "dfp",
    "nelder_mead",
    "powell",
]
