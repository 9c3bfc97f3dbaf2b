"""Tests for minimizer factory."""

from __future__ import annotations

import numpy as np
import pytest

from descentkit.minimize import (
    ConjugateGradientMinimizer,
    LineMinimizerBacktracking,
    LineMinimizerDerivativeBased,
    LineMinimizerDerivativeFree,
    MinimizerConfig,
    NelderMeadMinimizer,
    PowellMinimizer,
    QuasiNewtonMinimizer,
    bfgs_update,
    create_line_minimizer,
    create_minimizer,
    dfp_update,
    fletcher_reeves_beta,
    liu_storey_beta,
    polak_ribiere_beta,
)


def test_create_bfgs_minimizer() -> None:
    """Test creation of a BFGS minimizer."""
    config = MinimizerConfig(name="bfgs", tolerance=1e-8, max_iterations=50)
    minimizer = create_minimizer(config)
    assert isinstance(minimizer, QuasiNewtonMinimizer)
    assert minimizer.update_rule is bfgs_update
    assert minimizer.tolerance == 1e-8
    assert minimizer.max_iterations == 50
    assert isinstance(minimizer.line_minimizer, LineMinimizerDerivativeBased)
    assert minimizer.initial_guess is None


def test_create_dfp_minimizer() -> None:
    minimizer = create_minimizer(MinimizerConfig(name="dfp"))
    assert isinstance(minimizer, QuasiNewtonMinimizer)
    assert minimizer.update_rule is dfp_update


@pytest.mark.parametrize(
    "name, scale_factor",
    [
        ("polak_ribiere", polak_ribiere_beta),
        ("liu_storey", liu_storey_beta),
        ("fletcher_reeves", fletcher_reeves_beta),
    ],
)
def test_create_conjugate_gradient_minimizer(name, scale_factor) -> None:
    minimizer = create_minimizer(MinimizerConfig(name=name))
    assert isinstance(minimizer, ConjugateGradientMinimizer)
    assert minimizer.scale_factor is scale_factor


def test_create_minimizer_defaults() -> None:
    config = MinimizerConfig(name="bfgs")
    assert config.tolerance == 1e-5
    assert config.max_iterations == 1000
    assert config.line_search is None
    minimizer = create_minimizer(config)
    assert isinstance(minimizer.line_minimizer, LineMinimizerDerivativeBased)
    assert not config.history


def test_create_minimizer_with_initial_guess_and_history() -> None:
    config = MinimizerConfig(name="liu_storey", history=True)
    minimizer = create_minimizer(config, initial_guess=[1.0, 2.0])
    np.testing.assert_array_equal(minimizer.initial_guess, [1.0, 2.0])
    assert minimizer.history


def test_create_minimizer_backtracking() -> None:
    config = MinimizerConfig(name="bfgs", line_search="backtracking")
    minimizer = create_minimizer(config)
    assert isinstance(minimizer.line_minimizer, LineMinimizerBacktracking)


def test_create_line_minimizer_tolerance() -> None:
    line_minimizer = create_line_minimizer("derivative_based", tolerance=1e-9)
    assert line_minimizer.tolerance == 1e-9


def test_create_minimizer_invalid_name_raises() -> None:
    """Test that invalid minimizer name raises ValueError."""
    config = MinimizerConfig(name="simulated_annealing")
    with pytest.raises(ValueError, match="Unsupported minimizer name"):
        create_minimizer(config)


def test_create_minimizer_invalid_line_search_raises() -> None:
    config = MinimizerConfig(name="bfgs", line_search="exact")
    with pytest.raises(ValueError, match="Unsupported line search"):
        create_minimizer(config)


def test_create_minimizer_invalid_tolerance_raises() -> None:
    config = MinimizerConfig(name="bfgs", tolerance=-1.0)
    with pytest.raises(ValueError, match="tolerance must be non-negative"):
        create_minimizer(config)


def test_create_minimizer_invalid_max_iterations_raises() -> None:
    config = MinimizerConfig(name="polak_ribiere", max_iterations=0)
    with pytest.raises(ValueError, match="max_iterations must be a positive integer"):
        create_minimizer(config)


def test_create_minimizer_case_insensitive() -> None:
    """Test that minimizer name is case-insensitive."""
    minimizer = create_minimizer(MinimizerConfig(name="BFGS"))
    assert isinstance(minimizer, QuasiNewtonMinimizer)


def test_config_is_frozen() -> None:
    config = MinimizerConfig(name="bfgs")
    with pytest.raises(AttributeError):
        config.name = "dfp"


def test_create_powell_minimizer() -> None:
    config = MinimizerConfig(name="powell", tolerance=1e-8, line_search_tolerance=1e-9)
    minimizer = create_minimizer(config, initial_guess=[0.0, 0.0])
    assert isinstance(minimizer, PowellMinimizer)
    assert isinstance(minimizer.line_minimizer, LineMinimizerDerivativeFree)
    assert minimizer.line_minimizer.tolerance == 1e-9
    assert minimizer.tolerance == 1e-8


def test_create_powell_with_explicit_line_search() -> None:
    config = MinimizerConfig(name="powell", line_search="derivative_based")
    minimizer = create_minimizer(config)
    assert isinstance(minimizer.line_minimizer, LineMinimizerDerivativeBased)


def test_create_nelder_mead_minimizer() -> None:
    config = MinimizerConfig(name="nelder_mead", max_iterations=200, history=True)
    minimizer = create_minimizer(config)
    assert isinstance(minimizer, NelderMeadMinimizer)
    assert minimizer.max_iterations == 200
    assert minimizer.history


def test_create_derivative_free_line_minimizer() -> None:
    line_minimizer = create_line_minimizer("derivative_free", tolerance=1e-8)
    assert isinstance(line_minimizer, LineMinimizerDerivativeFree)
    assert line_minimizer.tolerance == 1e-8


def test_gradient_method_with_derivative_free_line_search() -> None:
    config = MinimizerConfig(name="bfgs", line_search="DERIVATIVE_FREE")
    minimizer = create_minimizer(config)
    assert isinstance(minimizer.line_minimizer, LineMinimizerDerivativeFree)
