import numpy as np
import pytest

from descentkit.minimize import (
    ConjugateGradientMinimizer,
    Problem,
    conjugate_gradient,
    fletcher_reeves_beta,
    liu_storey_beta,
    polak_ribiere_beta,
)


def rosenbrock(x: np.ndarray) -> float:
    return (1 - x[0]) ** 2 + 100 * (x[1] - x[0] ** 2) ** 2


def rosenbrock_grad(x: np.ndarray) -> np.ndarray:
    return np.array(
        [
            -2 * (1 - x[0]) - 400 * x[0] * (x[1] - x[0] ** 2),
            200 * (x[1] - x[0] ** 2),
        ]
    )


def rosen_chain(x: np.ndarray) -> float:
    return float(np.sum(100.0 * (x[1:] - x[:-1] ** 2) ** 2 + (1.0 - x[:-1]) ** 2))


def rosen_chain_grad(x: np.ndarray) -> np.ndarray:
    g = np.zeros_like(x)
    inner = x[1:] - x[:-1] ** 2
    g[:-1] += -400.0 * x[:-1] * inner - 2.0 * (1.0 - x[:-1])
    g[1:] += 200.0 * inner
    return g


ROSEN = Problem(fun=rosenbrock, grad=rosenbrock_grad, dim=2)


def test_scale_factor_formulas():
    g = np.array([1.0, 2.0])
    g_old = np.array([2.0, 1.0])
    d_old = np.array([-2.0, -1.0])
    # (g - g_old) . g = -1 + 2 = 1, |g_old|^2 = 5, g_old . d_old = -5
    assert polak_ribiere_beta(g, g_old, d_old) == pytest.approx(0.2)
    assert liu_storey_beta(g, g_old, d_old) == pytest.approx(0.2)
    assert fletcher_reeves_beta(g, g_old, d_old) == pytest.approx(1.0)


def test_scale_factors_agree_on_steepest_descent_direction(rng):
    g = rng.standard_normal(4)
    g_old = rng.standard_normal(4)
    # With d_old = -g_old Liu-Storey reduces to Polak-Ribiere.
    assert liu_storey_beta(g, g_old, -g_old) == pytest.approx(
        polak_ribiere_beta(g, g_old, -g_old)
    )


def test_scale_factors_return_zero_for_degenerate_denominator():
    g = np.array([1.0, 0.0])
    zero = np.zeros(2)
    assert polak_ribiere_beta(g, zero, np.array([-1.0, 0.0])) == 0.0
    assert fletcher_reeves_beta(g, zero, np.array([-1.0, 0.0])) == 0.0
    # Old direction orthogonal to the old gradient.
    assert liu_storey_beta(g, np.array([1.0, 0.0]), np.array([0.0, 1.0])) == 0.0


@pytest.mark.parametrize("method", ["polak_ribiere", "liu_storey"])
def test_cg_reaches_rosenbrock_minimum(method):
    res = conjugate_gradient(ROSEN, np.array([-1.2, 1.0]), method=method, tol=1e-10)
    assert res.success
    assert np.allclose(res.x, np.ones(2), atol=1e-5)
    assert res.fun < 1e-9


def test_cg_on_rosenbrock_chain():
    problem = Problem(fun=rosen_chain, grad=rosen_chain_grad, dim=4)
    res = conjugate_gradient(problem, np.array([-1.2, 1.0, -1.2, 1.0]), tol=1e-10)
    assert res.success
    assert np.allclose(res.x, np.ones(4), atol=1e-5)


def test_restart_every_two_n_iterations():
    n = 3
    minimizer = ConjugateGradientMinimizer(
        scale_factor=liu_storey_beta,
        initial_guess=np.array([-1.2, 1.0, -0.5]),
        tolerance=1e-12,
        max_iterations=40,
    )
    restarts = []

    def record(info):
        if info.converged:
            return
        restart = info.iteration % (2 * n) == 0
        if restart:
            assert minimizer.last_beta == 0.0
            np.testing.assert_array_equal(minimizer.direction, -minimizer.gradient)
        restarts.append(restart)

    minimizer.add_callback(record)
    minimizer.learn(Problem(fun=rosen_chain, grad=rosen_chain_grad, dim=n))
    assert minimizer.iteration > 2 * n
    assert any(restarts)


def test_first_direction_is_steepest_descent():
    x0 = np.array([-1.2, 1.0])
    minimizer = ConjugateGradientMinimizer(initial_guess=x0, max_iterations=1)
    first = []
    minimizer.line_minimizer = _Recorder(minimizer.line_minimizer, first)
    minimizer.learn(ROSEN)
    np.testing.assert_array_equal(first[0], -rosenbrock_grad(x0))


class _Recorder:
    def __init__(self, inner, directions):
        self.inner = inner
        self.directions = directions

    def minimize_along_direction(self, function, value, gradient):
        self.directions.append(function.direction.copy())
        return self.inner.minimize_along_direction(function, value, gradient)


def test_non_finite_beta_falls_back_to_steepest_descent():
    minimizer = ConjugateGradientMinimizer(
        scale_factor=lambda g, g_old, d_old: float("nan"),
        initial_guess=np.array([-1.2, 1.0]),
        tolerance=1e-8,
    )
    betas = []
    minimizer.add_callback(lambda info: betas.append(minimizer.last_beta))
    minimizer.learn(ROSEN)
    assert all(beta == 0.0 for beta in betas[:-1])


def test_custom_scale_factor_callable():
    res = conjugate_gradient(
        ROSEN, np.array([-1.2, 1.0]), method=fletcher_reeves_beta, tol=1e-8, maxiter=200
    )
    assert res.nit > 0
    assert res.fun < rosenbrock(np.array([-1.2, 1.0]))


def test_unknown_method_raises():
    with pytest.raises(ValueError, match="Unsupported conjugate gradient method"):
        conjugate_gradient(ROSEN, np.zeros(2), method="hestenes_stiefel")
