"""Tests for the PyTorch objective adapter."""

import numpy as np
import pytest
import torch

from descentkit.minimize import (
    DimensionalityMismatchError,
    Problem,
    bfgs,
    conjugate_gradient,
)
from descentkit.torch import TorchObjective


def torch_rosenbrock(x: torch.Tensor) -> torch.Tensor:
    return torch.sum(100.0 * (x[1:] - x[:-1] ** 2) ** 2 + (1.0 - x[:-1]) ** 2)


class TestTorchObjective:
    """Value and gradient evaluation through autograd."""

    def test_evaluate_returns_float(self):
        objective = TorchObjective(lambda x: torch.sum(x**2))
        value = objective.evaluate(np.array([1.0, 2.0]))
        assert isinstance(value, float)
        assert value == 5.0

    def test_gradient_matches_analytic(self):
        objective = TorchObjective(torch_rosenbrock)
        x = np.array([-1.2, 1.0])
        expected = np.array(
            [
                -2 * (1 - x[0]) - 400 * x[0] * (x[1] - x[0] ** 2),
                200 * (x[1] - x[0] ** 2),
            ]
        )
        grad = objective.differentiate(x)
        assert isinstance(grad, np.ndarray)
        assert grad.dtype == np.float64
        np.testing.assert_allclose(grad, expected, rtol=1e-12)

    def test_gradient_matches_finite_differences(self, rng):
        objective = TorchObjective(lambda x: torch.sum(torch.sin(x) * torch.exp(x / 3)))
        x = rng.standard_normal(4)
        reference = Problem(fun=objective.evaluate).differentiate(x)
        np.testing.assert_allclose(objective.differentiate(x), reference, atol=1e-6)

    def test_input_is_not_modified(self):
        objective = TorchObjective(lambda x: torch.sum(x**2))
        x = np.array([1.0, -1.0])
        objective.differentiate(x)
        objective.evaluate(x)
        np.testing.assert_array_equal(x, [1.0, -1.0])

    def test_non_scalar_output_raises(self):
        objective = TorchObjective(lambda x: x**2)
        with pytest.raises(ValueError, match="scalar tensor"):
            objective.evaluate(np.ones(2))
        with pytest.raises(ValueError, match="scalar tensor"):
            objective.differentiate(np.ones(2))

    def test_non_vector_input_raises(self):
        objective = TorchObjective(lambda x: torch.sum(x))
        with pytest.raises(ValueError, match="1D vector"):
            objective.evaluate(np.ones((2, 2)))

    def test_dimension_is_checked(self):
        objective = TorchObjective(lambda x: torch.sum(x), dim=3)
        with pytest.raises(DimensionalityMismatchError):
            objective.differentiate(np.ones(2))

    def test_detached_output_raises(self):
        objective = TorchObjective(lambda x: torch.tensor(1.0, dtype=torch.float64))
        with pytest.raises(RuntimeError):
            objective.differentiate(np.ones(2))

    def test_integer_dtype_rejected(self):
        with pytest.raises(ValueError, match="floating point"):
            TorchObjective(lambda x: torch.sum(x), dtype=torch.int64)


class TestTorchMinimization:
    """Minimizers driven by autograd gradients."""

    def test_bfgs_on_torch_rosenbrock(self):
        objective = TorchObjective(torch_rosenbrock)
        res = bfgs(objective, np.array([-1.2, 1.0]), tol=1e-10)
        assert res.success
        np.testing.assert_allclose(res.x, np.ones(2), atol=1e-5)

    def test_conjugate_gradient_on_torch_quadratic(self):
        target = torch.tensor([1.0, -2.0, 0.5], dtype=torch.float64)
        objective = TorchObjective(lambda x: torch.sum((x - target) ** 2))
        res = conjugate_gradient(objective, np.zeros(3), method="liu_storey")
        assert res.success
        np.testing.assert_allclose(res.x, target.numpy(), atol=1e-6)
