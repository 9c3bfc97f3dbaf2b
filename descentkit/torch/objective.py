"""Adapt PyTorch scalar functions to the minimizers' NumPy interface."""

from __future__ import annotations

from typing import Callable, Optional

import numpy as np
import torch

from ..minimize.core import Array, check_dimensionality

TorchFn = Callable[[torch.Tensor], torch.Tensor]


class TorchObjective:
    """
    A ``DifferentiableFunction`` whose gradient comes from PyTorch autograd.

    The wrapped callable receives a 1D tensor and must return a scalar (0D)
    tensor. Values are computed without building a graph; gradients are
    computed with :func:`torch.autograd.grad` on a fresh leaf tensor, so the
    caller's arrays are never tied to autograd state.

    Args:
        fn: Scalar function of a 1D tensor.
        dtype: Floating dtype used for evaluation. float64 by default so that
            the line search sees the same precision as NumPy code.
        device: Device for the input tensor. CPU when None.
        dim: If given, inputs of any other length are rejected.

    Example:
        >>> import numpy as np
        >>> import torch
        >>> from descentkit.minimize import bfgs
        >>> from descentkit.torch import TorchObjective
        >>> objective = TorchObjective(lambda x: torch.sum((x - 2.0) ** 2))
        >>> res = bfgs(objective, np.zeros(3))
        >>> bool(np.allclose(res.x, 2.0))
        True
    """

    def __init__(
        self,
        fn: TorchFn,
        dtype: torch.dtype = torch.float64,
        device: Optional[torch.device] = None,
        dim: Optional[int] = None,
    ) -> None:
        if not dtype.is_floating_point:
            raise ValueError(f"dtype must be a floating point dtype, got {dtype}")
        self.fn = fn
        self.dtype = dtype
        self.device = device if device is not None else torch.device("cpu")
        self.dim = dim

    def _as_tensor(self, x: Array) -> torch.Tensor:
        x = np.asarray(x, dtype=float)
        if x.ndim != 1:
            raise ValueError(
                f"x must be a 1D vector, got shape {x.shape} with ndim={x.ndim}"
            )
        if self.dim is not None:
            check_dimensionality(self.dim, x.size, "input")
        return torch.as_tensor(x, dtype=self.dtype, device=self.device)

    @staticmethod
    def _check_scalar(value: torch.Tensor) -> None:
        if not isinstance(value, torch.Tensor) or value.ndim != 0:
            shape = getattr(value, "shape", None)
            raise ValueError(
                f"objective must return a scalar tensor (0D), got shape {shape}"
            )

    def evaluate(self, x: Array) -> float:
        params = self._as_tensor(x)
        with torch.no_grad():
            value = self.fn(params)
        self._check_scalar(value)
        return float(value.item())

    def differentiate(self, x: Array) -> Array:
        """
        Gradient of the objective at ``x`` as a float64 NumPy array.

        Raises:
            ValueError: If ``x`` is not 1D or the objective is not scalar.
            RuntimeError: If autograd produced no gradient for the input.
        """
        params = self._as_tensor(x).clone().detach().requires_grad_(True)
        value = self.fn(params)
        self._check_scalar(value)
        if not value.requires_grad:
            raise RuntimeError(
                "objective output does not depend on its input through autograd"
            )
        (grad,) = torch.autograd.grad(value, params, allow_unused=True)
        if grad is None:
            raise RuntimeError("autograd did not produce a gradient for the input")
        return grad.detach().cpu().to(torch.float64).numpy()


__all__ = ["TorchObjective", "TorchFn"]
