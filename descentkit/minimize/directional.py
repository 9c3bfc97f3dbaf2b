"""Restriction of a multivariate objective to a ray ``offset + t * direction``."""

from __future__ import annotations

from typing import Optional

import numpy as np

from .core import Array, DifferentiableFunction, check_dimensionality


class DirectionalFunction:
    """Univariate view ``t -> f(offset + t * direction)`` of a vector objective.

    Every call to :meth:`differentiate` records the point and the full
    gradient computed there, so that a minimizer landing on that exact point
    can reuse the gradient instead of evaluating it again.
    """

    def __init__(
        self,
        function: DifferentiableFunction,
        offset: Array,
        direction: Array,
    ) -> None:
        self.function = function
        self._offset = np.asarray(offset, dtype=float).copy()
        self._direction = np.zeros_like(self._offset)
        self.direction = direction
        self._last_gradient: Optional[tuple[Array, Array]] = None

    @property
    def offset(self) -> Array:
        return self._offset

    @offset.setter
    def offset(self, value: Array) -> None:
        value = np.asarray(value, dtype=float)
        check_dimensionality(self._direction.size, value.size, "offset")
        self._offset = value.copy()

    @property
    def direction(self) -> Array:
        return self._direction

    @direction.setter
    def direction(self, value: Array) -> None:
        value = np.asarray(value, dtype=float)
        check_dimensionality(self._offset.size, value.size, "direction")
        self._direction = value.copy()

    @property
    def last_gradient(self) -> Optional[tuple[Array, Array]]:
        """The ``(input, gradient)`` pair from the most recent differentiation."""
        return self._last_gradient

    def point(self, t: float) -> Array:
        return self._offset + t * self._direction

    def evaluate(self, t: float) -> float:
        return float(self.function.evaluate(self.point(t)))

    def differentiate(self, t: float) -> float:
        """Directional derivative of the objective at ``t``."""
        x = self.point(t)
        gradient = np.asarray(self.function.differentiate(x), dtype=float)
        check_dimensionality(x.size, gradient.size, "gradient")
        self._last_gradient = (x, gradient)
        return float(gradient @ self._direction)


__all__ = ["DirectionalFunction"]
