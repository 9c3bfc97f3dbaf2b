"""Deterministic line minimizers following Fletcher's *Practical Methods*.

A line minimizer receives a :class:`~descentkit.minimize.directional.DirectionalFunction`
together with the objective value at its offset and, optionally, the full
gradient there, and returns an approximate minimizer along the ray. If the
gradient at the returned point was computed along the way it is handed back
as well, so the outer algorithm can skip an evaluation after checking that the
point matches.

References:
    - R. Fletcher, *Practical Methods of Optimization*, 2nd ed. (1987), ch. 2
    - Nocedal & Wright, *Numerical Optimization* (2006), section 3.5
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import NamedTuple, Optional, Protocol

import numpy as np

from .core import Array, InputOutputPair
from .directional import DirectionalFunction


@dataclass(frozen=True)
class LineSearchResult:
    """Outcome of a line minimization.

    Attributes:
        point: The accepted point and its objective value.
        gradient: ``(input, gradient)`` from the last gradient evaluation the
            line minimizer performed, or None if it never differentiated.
            The input is not guaranteed to equal ``point.input``.
    """

    point: InputOutputPair
    gradient: Optional[tuple[Array, Array]] = None


class LineMinimizer(Protocol):
    """Minimize a scalar function along a direction."""

    def minimize_along_direction(
        self,
        function: DirectionalFunction,
        value: float,
        gradient: Optional[Array] = None,
    ) -> LineSearchResult:
        ...


def goldstein_condition(
    original_value: float,
    original_slope: float,
    step: float,
    value: float,
    slope_condition: float,
) -> bool:
    """Sufficient decrease test, Fletcher eq. 2.5.1."""
    return value <= original_value + step * slope_condition * original_slope


def strict_curvature_condition(
    original_slope: float,
    slope: float,
    curvature_condition: float,
) -> bool:
    """Two-sided curvature test, Fletcher eq. 2.5.6."""
    if original_slope >= 0.0:
        raise ValueError("Original slope must be < 0.0")
    return abs(slope) <= -curvature_condition * original_slope


class WolfeConditions:
    """Strong Wolfe conditions anchored at the start of a line search."""

    def __init__(
        self,
        original_value: float,
        original_slope: float,
        slope_condition: float = 0.01,
        curvature_condition: float = 0.1,
    ) -> None:
        if not (0.0 < slope_condition < 1.0):
            raise ValueError("slope_condition must lie in (0, 1)")
        if not (0.0 < curvature_condition < 1.0):
            raise ValueError("curvature_condition must lie in (0, 1)")
        if slope_condition >= curvature_condition:
            raise ValueError(
                "slope_condition must be strictly less than curvature_condition"
            )
        if original_slope >= 0.0:
            raise ValueError("Can only use Wolfe conditions when original slope < 0.0")
        self.original_value = float(original_value)
        self.original_slope = float(original_slope)
        self.slope_condition = float(slope_condition)
        self.curvature_condition = float(curvature_condition)

    def sufficient_decrease(self, step: float, value: float) -> bool:
        return goldstein_condition(
            self.original_value,
            self.original_slope,
            step,
            value,
            self.slope_condition,
        )

    def strict_curvature(self, slope: float) -> bool:
        return strict_curvature_condition(
            self.original_slope, slope, self.curvature_condition
        )

    def __call__(self, step: float, value: float, slope: float) -> bool:
        return self.sufficient_decrease(step, value) and self.strict_curvature(slope)


class _Trial(NamedTuple):
    step: float
    value: float
    slope: Optional[float]


def _interpolate(
    p: _Trial, q: _Trial, lower: float, upper: float, fallback: float
) -> float:
    """Minimizer of the Hermite interpolant through ``p`` and ``q``, clipped.

    Uses the cubic when both slopes are known and the quadratic through the
    point with a known slope otherwise.
    """
    a, fa, sa = p
    b, fb, sb = q
    candidate = None
    if sa is not None and sb is not None:
        d1 = sa + sb - 3.0 * (fa - fb) / (a - b)
        disc = d1 * d1 - sa * sb
        if disc >= 0.0:
            d2 = math.copysign(math.sqrt(disc), b - a)
            denom = sb - sa + 2.0 * d2
            if denom != 0.0:
                candidate = b - (b - a) * (sb + d2 - d1) / denom
    elif sa is not None or sb is not None:
        if sa is None:
            a, fa, sa, b, fb = b, fb, sb, a, fa
        h = b - a
        curvature = fb - fa - sa * h
        if curvature > 0.0:
            candidate = a - sa * h * h / (2.0 * curvature)
    if candidate is None or not math.isfinite(candidate):
        candidate = fallback
    return min(max(candidate, lower), upper)


def _orientation(slope: float) -> float:
    # Search the reversed ray when the direction points uphill.
    return 1.0 if slope < 0.0 else -1.0


def _gradient_at_offset(
    function: DirectionalFunction, gradient: Optional[Array]
) -> Array:
    if gradient is None:
        function.differentiate(0.0)
        return function.last_gradient[1]
    return np.asarray(gradient, dtype=float)


class LineMinimizerDerivativeBased:
    """Bracketing and sectioning line search satisfying the strong Wolfe conditions.

    The bracketing phase extrapolates from the unit step until it finds an
    interval known to contain an acceptable point; the sectioning phase then
    shrinks that interval with Hermite interpolation (Fletcher, section 2.6).
    Directional derivatives are only computed for points that already satisfy
    the sufficient decrease condition.

    Args:
        tolerance: Bracket width (in units of the step along the direction)
            below which sectioning gives up and returns the better end point.
        max_iterations: Budget for each of the two phases.
        slope_condition: Sufficient decrease constant ``c1``.
        curvature_condition: Curvature constant ``c2``; small values give a
            more exact search, which conjugate gradient methods rely on.
        max_step: Largest step the bracketing phase may try.
    """

    TAU1 = 5.0
    TAU2 = 0.1
    TAU3 = 0.5

    def __init__(
        self,
        tolerance: float = 1e-6,
        max_iterations: int = 100,
        slope_condition: float = 0.01,
        curvature_condition: float = 0.1,
        max_step: float = math.inf,
    ) -> None:
        if tolerance < 0.0:
            raise ValueError("tolerance must be non-negative")
        if max_iterations <= 0:
            raise ValueError("max_iterations must be positive")
        if max_step <= 0.0:
            raise ValueError("max_step must be positive")
        # Validate the Wolfe constants eagerly.
        WolfeConditions(0.0, -1.0, slope_condition, curvature_condition)
        self.tolerance = float(tolerance)
        self.max_iterations = int(max_iterations)
        self.slope_condition = float(slope_condition)
        self.curvature_condition = float(curvature_condition)
        self.max_step = float(max_step)

    def minimize_along_direction(
        self,
        function: DirectionalFunction,
        value: float,
        gradient: Optional[Array] = None,
    ) -> LineSearchResult:
        gradient = _gradient_at_offset(function, gradient)
        slope = float(gradient @ function.direction)
        scale = float(np.linalg.norm(gradient) * np.linalg.norm(function.direction))
        if not abs(slope) > np.finfo(float).eps * scale:
            # Numerically orthogonal to the gradient; searching is hopeless.
            start = function.point(0.0)
            return LineSearchResult(
                InputOutputPair(start, float(value)), (start, gradient)
            )

        sign = _orientation(slope)
        wolfe = WolfeConditions(
            value, sign * slope, self.slope_condition, self.curvature_condition
        )

        def phi(step: float) -> float:
            return function.evaluate(sign * step)

        def dphi(step: float) -> float:
            return sign * function.differentiate(sign * step)

        previous = _Trial(0.0, float(value), wolfe.original_slope)
        first = min(1.0, self.max_step)
        current = _Trial(first, phi(first), None)
        best = None
        for _ in range(self.max_iterations):
            if (
                not wolfe.sufficient_decrease(current.step, current.value)
                or current.value >= previous.value
            ):
                best = self._section(phi, dphi, wolfe, previous, current)
                break
            current = current._replace(slope=dphi(current.step))
            if wolfe.strict_curvature(current.slope):
                best = current
                break
            if current.slope >= 0.0:
                best = self._section(phi, dphi, wolfe, current, previous)
                break
            if current.step >= self.max_step:
                best = current
                break
            width = current.step - previous.step
            lower = current.step + width
            upper = min(self.max_step, current.step + self.TAU1 * width)
            if lower >= upper:
                step = upper
            else:
                step = _interpolate(previous, current, lower, upper, upper)
            previous = current
            current = _Trial(step, phi(step), None)
        if best is None:
            best = previous if previous.value <= current.value else current
        return self._finish(function, sign, best, value, gradient)

    def _section(self, phi, dphi, wolfe, lo: _Trial, hi: _Trial) -> _Trial:
        """Shrink the bracket ``[lo, hi]``; ``lo`` always holds the best acceptable point."""
        for _ in range(self.max_iterations):
            width = hi.step - lo.step
            if abs(width) < self.tolerance:
                break
            lower = lo.step + self.TAU2 * width
            upper = hi.step - self.TAU3 * width
            if lower > upper:
                lower, upper = upper, lower
            step = _interpolate(lo, hi, lower, upper, 0.5 * (lower + upper))
            trial = _Trial(step, phi(step), None)
            if (
                not wolfe.sufficient_decrease(trial.step, trial.value)
                or trial.value >= lo.value
            ):
                hi = trial
                continue
            trial = trial._replace(slope=dphi(step))
            if wolfe.strict_curvature(trial.slope):
                return trial
            if width * trial.slope >= 0.0:
                hi = lo
            lo = trial
        return lo if lo.value <= hi.value else hi

    @staticmethod
    def _finish(
        function: DirectionalFunction,
        sign: float,
        best: _Trial,
        value: float,
        gradient: Array,
    ) -> LineSearchResult:
        x = function.point(sign * best.step)
        if best.step == 0.0:
            return LineSearchResult(InputOutputPair(x, float(value)), (x, gradient))
        return LineSearchResult(
            InputOutputPair(x, float(best.value)), function.last_gradient
        )


class LineMinimizerBacktracking:
    """Armijo backtracking that never evaluates a gradient along the ray.

    Starting from ``initial_step`` the step shrinks geometrically until the
    sufficient decrease condition holds. If no step is accepted the best point
    seen (possibly the starting point) is returned. The gradient at the
    offset is computed once when the caller does not supply it.
    """

    def __init__(
        self,
        initial_step: float = 1.0,
        geometric_decrease: float = 0.5,
        sufficient_decrease: float = 1e-4,
        max_iterations: int = 50,
    ) -> None:
        if initial_step <= 0.0:
            raise ValueError("initial_step must be positive")
        if not (0.0 < geometric_decrease < 1.0):
            raise ValueError("geometric_decrease must lie in (0, 1)")
        if not (0.0 < sufficient_decrease < 1.0):
            raise ValueError("sufficient_decrease must lie in (0, 1)")
        if max_iterations <= 0:
            raise ValueError("max_iterations must be positive")
        self.initial_step = float(initial_step)
        self.geometric_decrease = float(geometric_decrease)
        self.sufficient_decrease = float(sufficient_decrease)
        self.max_iterations = int(max_iterations)

    def minimize_along_direction(
        self,
        function: DirectionalFunction,
        value: float,
        gradient: Optional[Array] = None,
    ) -> LineSearchResult:
        gradient = _gradient_at_offset(function, gradient)
        slope = float(gradient @ function.direction)
        start = function.point(0.0)
        if slope == 0.0:
            return LineSearchResult(InputOutputPair(start, float(value)), (start, gradient))

        sign = _orientation(slope)
        best_step, best_value = 0.0, float(value)
        step = self.initial_step
        for _ in range(self.max_iterations):
            trial_value = function.evaluate(sign * step)
            if trial_value < best_value:
                best_step, best_value = step, trial_value
            if goldstein_condition(
                value, sign * slope, step, trial_value, self.sufficient_decrease
            ):
                best_step, best_value = step, trial_value
                break
            step *= self.geometric_decrease

        if best_step == 0.0:
            return LineSearchResult(InputOutputPair(start, float(value)), (start, gradient))
        return LineSearchResult(
            InputOutputPair(function.point(sign * best_step), float(best_value))
        )


class LineMinimizerDerivativeFree:
    """Golden-ratio bracketing followed by Brent's parabolic sectioning.

    Only objective values are used, so the result never carries a gradient.
    A supplied gradient merely picks the side of the offset that is searched
    first. The returned point is never worse than the offset.

    Args:
        tolerance: Relative precision of the step at which sectioning stops.
        max_iterations: Budget for each of the two phases.
        initial_step: Distance of the first trial point from the offset.

    References:
        - Press et al., *Numerical Recipes in C*, 2nd ed. (1992), section 10.1-10.2
    """

    GOLDEN_RATIO = 1.618034
    CGOLD = 0.3819660
    STEP_MAX = 100.0
    TINY = 1e-20
    ZEPS = 1e-10

    def __init__(
        self,
        tolerance: float = 1e-6,
        max_iterations: int = 100,
        initial_step: float = 1.0,
    ) -> None:
        if tolerance < 0.0:
            raise ValueError("tolerance must be non-negative")
        if max_iterations <= 0:
            raise ValueError("max_iterations must be positive")
        if initial_step <= 0.0:
            raise ValueError("initial_step must be positive")
        self.tolerance = float(tolerance)
        self.max_iterations = int(max_iterations)
        self.initial_step = float(initial_step)

    def minimize_along_direction(
        self,
        function: DirectionalFunction,
        value: float,
        gradient: Optional[Array] = None,
    ) -> LineSearchResult:
        value = float(value)
        sign = 1.0
        if gradient is not None:
            if float(np.asarray(gradient, dtype=float) @ function.direction) > 0.0:
                sign = -1.0

        def phi(step: float) -> float:
            return function.evaluate(sign * step)

        a, b, c, fa, fb, fc = self._bracket(phi, value)
        if fc < fb:
            # Still descending when the budget ran out.
            step, best = c, fc
        else:
            step, best = self._brent(phi, a, b, c, fb)
        if not best < value:
            return LineSearchResult(InputOutputPair(function.point(0.0), value))
        return LineSearchResult(InputOutputPair(function.point(sign * step), best))

    def _bracket(self, phi, value: float):
        """Walk downhill until ``f(b) <= f(c)`` with ``f(b) <= f(a)``."""
        a, fa = 0.0, value
        b = self.initial_step
        fb = phi(b)
        if fb > fa:
            a, b, fa, fb = b, a, fb, fa
        c = b + self.GOLDEN_RATIO * (b - a)
        fc = phi(c)
        for _ in range(self.max_iterations):
            if fb <= fc:
                break
            r = (b - a) * (fb - fc)
            q = (b - c) * (fb - fa)
            denom = 2.0 * math.copysign(max(abs(q - r), self.TINY), q - r)
            u = b - ((b - c) * q - (b - a) * r) / denom
            limit = b + self.STEP_MAX * (c - b)
            if (b - u) * (u - c) > 0.0:
                fu = phi(u)
                if fu < fc:
                    return b, u, c, fb, fu, fc
                if fu > fb:
                    return a, b, u, fa, fb, fu
                u = c + self.GOLDEN_RATIO * (c - b)
                fu = phi(u)
            elif (c - u) * (u - limit) > 0.0:
                fu = phi(u)
                if fu < fc:
                    b, c, u = c, u, u + self.GOLDEN_RATIO * (u - c)
                    fb, fc, fu = fc, fu, phi(u)
            elif (u - limit) * (limit - c) >= 0.0:
                u = limit
                fu = phi(u)
            else:
                u = c + self.GOLDEN_RATIO * (c - b)
                fu = phi(u)
            a, b, c = b, c, u
            fa, fb, fc = fb, fc, fu
        return a, b, c, fa, fb, fc

    def _brent(self, phi, a: float, b: float, c: float, fb: float):
        lo, hi = min(a, c), max(a, c)
        x = w = v = b
        fx = fw = fv = fb
        d = e = 0.0
        for _ in range(self.max_iterations):
            mid = 0.5 * (lo + hi)
            tol1 = self.tolerance * abs(x) + self.ZEPS
            tol2 = 2.0 * tol1
            if abs(x - mid) <= tol2 - 0.5 * (hi - lo):
                break
            golden = True
            if abs(e) > tol1:
                r = (x - w) * (fx - fv)
                q = (x - v) * (fx - fw)
                p = (x - v) * q - (x - w) * r
                q = 2.0 * (q - r)
                if q > 0.0:
                    p = -p
                q = abs(q)
                previous = e
                e = d
                if (
                    abs(p) < abs(0.5 * q * previous)
                    and q * (lo - x) < p < q * (hi - x)
                ):
                    golden = False
                    d = p / q
                    u = x + d
                    if u - lo < tol2 or hi - u < tol2:
                        d = math.copysign(tol1, mid - x)
            if golden:
                e = (lo - x) if x >= mid else (hi - x)
                d = self.CGOLD * e
            u = x + d if abs(d) >= tol1 else x + math.copysign(tol1, d)
            fu = phi(u)
            if fu <= fx:
                if u >= x:
                    lo = x
                else:
                    hi = x
                v, w, x = w, x, u
                fv, fw, fx = fw, fx, fu
            else:
                if u < x:
                    lo = u
                else:
                    hi = u
                if fu <= fw or w == x:
                    v, w = w, u
                    fv, fw = fw, fu
                elif fu <= fv or v == x or v == w:
                    v, fv = u, fu
        return x, fx


__all__ = [
    "LineMinimizer",
    "LineMinimizerBacktracking",
    "LineMinimizerDerivativeBased",
    "LineMinimizerDerivativeFree",
    "LineSearchResult",
    "WolfeConditions",
    "goldstein_condition",
    "strict_curvature_condition",
]
