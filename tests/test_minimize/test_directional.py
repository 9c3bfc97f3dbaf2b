import numpy as np
import pytest

from descentkit.minimize import DimensionalityMismatchError, DirectionalFunction, Problem


def make_quadratic() -> Problem:
    return Problem(fun=lambda x: float(x @ x), grad=lambda x: 2 * x, dim=2)


def test_restriction_to_ray():
    line = DirectionalFunction(make_quadratic(), np.array([1.0, 2.0]), np.array([1.0, 0.0]))
    np.testing.assert_array_equal(line.point(1.0), [2.0, 2.0])
    assert line.evaluate(0.0) == 5.0
    assert line.evaluate(1.0) == 8.0
    assert line.differentiate(1.0) == 4.0


def test_differentiate_records_last_gradient():
    line = DirectionalFunction(make_quadratic(), np.array([1.0, 2.0]), np.array([0.0, -1.0]))
    assert line.last_gradient is None
    line.differentiate(0.5)
    point, gradient = line.last_gradient
    np.testing.assert_array_equal(point, [1.0, 1.5])
    np.testing.assert_array_equal(gradient, [2.0, 3.0])


def test_offset_and_direction_are_copied():
    offset = np.array([1.0, 2.0])
    direction = np.array([1.0, 1.0])
    line = DirectionalFunction(make_quadratic(), offset, direction)
    offset[0] = 100.0
    direction[0] = 100.0
    np.testing.assert_array_equal(line.offset, [1.0, 2.0])
    np.testing.assert_array_equal(line.direction, [1.0, 1.0])

    new_direction = np.array([0.0, 1.0])
    line.direction = new_direction
    new_direction[1] = 5.0
    np.testing.assert_array_equal(line.direction, [0.0, 1.0])


def test_dimension_mismatch_raises():
    with pytest.raises(DimensionalityMismatchError):
        DirectionalFunction(make_quadratic(), np.zeros(2), np.zeros(3))
    line = DirectionalFunction(make_quadratic(), np.zeros(2), np.ones(2))
    with pytest.raises(DimensionalityMismatchError):
        line.offset = np.zeros(3)
    with pytest.raises(DimensionalityMismatchError):
        line.direction = np.zeros(1)
