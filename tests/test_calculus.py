"""Tests for the continuous map abstraction and its combinators."""

import math
from concurrent.futures import ThreadPoolExecutor

import pytest

from anatomyengine.calculus import (
    ComposedMap,
    ConstantMap,
    ContinuousMap,
    FunctionMap,
    ProductMap,
    SumMap,
)
from anatomyengine.curves import Line
from anatomyengine.lifting import DomainToVector2
from anatomyengine.polynomial import PolynomialFunction, QuadraticFunction
from anatomyengine.spline import CubicSpline1D, SpatialCubicSpline


def _radius():
    return CubicSpline1D([(0.0, 1.0), (0.3, 0.8), (0.6, 0.9), (1.0, 0.7)])


def test_continuous_map_is_abstract():
    with pytest.raises(TypeError):
        ContinuousMap()


def test_constant_map():
    c = ConstantMap(2.5)
    assert c(0.0) == 2.5
    assert c((1.0, 2.0)) == 2.5
    assert c.derivative(3.0) == 0.0

    v = ConstantMap((1, 2, 3))
    assert v(7.0) == (1.0, 2.0, 3.0)
    assert v.derivative(7.0) == (0.0, 0.0, 0.0)


def test_constant_map_rejects_non_numbers():
    with pytest.raises(TypeError):
        ConstantMap("radius")


def test_function_map_numeric_derivative():
    f = FunctionMap(lambda x: x ** 3)
    assert f(2.0) == 8.0
    assert math.isclose(f.derivative(2.0), 12.0, rel_tol=1e-6)
    assert math.isclose(f.derivative(2.0, order=2), 12.0, rel_tol=1e-3)
    with pytest.raises(ValueError):
        f.derivative(2.0, order=3)


def test_function_map_requires_callable():
    with pytest.raises(TypeError):
        FunctionMap(3.0)


def test_composed_map_and_chain_rule():
    # (2x + 1)^2
    f = ComposedMap(QuadraticFunction(1.0, 0.0, 0.0), PolynomialFunction(2.0, 1.0))
    assert f(1.0) == 9.0
    assert f.derivative(1.0) == 12.0
    assert f.outer is not None and f.inner is not None


def test_composed_map_vector_outer():
    line = Line((0.0, 0.0, 0.0), (1.0, 2.0, 0.0))
    f = ComposedMap(line, PolynomialFunction(3.0, 0.0))
    assert f(1.0) == (3.0, 6.0, 0.0)
    assert f.derivative(1.0) == (3.0, 6.0, 0.0)


def test_composition_requires_maps():
    with pytest.raises(TypeError):
        ComposedMap(1.0, ConstantMap(1.0))
    with pytest.raises(TypeError):
        SumMap([ConstantMap(1.0), lambda x: x])


def test_sum_map_weights():
    f = SumMap([ConstantMap(1.0), QuadraticFunction(1.0, 0.0, 0.0)], [2.0, 3.0])
    assert f(2.0) == 14.0
    assert f.derivative(2.0) == 12.0


def test_sum_map_vectors():
    a = Line((0.0, 0.0, 0.0), (1.0, 0.0, 0.0))
    b = Line((0.0, 1.0, 0.0), (0.0, 0.0, 1.0))
    f = SumMap([a, b])
    assert f(2.0) == (2.0, 1.0, 2.0)


def test_sum_map_validation():
    with pytest.raises(ValueError):
        SumMap([])
    with pytest.raises(ValueError):
        SumMap([ConstantMap(1.0)], [1.0, 2.0])


def test_product_map_scales_vectors():
    f = ProductMap(PolynomialFunction(1.0, 0.0), Line((0.0, 0.0, 0.0), (1.0, 0.0, 0.0)))
    assert f(2.0) == (4.0, 0.0, 0.0)
    assert f.derivative(2.0) == (4.0, 0.0, 0.0)

    g = ProductMap(ConstantMap(2.0), QuadraticFunction(1.0, 0.0, 0.0))
    assert g(3.0) == 18.0
    assert g.derivative(3.0) == 12.0


def test_evaluation_is_repeatable():
    radius = _radius()
    center = SpatialCubicSpline([
        (0.0, (0.0, 0.0, 0.0)),
        (0.5, (0.2, 1.0, 0.1)),
        (1.0, (0.0, 2.0, 0.5)),
    ])
    lifted = DomainToVector2((1.0, 0.5), radius)
    maps_and_inputs = [(radius, 0.37), (center, 0.61), (lifted, (0.2, 0.4))]

    first = [m(x) for m, x in maps_and_inputs]
    for k in range(500):
        radius(k / 250.0 - 0.5)
        center(k / 100.0)
        lifted((k * 0.01, -k * 0.02))
    second = [m(x) for m, x in maps_and_inputs]
    assert first == second


def test_concurrent_evaluation_matches_serial():
    radius = _radius()
    params = [k / 1000.0 for k in range(-200, 1200)]
    serial = [radius(t) for t in params]
    with ThreadPoolExecutor(max_workers=8) as pool:
        parallel = list(pool.map(radius, params))
    assert parallel == serial
