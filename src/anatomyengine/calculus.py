"""Continuous maps: pure function objects that compose.

A :class:`ContinuousMap` turns a domain value into a codomain value
through a single operation, :meth:`ContinuousMap.evaluate`.  Domains and
codomains are either floats or the tuples of :mod:`anatomyengine.geom`;
which pair a given map works on is part of its documentation rather than
of a type hierarchy.  The hierarchy stays shallow: an abstract evaluable
base, leaf maps (constants, wrapped functions, polynomials, splines) and
composite maps that hold references to other maps and combine their
outputs.

Maps are immutable once constructed.  ``evaluate`` must be a pure function
of its argument and of construction-time parameters, so one instance can
be evaluated any number of times, from any number of threads, and always
gives bit-identical results for the same input.  Because a composite can
only wrap maps that already exist, the composition graph is a DAG that is
evaluated top-down on every call.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from numbers import Real
from typing import Callable, Optional, Sequence

from anatomyengine.geom import Value, combine_linear, isvalue, scale

DIFFERENTIATION_STEP = 1e-5


class ContinuousMap(ABC):
    """Base class for every map in the kernel."""

    @abstractmethod
    def evaluate(self, x):
        """Return the value of the map at ``x``."""

    def __call__(self, x):
        return self.evaluate(x)

    def derivative(self, x: float, order: int = 1) -> Value:
        """Derivative with respect to a scalar domain parameter.

        The default uses central finite differences with step
        ``DIFFERENTIATION_STEP``; polynomials, splines and lines override it
        with exact derivatives.  Only first and second order are available
        numerically.
        """

        h = DIFFERENTIATION_STEP * max(1.0, abs(x))
        if order == 1:
            return combine_linear((self.evaluate(x + h), self.evaluate(x - h)),
                                  (0.5 / h, -0.5 / h))
        if order == 2:
            return combine_linear((self.evaluate(x + h), self.evaluate(x), self.evaluate(x - h)),
                                  (1.0 / (h * h), -2.0 / (h * h), 1.0 / (h * h)))
        raise ValueError("finite-difference derivatives support order 1 or 2")


def check_map(obj, role: str) -> ContinuousMap:
    if not isinstance(obj, ContinuousMap):
        raise TypeError(f"{role} must be a ContinuousMap, got {type(obj).__name__}")
    return obj


def _zero_like(value: Value) -> Value:
    if isinstance(value, Real):
        return 0.0
    return tuple(0.0 for _ in value)


class ConstantMap(ContinuousMap):
    """Map that ignores its input and returns a fixed value."""

    def __init__(self, value: Value):
        if not isvalue(value):
            raise TypeError("ConstantMap value must be a number or a tuple of numbers")
        self._value = float(value) if isinstance(value, Real) else tuple(float(c) for c in value)

    @property
    def value(self) -> Value:
        return self._value

    def evaluate(self, x):
        return self._value

    def derivative(self, x, order=1):
        return _zero_like(self._value)

    def __repr__(self):
        return f"ConstantMap({self._value!r})"


class FunctionMap(ContinuousMap):
    """Wrap a plain callable as a continuous map.

    The callable must be pure; this is the closure-based way to build a
    leaf map without writing a class.
    """

    def __init__(self, func: Callable):
        if not callable(func):
            raise TypeError("FunctionMap expects a callable")
        self._func = func

    def evaluate(self, x):
        return self._func(x)


class ComposedMap(ContinuousMap):
    """``outer(inner(x))``."""

    def __init__(self, outer: ContinuousMap, inner: ContinuousMap):
        self._outer = check_map(outer, "outer")
        self._inner = check_map(inner, "inner")

    @property
    def outer(self) -> ContinuousMap:
        return self._outer

    @property
    def inner(self) -> ContinuousMap:
        return self._inner

    def evaluate(self, x):
        return self._outer.evaluate(self._inner.evaluate(x))

    def derivative(self, x, order=1):
        inner_value = self._inner.evaluate(x)
        if order == 1 and isinstance(inner_value, Real):
            # chain rule, scalar intermediate only
            inner_slope = self._inner.derivative(x)
            outer_slope = self._outer.derivative(inner_value)
            if isinstance(outer_slope, Real):
                return outer_slope * inner_slope
            return scale(outer_slope, inner_slope)
        return super().derivative(x, order)


class SumMap(ContinuousMap):
    """Weighted sum of maps sharing a domain and codomain shape."""

    def __init__(self, maps: Sequence[ContinuousMap], weights: Optional[Sequence[float]] = None):
        maps = tuple(check_map(m, "term") for m in maps)
        if not maps:
            raise ValueError("SumMap needs at least one map")
        if weights is None:
            weights = (1.0,) * len(maps)
        weights = tuple(float(w) for w in weights)
        if len(weights) != len(maps):
            raise ValueError("SumMap needs one weight per map")
        self._maps = maps
        self._weights = weights

    @property
    def maps(self):
        return self._maps

    @property
    def weights(self):
        return self._weights

    def evaluate(self, x):
        return combine_linear((m.evaluate(x) for m in self._maps), self._weights)

    def derivative(self, x, order=1):
        return combine_linear((m.derivative(x, order) for m in self._maps), self._weights)


class ProductMap(ContinuousMap):
    """Pointwise product of a scalar map with a scalar- or vector-valued map."""

    def __init__(self, factor: ContinuousMap, other: ContinuousMap):
        self._factor = check_map(factor, "factor")
        self._other = check_map(other, "other")

    def evaluate(self, x):
        f = self._factor.evaluate(x)
        g = self._other.evaluate(x)
        if isinstance(g, Real):
            return f * g
        return scale(g, f)

    def derivative(self, x, order=1):
        if order != 1:
            return super().derivative(x, order)
        f = self._factor.evaluate(x)
        df = self._factor.derivative(x)
        g = self._other.evaluate(x)
        dg = self._other.derivative(x)
        return combine_linear((g, dg), (df, f))


__all__ = [
    "DIFFERENTIATION_STEP",
    "ContinuousMap",
    "ConstantMap",
    "FunctionMap",
    "ComposedMap",
    "SumMap",
    "ProductMap",
    "check_map",
]
