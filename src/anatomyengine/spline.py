"""Piecewise-polynomial continuous maps built from control points.

A spline is constructed once from a :class:`ControlPointTable`, an ordered
list of ``(parameter, value)`` pairs with strictly increasing parameters,
and stores one polynomial per segment between consecutive knots.  The
polynomials are written in the local coordinate ``s = t - t_i`` with
coefficients in ascending powers.

Variants
========

- :class:`LinearSpline1D` (at least 2 points): piecewise linear.
- :class:`QuadraticSpline1D` (at least 3 points): piecewise quadratic with
  a continuous first derivative.  The slope at the first knot is the slope
  of the parabola through the first three control points, which fixes the
  remaining segments.
- :class:`CubicSpline1D` (at least 3 points): natural cubic spline,
  continuous up to the second derivative, with zero second derivative at
  both end knots.
- :class:`SpatialCubicSpline` (at least 3 points): natural cubic spline
  through 3-vectors; the three coordinate channels share the knots and
  the linear system that determines the second derivatives.

Evaluation locates the segment by binary search over the knots.  A
parameter outside ``[first knot, last knot]`` is not an error: it is
evaluated with the polynomial of the nearest boundary segment, so the
spline extrapolates smoothly.

Every spline interpolates its control points; at the knots the stored
control values are returned.
"""

from __future__ import annotations

import logging
from abc import abstractmethod
from bisect import bisect_right
from collections.abc import Mapping
from math import isfinite
from numbers import Real
from typing import Iterator, Sequence, Tuple, Union

import numpy as np

from anatomyengine.calculus import ContinuousMap
from anatomyengine.errors import ControlPointError
from anatomyengine.geom import Value

logger = logging.getLogger(__name__)

PointsLike = Union["ControlPointTable", Mapping, Sequence]


class ControlPointTable:
    """Validated, ordered ``(parameter, value)`` pairs.

    ``points`` is either a sequence of pairs, which must already be in
    strictly increasing parameter order, or a mapping from parameter to
    value, which is sorted by parameter.  Values are all floats or all
    tuples of the same length.
    """

    def __init__(self, points: Union[Mapping, Sequence], *, minimum: int = 2):
        if isinstance(points, Mapping):
            items = sorted(points.items(), key=lambda item: item[0])
        else:
            items = list(points)

        if len(items) < minimum:
            raise ControlPointError(
                f"at least {minimum} control points are required, got {len(items)}")

        parameters = []
        values = []
        channels = None
        for index, item in enumerate(items):
            try:
                parameter, value = item
            except (TypeError, ValueError):
                raise ControlPointError(
                    f"control point {index} is not a (parameter, value) pair") from None
            if not isinstance(parameter, Real) or not isfinite(parameter):
                raise ControlPointError(f"control point {index} has invalid parameter {parameter!r}")
            value, width = _coerce_value(value, index)
            if channels is None:
                channels = width
            elif width != channels:
                raise ControlPointError(
                    f"control point {index} does not match the shape of the first value")
            if parameters and parameter <= parameters[-1]:
                if parameter == parameters[-1]:
                    raise ControlPointError(f"duplicate control point parameter {parameter!r}")
                raise ControlPointError(
                    f"control point parameters must be strictly increasing "
                    f"({parameter!r} follows {parameters[-1]!r})")
            parameters.append(float(parameter))
            values.append(value)

        self._parameters = tuple(parameters)
        self._values = tuple(values)
        self._channels = channels

    @classmethod
    def coerce(cls, points: PointsLike, *, minimum: int = 2) -> "ControlPointTable":
        if isinstance(points, cls):
            if len(points) < minimum:
                raise ControlPointError(
                    f"at least {minimum} control points are required, got {len(points)}")
            return points
        return cls(points, minimum=minimum)

    @property
    def parameters(self) -> Tuple[float, ...]:
        return self._parameters

    @property
    def values(self) -> Tuple[Value, ...]:
        return self._values

    @property
    def is_scalar(self) -> bool:
        return self._channels == 0

    @property
    def channels(self) -> int:
        """Number of value components, 1 for scalar tables."""
        return max(1, self._channels)

    @property
    def domain(self) -> Tuple[float, float]:
        return self._parameters[0], self._parameters[-1]

    def as_array(self) -> np.ndarray:
        """Values as a float array of shape ``(len(self), channels)``."""
        return np.asarray(self._values, dtype=float).reshape(len(self), self.channels)

    def __len__(self) -> int:
        return len(self._parameters)

    def __iter__(self) -> Iterator[Tuple[float, Value]]:
        return iter(zip(self._parameters, self._values))

    def __repr__(self):
        return f"ControlPointTable({list(self)!r})"


def _coerce_value(value, index: int):
    if isinstance(value, Real) and not isinstance(value, bool):
        if not isfinite(value):
            raise ControlPointError(f"control point {index} has non-finite value")
        return float(value), 0
    try:
        comps = tuple(float(c) for c in value)
    except (TypeError, ValueError):
        raise ControlPointError(f"control point {index} has invalid value {value!r}") from None
    if not comps or not all(isfinite(c) for c in comps):
        raise ControlPointError(f"control point {index} has invalid value {value!r}")
    return comps, len(comps)


class PiecewisePolynomial(ContinuousMap):
    """Shared segment lookup and evaluation for all spline variants.

    Subclasses set ``minimum_points`` and implement :meth:`_fit`, which
    returns an array of shape ``(segments, degree + 1, channels)``.
    """

    minimum_points = 2

    def __init__(self, points: PointsLike):
        table = ControlPointTable.coerce(points, minimum=self.minimum_points)
        self._check_table(table)
        knots = np.asarray(table.parameters, dtype=float)
        coefficients = self._fit(knots, table.as_array())

        self._table = table
        self._knots = table.parameters
        self._scalar = table.is_scalar
        # plain floats keep evaluation independent of numpy scalar types
        self._segments = tuple(
            tuple(tuple(float(c) for c in coefficients[seg, :, ch])
                  for ch in range(coefficients.shape[2]))
            for seg in range(coefficients.shape[0]))
        logger.debug("built %s: %d segments over [%g, %g]",
                     type(self).__name__, len(self._segments), self._knots[0], self._knots[-1])

    def _check_table(self, table: ControlPointTable) -> None:
        pass

    @abstractmethod
    def _fit(self, knots: np.ndarray, values: np.ndarray) -> np.ndarray:
        """Segment coefficients, lowest power first, for ``values`` at ``knots``."""

    @property
    def knots(self) -> Tuple[float, ...]:
        return self._knots

    @property
    def control_points(self) -> ControlPointTable:
        return self._table

    @property
    def domain(self) -> Tuple[float, float]:
        return self._knots[0], self._knots[-1]

    def segment_index(self, t: float) -> int:
        """Index of the segment used to evaluate ``t``, clamped to the
        boundary segments outside the knot range."""

        index = bisect_right(self._knots, t) - 1
        return min(max(index, 0), len(self._segments) - 1)

    def evaluate(self, t: float) -> Value:
        t = float(t)
        if t == self._knots[-1]:
            return self._table.values[-1]
        index = self.segment_index(t)
        s = t - self._knots[index]
        values = tuple(_horner_ascending(coeffs, s) for coeffs in self._segments[index])
        return values[0] if self._scalar else values

    def derivative(self, t: float, order: int = 1) -> Value:
        t = float(t)
        index = self.segment_index(t)
        s = t - self._knots[index]
        values = tuple(_horner_ascending(_differentiate(coeffs, order), s)
                       for coeffs in self._segments[index])
        return values[0] if self._scalar else values

    def segment_coefficients(self, index: int):
        """Ascending-power coefficients of segment ``index``, one tuple per channel."""
        return self._segments[index]


def _horner_ascending(coeffs: Sequence[float], s: float) -> float:
    value = 0.0
    for c in reversed(coeffs):
        value = value * s + c
    return value


def _differentiate(coeffs: Sequence[float], order: int) -> Tuple[float, ...]:
    for _ in range(order):
        if len(coeffs) <= 1:
            return (0.0,)
        coeffs = tuple(k * c for k, c in enumerate(coeffs) if k > 0)
    return tuple(coeffs)


def _require_scalar(table: ControlPointTable, name: str) -> None:
    if not table.is_scalar:
        raise ControlPointError(f"{name} needs scalar control values")


class LinearSpline1D(PiecewisePolynomial):
    """Piecewise linear interpolation of scalar control points."""

    minimum_points = 2

    def _check_table(self, table):
        _require_scalar(table, type(self).__name__)

    def _fit(self, knots, values):
        h = np.diff(knots)[:, None]
        slope = np.diff(values, axis=0) / h
        return np.stack([values[:-1], slope], axis=1)


class QuadraticSpline1D(PiecewisePolynomial):
    """Piecewise quadratic interpolation with continuous slope."""

    minimum_points = 3

    def _check_table(self, table):
        _require_scalar(table, type(self).__name__)

    def _fit(self, knots, values):
        h = np.diff(knots)[:, None]
        delta = np.diff(values, axis=0) / h
        count = len(h)
        b = np.empty_like(delta)
        c = np.empty_like(delta)
        b[0] = delta[0] - h[0] * (delta[1] - delta[0]) / (h[0] + h[1])
        for i in range(count):
            c[i] = (delta[i] - b[i]) / h[i]
            if i + 1 < count:
                b[i + 1] = 2.0 * delta[i] - b[i]
        return np.stack([values[:-1], b, c], axis=1)


def _natural_cubic(knots: np.ndarray, values: np.ndarray) -> np.ndarray:
    """Coefficients of the natural cubic spline through ``values``.

    Solves for the second derivatives at the interior knots (zero at both
    ends) with one system shared by every channel.
    """

    n = len(knots)
    h = np.diff(knots)
    delta = np.diff(values, axis=0) / h[:, None]
    second = np.zeros_like(values)
    if n > 2:
        size = n - 2
        system = np.zeros((size, size))
        idx = np.arange(size)
        system[idx, idx] = 2.0 * (h[:-1] + h[1:])
        system[idx[1:], idx[:-1]] = h[1:-1]
        system[idx[:-1], idx[1:]] = h[1:-1]
        rhs = 6.0 * (delta[1:] - delta[:-1])
        second[1:-1] = np.linalg.solve(system, rhs)
    hh = h[:, None]
    a = values[:-1]
    b = delta - hh * (2.0 * second[:-1] + second[1:]) / 6.0
    c = second[:-1] / 2.0
    d = (second[1:] - second[:-1]) / (6.0 * hh)
    return np.stack([a, b, c, d], axis=1)


class CubicSpline1D(PiecewisePolynomial):
    """Natural cubic spline through scalar control points."""

    minimum_points = 3

    def _check_table(self, table):
        _require_scalar(table, type(self).__name__)

    def _fit(self, knots, values):
        return _natural_cubic(knots, values)


class SpatialCubicSpline(PiecewisePolynomial):
    """Natural cubic spline through 3D points; evaluates to ``Vec3``."""

    minimum_points = 3

    def _check_table(self, table):
        if table.is_scalar or table.channels != 3:
            raise ControlPointError("SpatialCubicSpline needs 3-vector control values")

    def _fit(self, knots, values):
        return _natural_cubic(knots, values)


__all__ = [
    "ControlPointTable",
    "PiecewisePolynomial",
    "LinearSpline1D",
    "QuadraticSpline1D",
    "CubicSpline1D",
    "SpatialCubicSpline",
]
