"""Vector helpers for the AnatomyEngine geometry kernel.

Points and vectors are plain immutable tuples of floats: ``Vec2`` for the
``(u, v)`` parameter plane and ``Vec3`` for positions, tangents and
normals.  They are value types with no identity; every helper in this
module returns a new tuple.

constants
=========

``epsilon`` is the geometric zero used when deciding whether a vector or
an area has collapsed.  Redefine it at your peril.

mixed values
============

Several continuous maps are generic over their codomain: a spline may
produce a float or a ``Vec3``, and the combinators in
:mod:`anatomyengine.calculus` must add and scale either.
:func:`combine_linear` implements that weighted sum for both shapes.
"""

from __future__ import annotations

from math import sqrt
from numbers import Real
from typing import Iterable, Sequence, Tuple, Union

epsilon = 1e-9

Vec2 = Tuple[float, float]
Vec3 = Tuple[float, float, float]
Value = Union[float, Tuple[float, ...]]


def vec2(x, y=None) -> Vec2:
    """Make a ``Vec2`` from two numbers or one 2-sequence."""

    if y is None:
        if len(x) != 2:
            raise ValueError("vec2 expects two components")
        x, y = x
    return (float(x), float(y))


def vec3(x, y=None, z=None) -> Vec3:
    """Make a ``Vec3`` from three numbers or one 3-sequence."""

    if y is None and z is None:
        if len(x) != 3:
            raise ValueError("vec3 expects three components")
        x, y, z = x
    return (float(x), float(y), float(z))


def add(a: Sequence[float], b: Sequence[float]) -> Tuple[float, ...]:
    if len(a) != len(b):
        raise ValueError("cannot add vectors of different dimension")
    return tuple(x + y for x, y in zip(a, b))


def sub(a: Sequence[float], b: Sequence[float]) -> Tuple[float, ...]:
    if len(a) != len(b):
        raise ValueError("cannot subtract vectors of different dimension")
    return tuple(x - y for x, y in zip(a, b))


def scale(a: Sequence[float], s: float) -> Tuple[float, ...]:
    return tuple(x * s for x in a)


def dot(a: Sequence[float], b: Sequence[float]) -> float:
    if len(a) != len(b):
        raise ValueError("cannot take the dot product of vectors of different dimension")
    total = 0.0
    for x, y in zip(a, b):
        total += x * y
    return total


def cross(a: Sequence[float], b: Sequence[float]) -> Vec3:
    return (a[1] * b[2] - a[2] * b[1],
            a[2] * b[0] - a[0] * b[2],
            a[0] * b[1] - a[1] * b[0])


def mag(a: Sequence[float]) -> float:
    return sqrt(dot(a, a))


def normalize(a: Sequence[float]) -> Tuple[float, ...]:
    """Return ``a`` scaled to unit length.

    Raises ``ValueError`` for vectors shorter than ``epsilon``; callers that
    can tolerate a degenerate direction check :func:`mag` first.
    """

    length = mag(a)
    if length < epsilon:
        raise ValueError("cannot normalize a zero-length vector")
    return scale(a, 1.0 / length)


def lerp(a: Sequence[float], b: Sequence[float], t: float) -> Tuple[float, ...]:
    """Linear interpolation, ``a`` at ``t == 0`` and ``b`` at ``t == 1``."""

    return tuple(x + (y - x) * t for x, y in zip(a, b))


def perpendicular(a: Sequence[float]) -> Vec3:
    """Return the unit vector orthogonal to ``a`` built from the world axis
    least aligned with it."""

    n = normalize(a)
    axes = ((1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0))
    ref = min(axes, key=lambda axis: abs(dot(axis, n)))
    return normalize(sub(ref, scale(n, dot(ref, n))))


def isvalue(x) -> bool:
    """``True`` for a real number or a tuple/list of real numbers."""

    if isinstance(x, Real) and not isinstance(x, bool):
        return True
    return (isinstance(x, (tuple, list)) and len(x) > 0
            and all(isinstance(c, Real) and not isinstance(c, bool) for c in x))


def combine_linear(values: Iterable[Value], weights: Iterable[float]) -> Value:
    """Weighted sum of floats or of equal-length vectors."""

    total = None
    for value, weight in zip(values, weights):
        if isinstance(value, Real):
            term = value * weight
            total = term if total is None else total + term
        else:
            term = scale(value, weight)
            total = term if total is None else add(total, term)
    if total is None:
        raise ValueError("combine_linear needs at least one value")
    return total


__all__ = [
    "epsilon",
    "Vec2",
    "Vec3",
    "Value",
    "vec2",
    "vec3",
    "add",
    "sub",
    "scale",
    "dot",
    "cross",
    "mag",
    "normalize",
    "lerp",
    "perpendicular",
    "isvalue",
    "combine_linear",
]
