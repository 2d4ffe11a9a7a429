"""Centre curves and their local frames.

A centre curve is any continuous map from a scalar parameter to a
``Vec3``: a :class:`Line`, a :class:`~anatomyengine.spline.SpatialCubicSpline`
or a composite of either.  Sweeps need an orthonormal frame at each
parameter; :func:`curve_frame` builds one from the curve tangent and a
fixed reference axis, so the frame at ``t`` depends on ``t`` alone.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from anatomyengine.calculus import ContinuousMap
from anatomyengine.errors import GeometryError
from anatomyengine.geom import Vec3, add, cross, dot, epsilon, mag, normalize, perpendicular, scale, sub, vec3


class Line(ContinuousMap):
    """Straight centre curve ``start + t * direction``.

    ``direction`` is not normalised: its length is the distance covered
    between ``t = 0`` and ``t = 1``.
    """

    def __init__(self, start: Sequence[float], direction: Sequence[float]):
        self._start = vec3(start)
        self._direction = vec3(direction)
        if mag(self._direction) < epsilon:
            raise GeometryError("line direction must not be the zero vector")

    @classmethod
    def through(cls, start: Sequence[float], end: Sequence[float]) -> "Line":
        """Line passing through ``start`` at ``t = 0`` and ``end`` at ``t = 1``."""
        return cls(start, sub(vec3(end), vec3(start)))

    @property
    def start(self) -> Vec3:
        return self._start

    @property
    def direction(self) -> Vec3:
        return self._direction

    def evaluate(self, t: float) -> Vec3:
        return add(self._start, scale(self._direction, t))

    def derivative(self, t: float, order: int = 1) -> Vec3:
        if order == 1:
            return self._direction
        return (0.0, 0.0, 0.0)

    def closest_parameter(self, p: Sequence[float]) -> float:
        """Parameter of the point on the line nearest to ``p``."""
        d = self._direction
        return dot(sub(vec3(p), self._start), d) / dot(d, d)


@dataclass(frozen=True)
class CurveFrame:
    """Right-handed orthonormal frame: ``binormal = tangent x normal``."""

    tangent: Vec3
    normal: Vec3
    binormal: Vec3


def curve_tangent(curve: ContinuousMap, t: float) -> Vec3:
    """Unit tangent of ``curve`` at ``t``.

    Uses the curve's own :meth:`~anatomyengine.calculus.ContinuousMap.derivative`,
    which is exact for lines and splines and a central difference
    otherwise.
    """

    return normalize(curve.derivative(t))


def reference_axis(curve: ContinuousMap, t: float) -> Vec3:
    """World axis least aligned with the tangent at ``t``, made orthogonal
    to it."""

    return perpendicular(curve.derivative(t))


def curve_frame(curve: ContinuousMap, t: float, reference: Sequence[float]) -> CurveFrame:
    """Frame at ``t`` whose normal is ``reference`` with its tangential part removed.

    When the tangent becomes parallel to ``reference`` the normal falls back
    to the axis perpendicular to the tangent.
    """

    tangent = curve_tangent(curve, t)
    ref = vec3(reference)
    normal = sub(ref, scale(tangent, dot(ref, tangent)))
    if mag(normal) < 1e-6:
        normal = perpendicular(tangent)
    else:
        normal = normalize(normal)
    return CurveFrame(tangent=tangent, normal=normal, binormal=cross(tangent, normal))


__all__ = [
    "Line",
    "CurveFrame",
    "curve_tangent",
    "reference_axis",
    "curve_frame",
]
