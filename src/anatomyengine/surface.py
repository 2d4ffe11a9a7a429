"""Parametric surfaces: continuous maps from ``(u, v)`` to 3D points.

Surface types:

- :class:`SweepSurface`: a ring of points swept along a centre curve,
  scaled by a radius that may vary along ``u`` or over ``(u, v)``;
- :class:`RevolutionSurface`: a sweep around a straight axis;
- :class:`HeightFieldSurface`: ``(u, v, h(u, v))`` over a rectangle.

Each surface stores its parameter domain (``u_range`` and ``v_range``),
evaluates points with :meth:`ParametricSurface.evaluate` and normals with
:meth:`ParametricSurface.normal`, and is tessellated on demand by
:meth:`ParametricSurface.generate_mesh`.

Orientation
===========

Normals are ``dP/du x dP/dv``.  For sweeps the ring is laid out so that
this points away from the centre curve, and the tessellator winds its
triangles the same way, so triangles are counter-clockwise when viewed
from outside.
"""

from __future__ import annotations

from abc import abstractmethod
from math import cos, isfinite, pi, sin
from numbers import Real
from typing import Optional, Sequence, Tuple

from anatomyengine.calculus import ConstantMap, ContinuousMap, check_map
from anatomyengine.curves import CurveFrame, Line, curve_frame, reference_axis
from anatomyengine.errors import DomainError, GeometryError
from anatomyengine.geom import Vec2, Vec3, add, cross, mag, normalize, scale, sub, vec3
from anatomyengine.lifting import DomainToVector2
from anatomyengine.mesh import UVMesh, tessellate

NORMAL_STEP = 1e-5


def _check_range(rng, name: str) -> Tuple[float, float]:
    try:
        lo, hi = (float(x) for x in rng)
    except (TypeError, ValueError):
        raise GeometryError(f"{name} must be a (min, max) pair") from None
    if not (isfinite(lo) and isfinite(hi)) or lo >= hi:
        raise GeometryError(f"{name} must satisfy min < max, got ({lo}, {hi})")
    return lo, hi


def _split_uv(uv) -> Tuple[float, float]:
    if len(uv) != 2:
        raise DomainError(f"surfaces are evaluated at (u, v), got {len(uv)} components")
    return float(uv[0]), float(uv[1])


def _difference(f, x: float, rng) -> Tuple[float, ...]:
    lo, hi = rng
    h = NORMAL_STEP * (hi - lo)
    if x - h < lo:
        # (-3 f(x) + 4 f(x + h) - f(x + 2h)) / 2h
        f0 = f(x)
        return scale(sub(scale(sub(f(x + h), f0), 4.0), sub(f(x + 2.0 * h), f0)), 0.5 / h)
    if x + h > hi:
        f0 = f(x)
        return scale(sub(scale(sub(f0, f(x - h)), 4.0), sub(f0, f(x - 2.0 * h))), 0.5 / h)
    return scale(sub(f(x + h), f(x - h)), 0.5 / h)


class ParametricSurface(ContinuousMap):
    """Base class for surfaces over a rectangular ``(u, v)`` domain."""

    def __init__(self, u_range=(0.0, 1.0), v_range=(0.0, 1.0)):
        self._u_range = _check_range(u_range, "u_range")
        self._v_range = _check_range(v_range, "v_range")

    @property
    def u_range(self) -> Tuple[float, float]:
        return self._u_range

    @property
    def v_range(self) -> Tuple[float, float]:
        return self._v_range

    @abstractmethod
    def evaluate(self, uv: Vec2) -> Vec3:
        """Point on the surface at ``uv = (u, v)``."""

    def point(self, u: float, v: float) -> Vec3:
        return self.evaluate((u, v))

    def partials(self, u: float, v: float) -> Tuple[Vec3, Vec3]:
        """Finite-difference ``(dP/du, dP/dv)``.

        Second-order differences throughout: central inside the domain and
        one-sided within a step of either boundary, so the surface is never
        sampled outside its range.
        """

        return (_difference(lambda x: self.point(x, v), u, self._u_range),
                _difference(lambda x: self.point(u, x), v, self._v_range))

    def normal(self, u: float, v: float) -> Vec3:
        """Unit normal ``dP/du x dP/dv`` at ``(u, v)``."""

        du, dv = self.partials(u, v)
        n = cross(du, dv)
        length = mag(n)
        if length == 0.0 or length <= 1e-10 * mag(du) * mag(dv):
            return self._degenerate_normal(u, v)
        return scale(n, 1.0 / length)

    def _degenerate_normal(self, u: float, v: float) -> Vec3:
        return (0.0, 0.0, 1.0)

    def generate_mesh(self, resolution_u: int, resolution_v: int, *,
                      workers: Optional[int] = None) -> UVMesh:
        """Tessellate into a :class:`~anatomyengine.mesh.UVMesh`; see
        :func:`~anatomyengine.mesh.tessellate`."""

        return tessellate(self, resolution_u, resolution_v, workers=workers)


def lift_radius(radius) -> ContinuousMap:
    """Turn a sweep radius into a map over ``(u, v)``.

    A number becomes a constant map and a map of ``u`` is lifted with
    ``DomainToVector2((1, 0), radius)``.
    """

    if isinstance(radius, Real) and not isinstance(radius, bool):
        return ConstantMap(float(radius))
    if isinstance(radius, ContinuousMap):
        return DomainToVector2((1.0, 0.0), radius)
    raise TypeError("radius must be a number or a ContinuousMap of u")


class SweepSurface(ParametricSurface):
    """Tube swept along a centre curve.

    ``P(u, v) = C(u) + r(u, v) * (cos(v) * B(u) + sin(v) * N(u))`` where
    ``C`` is the centre curve and ``(T, N, B)`` its frame at ``u``.  Pass
    either ``radius`` (a number or a map of ``u``) or ``radius_field`` (a
    map of ``(u, v)``).  The frame's reference axis is fixed at
    construction: ``reference`` when given, otherwise the world axis least
    aligned with the tangent at the middle of ``u_range``.
    """

    def __init__(self, center: ContinuousMap, radius=1.0, *,
                 radius_field: Optional[ContinuousMap] = None,
                 u_range=(0.0, 1.0), v_range=(0.0, 2.0 * pi),
                 reference: Optional[Sequence[float]] = None):
        super().__init__(u_range, v_range)
        self._center = check_map(center, "center")
        self._radius_field = radius_field is not None
        if radius_field is not None:
            self._radius = check_map(radius_field, "radius_field")
        else:
            self._radius = lift_radius(radius)
        if reference is None:
            reference = reference_axis(self._center, 0.5 * (self._u_range[0] + self._u_range[1]))
        self._reference = normalize(vec3(reference))

    @property
    def center(self) -> ContinuousMap:
        return self._center

    @property
    def radius(self) -> ContinuousMap:
        """Radius as a map of ``(u, v)``."""
        return self._radius

    @property
    def reference(self) -> Vec3:
        return self._reference

    def frame(self, u: float) -> CurveFrame:
        return curve_frame(self._center, u, self._reference)

    def ring_direction(self, u: float, v: float) -> Vec3:
        f = self.frame(u)
        return add(scale(f.binormal, cos(v)), scale(f.normal, sin(v)))

    def evaluate(self, uv: Vec2) -> Vec3:
        u, v = _split_uv(uv)
        f = self.frame(u)
        direction = add(scale(f.binormal, cos(v)), scale(f.normal, sin(v)))
        return add(self._center.evaluate(u), scale(direction, self._radius.evaluate((u, v))))

    def partials(self, u: float, v: float) -> Tuple[Vec3, Vec3]:
        """``dP/du`` by finite differences and ``dP/dv`` in closed form.

        ``dP/dv = r * (-sin(v) * B + cos(v) * N) + dr/dv * ring``, where
        ``dr/dv`` vanishes unless the sweep was built from ``radius_field``.
        """

        du = _difference(lambda x: self.point(x, v), u, self._u_range)
        f = self.frame(u)
        ring = add(scale(f.binormal, cos(v)), scale(f.normal, sin(v)))
        around = add(scale(f.binormal, -sin(v)), scale(f.normal, cos(v)))
        dv = scale(around, self._radius.evaluate((u, v)))
        if self._radius_field:
            dr = _difference(lambda x: (self._radius.evaluate((u, x)),), v, self._v_range)[0]
            dv = add(dv, scale(ring, dr))
        return du, dv

    def _degenerate_normal(self, u, v):
        return self.ring_direction(u, v)


class RevolutionSurface(SweepSurface):
    """Profile ``radius`` revolved around the axis ``origin + u * axis``."""

    def __init__(self, origin: Sequence[float], axis: Sequence[float], radius=1.0, *,
                 radius_field: Optional[ContinuousMap] = None,
                 u_range=(0.0, 1.0), v_range=(0.0, 2.0 * pi),
                 reference: Optional[Sequence[float]] = None):
        super().__init__(Line(origin, axis), radius, radius_field=radius_field,
                         u_range=u_range, v_range=v_range, reference=reference)

    @property
    def axis(self) -> Line:
        return self._center


class HeightFieldSurface(ParametricSurface):
    """``(u, v, height((u, v)))`` over ``u_range x v_range``.

    Pairs naturally with :class:`~anatomyengine.lifting.DomainToVector2` to
    raise a 1D profile into a ridged sheet.
    """

    def __init__(self, height: ContinuousMap, u_range=(0.0, 1.0), v_range=(0.0, 1.0)):
        super().__init__(u_range, v_range)
        self._height = check_map(height, "height")

    @property
    def height(self) -> ContinuousMap:
        return self._height

    def evaluate(self, uv: Vec2) -> Vec3:
        u, v = _split_uv(uv)
        return (u, v, float(self._height.evaluate((u, v))))


__all__ = [
    "NORMAL_STEP",
    "ParametricSurface",
    "SweepSurface",
    "RevolutionSurface",
    "HeightFieldSurface",
    "lift_radius",
]
