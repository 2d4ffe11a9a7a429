"""Ray intersection with analytic primitives.

Each intersection reduces to a polynomial in the ray parameter ``t`` and
hands it to :mod:`anatomyengine.polynomial`: spheres and cylinders give
quadratics, tori give a quartic.  Results are ascending tuples of ``t``;
with ``forward_only`` (the default) parameters behind the ray origin are
dropped.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from anatomyengine.curves import Line
from anatomyengine.errors import GeometryError
from anatomyengine.geom import Vec3, add, cross, dot, epsilon, mag, normalize, perpendicular, scale, sub, vec3
from anatomyengine.polynomial import Roots, solve_quadratic, solve_quartic


@dataclass(frozen=True)
class Ray:
    """Half-line ``origin + t * direction`` for ``t >= 0``."""

    origin: Vec3
    direction: Vec3

    def __post_init__(self):
        object.__setattr__(self, 'origin', vec3(self.origin))
        object.__setattr__(self, 'direction', vec3(self.direction))
        if mag(self.direction) < epsilon:
            raise GeometryError("ray direction must not be the zero vector")

    def at(self, t: float) -> Vec3:
        return add(self.origin, scale(self.direction, t))


def _select(roots: Roots, forward_only: bool) -> Roots:
    if forward_only:
        return tuple(t for t in roots if t >= 0.0)
    return roots


def intersect_sphere(ray: Ray, center: Sequence[float], radius: float, *,
                     forward_only: bool = True) -> Roots:
    """Ray parameters where ``ray`` meets the sphere."""

    w = sub(ray.origin, vec3(center))
    d = ray.direction
    roots = solve_quadratic(dot(d, d), 2.0 * dot(w, d), dot(w, w) - radius * radius)
    return _select(roots, forward_only)


def intersect_cylinder(ray: Ray, axis: Line, radius: float, *,
                       forward_only: bool = True) -> Roots:
    """Ray parameters where ``ray`` meets the infinite cylinder of
    ``radius`` around ``axis``."""

    a = normalize(axis.direction)
    w = sub(ray.origin, axis.start)
    d = ray.direction
    w_perp = sub(w, scale(a, dot(w, a)))
    d_perp = sub(d, scale(a, dot(d, a)))
    roots = solve_quadratic(dot(d_perp, d_perp), 2.0 * dot(w_perp, d_perp),
                            dot(w_perp, w_perp) - radius * radius)
    return _select(roots, forward_only)


def intersect_torus(ray: Ray, center: Sequence[float], axis: Sequence[float],
                    major_radius: float, minor_radius: float, *,
                    forward_only: bool = True) -> Roots:
    """Ray parameters where ``ray`` meets the torus.

    The torus is the set of points at ``minor_radius`` from the circle of
    ``major_radius`` around ``center`` in the plane orthogonal to ``axis``.
    Ray coordinates are taken in a local frame with ``axis`` as ``z``,
    where the torus satisfies
    ``(|p|^2 + R^2 - r^2)^2 = 4 R^2 (x^2 + y^2)``.
    """

    z_axis = normalize(vec3(axis))
    x_axis = perpendicular(z_axis)
    y_axis = cross(z_axis, x_axis)

    def local(v):
        return (dot(v, x_axis), dot(v, y_axis), dot(v, z_axis))

    o = local(sub(ray.origin, vec3(center)))
    d = local(ray.direction)
    R2 = major_radius * major_radius
    G = dot(d, d)
    H = 2.0 * dot(o, d)
    K = dot(o, o) + R2 - minor_radius * minor_radius
    planar_dd = d[0] * d[0] + d[1] * d[1]
    planar_od = o[0] * d[0] + o[1] * d[1]
    planar_oo = o[0] * o[0] + o[1] * o[1]
    roots = solve_quartic(G * G,
                          2.0 * G * H,
                          H * H + 2.0 * G * K - 4.0 * R2 * planar_dd,
                          2.0 * H * K - 8.0 * R2 * planar_od,
                          K * K - 4.0 * R2 * planar_oo)
    return _select(roots, forward_only)


__all__ = [
    "Ray",
    "intersect_sphere",
    "intersect_cylinder",
    "intersect_torus",
]
