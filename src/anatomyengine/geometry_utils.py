"""Triangle helpers shared by the mesh checks and the tests."""

from __future__ import annotations

from typing import Sequence

from anatomyengine.geom import Vec3, cross, epsilon, mag, sub


def triangle_normal(v0: Sequence[float], v1: Sequence[float], v2: Sequence[float]) -> Vec3 | None:
    """Return the unit normal of a triangle or ``None`` if degenerate.

    The normal follows the right-hand rule on ``v0 -> v1 -> v2``.
    """

    n = cross(sub(v1[:3], v0[:3]), sub(v2[:3], v0[:3]))
    length = mag(n)
    if length <= epsilon:
        return None
    return (n[0] / length, n[1] / length, n[2] / length)


def triangle_area(v0: Sequence[float], v1: Sequence[float], v2: Sequence[float]) -> float:
    """Return the area of a triangle."""

    return 0.5 * mag(cross(sub(v1[:3], v0[:3]), sub(v2[:3], v0[:3])))


def triangle_is_degenerate(v0, v1, v2, tol: float = epsilon) -> bool:
    """Return ``True`` if a triangle collapses under the given tolerance."""

    return triangle_area(v0, v1, v2) <= tol


def triangle_centroid(v0, v1, v2) -> Vec3:
    return (
        (v0[0] + v1[0] + v2[0]) / 3.0,
        (v0[1] + v1[1] + v2[1]) / 3.0,
        (v0[2] + v1[2] + v2[2]) / 3.0,
    )


__all__ = [
    "triangle_normal",
    "triangle_area",
    "triangle_is_degenerate",
    "triangle_centroid",
]
