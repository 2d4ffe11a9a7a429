"""Tessellation of parametric surfaces into indexed triangle meshes.

:func:`tessellate` samples a surface on a regular ``(u, v)`` grid that
includes both boundaries of each parameter range and returns a
:class:`UVMesh`: vertex positions, unit normals, texture coordinates and
triangle indices held in read-only numpy arrays.  The mesh keeps no
reference to the surface it came from; renderers convert the arrays into
their own buffer formats.

Grid layout
===========

Vertex ``j * resolution_u + i`` is the sample at the ``i``-th ``u`` and
``j``-th ``v`` value and has texture coordinate
``(i / (resolution_u - 1), j / (resolution_v - 1))``.  Each grid cell
``(i, j)`` yields two triangles, ``(i00, i10, i11)`` and
``(i00, i11, i01)``, where ``i10`` is the next vertex along ``u`` and
``i01`` the next along ``v``.  That winding is counter-clockwise when
viewed from the side the surface normals point to.

Sampling
========

Rows of the grid are independent, so with ``workers > 1`` they are
sampled in a thread pool; triangle indices depend on the resolution only
and are assembled once every row is back.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from numbers import Integral
from typing import Iterator, List, Optional, Tuple

import numpy as np

from anatomyengine.errors import ResolutionError
from anatomyengine.geom import Vec2, Vec3

logger = logging.getLogger(__name__)

RESOLUTION_PRESETS = {
    'draft': (16, 16),
    'standard': (64, 64),
    'high': (128, 128),
}


def resolution_preset(name: str) -> Tuple[int, int]:
    """Return ``(resolution_u, resolution_v)`` for a named preset."""

    if name not in RESOLUTION_PRESETS:
        raise ValueError(
            f"Unknown preset '{name}'. Available: {list(RESOLUTION_PRESETS.keys())}")
    return RESOLUTION_PRESETS[name]


@dataclass(frozen=True)
class Vertex:
    """One mesh vertex."""

    position: Vec3
    normal: Vec3
    uv: Vec2


def _frozen(values, width: int, dtype, name: str) -> np.ndarray:
    arr = np.array(values, dtype=dtype)
    if arr.size == 0:
        arr = arr.reshape(0, width)
    if arr.ndim != 2 or arr.shape[1] != width:
        raise ValueError(f"{name} must have shape (n, {width})")
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class UVMesh:
    """Indexed triangle mesh produced by :func:`tessellate`.

    ``positions`` and ``normals`` have shape ``(n, 3)``, ``uvs`` ``(n, 2)``
    and ``triangles`` ``(m, 3)``.  The arrays are copied on construction
    and made read-only.
    """

    positions: np.ndarray
    normals: np.ndarray
    uvs: np.ndarray
    triangles: np.ndarray

    def __post_init__(self):
        object.__setattr__(self, 'positions', _frozen(self.positions, 3, np.float64, 'positions'))
        object.__setattr__(self, 'normals', _frozen(self.normals, 3, np.float64, 'normals'))
        object.__setattr__(self, 'uvs', _frozen(self.uvs, 2, np.float64, 'uvs'))
        object.__setattr__(self, 'triangles', _frozen(self.triangles, 3, np.int64, 'triangles'))
        count = len(self.positions)
        if len(self.normals) != count or len(self.uvs) != count:
            raise ValueError("positions, normals and uvs must have the same length")
        if self.triangles.size and (self.triangles.min() < 0 or self.triangles.max() >= count):
            raise ValueError("triangle index out of range")

    @property
    def vertex_count(self) -> int:
        return len(self.positions)

    @property
    def triangle_count(self) -> int:
        return len(self.triangles)

    def vertex(self, index: int) -> Vertex:
        return Vertex(position=tuple(float(c) for c in self.positions[index]),
                      normal=tuple(float(c) for c in self.normals[index]),
                      uv=tuple(float(c) for c in self.uvs[index]))

    def vertices(self) -> Iterator[Vertex]:
        for index in range(self.vertex_count):
            yield self.vertex(index)


def _check_resolution(value, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise ResolutionError(f"{name} must be an integer, got {value!r}")
    if value < 2:
        raise ResolutionError(f"{name} must be at least 2, got {value}")
    return int(value)


def _samples(lo: float, hi: float, count: int) -> List[float]:
    values = [lo + (hi - lo) * k / (count - 1) for k in range(count)]
    values[-1] = hi
    return values


def grid_triangles(resolution_u: int, resolution_v: int) -> np.ndarray:
    """Triangle indices for a ``resolution_u x resolution_v`` vertex grid."""

    i, j = np.meshgrid(np.arange(resolution_u - 1), np.arange(resolution_v - 1))
    i00 = (j * resolution_u + i).ravel()
    i10 = i00 + 1
    i01 = i00 + resolution_u
    i11 = i01 + 1
    triangles = np.empty((2 * len(i00), 3), dtype=np.int64)
    triangles[0::2] = np.stack([i00, i10, i11], axis=1)
    triangles[1::2] = np.stack([i00, i11, i01], axis=1)
    return triangles


def grid_uvs(resolution_u: int, resolution_v: int) -> np.ndarray:
    i, j = np.meshgrid(np.arange(resolution_u), np.arange(resolution_v))
    return np.column_stack([(i / (resolution_u - 1)).ravel(),
                            (j / (resolution_v - 1)).ravel()])


def tessellate(surface, resolution_u: int, resolution_v: int, *,
               workers: Optional[int] = None) -> UVMesh:
    """Sample ``surface`` on a grid and return a :class:`UVMesh`.

    Parameters
    ----------
    surface : ParametricSurface
        Anything exposing ``u_range``, ``v_range``, ``point(u, v)`` and
        ``normal(u, v)``.
    resolution_u, resolution_v : int
        Number of samples along each parameter, boundaries included.  Both
        must be integers >= 2, otherwise :class:`ResolutionError` is raised.
    workers : int, optional
        Number of threads sampling grid rows.  ``None`` or 1 samples
        serially.

    Returns
    -------
    UVMesh
        ``resolution_u * resolution_v`` vertices and
        ``2 * (resolution_u - 1) * (resolution_v - 1)`` triangles.
    """

    ru = _check_resolution(resolution_u, 'resolution_u')
    rv = _check_resolution(resolution_v, 'resolution_v')
    if workers is not None and (isinstance(workers, bool) or not isinstance(workers, Integral)
                                or workers < 1):
        raise ValueError(f"workers must be a positive integer, got {workers!r}")

    us = _samples(*surface.u_range, ru)
    vs = _samples(*surface.v_range, rv)

    def sample_row(j):
        v = vs[j]
        return [(surface.point(u, v), surface.normal(u, v)) for u in us]

    if workers is not None and workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            rows = list(pool.map(sample_row, range(rv)))
    else:
        rows = [sample_row(j) for j in range(rv)]

    positions = [p for row in rows for p, _ in row]
    normals = [n for row in rows for _, n in row]
    mesh = UVMesh(positions=positions,
                  normals=normals,
                  uvs=grid_uvs(ru, rv),
                  triangles=grid_triangles(ru, rv))
    logger.debug("tessellated %s at %dx%d: %d vertices, %d triangles",
                 type(surface).__name__, ru, rv, mesh.vertex_count, mesh.triangle_count)
    return mesh


__all__ = [
    "RESOLUTION_PRESETS",
    "resolution_preset",
    "Vertex",
    "UVMesh",
    "grid_triangles",
    "grid_uvs",
    "tessellate",
]
