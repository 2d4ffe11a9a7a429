"""Validation helpers for tessellated meshes."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import List, Tuple

from anatomyengine.geom import dot
from anatomyengine.geometry_utils import triangle_normal
from anatomyengine.mesh import UVMesh


def winding_matches_normals(mesh: UVMesh) -> "CheckResult":
    """Check that every triangle winds towards its vertex normals.

    A triangle is inconsistent when its right-hand-rule normal points
    away from the sum of its three vertex normals.  Degenerate triangles
    are skipped.
    """

    positions = mesh.positions
    normals = mesh.normals
    inconsistent = []
    checked = 0

    for idx, (a, b, c) in enumerate(mesh.triangles):
        face = triangle_normal(tuple(positions[a]), tuple(positions[b]), tuple(positions[c]))
        if face is None:
            continue
        checked += 1
        reference = tuple(normals[a] + normals[b] + normals[c])
        if dot(face, reference) < 0.0:
            inconsistent.append(idx)

    if not checked:
        return CheckResult(True, ['no non-degenerate faces found'])
    if inconsistent:
        return CheckResult(False, [f'{len(inconsistent)} triangles wound against their normals: '
                                   f'{inconsistent[:10]}'])
    return CheckResult(True, [])


def boundary_edges(mesh: UVMesh) -> List[Tuple[int, int]]:
    """Edges used by exactly one triangle, as sorted index pairs."""

    edges = Counter()
    for a, b, c in mesh.triangles:
        a, b, c = int(a), int(b), int(c)
        edges[_edge_key(a, b)] += 1
        edges[_edge_key(b, c)] += 1
        edges[_edge_key(c, a)] += 1
    return sorted(edge for edge, count in edges.items() if count == 1)


def _edge_key(a: int, b: int) -> tuple[int, int]:
    return (a, b) if a < b else (b, a)


@dataclass
class CheckResult:
    ok: bool
    warnings: List[str]

    def __bool__(self) -> bool:
        return self.ok


__all__ = [
    'CheckResult',
    'winding_matches_normals',
    'boundary_edges',
]
