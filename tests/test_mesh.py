import dataclasses
import math

import numpy as np
import pytest

from anatomyengine.curves import Line
from anatomyengine.errors import ResolutionError
from anatomyengine.geom import dot
from anatomyengine.geometry_utils import triangle_normal
from anatomyengine.lifting import DomainToVector2
from anatomyengine.mesh import (
    RESOLUTION_PRESETS,
    UVMesh,
    Vertex,
    grid_triangles,
    resolution_preset,
    tessellate,
)
from anatomyengine.mesh_checks import boundary_edges, winding_matches_normals
from anatomyengine.polynomial import QuadraticFunction
from anatomyengine.spline import CubicSpline1D
from anatomyengine.surface import HeightFieldSurface, SweepSurface


def _cylinder():
    return SweepSurface(Line((0.0, 0.0, 0.0), (0.0, 0.0, 4.0)), 2.0)


def _bone():
    radius = CubicSpline1D([
        (-3.5, 0.644),
        (0.02, 0.644),
        (0.15, 0.56),
        (0.5, 0.49),
        (0.8, 0.532),
        (0.98, 0.56),
        (4.5, 0.56),
    ])
    return SweepSurface(Line((0.0, 0.3, 0.5), (0.001, 10.0, 0.51)), radius)


def _sheet():
    height = DomainToVector2((1.0, 0.0), QuadraticFunction(0.5, 0.0, 0.0))
    return HeightFieldSurface(height, u_range=(-1.0, 1.0), v_range=(0.0, 2.0))


@pytest.mark.parametrize("ru, rv", [(2, 2), (5, 4), (3, 7), (16, 16)])
def test_counts(ru, rv):
    mesh = _cylinder().generate_mesh(ru, rv)
    assert mesh.vertex_count == ru * rv
    assert mesh.triangle_count == 2 * (ru - 1) * (rv - 1)
    assert mesh.positions.shape == (ru * rv, 3)
    assert mesh.normals.shape == (ru * rv, 3)
    assert mesh.uvs.shape == (ru * rv, 2)
    assert mesh.triangles.shape == (2 * (ru - 1) * (rv - 1), 3)


@pytest.mark.parametrize("bad", [1, 0, -3, 2.5, True, "8"])
def test_rejects_bad_resolution(bad):
    surface = _cylinder()
    with pytest.raises(ResolutionError):
        surface.generate_mesh(bad, 8)
    with pytest.raises(ResolutionError):
        surface.generate_mesh(8, bad)


def test_resolution_error_is_value_error():
    with pytest.raises(ValueError):
        tessellate(_cylinder(), 1, 1)


def test_uv_coordinates():
    ru, rv = 5, 4
    mesh = _cylinder().generate_mesh(ru, rv)
    assert tuple(mesh.uvs[0]) == (0.0, 0.0)
    assert tuple(mesh.uvs[ru - 1]) == (1.0, 0.0)
    assert tuple(mesh.uvs[-1]) == (1.0, 1.0)
    for j in range(rv):
        for i in range(ru):
            u, v = mesh.uvs[j * ru + i]
            assert u == pytest.approx(i / (ru - 1))
            assert v == pytest.approx(j / (rv - 1))
    assert mesh.uvs.min() >= 0.0 and mesh.uvs.max() <= 1.0


def test_positions_and_normals_come_from_surface():
    surface = _bone()
    ru, rv = 6, 5
    mesh = surface.generate_mesh(ru, rv)
    (u0, u1), (v0, v1) = surface.u_range, surface.v_range
    for j in range(rv):
        v = v0 + (v1 - v0) * j / (rv - 1)
        for i in range(ru):
            u = u0 + (u1 - u0) * i / (ru - 1)
            index = j * ru + i
            assert tuple(mesh.positions[index]) == pytest.approx(surface.point(u, v), abs=1e-12)
            assert tuple(mesh.normals[index]) == pytest.approx(surface.normal(u, v), abs=1e-12)
    assert tuple(mesh.positions[-1]) == pytest.approx(surface.point(u1, v1), abs=1e-12)


def test_normals_are_unit_length():
    mesh = _bone().generate_mesh(12, 9)
    lengths = np.linalg.norm(mesh.normals, axis=1)
    assert np.allclose(lengths, 1.0)


def test_first_cell_winding():
    ru, rv = 4, 3
    triangles = grid_triangles(ru, rv)
    assert triangles[0].tolist() == [0, 1, ru + 1]
    assert triangles[1].tolist() == [0, ru + 1, ru]
    assert triangles[2].tolist() == [1, 2, ru + 2]
    assert triangles.max() == ru * rv - 1


@pytest.mark.parametrize("factory", [_cylinder, _bone, _sheet])
def test_triangles_wind_towards_normals(factory):
    mesh = factory().generate_mesh(10, 8)
    result = winding_matches_normals(mesh)
    assert result.ok, result.warnings
    for a, b, c in mesh.triangles[:20]:
        face = triangle_normal(tuple(mesh.positions[a]), tuple(mesh.positions[b]),
                               tuple(mesh.positions[c]))
        assert dot(face, tuple(mesh.normals[a])) > 0.0


def test_sheet_is_counter_clockwise_from_above():
    mesh = _sheet().generate_mesh(3, 3)
    a, b, c = mesh.triangles[0]
    face = triangle_normal(tuple(mesh.positions[a]), tuple(mesh.positions[b]),
                           tuple(mesh.positions[c]))
    assert face[2] > 0.0


def test_flipped_triangles_are_reported():
    mesh = _sheet().generate_mesh(3, 3)
    flipped = UVMesh(positions=mesh.positions, normals=mesh.normals, uvs=mesh.uvs,
                     triangles=mesh.triangles[:, ::-1])
    result = winding_matches_normals(flipped)
    assert not result
    assert "8 triangles" in result.warnings[0]


@pytest.mark.parametrize("ru, rv", [(2, 2), (5, 4), (7, 3)])
def test_grid_boundary(ru, rv):
    mesh = _sheet().generate_mesh(ru, rv)
    assert len(boundary_edges(mesh)) == 2 * (ru - 1) + 2 * (rv - 1)


def test_threaded_sampling_matches_serial():
    surface = _bone()
    serial = surface.generate_mesh(20, 15)
    threaded = surface.generate_mesh(20, 15, workers=4)
    assert np.array_equal(serial.positions, threaded.positions)
    assert np.array_equal(serial.normals, threaded.normals)
    assert np.array_equal(serial.uvs, threaded.uvs)
    assert np.array_equal(serial.triangles, threaded.triangles)


@pytest.mark.parametrize("workers", [0, -2, 1.5, True])
def test_rejects_bad_worker_count(workers):
    with pytest.raises(ValueError):
        _cylinder().generate_mesh(4, 4, workers=workers)


def test_mesh_is_read_only():
    mesh = _cylinder().generate_mesh(4, 4)
    with pytest.raises(ValueError):
        mesh.positions[0, 0] = 10.0
    with pytest.raises(ValueError):
        mesh.triangles[0, 0] = 3
    with pytest.raises(dataclasses.FrozenInstanceError):
        mesh.positions = np.zeros((16, 3))


def test_mesh_does_not_alias_inputs():
    positions = np.zeros((4, 3))
    mesh = UVMesh(positions=positions, normals=np.zeros((4, 3)), uvs=np.zeros((4, 2)),
                  triangles=[[0, 1, 2], [0, 2, 3]])
    positions[0, 0] = 5.0
    assert mesh.positions[0, 0] == 0.0


def test_mesh_validation():
    with pytest.raises(ValueError):
        UVMesh(positions=np.zeros((4, 3)), normals=np.zeros((3, 3)), uvs=np.zeros((4, 2)),
               triangles=[[0, 1, 2]])
    with pytest.raises(ValueError):
        UVMesh(positions=np.zeros((4, 3)), normals=np.zeros((4, 3)), uvs=np.zeros((4, 2)),
               triangles=[[0, 1, 4]])
    with pytest.raises(ValueError):
        UVMesh(positions=np.zeros((4, 2)), normals=np.zeros((4, 3)), uvs=np.zeros((4, 2)),
               triangles=[])


def test_vertex_records():
    mesh = _cylinder().generate_mesh(3, 3)
    vertices = list(mesh.vertices())
    assert len(vertices) == 9
    first = mesh.vertex(0)
    assert isinstance(first, Vertex)
    assert first.uv == (0.0, 0.0)
    assert first.position == pytest.approx((0.0, 2.0, 0.0), abs=1e-12)
    assert first.normal == pytest.approx((0.0, 1.0, 0.0), abs=1e-6)
    assert vertices[4].position == pytest.approx((0.0, -2.0, 2.0), abs=1e-12)


def test_presets():
    assert resolution_preset('draft') == (16, 16)
    assert resolution_preset('high') == (128, 128)
    assert set(RESOLUTION_PRESETS) == {'draft', 'standard', 'high'}
    with pytest.raises(ValueError, match="Unknown preset"):
        resolution_preset('ultra')


def test_half_turn_range():
    surface = SweepSurface(Line((0.0, 0.0, 0.0), (0.0, 0.0, 1.0)), 1.0,
                           v_range=(-0.5 * math.pi, 0.5 * math.pi))
    mesh = surface.generate_mesh(3, 5)
    assert tuple(mesh.positions[0]) == pytest.approx((-1.0, 0.0, 0.0), abs=1e-12)
    assert tuple(mesh.positions[-1]) == pytest.approx((1.0, 0.0, 1.0), abs=1e-12)


@pytest.mark.slow
def test_full_resolution_bone():
    mesh = _bone().generate_mesh(128, 128, workers=4)
    assert mesh.vertex_count == 16384
    assert mesh.triangle_count == 32258
    assert winding_matches_normals(mesh).ok
