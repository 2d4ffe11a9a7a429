import pytest

from anatomyengine.curves import Line
from anatomyengine.errors import GeometryError
from anatomyengine.geom import mag, sub
from anatomyengine.raycast import Ray, intersect_cylinder, intersect_sphere, intersect_torus


def test_ray_at():
    ray = Ray((1, 2, 3), (0, 0, 2))
    assert ray.origin == (1.0, 2.0, 3.0)
    assert ray.at(1.5) == (1.0, 2.0, 6.0)


def test_ray_requires_direction():
    with pytest.raises(GeometryError):
        Ray((0.0, 0.0, 0.0), (0.0, 0.0, 0.0))


class TestSphere:

    def test_two_hits(self):
        ray = Ray((-5.0, 0.0, 0.0), (1.0, 0.0, 0.0))
        assert intersect_sphere(ray, (0.0, 0.0, 0.0), 1.0) == pytest.approx((4.0, 6.0))

    def test_grazing_hit_reported_once(self):
        ray = Ray((-5.0, 1.0, 0.0), (1.0, 0.0, 0.0))
        assert intersect_sphere(ray, (0.0, 0.0, 0.0), 1.0) == pytest.approx((5.0,))

    def test_miss(self):
        ray = Ray((-5.0, 2.0, 0.0), (1.0, 0.0, 0.0))
        assert intersect_sphere(ray, (0.0, 0.0, 0.0), 1.0) == ()

    def test_origin_inside(self):
        ray = Ray((0.0, 0.0, 0.0), (1.0, 0.0, 0.0))
        assert intersect_sphere(ray, (0.0, 0.0, 0.0), 1.0) == pytest.approx((1.0,))
        assert intersect_sphere(ray, (0.0, 0.0, 0.0), 1.0,
                                forward_only=False) == pytest.approx((-1.0, 1.0))

    def test_hits_lie_on_sphere(self):
        ray = Ray((-4.0, 0.3, -0.2), (2.0, 0.1, 0.3))
        center = (0.5, 0.5, 0.5)
        hits = intersect_sphere(ray, center, 1.5)
        assert len(hits) == 2
        for t in hits:
            assert mag(sub(ray.at(t), center)) == pytest.approx(1.5)


class TestCylinder:

    def test_two_hits(self):
        ray = Ray((-5.0, 0.0, 3.0), (1.0, 0.0, 0.0))
        axis = Line((0.0, 0.0, 0.0), (0.0, 0.0, 1.0))
        assert intersect_cylinder(ray, axis, 2.0) == pytest.approx((3.0, 7.0))

    def test_parallel_to_axis(self):
        ray = Ray((1.0, 0.0, -5.0), (0.0, 0.0, 1.0))
        axis = Line((0.0, 0.0, 0.0), (0.0, 0.0, 1.0))
        assert intersect_cylinder(ray, axis, 2.0) == ()

    def test_oblique(self):
        ray = Ray((-5.0, 0.0, 0.0), (1.0, 0.0, 1.0))
        axis = Line((0.0, 0.0, 0.0), (0.0, 0.0, 3.0))
        assert intersect_cylinder(ray, axis, 1.0) == pytest.approx((4.0, 6.0))


class TestTorus:

    def test_ray_through_both_tubes(self):
        ray = Ray((-10.0, 0.0, 0.0), (1.0, 0.0, 0.0))
        hits = intersect_torus(ray, (0.0, 0.0, 0.0), (0.0, 0.0, 1.0), 3.0, 1.0)
        assert hits == pytest.approx((6.0, 8.0, 12.0, 14.0), abs=1e-6)

    def test_ray_along_axis_through_tube(self):
        ray = Ray((3.0, 0.0, -5.0), (0.0, 0.0, 1.0))
        hits = intersect_torus(ray, (0.0, 0.0, 0.0), (0.0, 0.0, 1.0), 3.0, 1.0)
        assert hits == pytest.approx((4.0, 6.0), abs=1e-6)

    def test_ray_through_hole(self):
        ray = Ray((0.0, 0.0, -5.0), (0.0, 0.0, 1.0))
        assert intersect_torus(ray, (0.0, 0.0, 0.0), (0.0, 0.0, 1.0), 3.0, 1.0) == ()

    def test_tilted_axis(self):
        ray = Ray((0.0, -10.0, 0.0), (0.0, 1.0, 0.0))
        hits = intersect_torus(ray, (0.0, 0.0, 0.0), (1.0, 0.0, 0.0), 3.0, 1.0)
        assert hits == pytest.approx((6.0, 8.0, 12.0, 14.0), abs=1e-6)

    def test_backward_hits_dropped(self):
        ray = Ray((0.0, 0.0, 0.0), (1.0, 0.0, 0.0))
        center = (0.0, 0.0, 0.0)
        axis = (0.0, 0.0, 1.0)
        assert intersect_torus(ray, center, axis, 3.0, 1.0) == pytest.approx((2.0, 4.0), abs=1e-6)
        assert intersect_torus(ray, center, axis, 3.0, 1.0,
                               forward_only=False) == pytest.approx((-4.0, -2.0, 2.0, 4.0), abs=1e-6)
