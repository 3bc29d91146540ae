from __future__ import annotations

import numpy as np
import pytest

from engine.core.primitives import (
    Aabb3,
    Plane,
    Quad,
    Ray,
    as_vec2,
    as_vec3,
    compute_tex_coords,
    distance_to_line_segment,
    is_finite_vec,
    make_plane_from_vertices,
    normalized,
    normalized_or_zero,
    quads_are_equal,
)


def test_as_vec_shapes() -> None:
    assert as_vec3([1, 2, 3]).dtype == np.float64
    assert as_vec2((1, 2)).shape == (2,)
    with pytest.raises(ValueError):
        as_vec3([1, 2])
    with pytest.raises(ValueError):
        as_vec2([1, 2, 3])


def test_normalized_zero_is_not_finite() -> None:
    assert not is_finite_vec(normalized(np.zeros(3)))
    assert np.array_equal(normalized_or_zero(np.zeros(3)), np.zeros(3))
    assert np.allclose(normalized_or_zero(np.array([0.0, 3.0, 4.0])), [0.0, 0.6, 0.8])


def test_make_plane_from_vertices() -> None:
    plane = make_plane_from_vertices((0, 0, 2), (1, 0, 2), (0, 1, 2))
    assert plane is not None
    assert np.allclose(plane.normal, [0.0, 0.0, 1.0])
    assert plane.constant == pytest.approx(-2.0)
    assert plane.distance_to((7.0, -3.0, 2.0)) == pytest.approx(0.0)


def test_make_plane_from_collinear_vertices_is_none() -> None:
    assert make_plane_from_vertices((0, 0, 0), (1, 1, 1), (2, 2, 2)) is None


def test_default_plane() -> None:
    p = Plane.default()
    assert np.array_equal(p.normal, [0.0, 0.0, 1.0])
    assert p.constant == 0.0


def test_quad_points_and_equality() -> None:
    q1 = Quad.points_of((0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0))
    q2 = Quad.points_of((0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0))
    q3 = Quad.points_of((1, 0, 0), (1, 1, 0), (0, 1, 0), (0, 0, 0))
    assert q1.points.shape == (4, 3)
    assert quads_are_equal(q1, q2)
    assert not quads_are_equal(q1, q3)
    assert np.allclose(q1.surface_normal(), [0.0, 0.0, 1.0])


def test_aabb_helpers() -> None:
    box = Aabb3(np.array([0.0, 0.0, 0.0]), np.array([2.0, 4.0, 6.0]))
    assert np.allclose(box.center, [1.0, 2.0, 3.0])
    assert np.allclose(box.extent, [2.0, 4.0, 6.0])
    assert box.contains_point((2.0, 0.0, 3.0))
    assert not box.contains_point((2.1, 0.0, 3.0))
    empty = Aabb3.empty()
    assert np.array_equal(empty.min, empty.max)


def _unit_box() -> Aabb3:
    return Aabb3(np.zeros(3), np.ones(3))


def test_ray_hits_box_in_front() -> None:
    ray = Ray.origin_direction((0.5, 0.5, 5.0), (0.0, 0.0, -1.0))
    assert ray.intersects_with_aabb3(_unit_box()) == pytest.approx(4.0)


def test_ray_inside_box_has_negative_entry() -> None:
    ray = Ray.origin_direction((0.5, 0.5, 0.5), (0.0, 0.0, 1.0))
    t = ray.intersects_with_aabb3(_unit_box())
    assert t is not None and t < 0.0


def test_ray_misses_box() -> None:
    ray = Ray.origin_direction((5.0, 5.0, 5.0), (0.0, 0.0, -1.0))
    assert ray.intersects_with_aabb3(_unit_box()) is None


def test_box_behind_ray_is_none() -> None:
    ray = Ray.origin_direction((0.5, 0.5, 5.0), (0.0, 0.0, 1.0))
    assert ray.intersects_with_aabb3(_unit_box()) is None


def test_ray_at() -> None:
    ray = Ray.origin_direction((1.0, 2.0, 3.0), (0.0, 1.0, 0.0))
    assert np.allclose(ray.at(2.5), [1.0, 4.5, 3.0])


def test_compute_tex_coords_normalizes_by_box() -> None:
    uv = compute_tex_coords(
        np.array([1.0, 2.0]), np.array([3.0, 2.0]), np.array([3.0, 6.0]), 1.0, 2.0, 2.0, 4.0
    )
    assert np.allclose(uv, [[0.0, 0.0], [1.0, 0.0], [1.0, 1.0]])


def test_compute_tex_coords_degenerate_box_uses_unit_scale() -> None:
    uv = compute_tex_coords(
        np.array([1.0, 2.0]), np.array([3.0, 2.0]), np.array([5.0, 2.0]), 1.0, 2.0, 4.0, 0.0
    )
    assert np.all(np.isfinite(uv))
    assert np.allclose([p[1] for p in uv], 0.0)
    assert np.allclose(uv[2], [1.0, 0.0])


def test_distance_to_line_segment() -> None:
    assert distance_to_line_segment((1.0, 1.0, 0.0), (0, 0, 0), (2, 0, 0)) == pytest.approx(1.0)
    assert distance_to_line_segment((3.0, 0.0, 0.0), (0, 0, 0), (2, 0, 0)) == pytest.approx(1.0)
    assert distance_to_line_segment((0.0, 3.0, 4.0), (0, 0, 0), (0, 0, 0)) == pytest.approx(5.0)
