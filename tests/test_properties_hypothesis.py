import numpy as np
import pytest

hypothesis = pytest.importorskip("hypothesis", reason="hypothesis is a dev optional dependency")
from hypothesis import given, settings as hsettings, strategies as st  # type: ignore  # noqa: E402

from engine.core.mesh_hit_tester import MeshHitTester  # noqa: E402
from engine.core.polyline import Polyline  # noqa: E402
from engine.core.polyline_clipper import PolylineClipper  # noqa: E402
from engine.core.primitives import Ray  # noqa: E402
from engine.core.triangle_mesh import TriangleMesh  # noqa: E402


def _regular_polygon(cx, cy, radius, n, phase):
    angles = phase + np.arange(n) * (2.0 * np.pi / n)
    pts = np.stack([cx + radius * np.cos(angles), cy + radius * np.sin(angles)], axis=1)
    return Polyline.from_vector2(pts)


_coord = st.floats(-3.0, 3.0, allow_nan=False, allow_infinity=False)


@hsettings(deadline=None, max_examples=60)
@given(
    cx=_coord, cy=_coord,
    radius=st.floats(0.1, 3.0),
    n=st.integers(3, 9),
    phase=st.floats(0.0, 6.28),
)
def test_clip_paths_agree_and_stay_in_rect(cx, cy, radius, n, phase):
    pl = _regular_polygon(cx, cy, radius, n, phase)
    c = PolylineClipper(left=-1.0, bottom=-1.0, right=1.0, top=1.0)
    a = c.clip(pl)
    b = c.clip_flat(pl)
    if a is None:
        assert b is None
        return
    assert b is not None
    assert np.array_equal(a.points, b.points)
    lo, hi = a.get_bounds_2d()
    assert np.all(lo >= -1.0 - 1e-9)
    assert np.all(hi <= 1.0 + 1e-9)


@hsettings(deadline=None, max_examples=40)
@given(
    w=st.floats(0.2, 4.0), h=st.floats(0.2, 4.0), d=st.floats(0.1, 4.0),
    n=st.integers(3, 8),
)
def test_extrude_triangle_count_and_bounds(w, h, d, n):
    angles = np.arange(n) * (2.0 * np.pi / n)
    pts = np.stack([w * np.cos(angles), h * np.sin(angles)], axis=1)
    pl = Polyline.from_vector2(pts)
    mesh = TriangleMesh.extrude([pl], (0.0, 0.0, d))
    assert mesh.triangle_count == (n - 2) * 2 + n * 2
    bounds = mesh.get_bounds()
    assert bounds.min[2] == pytest.approx(0.0, abs=1e-6)
    assert bounds.max[2] == pytest.approx(d, rel=1e-6)


@hsettings(deadline=None, max_examples=60)
@given(
    x=st.floats(-2.0, 2.0), y=st.floats(-2.0, 2.0),
    dx=st.floats(-0.5, 0.5), dy=st.floats(-0.5, 0.5),
)
def test_hit_tester_matches_mesh_scan(x, y, dx, dy):
    square = Polyline.from_vector2([(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)])
    mesh = TriangleMesh.extrude([square], (0.0, 0.0, 1.0))
    direction = np.array([dx, dy, -1.0])
    ray = Ray(np.array([x, y, 5.0]), direction / np.linalg.norm(direction))
    a = mesh.ray_intersect(ray)
    b = MeshHitTester.intersect(mesh, ray)
    if a is None:
        assert b is None
        return
    assert b is not None
    assert np.allclose(a.hit_point, b.hit_point)
    assert a.distance == pytest.approx(b.distance)
