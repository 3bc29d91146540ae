from __future__ import annotations

import numpy as np
import pytest

from engine.core.polyline import Polyline


def test_ccw_square_has_plus_z_normal(unit_square: Polyline) -> None:
    assert unit_square.plane_is_valid
    assert unit_square.normal is not None
    assert np.allclose(unit_square.normal, [0.0, 0.0, 1.0])
    assert unit_square.plane is not None
    assert unit_square.plane.distance_to((0.3, 0.7, 0.0)) == pytest.approx(0.0)


def test_cw_square_flips_normal() -> None:
    pl = Polyline([[0.0, 0.0, 0.0], [0.0, 1.0, 0.0], [1.0, 1.0, 0.0], [1.0, 0.0, 0.0]])
    assert pl.normal is not None
    assert np.allclose(pl.normal, [0.0, 0.0, -1.0])


def test_collinear_points_have_no_plane() -> None:
    pl = Polyline([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [2.0, 0.0, 0.0]])
    assert not pl.plane_is_valid
    assert pl.normal is None
    assert pl.plane is None


def test_fewer_than_three_points_have_no_plane() -> None:
    assert not Polyline([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0]]).plane_is_valid
    assert len(Polyline(np.zeros((0, 3)))) == 0


def test_points_are_read_only(unit_square: Polyline) -> None:
    with pytest.raises(ValueError):
        unit_square.points[0, 0] = 5.0
    # get_vector3 はコピーを返す
    v = unit_square.get_vector3(1)
    v[0] = 42.0
    assert unit_square.get_vector3(1)[0] == 1.0


def test_from_vector2_places_points_on_z0() -> None:
    pl = Polyline.from_vector2([(0.0, 0.0), (2.0, 0.0), (2.0, 1.0)])
    assert pl.points.shape == (3, 3)
    assert np.allclose(pl.points[:, 2], 0.0)
    assert np.allclose(pl.get_vector2(2), [2.0, 1.0])


def test_from_vector3() -> None:
    pl = Polyline.from_vector3([np.array([0.0, 0.0, 1.0]), (1.0, 0.0, 1.0), [0.0, 1.0, 1.0]])
    assert len(pl) == 3
    assert pl.plane is not None
    assert pl.plane.distance_to((5.0, 5.0, 1.0)) == pytest.approx(0.0)


def test_invalid_shape_raises() -> None:
    with pytest.raises(ValueError):
        Polyline(np.zeros((3, 4)))


def test_xy_outline_local_2d_is_plain_xy(unit_square: Polyline) -> None:
    assert np.allclose(unit_square.local_points_2d(), [[0, 0], [1, 0], [1, 1], [0, 1]])
    lo, hi = unit_square.get_bounds_2d()
    assert np.allclose(lo, [0.0, 0.0])
    assert np.allclose(hi, [1.0, 1.0])


def test_bounds_are_copies(unit_square: Polyline) -> None:
    lo, _ = unit_square.get_bounds_2d()
    lo[0] = -100.0
    assert unit_square.get_bounds_2d()[0][0] == 0.0


def test_yz_outline_uses_yz_coordinates() -> None:
    pl = Polyline([[3.0, 0.0, 0.0], [3.0, 2.0, 0.0], [3.0, 2.0, 1.0], [3.0, 0.0, 1.0]])
    assert pl.normal is not None
    assert abs(pl.normal[0]) == pytest.approx(1.0)
    assert np.allclose(pl.get_vector2(2), [2.0, 1.0])
    assert np.allclose(pl.from_local_2d((1.0, 0.5)), [3.0, 1.0, 0.5])


def test_local_2d_round_trip_on_tilted_plane() -> None:
    # 平面 z = x 上の四角形
    pl = Polyline([[0.0, 0.0, 0.0], [1.0, 0.0, 1.0], [1.0, 1.0, 1.0], [0.0, 1.0, 0.0]])
    assert pl.plane_is_valid
    for i in range(len(pl)):
        p = pl.get_vector3(i)
        assert np.allclose(pl.from_local_2d(pl.to_local_2d(p)), p)
    assert np.allclose(pl.from_local_2d((0.5, 0.25)), [0.5, 0.25, 0.5])


def test_with_local_points_lifts_onto_plane() -> None:
    pl = Polyline([[0.0, 0.0, 2.0], [1.0, 0.0, 2.0], [1.0, 1.0, 2.0], [0.0, 1.0, 2.0]])
    out = pl.with_local_points([(0.0, 0.0), (0.5, 0.0), (0.5, 0.5)])
    assert out is not pl
    assert np.allclose(out.points, [[0.0, 0.0, 2.0], [0.5, 0.0, 2.0], [0.5, 0.5, 2.0]])


def test_contains_point(unit_square: Polyline) -> None:
    assert unit_square.contains_point((0.5, 0.5, 0.0))
    assert not unit_square.contains_point((1.5, 0.5, 0.0))
    assert not unit_square.contains_point((-0.1, 0.5, 0.0))


def test_contains_point_on_invalid_plane_is_false() -> None:
    pl = Polyline([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [2.0, 0.0, 0.0]])
    assert not pl.contains_point((1.0, 0.0, 0.0))


def test_concave_outline_contains_point() -> None:
    # L 字（凹）
    pl = Polyline.from_vector2([(0, 0), (2, 0), (2, 1), (1, 1), (1, 2), (0, 2)])
    assert pl.contains_point((0.5, 1.5, 0.0))
    assert not pl.contains_point((1.5, 1.5, 0.0))


def test_input_array_is_copied_and_stays_writable() -> None:
    src = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])
    pl = Polyline(src)
    src[0, 0] = 9.0
    assert pl.points[0, 0] == 0.0
    assert src.flags.writeable


def test_from_local_2d_on_invalid_plane_interpolates_z_along_edges() -> None:
    pl = Polyline([[0.0, 0.0, 1.0], [4.0, 0.0, 3.0], [2.0, 0.0, 2.0]])
    assert not pl.plane_is_valid
    assert np.allclose(pl.from_local_2d((1.0, 0.0)), [1.0, 0.0, 1.5])
    assert np.allclose(pl.from_local_2d((4.0, 0.0)), [4.0, 0.0, 3.0])
