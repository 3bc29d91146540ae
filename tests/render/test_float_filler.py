from __future__ import annotations

import numpy as np
import pytest

from engine.render.float_filler import Float32ArrayFiller


def test_requires_1d_float32() -> None:
    with pytest.raises(ValueError):
        Float32ArrayFiller(np.zeros(4, dtype=np.float64))
    with pytest.raises(ValueError):
        Float32ArrayFiller(np.zeros((2, 2), dtype=np.float32))


def test_sequential_writes_advance_cursor() -> None:
    arr = np.zeros(16, dtype=np.float32)
    f = Float32ArrayFiller(arr)
    f.add_v3((1.0, 2.0, 3.0))
    f.add_v2((4.0, 5.0))
    assert f.current_position == 5
    f.add_v3t2n3((6.0, 7.0, 8.0), (9.0, 10.0), (11.0, 12.0, 13.0))
    assert f.current_position == 13
    assert arr[:13].tolist() == [float(i) for i in range(1, 14)]


def test_overflow_raises_without_partial_write() -> None:
    arr = np.zeros(4, dtype=np.float32)
    f = Float32ArrayFiller(arr)
    f.add_v2((1.0, 1.0))
    with pytest.raises(IndexError):
        f.add_v3((2.0, 2.0, 2.0))
    assert f.current_position == 2
    assert arr.tolist() == [1.0, 1.0, 0.0, 0.0]


def test_triangle_with_color() -> None:
    arr = np.zeros(21, dtype=np.float32)
    f = Float32ArrayFiller(arr)
    f.add_triangle_with_color((0, 0, 0), (1, 0, 0), (0, 1, 0), (0.1, 0.2, 0.3, 1.0))
    rows = arr.reshape(3, 7)
    assert np.allclose(rows[:, 3:], [[0.1, 0.2, 0.3, 1.0]] * 3)
    assert np.allclose(rows[1, :3], [1.0, 0.0, 0.0])


def test_textured_quad_tex_rect_order() -> None:
    arr = np.zeros(30, dtype=np.float32)
    quad = np.array([[0, 0, 0], [1, 0, 0], [1, 1, 0], [0, 1, 0]], dtype=np.float64)
    Float32ArrayFiller(arr).add_textured_quad(quad, (0.0, 0.25, 0.5, 0.75))
    rows = arr.reshape(6, 5)
    # (left, top, right, bottom) → 左下は (left, bottom)
    assert np.allclose(rows[0, 3:], [0.0, 0.75])
    assert np.allclose(rows[2, 3:], [0.5, 0.25])
    assert np.allclose(rows[5, 3:], [0.0, 0.25])
