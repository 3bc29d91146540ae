"""共通フィクスチャ。

- 乱数シード固定
- 単位正方形などの小さな Polyline 試料
- 設定（`common.settings`）のテスト後リセット
"""

from __future__ import annotations

from typing import Iterator

import numpy as np
import pytest

from common import settings
from engine.core.polyline import Polyline
from engine.core.triangle_mesh import TriangleMesh


@pytest.fixture(scope="session", autouse=True)
def np_seed() -> None:
    """NumPy の乱数を固定。"""
    np.random.seed(12345)


@pytest.fixture()
def unit_square() -> Polyline:
    """XY 平面上、反時計回りの単位正方形（法線 +Z）。"""
    return Polyline([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [1.0, 1.0, 0.0], [0.0, 1.0, 0.0]])


@pytest.fixture()
def unit_triangle_mesh() -> TriangleMesh:
    """三角形 `(0,0,0), (1,0,0), (0,1,0)`（法線 +Z）を 1 つだけ持つメッシュ。"""
    mesh = TriangleMesh(1)
    mesh.add_triangle(
        (0.0, 0.0, 0.0),
        (1.0, 0.0, 0.0),
        (0.0, 1.0, 0.0),
        (0.0, 0.0, 1.0),
        [(0.0, 0.0), (1.0, 0.0), (0.0, 1.0)],
        0,
    )
    mesh.recompute_bounds()
    return mesh


@pytest.fixture()
def fresh_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[pytest.MonkeyPatch]:
    """`PXG_*` を消した状態で設定を読み直し、終了後にも読み直す。"""
    for name in (
        "PXG_EPSILON",
        "PXG_CLIP_FLAT",
        "PXG_WARN_INVALID_OUTLINES",
        "PXG_GPU_INITIAL_RESERVE",
    ):
        monkeypatch.delenv(name, raising=False)
    settings.reload_from_env()
    yield monkeypatch
    monkeypatch.undo()
    settings.reload_from_env()
