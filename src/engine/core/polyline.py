"""
どこで: `engine.core.polyline`
何を: 閉じた 3D 点列 `Polyline` と、その最良近似平面・平面ローカル 2D 座標・2D 境界のキャッシュ。
なぜ: アウトライン（クリップ/押し出し/ピッキング対象）を 1 つの不変値として扱い、
      平面推定などの計算を生成時に 1 度だけ行うため。

データモデル（不変条件）:
- `points: float64 ndarray (N, 3)`、読み取り専用。末尾→先頭は暗黙に接続（閉路）。
- `normal` は Newell 法による単位法線。`N < 3` または全点共線なら `None`（`plane_is_valid=False`）。
- 平面ローカル 2D 座標は法線の支配軸を落とした射影:
    |nz| 最大 → (x, y) / |nx| 最大 → (y, z) / |ny| 最大 → (z, x)。平面無効時は (x, y)。
- 2D から 3D へ戻すとき、平面無効なら落とした軸（z）は元の辺に沿って補間する。
  XY 平面上の点列では 2D 座標がそのまま (x, y) になる。
- 2D 境界 `(min2, max2)` は上記 2D 座標の成分別 min/max。

補足:
- 点配列は書き込み不可のため、インスタンスの共有（クリッパーの「全域内側」経路の同一返却）は安全。
"""

from __future__ import annotations

from functools import cached_property
from typing import Iterable, Optional, Sequence

import numpy as np

from common.types import Vec2Like, Vec3Like
from util.ray_kernels import point_in_polygon

from .primitives import Plane, as_vec3

_AXES_XY = (0, 1, 2)
_AXES_YZ = (1, 2, 0)
_AXES_ZX = (2, 0, 1)


def _normalize_points(points: np.ndarray | Sequence[Sequence[float]]) -> np.ndarray:
    arr = np.array(points, dtype=np.float64)
    if arr.size == 0:
        return np.zeros((0, 3), dtype=np.float64)
    if arr.ndim != 2 or arr.shape[1] not in (2, 3):
        raise ValueError(f"点列の形状は (N, 2) または (N, 3) である必要があります: {arr.shape}")
    if arr.shape[1] == 2:
        arr = np.hstack([arr, np.zeros((arr.shape[0], 1), dtype=np.float64)])
    return np.ascontiguousarray(arr)


def _newell_normal(points: np.ndarray) -> Optional[np.ndarray]:
    """Newell 法で法線を求める。面積がほぼ 0（共線/退化）なら None。"""
    if points.shape[0] < 3:
        return None
    nxt = np.roll(points, -1, axis=0)
    x, y, z = points[:, 0], points[:, 1], points[:, 2]
    xn, yn, zn = nxt[:, 0], nxt[:, 1], nxt[:, 2]
    n = np.array(
        [
            np.sum((y - yn) * (z + zn)),
            np.sum((z - zn) * (x + xn)),
            np.sum((x - xn) * (y + yn)),
        ],
        dtype=np.float64,
    )
    length = float(np.linalg.norm(n))
    extent = float(np.max(np.ptp(points, axis=0)))
    if not np.isfinite(length) or length <= 1e-12 * max(1.0, extent * extent):
        return None
    return n / length


class Polyline:
    """閉じた 3D 点列（読み取り専用）。"""

    def __init__(self, points: np.ndarray | Sequence[Sequence[float]]) -> None:
        pts = _normalize_points(points)
        pts.setflags(write=False)
        self._points = pts
        self._normal = _newell_normal(pts)
        if self._normal is None:
            self._plane = None
            self._axes = _AXES_XY
        else:
            centroid = np.mean(pts, axis=0)
            self._plane = Plane(self._normal, float(-np.dot(self._normal, centroid)))
            self._axes = self._dominant_axes(self._normal)

    # ── ファクトリ ───────────────────
    @classmethod
    def from_vector3(cls, points: Iterable[Vec3Like]) -> "Polyline":
        return cls(np.asarray([as_vec3(p) for p in points], dtype=np.float64))

    @classmethod
    def from_vector2(cls, points: Iterable[Vec2Like]) -> "Polyline":
        """2D 点列から z=0 の Polyline を作る。"""
        arr = np.asarray(list(points), dtype=np.float64)
        if arr.size == 0:
            return cls(np.zeros((0, 3)))
        return cls(arr.reshape(-1, 2))

    @staticmethod
    def _dominant_axes(normal: np.ndarray) -> tuple[int, int, int]:
        ax, ay, az = (abs(float(c)) for c in normal)
        if az >= ax and az >= ay:
            return _AXES_XY
        if ax >= ay:
            return _AXES_YZ
        return _AXES_ZX

    # ── 基本プロパティ ────────────────
    def __len__(self) -> int:
        return int(self._points.shape[0])

    def __repr__(self) -> str:
        return f"Polyline(n={len(self)}, plane_is_valid={self.plane_is_valid})"

    @property
    def points(self) -> np.ndarray:
        return self._points

    @property
    def normal(self) -> Optional[np.ndarray]:
        return self._normal

    @property
    def plane(self) -> Optional[Plane]:
        return self._plane

    @property
    def plane_is_valid(self) -> bool:
        return self._normal is not None

    def get_vector3(self, index: int) -> np.ndarray:
        return self._points[index].copy()

    def get_vector2(self, index: int) -> np.ndarray:
        """頂点 `index` の平面ローカル 2D 座標。"""
        return self.to_local_2d(self._points[index])

    # ── 平面ローカル 2D ───────────────
    def to_local_2d(self, p: Vec3Like) -> np.ndarray:
        q = np.asarray(p, dtype=np.float64)
        u, v, _ = self._axes
        return np.array([q[u], q[v]], dtype=np.float64)

    def local_points_2d(self) -> np.ndarray:
        """全頂点の 2D 座標 `(N, 2)`。"""
        u, v, _ = self._axes
        return np.ascontiguousarray(self._points[:, [u, v]])

    def from_local_2d(self, uv: Vec2Like) -> np.ndarray:
        """2D 座標を自身の平面上の 3D 点へ戻す。

        平面無効時は落とした軸の値を、2D で最も近い辺に沿って補間する。
        """
        u, v, w = self._axes
        out = np.zeros(3, dtype=np.float64)
        out[u] = float(uv[0])
        out[v] = float(uv[1])
        if self._plane is not None:
            n = self._plane.normal
            out[w] = -(n[u] * out[u] + n[v] * out[v] + self._plane.constant) / n[w]
        elif len(self) > 0:
            out[w] = self._interpolate_dropped_axis(out[u], out[v])
        return out

    def _interpolate_dropped_axis(self, x: float, y: float) -> float:
        u, v, w = self._axes
        a = self._points
        b = np.roll(a, -1, axis=0)
        d = b - a
        len_sq = d[:, u] * d[:, u] + d[:, v] * d[:, v]
        safe = np.where(len_sq > 0.0, len_sq, 1.0)
        t = ((x - a[:, u]) * d[:, u] + (y - a[:, v]) * d[:, v]) / safe
        t = np.where(len_sq > 0.0, np.clip(t, 0.0, 1.0), 0.0)
        px = a[:, u] + d[:, u] * t
        py = a[:, v] + d[:, v] * t
        dist_sq = (px - x) ** 2 + (py - y) ** 2
        i = int(np.argmin(dist_sq))
        return float(a[i, w] + d[i, w] * t[i])

    def with_local_points(self, uv_points: Iterable[Vec2Like]) -> "Polyline":
        """2D 点列を自身の平面へ持ち上げた新しい Polyline を返す。"""
        lifted = [self.from_local_2d(uv) for uv in uv_points]
        if not lifted:
            return Polyline(np.zeros((0, 3)))
        return Polyline(np.vstack(lifted))

    @cached_property
    def _bounds_2d(self) -> tuple[np.ndarray, np.ndarray]:
        if len(self) == 0:
            return np.zeros(2), np.zeros(2)
        local = self.local_points_2d()
        return local.min(axis=0), local.max(axis=0)

    def get_bounds_2d(self) -> tuple[np.ndarray, np.ndarray]:
        """平面ローカル 2D の `(min, max)`（キャッシュ済み）。"""
        lo, hi = self._bounds_2d
        return lo.copy(), hi.copy()

    def contains_point(self, p: Vec3Like) -> bool:
        """点（平面上にあると仮定）が多角形の内側か。平面無効なら False。"""
        if not self.plane_is_valid:
            return False
        uv = self.to_local_2d(p)
        return bool(point_in_polygon(self.local_points_2d(), float(uv[0]), float(uv[1])))


__all__ = ["Polyline"]
