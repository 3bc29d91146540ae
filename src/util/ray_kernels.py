"""
どこで: `util` のレイ交差カーネル（Numba）。
何を: Möller–Trumbore によるレイ/三角形交差と、フラットな頂点バッファ全体の最近傍ヒット走査、
      偶奇規則の点内包判定を提供する。
なぜ: `TriangleMesh`（1 三角形ずつの参照経路）と `MeshHitTester`（バッファ一括走査）で
      同一の算術を共有し、結果が一致することを保証するため。

レイアウト前提:
- 頂点バッファは `float32` の 1 次元配列で、1 頂点 `stride` 要素、先頭 3 要素が位置 XYZ。
- 三角形 i は頂点 `3i, 3i+1, 3i+2` を専有する（インデックスバッファ無し）。
"""

from __future__ import annotations

import numpy as np
from numba import njit  # type: ignore[attr-defined]

NO_HIT = -1.0


@njit(cache=True)
def ray_triangle_t(
    p0: np.ndarray,
    p1: np.ndarray,
    p2: np.ndarray,
    origin: np.ndarray,
    direction: np.ndarray,
    epsilon: float,
) -> float:
    """レイと三角形の交差パラメータ `t` を返す（非交差は `NO_HIT`）。

    `t > epsilon` の前方交差のみ採用する。`|a| < epsilon` はレイと面が平行とみなす。
    """
    e1x = p1[0] - p0[0]
    e1y = p1[1] - p0[1]
    e1z = p1[2] - p0[2]
    e2x = p2[0] - p0[0]
    e2y = p2[1] - p0[1]
    e2z = p2[2] - p0[2]

    dx = direction[0]
    dy = direction[1]
    dz = direction[2]

    # h = dir × e2
    hx = dy * e2z - dz * e2y
    hy = dz * e2x - dx * e2z
    hz = dx * e2y - dy * e2x
    a = e1x * hx + e1y * hy + e1z * hz
    if a > -epsilon and a < epsilon:
        return NO_HIT

    f = 1.0 / a
    sx = origin[0] - p0[0]
    sy = origin[1] - p0[1]
    sz = origin[2] - p0[2]
    u = f * (sx * hx + sy * hy + sz * hz)
    if u < 0.0 or u > 1.0:
        return NO_HIT

    # q = s × e1
    qx = sy * e1z - sz * e1y
    qy = sz * e1x - sx * e1z
    qz = sx * e1y - sy * e1x
    v = f * (dx * qx + dy * qy + dz * qz)
    if v < 0.0 or u + v > 1.0:
        return NO_HIT

    t = f * (e2x * qx + e2y * qy + e2z * qz)
    if t > epsilon:
        return t
    return NO_HIT


@njit(cache=True)
def nearest_hit_in_buffer(
    verts: np.ndarray,
    triangle_count: int,
    stride: int,
    origin: np.ndarray,
    direction: np.ndarray,
    epsilon: float,
) -> tuple[int, float]:
    """バッファ内の全三角形を走査し、最小正距離のヒット `(triangle_index, t)` を返す。

    ヒット無しは `(-1, NO_HIT)`。同距離は走査順で先勝ち。
    """
    p0 = np.empty(3, dtype=np.float64)
    p1 = np.empty(3, dtype=np.float64)
    p2 = np.empty(3, dtype=np.float64)
    best_index = -1
    best_t = NO_HIT
    for i in range(triangle_count):
        base = i * 3 * stride
        for k in range(3):
            p0[k] = verts[base + k]
            p1[k] = verts[base + stride + k]
            p2[k] = verts[base + 2 * stride + k]
        t = ray_triangle_t(p0, p1, p2, origin, direction, epsilon)
        if t == NO_HIT:
            continue
        if best_index < 0 or t < best_t:
            best_index = i
            best_t = t
    return best_index, best_t


@njit(cache=True)
def point_in_polygon(polygon: np.ndarray, x: float, y: float) -> bool:
    """レイキャスティング（偶奇規則）で 2D 点の内外を判定する。

    `polygon` は `(N, 2)`（以上の列は無視）。閉路は暗黙（終点→始点を接続）。
    半開区間 `(yi > y) != (yj > y)` で頂点上の二重カウントを避ける。
    """
    n = polygon.shape[0]
    inside = False
    j = n - 1
    for i in range(n):
        xi = polygon[i, 0]
        yi = polygon[i, 1]
        xj = polygon[j, 0]
        yj = polygon[j, 1]
        if (yi > y) != (yj > y):
            x_cross = (xj - xi) * (y - yi) / (yj - yi) + xi
            if x < x_cross:
                inside = not inside
        j = i
    return inside


__all__ = ["NO_HIT", "ray_triangle_t", "nearest_hit_in_buffer", "point_in_polygon"]
