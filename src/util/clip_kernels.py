"""
どこで: `util` のクリップカーネル（Numba）。
何を: フラットな 2D 頂点バッファ `[x0, y0, x1, y1, ...]` に対する Sutherland–Hodgman クリップと後処理。
なぜ: 頂点ごとのオブジェクト生成を避ける高速経路。`PolylineClipper.clip`（ボックス化経路）と
      同一の判定・算術順序で実装し、出力が一致することを保証する。

クリップ辺の表現:
- `edges (K, 4) float64`: 各行が `[nx, ny, px, py]`（内向き単位法線と辺上の点）。
- 内側判定は `n·(p - pe) >= 0`。
"""

from __future__ import annotations

import numpy as np
from numba import njit  # type: ignore[attr-defined]


@njit(cache=True)
def _side(nx: float, ny: float, ex: float, ey: float, x: float, y: float) -> float:
    return nx * (x - ex) + ny * (y - ey)


@njit(cache=True)
def _clip_against_edge(
    src: np.ndarray, n: int, dst: np.ndarray, edge: np.ndarray, epsilon: float
) -> int:
    """`src[:2n]` を 1 辺でクリップして `dst` に書き込み、出力頂点数を返す。"""
    if n == 0:
        return 0
    nx = edge[0]
    ny = edge[1]
    ex = edge[2]
    ey = edge[3]
    count = 0
    sx = src[2 * (n - 1)]
    sy = src[2 * (n - 1) + 1]
    for i in range(n):
        px = src[2 * i]
        py = src[2 * i + 1]
        s_inside = _side(nx, ny, ex, ey, sx, sy) >= 0.0
        p_inside = _side(nx, ny, ex, ey, px, py) >= 0.0
        if s_inside != p_inside:
            # 境界との交点（平行に近い場合は s を採用）
            dx = px - sx
            dy = py - sy
            denom = nx * dx + ny * dy
            if abs(denom) < epsilon:
                ix = sx
                iy = sy
            else:
                t = -_side(nx, ny, ex, ey, sx, sy) / denom
                ix = sx + dx * t
                iy = sy + dy * t
            dst[2 * count] = ix
            dst[2 * count + 1] = iy
            count += 1
        if p_inside:
            dst[2 * count] = px
            dst[2 * count + 1] = py
            count += 1
        sx = px
        sy = py
    return count


@njit(cache=True)
def clip_flat(flat: np.ndarray, edges: np.ndarray, epsilon: float) -> np.ndarray:
    """フラット頂点列を全クリップ辺で順にクリップし、重複除去後の `(M, 2)` を返す。

    `M < 3` の場合も配列はそのまま返す（退化判定は呼び出し側）。
    """
    n = flat.shape[0] // 2
    # 1 辺あたり最大で頂点数は 2 倍
    cap = 2 * n + 2
    for _ in range(edges.shape[0]):
        cap = 2 * cap
    buf_a = np.empty(cap, dtype=np.float64)
    buf_b = np.empty(cap, dtype=np.float64)
    for i in range(2 * n):
        buf_a[i] = flat[i]

    cur = buf_a
    nxt = buf_b
    for k in range(edges.shape[0]):
        n = _clip_against_edge(cur, n, nxt, edges[k], epsilon)
        tmp = cur
        cur = nxt
        nxt = tmp

    out = np.empty((n, 2), dtype=np.float64)
    if n < 3:
        for i in range(n):
            out[i, 0] = cur[2 * i]
            out[i, 1] = cur[2 * i + 1]
        return out

    eps_sq = epsilon * epsilon
    m = 0
    out[0, 0] = cur[0]
    out[0, 1] = cur[1]
    m = 1
    for i in range(1, n):
        x = cur[2 * i]
        y = cur[2 * i + 1]
        dx = x - out[m - 1, 0]
        dy = y - out[m - 1, 1]
        if dx * dx + dy * dy > eps_sq:
            out[m, 0] = x
            out[m, 1] = y
            m += 1
    if m > 1:
        dx = out[m - 1, 0] - out[0, 0]
        dy = out[m - 1, 1] - out[0, 1]
        if dx * dx + dy * dy < eps_sq:
            m -= 1
    return out[:m].copy()


__all__ = ["clip_flat"]
