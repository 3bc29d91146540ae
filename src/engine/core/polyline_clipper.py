"""
どこで: `engine.core.polyline_clipper`
何を: 閉じた `Polyline` を平面ローカル 2D の軸平行矩形で Sutherland–Hodgman クリップする。
なぜ: パネル内に収まらないアウトラインを押し出し前に切り詰めるため。

仕様メモ:
- クリップ辺は「内向き単位法線 + 辺上の点」で表し、`n·(p - pe) >= 0` を内側とする。
  左 `(1,0)@(left,top)` / 右 `(-1,0)@(right,top)` / 上 `(0,-1)@(left,top)` / 下 `(0,1)@(left,bottom)`。
- 高速経路: 2D 境界が矩形の完全外側なら None、完全内側なら入力インスタンスをそのまま返す（コピーしない）。
- 後処理: 連続する近接頂点（距離² ≤ eps²）を除き、先頭と重なる末尾頂点を落とす。3 頂点未満は None。
- 凸多角形に対してのみ厳密。非凸入力は破綻せず処理されるが、結果の保証はない。

2 つの実装:
- `clip`: 頂点ごとの 2D ベクトルを扱うボックス化経路。
- `clip_flat`: `[x0, y0, x1, y1, ...]` のフラットバッファを Numba カーネルで処理する経路。
  判定と算術の順序を揃えてあり、両者の出力は一致する。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np

from common.settings import get as _get_settings
from util.clip_kernels import clip_flat as _clip_flat_kernel

from .polyline import Polyline

logger = logging.getLogger(__name__)

CLIP_EPSILON = 1e-6


@dataclass(frozen=True, eq=False)
class ClipEdge:
    """凸クリップ領域の 1 辺（内向き法線と辺上の点）。"""

    normal: np.ndarray
    point_on_edge: np.ndarray

    def side(self, p: np.ndarray) -> float:
        """`n·(p - pe)`。0 以上で内側。"""
        return self.normal[0] * (p[0] - self.point_on_edge[0]) + self.normal[1] * (
            p[1] - self.point_on_edge[1]
        )


def _edges_from_rect(left: float, bottom: float, right: float, top: float) -> list[ClipEdge]:
    return [
        ClipEdge(np.array([1.0, 0.0]), np.array([left, top])),  # 左
        ClipEdge(np.array([-1.0, 0.0]), np.array([right, top])),  # 右
        ClipEdge(np.array([0.0, -1.0]), np.array([left, top])),  # 上
        ClipEdge(np.array([0.0, 1.0]), np.array([left, bottom])),  # 下
    ]


class PolylineClipper:
    """軸平行矩形 `(left, bottom, right, top)` による Polyline クリッパー。"""

    def __init__(self, *, left: float, bottom: float, right: float, top: float) -> None:
        self.left = float(left)
        self.bottom = float(bottom)
        self.right = float(right)
        self.top = float(top)
        self.clip_edges = _edges_from_rect(self.left, self.bottom, self.right, self.top)
        self._edges_flat = np.array(
            [
                [e.normal[0], e.normal[1], e.point_on_edge[0], e.point_on_edge[1]]
                for e in self.clip_edges
            ],
            dtype=np.float64,
        )

    def __repr__(self) -> str:
        return (
            f"PolylineClipper(left={self.left}, bottom={self.bottom}, "
            f"right={self.right}, top={self.top})"
        )

    # ── 高速経路 ──────────────────────
    def _classify_bounds(self, polyline: Polyline) -> Optional[bool]:
        """完全外側なら False、完全内側なら True、それ以外は None。"""
        lo, hi = polyline.get_bounds_2d()
        if hi[0] < self.left or lo[0] > self.right or hi[1] < self.bottom or lo[1] > self.top:
            return False
        if (
            lo[0] >= self.left
            and hi[0] <= self.right
            and lo[1] >= self.bottom
            and hi[1] <= self.top
        ):
            return True
        return None

    # ── ボックス化経路 ────────────────
    @staticmethod
    def _get_intersection(s: np.ndarray, p: np.ndarray, edge: ClipEdge) -> np.ndarray:
        dx = p[0] - s[0]
        dy = p[1] - s[1]
        denom = edge.normal[0] * dx + edge.normal[1] * dy
        if abs(denom) < CLIP_EPSILON:
            return s
        t = -edge.side(s) / denom
        return np.array([s[0] + dx * t, s[1] + dy * t], dtype=np.float64)

    def _clip_against_edge(self, vertices: list[np.ndarray], edge: ClipEdge) -> list[np.ndarray]:
        out: list[np.ndarray] = []
        if not vertices:
            return out
        s = vertices[-1]
        for p in vertices:
            s_inside = edge.side(s) >= 0.0
            p_inside = edge.side(p) >= 0.0
            if s_inside and p_inside:
                out.append(p)
            elif s_inside and not p_inside:
                out.append(self._get_intersection(s, p, edge))
            elif not s_inside and p_inside:
                out.append(self._get_intersection(s, p, edge))
                out.append(p)
            s = p
        return out

    @staticmethod
    def _clean(vertices: list[np.ndarray]) -> list[np.ndarray]:
        """連続重複と閉路の重複末尾を除く。"""
        if len(vertices) < 3:
            return vertices
        eps_sq = CLIP_EPSILON * CLIP_EPSILON
        unique = [vertices[0]]
        for v in vertices[1:]:
            last = unique[-1]
            dx = v[0] - last[0]
            dy = v[1] - last[1]
            if dx * dx + dy * dy > eps_sq:
                unique.append(v)
        if len(unique) > 1:
            dx = unique[-1][0] - unique[0][0]
            dy = unique[-1][1] - unique[0][1]
            if dx * dx + dy * dy < eps_sq:
                unique.pop()
        return unique

    def clip(self, polyline: Polyline) -> Optional[Polyline]:
        """クリップ結果の新しい Polyline（完全内側なら入力そのもの）。領域が消えたら None。"""
        if len(polyline) < 3:
            return None
        fast = self._classify_bounds(polyline)
        if fast is False:
            return None
        if fast is True:
            return polyline

        vertices = [row.copy() for row in polyline.local_points_2d()]
        for edge in self.clip_edges:
            vertices = self._clip_against_edge(vertices, edge)

        cleaned = self._clean(vertices)
        if len(cleaned) < 3:
            logger.debug("clip: polyline (n=%d) clipped to nothing", len(polyline))
            return None
        return polyline.with_local_points(cleaned)

    # ── フラットバッファ経路 ──────────
    def clip_flat(self, polyline: Polyline) -> Optional[Polyline]:
        """`clip` と同一結果をフラットバッファ + Numba カーネルで求める。"""
        if len(polyline) < 3:
            return None
        fast = self._classify_bounds(polyline)
        if fast is False:
            return None
        if fast is True:
            return polyline

        flat = np.ascontiguousarray(polyline.local_points_2d().reshape(-1))
        cleaned = _clip_flat_kernel(flat, self._edges_flat, CLIP_EPSILON)
        if cleaned.shape[0] < 3:
            logger.debug("clip_flat: polyline (n=%d) clipped to nothing", len(polyline))
            return None
        return polyline.with_local_points(cleaned)


def clip_polylines(
    polylines: Iterable[Polyline],
    rect: tuple[float, float, float, float],
    *,
    use_flat: Optional[bool] = None,
) -> list[Polyline]:
    """複数の Polyline を矩形 `(left, bottom, right, top)` でクリップし、残ったものだけを返す。

    `use_flat` 未指定時は `settings.CLIP_USE_FLAT_BUFFER` に従う。
    """
    left, bottom, right, top = rect
    clipper = PolylineClipper(left=left, bottom=bottom, right=right, top=top)
    flat = _get_settings().CLIP_USE_FLAT_BUFFER if use_flat is None else bool(use_flat)
    fn = clipper.clip_flat if flat else clipper.clip
    out: list[Polyline] = []
    for pl in polylines:
        clipped = fn(pl)
        if clipped is not None:
            out.append(clipped)
    return out


__all__ = ["CLIP_EPSILON", "ClipEdge", "PolylineClipper", "clip_polylines"]
