"""
どこで: `engine.core.edge`
何を: 始点/終点を持つ不変の 3D 辺 `Edge` と、2D ローカル辺の 3D 配置・厳密比較ヘルパ。
なぜ: パネル枠線などを参照フレーム上で組み立て、再構築が必要かを「完全一致」で判定するため。

注意:
- 等価性/ハッシュは端点の順序を区別する（`Edge(a, b) != Edge(b, a)`）。
- 端点は float のタプルで保持する（ハッシュ可能な値型にするため）。
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Sequence

import numpy as np

from common.types import Vec3, Vec3Like


def _as_tuple3(v: Vec3Like) -> Vec3:
    arr = np.asarray(v, dtype=np.float64)
    if arr.shape != (3,):
        raise ValueError(f"Edge の端点は 3 次元である必要があります: shape={arr.shape}")
    return (float(arr[0]), float(arr[1]), float(arr[2]))


@dataclass(frozen=True)
class Edge:
    start: Vec3
    end: Vec3

    def __post_init__(self) -> None:
        # frozen のため object.__setattr__ で正規化を書き戻す
        object.__setattr__(self, "start", _as_tuple3(self.start))
        object.__setattr__(self, "end", _as_tuple3(self.end))

    @classmethod
    def zero(cls) -> "Edge":
        return cls((0.0, 0.0, 0.0), (0.0, 0.0, 0.0))

    def transform(self, origin: Vec3Like, x_axis: Vec3Like, y_axis: Vec3Like) -> "Edge":
        """ローカル 2D 辺（端点の x/y のみ使用）を `origin + x_axis*x + y_axis*y` で 3D へ写す。"""
        o = np.asarray(origin, dtype=np.float64)
        xa = np.asarray(x_axis, dtype=np.float64)
        ya = np.asarray(y_axis, dtype=np.float64)
        p1 = o + xa * self.start[0] + ya * self.start[1]
        p2 = o + xa * self.end[0] + ya * self.end[1]
        return Edge(p1, p2)

    @staticmethod
    def transform_edges(
        edges: Sequence["Edge"], origin: Vec3Like, x_axis: Vec3Like, y_axis: Vec3Like
    ) -> list["Edge"]:
        return [e.transform(origin, x_axis, y_axis) for e in edges]

    @staticmethod
    def edge_lists_are_strictly_equal(a: Sequence["Edge"], b: Sequence["Edge"]) -> bool:
        """同じ辺が同じ順序・同じ端点順で並び、座標が完全一致する場合のみ True。"""
        if len(a) != len(b):
            return False
        for e1, e2 in zip(a, b):
            if e1.start != e2.start or e1.end != e2.end:
                return False
        return True

    def copy_with(self, start: Optional[Vec3Like] = None, end: Optional[Vec3Like] = None) -> "Edge":
        kwargs = {}
        if start is not None:
            kwargs["start"] = start
        if end is not None:
            kwargs["end"] = end
        return replace(self, **kwargs)


__all__ = ["Edge"]
