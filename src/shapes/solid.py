"""
どこで: `shapes.solid`
何を: 直方体の 6 面を閉 Polyline として生成し、面の三角形分割からピック用メッシュを持つ `Solid` を作る。
なぜ: シーン上の立体（キューブ等）をレイで選択するための最小構成を、コア幾何だけで組み立てるため。

面の並び（頂点番号は下図）:
- 0: z- 側 `[0, 1, 2, 3]` / 1: z+ 側 `[5, 4, 7, 6]`
- 2: x+ 側 `[1, 5, 6, 2]` / 3: x- 側 `[4, 0, 3, 7]`
- 4: y+ 側 `[3, 2, 6, 7]` / 5: y- 側 `[4, 5, 1, 0]`

    #      7 -------- 6
    #     /|         /|
    #    3 -------- 2 |
    #    | 4 -------|-5
    #    |/         |/
    #    0 -------- 1
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import numpy as np

from common.types import Vec3Like
from engine.core.polyline import Polyline
from engine.core.primitives import Ray, as_vec3
from engine.core.triangle_mesh import TriangleMesh, TriangleMeshHitDetails

logger = logging.getLogger(__name__)

_FACE_INDICES: tuple[tuple[int, int, int, int], ...] = (
    (0, 1, 2, 3),
    (5, 4, 7, 6),
    (1, 5, 6, 2),
    (4, 0, 3, 7),
    (3, 2, 6, 7),
    (4, 5, 1, 0),
)


def _box_corners(center: np.ndarray, half: np.ndarray) -> np.ndarray:
    cx, cy, cz = center
    hx, hy, hz = half
    return np.array(
        [
            [cx - hx, cy - hy, cz - hz],
            [cx + hx, cy - hy, cz - hz],
            [cx + hx, cy + hy, cz - hz],
            [cx - hx, cy + hy, cz - hz],
            [cx - hx, cy - hy, cz + hz],
            [cx + hx, cy - hy, cz + hz],
            [cx + hx, cy + hy, cz + hz],
            [cx - hx, cy + hy, cz + hz],
        ],
        dtype=np.float64,
    )


def create_rectangular_solid_faces(center: Vec3Like, dimensions: Vec3Like) -> list[Polyline]:
    """中心と `(幅, 高さ, 奥行き)` から直方体の 6 面を返す。"""
    corners = _box_corners(as_vec3(center), as_vec3(dimensions) * 0.5)
    return [Polyline(corners[list(idx)]) for idx in _FACE_INDICES]


def create_cube_faces(center: Vec3Like, size: float) -> list[Polyline]:
    """一辺 `size` の立方体の 6 面。"""
    s = float(size)
    return create_rectangular_solid_faces(center, (s, s, s))


class Solid:
    """面の集合と、その扇分割から作ったピック用 `TriangleMesh` を持つ立体。

    ピックメッシュの容量は平面が有効な面の扇三角形数の合計（面 1 枚あたり `len(face) - 2`）。
    平面が無効な面は三角形を書かない。
    """

    def __init__(self, faces: Sequence[Polyline], name: str, dimensions: Vec3Like) -> None:
        self.faces = list(faces)
        self.name = name
        self.dimensions = as_vec3(dimensions)
        capacity = sum(max(len(f) - 2, 0) for f in self.faces if f.plane_is_valid)
        self.pick_geometry = TriangleMesh(capacity)

        current = 0
        for face in self.faces:
            current = self.pick_geometry.add_outline_as_tri_fan(face, current)
        self.pick_geometry.recompute_bounds()
        logger.debug("Solid %r: %d face(s) -> %d pick triangle(s)", name, len(self.faces), current)

    @classmethod
    def cube(cls, center: Vec3Like, size: float, name: str = "cube") -> "Solid":
        s = float(size)
        return cls(create_cube_faces(center, s), name, (s, s, s))

    @classmethod
    def rectangular(cls, center: Vec3Like, dimensions: Vec3Like, name: str = "solid") -> "Solid":
        return cls(create_rectangular_solid_faces(center, dimensions), name, dimensions)

    def __repr__(self) -> str:
        return f"Solid(name={self.name!r}, faces={len(self.faces)})"

    def ray_intersect(
        self, ray: Ray, epsilon: Optional[float] = None
    ) -> Optional[TriangleMeshHitDetails]:
        return self.pick_geometry.ray_intersect(ray, epsilon)


__all__ = ["Solid", "create_cube_faces", "create_rectangular_solid_faces"]
