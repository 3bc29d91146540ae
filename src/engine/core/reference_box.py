"""
どこで: `engine.core.reference_box`
何を: 原点と基底ベクトルで定義される有向フレーム `ReferenceBox`（2D オフセット→3D 配置、平面ピッキング）。
なぜ: 2D コンテンツ（パネル/ラベル）を 3D 空間へ置き、レイで選択するための共通基盤とするため。

不変条件:
- `x_vector/y_vector/z_vector` は生の（非単位・非直交でもよい）ベクトル。`x_axis/y_axis/z_axis` は正規化版。
- いずれかの軸の正規化が非有限（長さ 0 の入力）なら無効。軸は全てゼロ、平面は既定 `(0,0,1), 0`。
- `origin, origin+x, origin+y` が共線でも無効（平面は同じ既定値）。このとき軸は正規化版を保持する。
- `is_valid` が唯一の有効性フラグで、幾何クエリは最初にこれを確認する。
- `quad` は `origin → origin+x → origin+x+y → origin+y` の 4 隅。

直感図:

    # origin+y ---- origin+x+y
    #    |              |
    # origin ------ origin+x
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from common.types import Vec2Like, Vec3Like

from .polyline import Polyline
from .primitives import (
    Plane,
    Quad,
    Ray,
    as_vec2,
    as_vec3,
    is_finite_vec,
    make_plane_from_vertices,
    normalized,
)

logger = logging.getLogger(__name__)

PARALLEL_EPSILON = 1e-6


class ReferenceBox:
    """3D 空間内の有向参照フレーム（生成後は不変として扱う）。"""

    origin: np.ndarray
    x_vector: np.ndarray
    y_vector: np.ndarray
    z_vector: np.ndarray
    x_axis: np.ndarray
    y_axis: np.ndarray
    z_axis: np.ndarray
    plane: Plane
    quad: Quad

    def __init__(
        self, origin: Vec3Like, x_vector: Vec3Like, y_vector: Vec3Like, z_vector: Vec3Like
    ) -> None:
        self._assign_vectors(origin, x_vector, y_vector, z_vector)
        self._initialize()

    def _assign_vectors(
        self, origin: Vec3Like, x_vector: Vec3Like, y_vector: Vec3Like, z_vector: Vec3Like
    ) -> None:
        self.origin = as_vec3(origin)
        self.x_vector = as_vec3(x_vector)
        self.y_vector = as_vec3(y_vector)
        self.z_vector = as_vec3(z_vector)

    # ── ファクトリ ───────────────────
    @classmethod
    def zero(cls) -> "ReferenceBox":
        """全てゼロの退化フレーム（常に無効）。"""
        return cls(np.zeros(3), np.zeros(3), np.zeros(3), np.zeros(3))

    @classmethod
    def coplanar_with_new_vectors(
        cls,
        other: "ReferenceBox",
        origin: Vec3Like,
        x_vector: Vec3Like,
        y_vector: Vec3Like,
        z_vector: Vec3Like,
    ) -> "ReferenceBox":
        """`other` と同一平面にある子フレームを作る（平面/軸/有効性を流用し、4 隅のみ再計算）。"""
        box = cls.__new__(cls)
        box._assign_vectors(origin, x_vector, y_vector, z_vector)
        box.plane = other.plane
        box.x_axis = other.x_axis
        box.y_axis = other.y_axis
        box.z_axis = other.z_axis
        box._is_valid = other.is_valid
        box.quad = box._calculate_quad()
        return box

    def _initialize(self) -> None:
        nx = normalized(self.x_vector)
        ny = normalized(self.y_vector)
        nz = normalized(self.z_vector)

        if not (is_finite_vec(nx) and is_finite_vec(ny) and is_finite_vec(nz)):
            self.x_axis = np.zeros(3)
            self.y_axis = np.zeros(3)
            self.z_axis = np.zeros(3)
            self.plane = Plane.default()
            self._is_valid = False
            logger.debug("ReferenceBox has a zero-length axis: %r", self)
            self.quad = self._calculate_quad()
            return

        self.x_axis = nx
        self.y_axis = ny
        self.z_axis = nz
        plane: Optional[Plane] = make_plane_from_vertices(
            self.origin, self.origin + self.x_vector, self.origin + self.y_vector
        )
        if plane is None:
            # 共線: 軸は保持し、平面だけ既定値
            self.plane = Plane.default()
            self._is_valid = False
            logger.debug("ReferenceBox has collinear x/y vectors: %r", self)
        else:
            self.plane = plane
            self._is_valid = True
        self.quad = self._calculate_quad()

    def _calculate_quad(self) -> Quad:
        p0 = self.origin
        p1 = p0 + self.x_vector
        p2 = p1 + self.y_vector
        p3 = p0 + self.y_vector
        return Quad(p0, p1, p2, p3)

    # ── プロパティ ────────────────────
    @property
    def is_valid(self) -> bool:
        return self._is_valid

    @property
    def normal(self) -> np.ndarray:
        """平面法線（無効時は既定平面の `(0,0,1)`）。"""
        return self.plane.normal

    def __repr__(self) -> str:
        state = self.plane.normal.tolist() if self._is_valid else "invalid"
        return (
            f"ReferenceBox(origin={self.origin.tolist()}, x={self.x_vector.tolist()}, "
            f"y={self.y_vector.tolist()}, z={self.z_vector.tolist()}, normal={state})"
        )

    # ── 2D オフセット → 3D ────────────
    def _corners_from_2d(self, start: Vec2Like, end: Vec2Like) -> list[np.ndarray]:
        s = as_vec2(start)
        e = as_vec2(end)
        o, xa, ya = self.origin, self.x_axis, self.y_axis
        return [
            o + xa * s[0] + ya * s[1],
            o + xa * e[0] + ya * s[1],
            o + xa * e[0] + ya * e[1],
            o + xa * s[0] + ya * e[1],
        ]

    def make_box_from_offsets_2d(self, start_offset: Vec2Like, end_offset: Vec2Like) -> "ReferenceBox":
        """2D オフセット矩形を自身の軸で写した子フレーム（z は親の `z_axis`）。"""
        s = as_vec2(start_offset)
        e = as_vec2(end_offset)
        new_origin = self.origin + self.x_axis * s[0] + self.y_axis * s[1]
        new_x = self.x_axis * (e[0] - s[0])
        new_y = self.y_axis * (e[1] - s[1])
        return ReferenceBox(new_origin, new_x, new_y, self.z_axis.copy())

    def sub_box_from_offsets(
        self, start_offset: Vec2Like, end_offset: Vec2Like, z_vector: Vec3Like
    ) -> "ReferenceBox":
        """2D オフセット矩形を自身の軸で写した子フレーム（z を明示）。"""
        corners = self._corners_from_2d(start_offset, end_offset)
        s = as_vec2(start_offset)
        e = as_vec2(end_offset)
        new_x = self.x_axis * (e[0] - s[0])
        new_y = self.y_axis * (e[1] - s[1])
        return ReferenceBox(corners[0], new_x, new_y, z_vector)

    def calc_quad_from_2d_vectors(self, start_offset: Vec2Like, end_offset: Vec2Like) -> Quad:
        c = self._corners_from_2d(start_offset, end_offset)
        return Quad(c[0], c[1], c[2], c[3])

    def polyline_from_2d_vectors(self, start_offset: Vec2Like, end_offset: Vec2Like) -> Polyline:
        return Polyline(np.vstack(self._corners_from_2d(start_offset, end_offset)))

    def transform_point_to_reference_plane(self, p: Vec2Like) -> np.ndarray:
        v = as_vec2(p)
        return self.origin + self.x_axis * v[0] + self.y_axis * v[1]

    def to_polyline(self) -> Polyline:
        """4 隅を閉じた Polyline として返す。"""
        return Polyline(self.quad.points)

    # ── ピッキング ────────────────────
    def ray_intersect(self, ray: Ray) -> Optional[np.ndarray]:
        """レイとフレーム平面の交点が 4 隅の内側にあれば返す。無効/平行/後方/外側は None。"""
        if not self._is_valid:
            return None
        n = self.plane.normal
        denom = float(np.dot(n, ray.direction))
        if abs(denom) < PARALLEL_EPSILON:
            return None
        # 平面は n·p + constant = 0 なので、t は constant を足した側から求める
        t = -(float(np.dot(n, ray.origin)) + self.plane.constant) / denom
        if t < 0.0:
            return None
        point = ray.at(t)
        if self.to_polyline().contains_point(point):
            return point
        return None


__all__ = ["ReferenceBox"]
