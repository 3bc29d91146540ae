"""
どこで: `engine.core` の幾何プリミティブ。
何を: ベクトル正規化ヘルパと Plane/Quad/Aabb3/Ray、3 点からの平面生成、テクスチャ座標計算を提供。
なぜ: Polyline/ReferenceBox/TriangleMesh が共有する最小の数学ライブラリを 1 か所にまとめるため。

表現:
- ベクトルはすべて `float64` の ndarray（形状 `(3,)` または `(2,)`）。
- 平面方程式は `normal·p + constant = 0`。
- 「結果なし」（平行・退化・非交差）は `None` で返し、例外にはしない。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from common.types import Vec2Like, Vec3Like


def as_vec3(v: Vec3Like) -> np.ndarray:
    """任意の 3 要素入力を `float64 (3,)` に正規化する。"""
    arr = np.asarray(v, dtype=np.float64)
    if arr.shape != (3,):
        raise ValueError(f"3 次元ベクトルが必要です: shape={arr.shape}")
    return arr


def as_vec2(v: Vec2Like) -> np.ndarray:
    """任意の 2 要素入力を `float64 (2,)` に正規化する。"""
    arr = np.asarray(v, dtype=np.float64)
    if arr.shape != (2,):
        raise ValueError(f"2 次元ベクトルが必要です: shape={arr.shape}")
    return arr


def normalized(v: np.ndarray) -> np.ndarray:
    """単位ベクトルを返す。長さ 0 の入力は NaN 成分になる（`is_finite_vec` で検出）。"""
    with np.errstate(invalid="ignore", divide="ignore"):
        return v / np.linalg.norm(v)


def normalized_or_zero(v: np.ndarray) -> np.ndarray:
    """単位ベクトルを返す。長さ 0（または非有限）の場合はゼロベクトル。"""
    n = normalized(v)
    if not is_finite_vec(n):
        return np.zeros_like(v, dtype=np.float64)
    return n


def is_finite_vec(v: np.ndarray) -> bool:
    return bool(np.all(np.isfinite(v)))


@dataclass(frozen=True, eq=False)
class Plane:
    """無限平面 `normal·p + constant = 0`。"""

    normal: np.ndarray
    constant: float

    @classmethod
    def default(cls) -> "Plane":
        """無効な参照フレーム用の既定平面 `(0,0,1), 0`。"""
        return cls(np.array([0.0, 0.0, 1.0]), 0.0)

    def distance_to(self, p: Vec3Like) -> float:
        """符号付き距離（法線が単位長のとき）。"""
        return float(np.dot(self.normal, as_vec3(p)) + self.constant)


def make_plane_from_vertices(p1: Vec3Like, p2: Vec3Like, p3: Vec3Like) -> Optional[Plane]:
    """3 点から平面を作る。共線（外積が 0）の場合は `None`。"""
    a = as_vec3(p1)
    normal = np.cross(as_vec3(p2) - a, as_vec3(p3) - a)
    if float(np.dot(normal, normal)) == 0.0:
        return None
    normal = normal / np.linalg.norm(normal)
    return Plane(normal, float(-np.dot(normal, a)))


@dataclass(frozen=True, eq=False)
class Quad:
    """順序付き 4 頂点（p0→p1→p2→p3 の閉路）。"""

    point0: np.ndarray
    point1: np.ndarray
    point2: np.ndarray
    point3: np.ndarray

    @classmethod
    def points_of(cls, p0: Vec3Like, p1: Vec3Like, p2: Vec3Like, p3: Vec3Like) -> "Quad":
        return cls(as_vec3(p0), as_vec3(p1), as_vec3(p2), as_vec3(p3))

    @property
    def points(self) -> np.ndarray:
        return np.vstack([self.point0, self.point1, self.point2, self.point3])

    def surface_normal(self) -> np.ndarray:
        return normalized(np.cross(self.point1 - self.point0, self.point2 - self.point0))


def quads_are_equal(q1: Quad, q2: Quad) -> bool:
    """4 頂点が順序どおり完全一致するか。"""
    return bool(np.array_equal(q1.points, q2.points))


@dataclass(frozen=True, eq=False)
class Aabb3:
    """軸平行境界箱（min/max 角）。"""

    min: np.ndarray
    max: np.ndarray

    @classmethod
    def empty(cls) -> "Aabb3":
        """原点に潰れたゼロ箱（三角形 0 個のメッシュ用）。"""
        return cls(np.zeros(3), np.zeros(3))

    @property
    def center(self) -> np.ndarray:
        return (self.min + self.max) * 0.5

    @property
    def extent(self) -> np.ndarray:
        return self.max - self.min

    def contains_point(self, p: Vec3Like) -> bool:
        q = as_vec3(p)
        return bool(np.all(q >= self.min) and np.all(q <= self.max))


@dataclass(frozen=True, eq=False)
class Ray:
    """半直線 `origin + direction * t (t >= 0)`。direction は通常単位長。"""

    origin: np.ndarray
    direction: np.ndarray

    @classmethod
    def origin_direction(cls, origin: Vec3Like, direction: Vec3Like) -> "Ray":
        return cls(as_vec3(origin), as_vec3(direction))

    def at(self, t: float) -> np.ndarray:
        return self.origin + self.direction * t

    def intersects_with_aabb3(self, box: Aabb3) -> Optional[float]:
        """スラブ法で箱との交差を判定し、進入パラメータ `t_near` を返す。

        - 非交差、または箱全体がレイの後方にある場合は `None`。
        - 原点が箱の内部にある場合 `t_near` は負になる（呼び出し側で扱いを決める）。
        """
        t_near = -np.finfo(np.float64).max
        t_far = np.finfo(np.float64).max
        for i in range(3):
            o = float(self.origin[i])
            d = float(self.direction[i])
            lo = float(box.min[i])
            hi = float(box.max[i])
            if d == 0.0:
                if o < lo or o > hi:
                    return None
                continue
            t1 = (lo - o) / d
            t2 = (hi - o) / d
            if t1 > t2:
                t1, t2 = t2, t1
            if t1 > t_near:
                t_near = t1
            if t2 < t_far:
                t_far = t2
            if t_near > t_far or t_far < 0.0:
                return None
        return float(t_near)


def compute_tex_coords(
    p0: np.ndarray,
    p1: np.ndarray,
    p2: np.ndarray,
    x: float,
    y: float,
    w: float,
    h: float,
) -> list[np.ndarray]:
    """三角形 3 頂点の UV を、2D 境界箱 `(x, y, w, h)` 基準で正規化して返す。

    面積 0 の箱（`w` または `h` が 1e-6 以下）は 1.0 で割る（ゼロ除算回避）。
    入力点は先頭 2 成分のみ使う。
    """
    width = w if w > 1e-6 else 1.0
    height = h if h > 1e-6 else 1.0
    return [
        np.array([(p[0] - x) / width, (p[1] - y) / height], dtype=np.float64)
        for p in (p0, p1, p2)
    ]


def distance_to_line_segment(p: Vec3Like, a: Vec3Like, b: Vec3Like) -> float:
    """点 `p` から 3D 線分 `a-b` への最短距離。"""
    pv = as_vec3(p)
    av = as_vec3(a)
    seg = as_vec3(b) - av
    len2 = float(np.dot(seg, seg))
    if len2 == 0.0:
        return float(np.linalg.norm(pv - av))
    t = float(np.dot(pv - av, seg)) / len2
    t = min(1.0, max(0.0, t))
    return float(np.linalg.norm(pv - (av + seg * t)))


__all__ = [
    "as_vec3",
    "as_vec2",
    "normalized",
    "normalized_or_zero",
    "is_finite_vec",
    "Plane",
    "make_plane_from_vertices",
    "Quad",
    "quads_are_equal",
    "Aabb3",
    "Ray",
    "compute_tex_coords",
    "distance_to_line_segment",
]
