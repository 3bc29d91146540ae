"""
どこで: `engine.core.triangle_mesh`
何を: インデックス無しのフラット三角形バッファ `TriangleMesh`（押し出し・AABB キャッシュ・レイ交差）。
なぜ: GPU 転送レイアウトのまま CPU 側で組み立て/ピッキングを行い、変換コピーを不要にするため。

データモデル（不変条件）:
- `verts: float32 ndarray (triangle_count * 24,)`。1 頂点 8 float `[px, py, pz, u, v, nx, ny, nz]`。
- 三角形 i は頂点 `3i..3i+2` を専有する（フラットシェーディング、3 頂点とも同じ法線）。
- 書き込みは常に三角形（頂点 3 つ）単位。容量超過は `IndexError`（呼び出し側のバグ）。
- AABB は遅延計算してキャッシュし、変更時に自動無効化しない（`recompute_bounds()` を明示的に呼ぶ）。

構築プロトコル（2 段階）:
1. 呼び出し側が最終三角形数を確定して `TriangleMesh(n)` を確保。
2. `add_triangle` 系で先頭から順に埋める（各呼び出しは次のカーソルを返す）。

直感図（三角形 1 個 = 24 float）:

    # idx: 0  1  2  3 4  5  6  7 | 8 ... 15 | 16 ... 23
    #      px py pz u v nx ny nz | 頂点 1    | 頂点 2
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol, Sequence

import numpy as np

from common.settings import get as _get_settings
from common.types import Vec2Like, Vec3Like
from util.ray_kernels import NO_HIT, ray_triangle_t

from .polyline import Polyline
from .primitives import Aabb3, Ray, as_vec2, as_vec3, compute_tex_coords, normalized_or_zero

logger = logging.getLogger(__name__)

COMPONENT_COUNT = 8
TEX_COORD_OFFSET = 3
NORMAL_OFFSET = 5
FLOATS_PER_TRIANGLE = COMPONENT_COUNT * 3

_SIDE_TEX_COORDS_A = (np.array([0.0, 0.0]), np.array([1.0, 0.0]), np.array([1.0, 1.0]))
_SIDE_TEX_COORDS_B = (np.array([0.0, 0.0]), np.array([1.0, 1.0]), np.array([0.0, 1.0]))


class VertexSink(Protocol):
    """`add_to_vbo` の受け側（`engine.render.vertex_buffer.VertexBuffer` など）。"""

    def request_buffer(self, vertex_count: int) -> Optional[np.ndarray]: ...

    def set_active_vertex_count(self, count: int) -> None: ...


def _resolve_epsilon(epsilon: Optional[float]) -> float:
    if epsilon is None:
        return float(_get_settings().GEOM_EPSILON)
    return float(epsilon)


@dataclass
class TriangleMeshHitDetails:
    """レイ交差結果。`normal` はヒット時点でメッシュから読み出した面法線。"""

    mesh: "TriangleMesh"
    hit_point: np.ndarray
    triangle_index: int
    distance: float
    normal: np.ndarray = field(init=False)

    def __post_init__(self) -> None:
        self.normal = self.mesh.get_triangle_normal(self.triangle_index)


class TriangleMesh:
    """固定容量のフラット三角形メッシュ。"""

    def __init__(self, triangle_count: int) -> None:
        if triangle_count < 0:
            raise ValueError(f"triangle_count は 0 以上である必要があります: {triangle_count}")
        self.triangle_count = int(triangle_count)
        self.verts = np.zeros(self.triangle_count * FLOATS_PER_TRIANGLE, dtype=np.float32)
        self._bounds: Optional[Aabb3] = None

    @classmethod
    def empty(cls) -> "TriangleMesh":
        return cls(0)

    def __repr__(self) -> str:
        return f"TriangleMesh(triangle_count={self.triangle_count})"

    @property
    def vertex_count(self) -> int:
        return self.triangle_count * 3

    # ── 読み出し ──────────────────────
    def _check_vertex_index(self, vertex_index: int) -> int:
        if vertex_index < 0 or vertex_index >= self.vertex_count:
            raise IndexError(
                f"頂点 index {vertex_index} が範囲外です（vertex_count={self.vertex_count}）"
            )
        return vertex_index * COMPONENT_COUNT

    def get_vertex(self, vertex_index: int) -> np.ndarray:
        j = self._check_vertex_index(vertex_index)
        return self.verts[j : j + 3].astype(np.float64)

    def get_tex_coord(self, vertex_index: int) -> np.ndarray:
        j = self._check_vertex_index(vertex_index) + TEX_COORD_OFFSET
        return self.verts[j : j + 2].astype(np.float64)

    def get_normal(self, vertex_index: int) -> np.ndarray:
        j = self._check_vertex_index(vertex_index) + NORMAL_OFFSET
        return self.verts[j : j + 3].astype(np.float64)

    def get_triangle(self, triangle_index: int) -> np.ndarray:
        """三角形の 3 頂点位置 `(3, 3)`。"""
        base = triangle_index * 3
        return np.vstack([self.get_vertex(base + k) for k in range(3)])

    def get_triangle_normal(self, triangle_index: int) -> np.ndarray:
        """三角形の面法線（先頭頂点の法線。3 頂点とも同値）。"""
        return self.get_normal(triangle_index * 3)

    # ── 書き込み（追記ビルダ） ────────
    def _add_vertex(
        self, vertex_index: int, pos: np.ndarray, normal: np.ndarray, tex: np.ndarray
    ) -> None:
        j = vertex_index * COMPONENT_COUNT
        self.verts[j : j + 3] = pos
        self.verts[j + TEX_COORD_OFFSET : j + TEX_COORD_OFFSET + 2] = tex
        self.verts[j + NORMAL_OFFSET : j + NORMAL_OFFSET + 3] = normal

    def add_triangle(
        self,
        v0: Vec3Like,
        v1: Vec3Like,
        v2: Vec3Like,
        normal: Vec3Like,
        tex_coords: Sequence[Vec2Like],
        current_triangle: int,
    ) -> int:
        """カーソル位置に三角形を 1 つ書き込み、`current_triangle + 1` を返す。

        Raises
        ------
        IndexError
            カーソルが確保済み容量の外を指す場合（2 段階構築プロトコル違反）。
        """
        if current_triangle < 0 or current_triangle >= self.triangle_count:
            raise IndexError(
                f"三角形 {current_triangle} は容量 {self.triangle_count} を超えています"
            )
        n = as_vec3(normal)
        vertex_index = current_triangle * 3
        self._add_vertex(vertex_index, as_vec3(v0), n, as_vec2(tex_coords[0]))
        self._add_vertex(vertex_index + 1, as_vec3(v1), n, as_vec2(tex_coords[1]))
        self._add_vertex(vertex_index + 2, as_vec3(v2), n, as_vec2(tex_coords[2]))
        return current_triangle + 1

    @staticmethod
    def _bounds_box_2d(outline: Polyline) -> tuple[float, float, float, float]:
        lo, hi = outline.get_bounds_2d()
        return float(lo[0]), float(lo[1]), float(hi[0] - lo[0]), float(hi[1] - lo[1])

    def add_outline_as_tri_fan(self, outline: Polyline, current_triangle: int) -> int:
        """凸な閉アウトラインを頂点 0 からの扇で三角形化する（巻き順 `0, i+2, i+1`）。

        平面が無効なアウトラインは何も書かずにカーソルをそのまま返す。
        """
        if not outline.plane_is_valid:
            return current_triangle
        assert outline.normal is not None
        x, y, w, h = self._bounds_box_2d(outline)
        v0 = outline.get_vector3(0)
        for i in range(len(outline) - 2):
            v1 = outline.get_vector3(i + 2)
            v2 = outline.get_vector3(i + 1)
            tex = compute_tex_coords(
                outline.to_local_2d(v0),
                outline.to_local_2d(v1),
                outline.to_local_2d(v2),
                x,
                y,
                w,
                h,
            )
            current_triangle = self.add_triangle(v0, v1, v2, outline.normal, tex, current_triangle)
        return current_triangle

    def add_outline_as_reverse_tri_fan(
        self,
        outline: Polyline,
        normal: Vec3Like,
        current_triangle: int,
        depth: Vec3Like,
    ) -> int:
        """扇を逆巻きで、全頂点を `depth` だけ平行移動して書き込む（押し出しの裏蓋）。"""
        if not outline.plane_is_valid:
            return current_triangle
        offset = as_vec3(depth)
        x, y, w, h = self._bounds_box_2d(outline)
        v0 = outline.get_vector3(0) + offset
        for i in range(len(outline) - 2):
            v1 = outline.get_vector3(i + 2) + offset
            v2 = outline.get_vector3(i + 1) + offset
            tex = compute_tex_coords(
                outline.to_local_2d(v2),
                outline.to_local_2d(v1),
                outline.to_local_2d(v0),
                x,
                y,
                w,
                h,
            )
            current_triangle = self.add_triangle(v2, v1, v0, normal, tex, current_triangle)
        return current_triangle

    def make_side_from_edge(
        self, outline: Polyline, index: int, current_triangle: int, depth: Vec3Like
    ) -> int:
        """境界辺 `(p1, p2)` と `depth` だけずらした辺で側面の四角形（2 三角形）を書き込む。

        側面法線は `normalize((p2 - p1) × depth)`。長さ 0 の辺ではゼロベクトル。
        """
        offset = as_vec3(depth)
        n = len(outline)
        p1 = outline.get_vector3(index % n)
        p2 = outline.get_vector3((index + 1) % n)
        normal = normalized_or_zero(np.cross(p2 - p1, offset))

        p1z = p1 + offset
        p2z = p2 + offset

        current_triangle = self.add_triangle(
            p1, p2, p2z, normal, _SIDE_TEX_COORDS_A, current_triangle
        )
        current_triangle = self.add_triangle(
            p1, p2z, p1z, normal, _SIDE_TEX_COORDS_B, current_triangle
        )
        return current_triangle

    # ── 押し出し ──────────────────────
    @staticmethod
    def extrude(outlines: Sequence[Polyline], depth: Vec3Like) -> "TriangleMesh":
        """閉アウトライン群を `depth` 方向へ押し出した立体メッシュを作る。

        三角形数は事前に確定する:
        - 蓋: 平面が有効なアウトラインごとに `len - 2`、表裏で 2 倍。
        - 側面: 全アウトライン（平面の有効/無効を問わず）の辺ごとに 2。

        平面が無効なアウトラインは蓋を生成せず（側面のみ）、設定により警告ログを出す。
        """
        if not outlines:
            return TriangleMesh.empty()

        offset = as_vec3(depth)
        top_count = 0
        side_count = 0
        invalid = 0
        for outline in outlines:
            if outline.plane_is_valid:
                top_count += max(len(outline) - 2, 0)
            else:
                invalid += 1
            side_count += len(outline) * 2

        total = top_count * 2 + side_count
        if total == 0:
            return TriangleMesh.empty()

        if invalid and _get_settings().WARN_INVALID_OUTLINES:
            logger.warning(
                "extrude: %d/%d outline(s) have no valid plane; caps skipped, side walls kept",
                invalid,
                len(outlines),
            )

        result = TriangleMesh(total)
        current = 0
        for outline in outlines:
            if outline.plane_is_valid:
                current = result.add_outline_as_tri_fan(outline, current)

        for outline in outlines:
            if outline.plane_is_valid:
                assert outline.normal is not None
                current = result.add_outline_as_reverse_tri_fan(
                    outline, -outline.normal, current, offset
                )

        for outline in outlines:
            for i in range(len(outline)):
                current = result.make_side_from_edge(outline, i, current, offset)

        result.recompute_bounds()
        logger.debug("extrude: %d outline(s) -> %d triangle(s)", len(outlines), current)
        return result

    # ── 境界箱 ────────────────────────
    def _compute_bounds(self) -> Aabb3:
        if self.triangle_count == 0:
            return Aabb3.empty()
        positions = self.verts.reshape(-1, COMPONENT_COUNT)[:, :3].astype(np.float64)
        return Aabb3(positions.min(axis=0), positions.max(axis=0))

    def recompute_bounds(self) -> None:
        """AABB を再計算する。頂点を書き換えた後、ピッキング前に呼ぶ。"""
        self._bounds = self._compute_bounds()

    def get_bounds(self) -> Aabb3:
        """キャッシュ済み AABB（初回のみ計算）。"""
        if self._bounds is None:
            self._bounds = self._compute_bounds()
        return self._bounds

    # ── レイ交差 ──────────────────────
    def ray_triangle_intersect(
        self, triangle_index: int, ray: Ray, epsilon: Optional[float] = None
    ) -> Optional[np.ndarray]:
        """Möller–Trumbore で三角形 `triangle_index` との交点を返す（無ければ None）。"""
        eps = _resolve_epsilon(epsilon)
        tri = self.get_triangle(triangle_index)
        t = ray_triangle_t(tri[0], tri[1], tri[2], ray.origin, ray.direction, eps)
        if t == NO_HIT:
            return None
        return ray.at(t)

    def ray_intersect(
        self, ray: Ray, epsilon: Optional[float] = None
    ) -> Optional[TriangleMeshHitDetails]:
        """最も近い三角形とのヒットを返す。AABB で早期棄却し、残りを線形走査する。"""
        entry = ray.intersects_with_aabb3(self.get_bounds())
        if entry is None or entry < 0:
            return None

        eps = _resolve_epsilon(epsilon)
        closest_distance: Optional[float] = None
        closest_index = -1
        closest_point: Optional[np.ndarray] = None
        for i in range(self.triangle_count):
            hit = self.ray_triangle_intersect(i, ray, eps)
            if hit is None:
                continue
            distance = float(np.linalg.norm(hit - ray.origin))
            if closest_distance is None or distance < closest_distance:
                closest_distance = distance
                closest_index = i
                closest_point = hit

        if closest_point is None or closest_distance is None:
            return None
        return TriangleMeshHitDetails(self, closest_point, closest_index, closest_distance)

    # ── シンク ────────────────────────
    def copy_into(self, dst: np.ndarray) -> int:
        """`dst` の先頭へバッファをブロックコピーし、コピーした float 数を返す。"""
        n = self.verts.shape[0]
        if dst.shape[0] < n:
            raise ValueError(f"コピー先が小さすぎます: {dst.shape[0]} < {n}")
        dst[:n] = self.verts
        return n

    def add_to_vbo(self, vbo: VertexSink) -> None:
        """頂点バッファへ全頂点をコピーし、アクティブ頂点数を設定する。"""
        count = self.vertex_count
        data = vbo.request_buffer(count)
        if data is not None:
            self.copy_into(data)
        vbo.set_active_vertex_count(count)


__all__ = [
    "COMPONENT_COUNT",
    "TEX_COORD_OFFSET",
    "NORMAL_OFFSET",
    "FLOATS_PER_TRIANGLE",
    "TriangleMesh",
    "TriangleMeshHitDetails",
    "VertexSink",
]
