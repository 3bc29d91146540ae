"""
どこで: `engine.core.mesh_hit_tester`
何を: 外部から渡された `TriangleMesh` に対するステートレスなレイ交差クエリ。
なぜ: メッシュの所有者とピッキング処理を切り離すため。走査は Numba カーネルでバッファを直接読むが、
      判定・最近傍規則は `TriangleMesh.ray_intersect` と同一（同じ `ray_triangle_t` を使用）。
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from common.settings import get as _get_settings
from common.types import Vec3Like
from util.ray_kernels import NO_HIT, nearest_hit_in_buffer, ray_triangle_t

from .primitives import Ray, as_vec3
from .triangle_mesh import COMPONENT_COUNT, TriangleMesh, TriangleMeshHitDetails


class MeshHitTester:
    """インスタンス化しないユーティリティ（静的メソッドのみ）。"""

    def __init__(self) -> None:
        raise TypeError("MeshHitTester は静的メソッドのみを提供します")

    @staticmethod
    def intersect(
        mesh: TriangleMesh, ray: Ray, epsilon: Optional[float] = None
    ) -> Optional[TriangleMeshHitDetails]:
        """AABB で早期棄却し、全三角形から最小正距離のヒットを返す（無ければ None）。"""
        entry = ray.intersects_with_aabb3(mesh.get_bounds())
        if entry is None or entry < 0:
            return None

        eps = float(_get_settings().GEOM_EPSILON) if epsilon is None else float(epsilon)
        origin = np.ascontiguousarray(ray.origin, dtype=np.float64)
        direction = np.ascontiguousarray(ray.direction, dtype=np.float64)
        index, t = nearest_hit_in_buffer(
            mesh.verts, mesh.triangle_count, COMPONENT_COUNT, origin, direction, eps
        )
        if index < 0:
            return None
        hit = origin + direction * t
        return TriangleMeshHitDetails(mesh, hit, int(index), float(np.linalg.norm(hit - origin)))

    @staticmethod
    def ray_triangle_intersect(
        p0: Vec3Like,
        p1: Vec3Like,
        p2: Vec3Like,
        origin: Vec3Like,
        direction: Vec3Like,
        epsilon: float = 1e-6,
    ) -> Optional[np.ndarray]:
        """明示的な 3 頂点に対する Möller–Trumbore 交差。交点または None。"""
        o = as_vec3(origin)
        d = as_vec3(direction)
        t = ray_triangle_t(as_vec3(p0), as_vec3(p1), as_vec3(p2), o, d, float(epsilon))
        if t == NO_HIT:
            return None
        return o + d * t


__all__ = ["MeshHitTester"]
