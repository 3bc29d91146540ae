"""
どこで: `engine.core.picking`
何を: スクリーン座標→ワールドのピックレイ生成、レイ/平面交差、ビュー行列からのカメラ軸抽出。
なぜ: ピッキング経路（スクリーンレイ → ReferenceBox / MeshHitTester）の入口をコア側に置き、
      描画フレームワークに依存せずテストできるようにするため。

行列規約:
- 4x4 行列は列ベクトル規約（`M @ v`）の `float64` ndarray。
- スクリーン座標は左下原点（y 上向き）のピクセル座標を想定する。
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from common.types import Vec2Like, Vec3Like

from .primitives import Plane, Ray, as_vec3, normalized_or_zero

PARALLEL_EPSILON = 1e-6


def un_project(ndc: np.ndarray, inverse_combined: np.ndarray) -> np.ndarray:
    """NDC 同次座標 `(4,)` をワールド座標 `(3,)` へ戻す。`|w|` が極小なら原点を返す。"""
    h = np.asarray(inverse_combined, dtype=np.float64) @ np.asarray(ndc, dtype=np.float64)
    w = float(h[3])
    if abs(w) < 1e-9:
        return np.zeros(3)
    return h[:3] / w


def compute_pick_ray(
    mouse_position: Vec2Like,
    viewport_size: Vec2Like,
    projection: np.ndarray,
    view: np.ndarray,
) -> Ray:
    """スクリーン上の 1 点から near→far 方向のワールドレイを作る。"""
    win_x, win_y = float(mouse_position[0]), float(mouse_position[1])
    width, height = float(viewport_size[0]), float(viewport_size[1])
    combined = np.asarray(projection, dtype=np.float64) @ np.asarray(view, dtype=np.float64)
    inverse = np.linalg.inv(combined)

    ndc_x = (win_x * 2.0) / width - 1.0
    ndc_y = (win_y * 2.0) / height - 1.0

    near = un_project(np.array([ndc_x, ndc_y, -1.0, 1.0]), inverse)
    far = un_project(np.array([ndc_x, ndc_y, 1.0, 1.0]), inverse)
    return Ray(near, normalized_or_zero(far - near))


def intersect_ray_plane_from_point_and_normal(
    ray: Ray, plane_origin: Vec3Like, plane_normal: Vec3Like
) -> Optional[np.ndarray]:
    """点と法線で与えた平面とレイの交点。平行（|denom| < 1e-6）または後方なら None。"""
    n = as_vec3(plane_normal)
    denom = float(np.dot(n, ray.direction))
    if abs(denom) < PARALLEL_EPSILON:
        return None
    t = float(np.dot(as_vec3(plane_origin) - ray.origin, n)) / denom
    if t >= 0.0:
        return ray.at(t)
    return None


def intersect_ray_with_plane(ray: Ray, plane: Plane) -> Optional[np.ndarray]:
    # 平面上の 1 点は normal * -constant（normal が単位長のとき）
    point_on_plane = plane.normal * -plane.constant
    return intersect_ray_plane_from_point_and_normal(ray, point_on_plane, plane.normal)


def get_camera_axes(view: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """ビュー行列の逆行列の列から `(right, up, forward)` を取り出す（各単位長）。"""
    inv = np.linalg.inv(np.asarray(view, dtype=np.float64))
    right = normalized_or_zero(inv[:3, 0])
    up = normalized_or_zero(inv[:3, 1])
    forward = normalized_or_zero(inv[:3, 2])
    return right, up, forward


__all__ = [
    "un_project",
    "compute_pick_ray",
    "intersect_ray_plane_from_point_and_normal",
    "intersect_ray_with_plane",
    "get_camera_axes",
]
