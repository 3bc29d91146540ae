"""
どこで: `engine.render.vertex_buffer`
何を: 頂点レイアウト（成分の並び・stride）と、CPU 側の頂点配列を保持する `VertexBuffer`。
なぜ: `TriangleMesh.add_to_vbo` の受け側として float32 配列を貸し出し、GPU 転送（`TriangleMeshGpu`）へ渡すため。

レイアウト:
- 成分は宣言順にインターリーブされる。メッシュ用は `V3T2N3`（位置 3 / UV 2 / 法線 3 = 8 float, 32 byte）。
- この順序は GPU 側の属性設定と一致している必要がある（変更不可）。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np

from .float_filler import Float32ArrayFiller

logger = logging.getLogger(__name__)

FLOAT_BYTES = 4


class VertexComponent(Enum):
    """頂点成分（float 数, シェーダ属性名）。"""

    POSITION = (3, "in_vert")
    TEX_COORD = (2, "in_tex")
    NORMAL = (3, "in_normal")
    COLOR = (4, "in_color")

    def __init__(self, size: int, attribute: str) -> None:
        self.size = size
        self.attribute = attribute

    @property
    def byte_size(self) -> int:
        return self.size * FLOAT_BYTES


@dataclass(frozen=True)
class VertexLayout:
    """インターリーブ順に並んだ頂点成分。"""

    components: tuple[VertexComponent, ...]

    @property
    def component_count(self) -> int:
        return sum(c.size for c in self.components)

    @property
    def stride(self) -> int:
        return self.component_count * FLOAT_BYTES

    def offset_of(self, component: VertexComponent) -> int:
        """成分の先頭オフセット（float 単位）。含まれない場合は KeyError。"""
        offset = 0
        for c in self.components:
            if c is component:
                return offset
            offset += c.size
        raise KeyError(component)

    def format_string(self) -> str:
        """moderngl の `vertex_array` 用フォーマット（例: `"3f 2f 3f"`）。"""
        return " ".join(f"{c.size}f" for c in self.components)

    def attribute_names(self) -> tuple[str, ...]:
        return tuple(c.attribute for c in self.components)


V3C4 = VertexLayout((VertexComponent.POSITION, VertexComponent.COLOR))
V3T2 = VertexLayout((VertexComponent.POSITION, VertexComponent.TEX_COORD))
V3N3 = VertexLayout((VertexComponent.POSITION, VertexComponent.NORMAL))
V3T2N3 = VertexLayout(
    (VertexComponent.POSITION, VertexComponent.TEX_COORD, VertexComponent.NORMAL)
)


class VertexBuffer:
    """CPU 側の頂点配列と描画対象頂点数を管理する。

    - `request_buffer(n)` は容量が足りない、または半分未満しか使わない場合に再確保する。
    - `set_active_vertex_count(n)` は容量を超える値を拒否する（ValueError）。
    - `version` は内容更新のたびに増える（GPU 側の再転送判定に使う）。
    """

    def __init__(self, layout: VertexLayout = V3T2N3) -> None:
        self.layout = layout
        self.vertex_data: Optional[np.ndarray] = None
        self._capacity = 0
        self._active_vertex_count = 0
        self.version = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def active_vertex_count(self) -> int:
        return self._active_vertex_count

    @property
    def component_count(self) -> int:
        return self.layout.component_count

    @property
    def stride(self) -> int:
        return self.layout.stride

    def request_buffer(self, vertex_count: int) -> Optional[np.ndarray]:
        """少なくとも `vertex_count` 頂点分の float32 配列を返す（0 頂点なら None）。"""
        if vertex_count < 0:
            raise ValueError(f"vertex_count は 0 以上である必要があります: {vertex_count}")
        needs_realloc = vertex_count > self._capacity or vertex_count < self._capacity / 2
        if needs_realloc:
            self.vertex_data = (
                np.zeros(vertex_count * self.component_count, dtype=np.float32)
                if vertex_count > 0
                else None
            )
            self._capacity = vertex_count
            if self._active_vertex_count > self._capacity:
                self._active_vertex_count = self._capacity
            logger.debug("VertexBuffer reallocated: capacity=%d", self._capacity)
        return self.vertex_data

    def set_active_vertex_count(self, count: int) -> None:
        if count < 0 or count > self._capacity:
            raise ValueError(f"active vertex count {count} exceeds capacity {self._capacity}")
        self._active_vertex_count = count
        self.version += 1

    def active_data(self) -> np.ndarray:
        """描画対象部分のビュー（`active * component_count` float）。"""
        if self.vertex_data is None or self._active_vertex_count == 0:
            return np.zeros(0, dtype=np.float32)
        return self.vertex_data[: self._active_vertex_count * self.component_count]

    def make_textured_unit_quad(self, rect: tuple[float, float, float, float], z: float) -> None:
        """矩形 `(left, bottom, right, top)` を UV `[0,1]²` の 2 三角形（6 頂点）で埋める。

        レイアウトは位置+UV（`V3T2`）である必要がある。
        """
        if self.layout != V3T2:
            raise ValueError("make_textured_unit_quad は V3T2 レイアウト専用です")
        left, bottom, right, top = rect
        data = self.request_buffer(6)
        assert data is not None
        filler = Float32ArrayFiller(data)
        quad = np.array(
            [[left, bottom, z], [right, bottom, z], [right, top, z], [left, top, z]],
            dtype=np.float64,
        )
        filler.add_textured_quad(quad, (0.0, 0.0, 1.0, 1.0))
        self.set_active_vertex_count(6)


__all__ = [
    "FLOAT_BYTES",
    "VertexComponent",
    "VertexLayout",
    "V3C4",
    "V3T2",
    "V3N3",
    "V3T2N3",
    "VertexBuffer",
]
