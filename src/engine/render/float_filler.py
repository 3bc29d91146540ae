"""
どこで: `engine.render.float_filler`
何を: float32 配列へ先頭から順に頂点成分を書き込むカーソル付きライタ `Float32ArrayFiller`。
なぜ: 位置/UV/法線/色のインターリーブ書き込みを 1 か所にまとめ、レイアウト崩れを防ぐため。

注意:
- 書き込み前に残り容量を確認し、足りなければ `IndexError`（呼び出し側の容量計算ミス）。
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from common.types import Vec2Like, Vec3Like

RGBA = tuple[float, float, float, float]


class Float32ArrayFiller:
    def __init__(self, array: np.ndarray) -> None:
        if array.dtype != np.float32 or array.ndim != 1:
            raise ValueError("Float32ArrayFiller には 1 次元 float32 配列が必要です")
        self.array = array
        self._position = 0

    @property
    def current_position(self) -> int:
        return self._position

    def _put(self, values: Sequence[float]) -> None:
        n = len(values)
        if self._position + n > self.array.shape[0]:
            raise IndexError(
                f"書き込み位置 {self._position}+{n} が配列長 {self.array.shape[0]} を超えます"
            )
        self.array[self._position : self._position + n] = values
        self._position += n

    def add_v3(self, v: Vec3Like) -> None:
        self._put([float(v[0]), float(v[1]), float(v[2])])

    def add_v2(self, v: Vec2Like) -> None:
        self._put([float(v[0]), float(v[1])])

    def add_c4(self, color: RGBA) -> None:
        self._put([float(c) for c in color[:4]])

    def add_v3c4(self, v: Vec3Like, color: RGBA) -> None:
        self.add_v3(v)
        self.add_c4(color)

    def add_v3v2(self, v3: Vec3Like, v2: Vec2Like) -> None:
        self.add_v3(v3)
        self.add_v2(v2)

    def add_v3t2n3(self, v: Vec3Like, tex: Vec2Like, normal: Vec3Like) -> None:
        """メッシュと同じ並び（位置・UV・法線）で 1 頂点を書き込む。"""
        self.add_v3(v)
        self.add_v2(tex)
        self.add_v3(normal)

    def add_triangle_with_color(
        self, v1: Vec3Like, v2: Vec3Like, v3: Vec3Like, color: RGBA
    ) -> None:
        self.add_v3c4(v1, color)
        self.add_v3c4(v2, color)
        self.add_v3c4(v3, color)

    def add_textured_quad(
        self, quad: np.ndarray, tex_rect: tuple[float, float, float, float]
    ) -> None:
        """4 隅 `(4, 3)`（左下→右下→右上→左上）を 2 三角形で書き込む。

        `tex_rect` は `(left, top, right, bottom)`。左下隅には `(left, bottom)` が対応する。
        """
        left, top, right, bottom = tex_rect
        t_tl = (left, top)
        t_tr = (right, top)
        t_bl = (left, bottom)
        t_br = (right, bottom)

        # 1 つ目: 左下, 右下, 右上
        self.add_v3v2(quad[0], t_bl)
        self.add_v3v2(quad[1], t_br)
        self.add_v3v2(quad[2], t_tr)

        # 2 つ目: 左下, 右上, 左上
        self.add_v3v2(quad[0], t_bl)
        self.add_v3v2(quad[2], t_tr)
        self.add_v3v2(quad[3], t_tl)


__all__ = ["Float32ArrayFiller", "RGBA"]
