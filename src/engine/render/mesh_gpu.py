"""
どこで: `engine.render` の低レベルメッシュ層。
何を: `VertexBuffer` の内容を moderngl の VBO へ転送し、三角形描画用の VAO を管理する `TriangleMeshGpu`。
なぜ: GPU 転送の詳細（再確保・VAO の張り直し・解放）を幾何コアから切り離すため。

前提:
- `ctx`（moderngl.Context 相当）と `program` は呼び出し側が生成して注入する。
- 頂点レイアウトは `VertexBuffer.layout`（既定 `V3T2N3`）の宣言順。
"""

from __future__ import annotations

import logging
from typing import Any

import moderngl

from common.settings import get as _get_settings

from .vertex_buffer import VertexBuffer

logger = logging.getLogger(__name__)


class TriangleMeshGpu:
    """
    CPU 側の頂点配列を GPU に送り、TRIANGLES で描画するためのバッファ群を保持
    """

    def __init__(
        self,
        ctx: Any,
        program: Any,
        vertex_buffer: VertexBuffer,
        initial_reserve: int | None = None,
    ):
        """
        ctx: moderngl コンテキスト（`buffer` / `vertex_array` を提供するもの）
        program: 頂点属性名が `VertexBuffer.layout` と一致するシェーダープログラム
        vertex_buffer: 転送元の CPU 側頂点バッファ
        initial_reserve: VBO の初期確保量（バイト）。未指定時は設定値。
        """
        self.ctx = ctx
        self.program = program
        self.vertex_buffer = vertex_buffer
        if initial_reserve is None:
            initial_reserve = int(_get_settings().GPU_INITIAL_RESERVE)
        self.initial_reserve = max(int(initial_reserve), vertex_buffer.stride)

        self.vbo = ctx.buffer(reserve=self.initial_reserve, dynamic=True)
        self.vao = self._make_vao()

        # 描画ステート
        self.vertex_count: int = 0
        self._uploaded_version = -1

    def _make_vao(self) -> Any:
        layout = self.vertex_buffer.layout
        return self.ctx.vertex_array(
            self.program,
            [(self.vbo, layout.format_string(), *layout.attribute_names())],
        )

    # ---------- バッファ操作 ----------
    def _ensure_capacity(self, nbytes: int) -> None:
        """データが大きくなったら VBO を再確保し、VAO を張り直す"""
        if nbytes <= self.vbo.size:
            return
        self.vbo.release()
        self.vbo = self.ctx.buffer(reserve=max(nbytes, self.initial_reserve), dynamic=True)
        self.vao.release()
        self.vao = self._make_vao()
        logger.debug("TriangleMeshGpu: VBO grown to %d bytes", self.vbo.size)

    def upload(self, force: bool = False) -> bool:
        """`VertexBuffer` の描画対象頂点を GPU に送る。変更が無ければ何もしない。

        Returns
        -------
        bool
            実際に転送したかどうか。
        """
        vb = self.vertex_buffer
        if not force and vb.version == self._uploaded_version:
            return False
        data = vb.active_data()
        if data.size > 0:
            self._ensure_capacity(data.nbytes)
            self.vbo.orphan()
            self.vbo.write(data.tobytes())
        self.vertex_count = vb.active_vertex_count
        self._uploaded_version = vb.version
        return True

    def render(self) -> None:
        """アクティブな頂点を三角形として描画する。"""
        if self.vertex_count > 0:
            self.vao.render(moderngl.TRIANGLES, vertices=self.vertex_count)

    def release(self) -> None:
        """GPU のメモリを解放する（終了時に使う）"""
        self.vbo.release()
        self.vao.release()


__all__ = ["TriangleMeshGpu"]
