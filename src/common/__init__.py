"""
どこで: `common` パッケージ。
何を: 設定（settings/env）・ロギング・型エイリアスなど、全層から使う軽量基盤。
なぜ: 幾何コア（engine.core）と描画層（engine.render）の双方が依存できる最下層を分離するため。
"""

from .logging import setup_default_logging

__all__ = [
    "setup_default_logging",
]
