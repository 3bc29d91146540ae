"""
どこで: `common.logging`
何を: 幾何コア向けの最小ロギング設定ヘルパ。
なぜ: ライブラリ側はハンドラを持たず `logging.getLogger(__name__)` に出力するだけにし、
      設定はアプリ/テストの入口で 1 度だけ行うため。
"""

from __future__ import annotations

import logging

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_default_logging(level: int | str = "INFO", *, fmt: str = DEFAULT_FORMAT) -> bool:
    """最小限のロギング設定を 1 度だけ適用する。

    - ルートロガーにハンドラが既にあれば何もしない（no-op）
    - 戻り値は設定を適用したかどうか
    """
    if isinstance(level, str):
        lvl = getattr(logging, level.upper(), logging.INFO)
    else:
        lvl = int(level)

    root = logging.getLogger()
    if root.handlers:
        return False
    logging.basicConfig(level=lvl, format=fmt)
    return True


__all__ = ["setup_default_logging", "DEFAULT_FORMAT"]
