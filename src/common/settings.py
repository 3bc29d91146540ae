"""
どこで: `common.settings`
何を: 幾何コアの調整値（許容誤差・クリップ経路・警告・GPU 予約量）を環境変数から型付きで読み込む。
なぜ: 既定値を 1 か所に集約し、テストでは `reload_from_env()` で差し替えられるようにするため。
"""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_bool, env_float, env_int


@dataclass
class _Settings:
    # 幾何判定
    GEOM_EPSILON: float = 1e-6

    # クリップ（フラットバッファ経路を既定にするか）
    CLIP_USE_FLAT_BUFFER: bool = False

    # 押し出し時、平面が無効なアウトラインを警告するか
    WARN_INVALID_OUTLINES: bool = True

    # GPU バッファの初期確保量（バイト）
    GPU_INITIAL_RESERVE: int = 1024 * 1024


_settings = _Settings()


def reload_from_env() -> None:
    """環境変数から設定を再読込。

    - `PXG_EPSILON` は正値のみ受け付ける（0 以下は既定値）。
    - `PXG_GPU_INITIAL_RESERVE` は 0 未満を 0 に丸める。
    """
    eps = env_float("PXG_EPSILON", 1e-6)
    _settings.GEOM_EPSILON = eps if eps > 0.0 else 1e-6

    _settings.CLIP_USE_FLAT_BUFFER = env_bool("PXG_CLIP_FLAT", False)
    _settings.WARN_INVALID_OUTLINES = env_bool("PXG_WARN_INVALID_OUTLINES", True)
    _settings.GPU_INITIAL_RESERVE = (
        env_int("PXG_GPU_INITIAL_RESERVE", 1024 * 1024, min_value=0) or 0
    )


def get() -> _Settings:
    """現在の設定スナップショットを返す。"""
    return _settings


# 初期ロード
reload_from_env()


__all__ = ["get", "reload_from_env", "_Settings"]
