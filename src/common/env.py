"""
どこで: `common.env`
何を: 環境変数の軽量パースヘルパ（int/float/bool）を提供。
なぜ: `common.settings` 以外で `os.getenv` を直接読まないようにし、既定値と型を揃えるため。
"""

from __future__ import annotations

import os
from typing import Optional


def env_int(
    name: str, default: Optional[int] = None, *, min_value: Optional[int] = None
) -> Optional[int]:
    """整数環境変数を取得（存在しない/不正値は既定値）。

    Parameters
    ----------
    name : str
        環境変数名。
    default : Optional[int]
        既定値（`None` を渡すと `None` を許容）。
    min_value : Optional[int]
        下限（指定時、結果が下回れば下限に丸める）。

    Returns
    -------
    Optional[int]
        取得した整数値。未設定/不正時は `default` を返す。
    """
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        val = int(raw)
    except ValueError:
        return default
    if min_value is not None and val < min_value:
        val = min_value
    return val


def env_float(name: str, default: float, *, min_value: Optional[float] = None) -> float:
    """浮動小数の環境変数を取得。`nan`/`inf` や不正値は既定値へ戻す。"""
    raw = os.getenv(name)
    if raw is None:
        return float(default)
    try:
        val = float(raw)
    except ValueError:
        return float(default)
    if val != val or val in (float("inf"), float("-inf")):
        return float(default)
    if min_value is not None and val < min_value:
        val = float(min_value)
    return val


def env_bool(name: str, default: bool = False) -> bool:
    """真偽環境変数を取得（0/1, true/false を許容）。"""
    raw = os.getenv(name)
    if raw is None:
        return bool(default)
    try:
        # 数値優先
        return int(raw) != 0
    except ValueError:
        s = raw.strip().lower()
        if s in {"true", "t", "yes", "y", "on"}:
            return True
        if s in {"false", "f", "no", "n", "off"}:
            return False
        return bool(default)


__all__ = ["env_int", "env_float", "env_bool"]
