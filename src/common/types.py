"""
どこで: `common` の型定義。
何を: Vec2/Vec3 と「ベクトルとして受け付ける入力」の軽量エイリアス。
なぜ: 依存の少ない場所に置き、core/render/shapes で同じ表記を共有するため。
"""

from __future__ import annotations

from typing import Sequence, Union

import numpy as np

Vec2 = tuple[float, float]
Vec3 = tuple[float, float, float]

# tuple/list/ndarray いずれも受け付ける（内部では float64 ndarray に正規化）
Vec2Like = Union[Vec2, Sequence[float], np.ndarray]
Vec3Like = Union[Vec3, Sequence[float], np.ndarray]

__all__ = ["Vec2", "Vec3", "Vec2Like", "Vec3Like"]
