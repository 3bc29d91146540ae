"""
どこで: `shapes` パッケージ。
何を: コア幾何（Polyline/TriangleMesh）から組み立てる立体形状を公開する。
"""

from .solid import Solid, create_cube_faces, create_rectangular_solid_faces

__all__ = ["Solid", "create_cube_faces", "create_rectangular_solid_faces"]
