"""
どこで: `engine.render` サブパッケージ。
何を: TriangleMesh → 頂点バッファ（CPU 側）→ GPU 転送の入口。VertexBuffer/Float32ArrayFiller/TriangleMeshGpu を提供。
なぜ: 幾何計算（core）と GPU リソース管理の責務を分離し、転送レイアウトを 1 か所で定義するため。
"""
