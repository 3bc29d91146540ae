"""
どこで: `engine.core` サブパッケージ。
何を: 幾何プリミティブ・Edge・Polyline・クリッパー・ReferenceBox・TriangleMesh・ヒットテスト・ピッキングを提供。
なぜ: GPU/フレームワークに依存しない純粋な CPU 計算層として、上位層（render/shapes）から再利用するため。
"""
