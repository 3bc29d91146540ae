from __future__ import annotations

import numpy as np
import pytest

from engine.core.edge import Edge


def _edges() -> list[Edge]:
    return [
        Edge((0.0, 0.0, 0.0), (1.0, 0.0, 0.0)),
        Edge((1.0, 0.0, 0.0), (1.0, 1.0, 0.0)),
        Edge((1.0, 1.0, 0.0), (0.0, 1.0, 0.0)),
    ]


def test_endpoints_are_normalized_to_float_tuples() -> None:
    e = Edge(np.array([1, 2, 3]), [4, 5, 6])
    assert e.start == (1.0, 2.0, 3.0)
    assert e.end == (4.0, 5.0, 6.0)
    assert isinstance(e.start[0], float)


def test_bad_endpoint_shape_raises() -> None:
    with pytest.raises(ValueError):
        Edge((0.0, 0.0), (1.0, 0.0, 0.0))


def test_zero_edge() -> None:
    z = Edge.zero()
    assert z.start == (0.0, 0.0, 0.0)
    assert z.end == (0.0, 0.0, 0.0)


def test_equality_and_hash_are_order_sensitive() -> None:
    a = Edge((0.0, 0.0, 0.0), (1.0, 0.0, 0.0))
    b = Edge((0.0, 0.0, 0.0), (1.0, 0.0, 0.0))
    flipped = Edge((1.0, 0.0, 0.0), (0.0, 0.0, 0.0))
    assert a == b
    assert hash(a) == hash(b)
    assert a != flipped
    assert len({a, b, flipped}) == 2


def test_transform_maps_local_xy_onto_axes() -> None:
    e = Edge((1.0, 2.0, 99.0), (3.0, 4.0, -7.0))
    t = e.transform((10.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 0.0, 1.0))
    # z 成分は無視される
    assert t.start == (11.0, 0.0, 2.0)
    assert t.end == (13.0, 0.0, 4.0)


def test_transform_edges_preserves_order() -> None:
    src = _edges()
    out = Edge.transform_edges(src, (0.0, 0.0, 5.0), (2.0, 0.0, 0.0), (0.0, 2.0, 0.0))
    assert [e.start for e in out] == [(0.0, 0.0, 5.0), (2.0, 0.0, 5.0), (2.0, 2.0, 5.0)]
    assert [e.end for e in out] == [(2.0, 0.0, 5.0), (2.0, 2.0, 5.0), (0.0, 2.0, 5.0)]


def test_edge_lists_strictly_equal_identical() -> None:
    assert Edge.edge_lists_are_strictly_equal(_edges(), _edges())


def test_edge_lists_strictly_equal_empty() -> None:
    assert Edge.edge_lists_are_strictly_equal([], [])


def test_edge_lists_reordered_is_not_equal() -> None:
    a = _edges()
    b = [a[1], a[0], a[2]]
    assert not Edge.edge_lists_are_strictly_equal(a, b)


def test_edge_lists_swapped_endpoints_is_not_equal() -> None:
    a = _edges()
    b = list(a)
    b[2] = Edge(a[2].end, a[2].start)
    assert not Edge.edge_lists_are_strictly_equal(a, b)


def test_edge_lists_different_length_is_not_equal() -> None:
    a = _edges()
    assert not Edge.edge_lists_are_strictly_equal(a, a[:2])


def test_edge_lists_tiny_difference_is_not_equal() -> None:
    a = _edges()
    b = list(a)
    b[0] = a[0].copy_with(end=(1.0 + 1e-12, 0.0, 0.0))
    assert not Edge.edge_lists_are_strictly_equal(a, b)


def test_copy_with_replaces_only_given_endpoint() -> None:
    e = Edge((0.0, 0.0, 0.0), (1.0, 1.0, 1.0))
    s = e.copy_with(start=[2, 2, 2])
    assert s.start == (2.0, 2.0, 2.0)
    assert s.end == e.end
    assert e.copy_with() == e
