"""
tests/unit/test_layout_engine.py

Unit tests for graphview.layout.engine.

Pure functions only: no I/O, no mocks.

Coverage
--------
  - assign_layers: chain, diamond, long/short path merge, disconnected nodes
  - assign_layers: 2-cycle with no roots → all layer 0
  - assign_layers: cycle fed by a root is layered below it, chains below a
    cycle keep descending, cycles with no path from a root → one extra layer
  - assign_layers: dangling edges and self-loops are ignored
  - Every edge between reached nodes goes strictly downwards (random DAGs)
  - layout: one positioned copy per input node, inputs untouched
  - layout: coordinates follow canvas width / spacing / margin
  - layout: identical input → identical output
  - LayoutCache: recomputes only for a new snapshot object
"""
from __future__ import annotations

import random

import pytest

from graphview.layout.engine import LayoutCache, LayoutConfig, assign_layers, layout
from graphview.models.schemas.graph import GraphEdge, GraphNode, GraphSnapshot


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _nodes(*ids: str) -> list[GraphNode]:
    return [GraphNode(id=node_id, name=node_id.upper(), type="step") for node_id in ids]


def _edge(source: str, target: str, relationship: str = "depends_on") -> GraphEdge:
    return GraphEdge(source_id=source, target_id=target, relationship=relationship)


def _positions(nodes: list[GraphNode]) -> dict[str, tuple[float, float, int]]:
    return {n.id: (n.position.x, n.position.y, n.position.layer) for n in nodes}


def _random_dag(seed: int, size: int = 12) -> tuple[list[GraphNode], list[GraphEdge]]:
    rng = random.Random(seed)
    ids = [f"n{i}" for i in range(size)]
    edges = [
        _edge(ids[i], ids[j])
        for i in range(size)
        for j in range(i + 1, size)
        if rng.random() < 0.25
    ]
    shuffled = ids[:]
    rng.shuffle(shuffled)
    return _nodes(*shuffled), edges


# ---------------------------------------------------------------------------
# Layer assignment
# ---------------------------------------------------------------------------

class TestAssignLayers:
    def test_empty_graph(self) -> None:
        assert assign_layers([], []) == {}

    def test_chain(self) -> None:
        layers = assign_layers(_nodes("a", "b", "c"), [_edge("a", "b"), _edge("b", "c")])
        assert layers == {"a": 0, "b": 1, "c": 2}

    def test_diamond(self) -> None:
        edges = [_edge("a", "b"), _edge("a", "c"), _edge("b", "d"), _edge("c", "d")]
        layers = assign_layers(_nodes("a", "b", "c", "d"), edges)
        assert layers == {"a": 0, "b": 1, "c": 1, "d": 2}

    def test_longest_path_wins(self) -> None:
        edges = [_edge("a", "c"), _edge("a", "b"), _edge("b", "c")]
        layers = assign_layers(_nodes("a", "b", "c"), edges)
        assert layers["c"] == 2

    def test_disconnected_nodes_share_layer_zero(self) -> None:
        assert assign_layers(_nodes("a", "b"), []) == {"a": 0, "b": 0}

    def test_two_cycle_without_roots(self) -> None:
        layers = assign_layers(_nodes("a", "b"), [_edge("a", "b"), _edge("b", "a")])
        assert layers == {"a": 0, "b": 0}

    def test_cycle_fed_by_root_is_layered_below_it(self) -> None:
        edges = [_edge("r", "a"), _edge("a", "b"), _edge("b", "a"), _edge("r", "x")]
        layers = assign_layers(_nodes("r", "x", "a", "b"), edges)
        assert layers == {"r": 0, "x": 1, "a": 1, "b": 2}

    def test_chain_below_cycle_keeps_going_down(self) -> None:
        edges = [_edge("r", "a"), _edge("a", "b"), _edge("b", "a"), _edge("b", "c"), _edge("c", "d")]
        layers = assign_layers(_nodes("r", "a", "b", "c", "d"), edges)
        assert layers == {"r": 0, "a": 1, "b": 2, "c": 3, "d": 4}
        assert layers["d"] >= layers["c"] + 1

    def test_cycle_unreachable_from_roots_goes_to_extra_layer(self) -> None:
        edges = [_edge("r", "s"), _edge("x", "y"), _edge("y", "x")]
        layers = assign_layers(_nodes("r", "s", "x", "y"), edges)
        assert layers == {"r": 0, "s": 1, "x": 2, "y": 2}


    def test_dangling_edge_ignored(self) -> None:
        layers = assign_layers(_nodes("a"), [_edge("a", "ghost"), _edge("ghost", "a")])
        assert layers == {"a": 0}

    def test_self_loop_ignored(self) -> None:
        layers = assign_layers(_nodes("a", "b"), [_edge("a", "a"), _edge("a", "b")])
        assert layers == {"a": 0, "b": 1}

    @pytest.mark.parametrize("seed", range(10))
    def test_edges_point_down_on_random_dags(self, seed: int) -> None:
        nodes, edges = _random_dag(seed)
        layers = assign_layers(nodes, edges)
        for edge in edges:
            assert layers[edge.target_id] >= layers[edge.source_id] + 1


# ---------------------------------------------------------------------------
# Positioning
# ---------------------------------------------------------------------------

class TestLayout:
    def test_chain_coordinates(self) -> None:
        positioned = layout(_nodes("a", "b", "c"), [_edge("a", "b"), _edge("b", "c")])
        assert _positions(positioned) == {
            "a": (450.0, 80.0, 0),
            "b": (450.0, 200.0, 1),
            "c": (450.0, 320.0, 2),
        }

    def test_same_layer_nodes_are_centred_in_input_order(self) -> None:
        positioned = layout(_nodes("a", "b"), [])
        assert _positions(positioned) == {"a": (375.0, 80.0, 0), "b": (525.0, 80.0, 0)}
        assert [n.id for n in positioned] == ["a", "b"]

    def test_output_sorted_by_layer_then_input_order(self) -> None:
        nodes = _nodes("c", "b", "a", "d")
        edges = [_edge("a", "b"), _edge("a", "c")]
        assert [n.id for n in layout(nodes, edges)] == ["a", "d", "c", "b"]

    def test_custom_config(self) -> None:
        config = LayoutConfig(canvas_width=400, node_spacing=100, layer_spacing=50, margin=10)
        positioned = layout(_nodes("a", "b"), [_edge("a", "b")], config)
        assert _positions(positioned) == {"a": (200.0, 10.0, 0), "b": (200.0, 60.0, 1)}

    def test_every_input_node_positioned_once(self) -> None:
        nodes, edges = _random_dag(3, size=20)
        positioned = layout(nodes, edges)
        assert len(positioned) == len(nodes)
        assert {n.id for n in positioned} == {n.id for n in nodes}
        assert all(n.position is not None for n in positioned)

    def test_inputs_not_modified(self) -> None:
        nodes = _nodes("a", "b")
        layout(nodes, [_edge("a", "b")])
        assert all(n.position is None for n in nodes)

    def test_deterministic(self) -> None:
        nodes, edges = _random_dag(7)
        assert _positions(layout(nodes, edges)) == _positions(layout(nodes, edges))

    def test_two_cycle_positions_both_nodes(self) -> None:
        positioned = layout(_nodes("a", "b"), [_edge("a", "b"), _edge("b", "a")])
        assert {n.position.layer for n in positioned} == {0}
        assert len(positioned) == 2


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------

class TestLayoutCache:
    def test_none_snapshot_is_empty(self) -> None:
        cache = LayoutCache(LayoutConfig())
        assert cache.get(None) == []
        assert cache.computations == 0

    def test_same_snapshot_reuses_result(self) -> None:
        cache = LayoutCache(LayoutConfig())
        snapshot = GraphSnapshot(nodes=tuple(_nodes("a", "b")), edges=(_edge("a", "b"),))
        first = cache.get(snapshot)
        second = cache.get(snapshot)
        assert first is second
        assert cache.computations == 1

    def test_new_snapshot_recomputes(self) -> None:
        cache = LayoutCache(LayoutConfig())
        snapshot = GraphSnapshot(nodes=tuple(_nodes("a")))
        cache.get(snapshot)
        cache.get(snapshot.model_copy(update={"nodes": tuple(_nodes("a", "b"))}))
        assert cache.computations == 2

    def test_invalidate_forces_recompute(self) -> None:
        cache = LayoutCache(LayoutConfig())
        snapshot = GraphSnapshot(nodes=tuple(_nodes("a")))
        cache.get(snapshot)
        cache.invalidate()
        cache.get(snapshot)
        assert cache.computations == 2
