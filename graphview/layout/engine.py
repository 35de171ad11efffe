"""
graphview/layout/engine.py

Layered (topological) layout for application graphs.

Algorithm
---------
1. Adjacency: outgoing target ids and in-degree per node.  Edges whose
   endpoints are not both present are ignored, as are self-loops.

2. Seeds: every node with in-degree 0 starts at layer 0.  When no such node
   exists (the graph is one big cycle) every node is seeded at layer 0.

3. Breadth-first pass with a visited set.  A node's layer is the maximum of
   (predecessor layer + 1) over its processed predecessors, and it is only
   dequeued once all of them have been processed, so it always lands below
   every predecessor.  When the queue runs dry while reached nodes are still
   waiting on a predecessor inside a cycle, the first such node in input
   order is released at its current layer and the pass continues.

4. Nodes with no path from any seed go to a single extra layer after the
   last one.

5. Coordinates: ``y = layer * layer_spacing + margin``; nodes of a layer are
   ``node_spacing`` apart and centred on ``canvas_width``.  Within a layer
   nodes keep their input order.

``layout()`` is pure: the same input always yields the same positions.
``LayoutCache`` keeps the last result until the snapshot object changes.
"""
from __future__ import annotations

from collections import deque
from collections.abc import Sequence
from dataclasses import dataclass

import structlog

from graphview.config import settings
from graphview.models.schemas.graph import GraphEdge, GraphNode, GraphSnapshot, Position

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class LayoutConfig:
    """Canvas geometry used to turn layers into coordinates."""

    canvas_width: float = 900.0
    node_spacing: float = 150.0
    layer_spacing: float = 120.0
    margin: float = 80.0

    @classmethod
    def from_settings(cls) -> LayoutConfig:
        return cls(
            canvas_width=settings.layout_canvas_width,
            node_spacing=settings.layout_node_spacing,
            layer_spacing=settings.layout_layer_spacing,
            margin=settings.layout_margin,
        )


# ---------------------------------------------------------------------------
# Layer assignment
# ---------------------------------------------------------------------------

def _adjacency(
    node_ids: list[str],
    edges: Sequence[GraphEdge],
) -> tuple[dict[str, list[str]], dict[str, int]]:
    known = set(node_ids)
    outgoing: dict[str, list[str]] = {node_id: [] for node_id in node_ids}
    indegree: dict[str, int] = {node_id: 0 for node_id in node_ids}

    for edge in edges:
        if edge.source_id not in known or edge.target_id not in known:
            continue
        if edge.is_self_loop:
            continue
        outgoing[edge.source_id].append(edge.target_id)
        indegree[edge.target_id] += 1

    return outgoing, indegree


def assign_layers(nodes: Sequence[GraphNode], edges: Sequence[GraphEdge]) -> dict[str, int]:
    """Return node-id → layer index for every distinct node id."""
    node_ids: list[str] = []
    seen: set[str] = set()
    for node in nodes:
        if node.id not in seen:
            seen.add(node.id)
            node_ids.append(node.id)

    if not node_ids:
        return {}

    outgoing, indegree = _adjacency(node_ids, edges)

    roots = [node_id for node_id in node_ids if indegree[node_id] == 0]
    if not roots:
        return {node_id: 0 for node_id in node_ids}

    layer: dict[str, int] = {node_id: 0 for node_id in roots}
    remaining = dict(indegree)
    visited: set[str] = set()
    queue: deque[str] = deque(roots)

    while True:
        while queue:
            current = queue.popleft()
            if current in visited:
                continue
            visited.add(current)

            next_layer = layer[current] + 1
            for child in outgoing[current]:
                if child in visited:
                    continue
                layer[child] = max(layer.get(child, 0), next_layer)
                remaining[child] -= 1
                if remaining[child] == 0:
                    queue.append(child)

        # Reached but held back by a predecessor inside a cycle.
        blocked = next(
            (node_id for node_id in node_ids if node_id in layer and node_id not in visited),
            None,
        )
        if blocked is None:
            break
        logger.debug("layout_cycle_released", node_id=blocked, layer=layer[blocked])
        queue.append(blocked)

    result = {node_id: layer[node_id] for node_id in node_ids if node_id in visited}
    unreached = [node_id for node_id in node_ids if node_id not in visited]
    if unreached:
        extra = max(result.values()) + 1
        for node_id in unreached:
            result[node_id] = extra
        logger.debug("layout_unreached_nodes", count=len(unreached), layer=extra)

    return result


# ---------------------------------------------------------------------------
# Positioning
# ---------------------------------------------------------------------------

def layout(
    nodes: Sequence[GraphNode],
    edges: Sequence[GraphEdge],
    config: LayoutConfig | None = None,
) -> list[GraphNode]:
    """Position every input node.

    Returns one positioned copy per input node, ordered by layer and then
    by input order.  Input nodes are not modified.
    """
    config = config or LayoutConfig()
    layers_by_id = assign_layers(nodes, edges)

    buckets: dict[int, list[GraphNode]] = {}
    for node in nodes:
        buckets.setdefault(layers_by_id[node.id], []).append(node)

    positioned: list[GraphNode] = []
    for layer_index in sorted(buckets):
        members = buckets[layer_index]
        y = layer_index * config.layer_spacing + config.margin
        start_x = (config.canvas_width - len(members) * config.node_spacing) / 2
        for slot, node in enumerate(members):
            x = start_x + slot * config.node_spacing + config.node_spacing / 2
            positioned.append(
                node.model_copy(update={"position": Position(x=x, y=y, layer=layer_index)})
            )

    return positioned


class LayoutCache:
    """Memoises ``layout()`` for the most recent snapshot.

    The result is recomputed only when a different snapshot object is
    passed in; filter, search, selection and viewport changes reuse it.
    """

    def __init__(self, config: LayoutConfig | None = None) -> None:
        self.config = config or LayoutConfig.from_settings()
        self._snapshot: GraphSnapshot | None = None
        self._nodes: list[GraphNode] = []
        self.computations = 0

    def get(self, snapshot: GraphSnapshot | None) -> list[GraphNode]:
        if snapshot is None:
            return []
        if snapshot is not self._snapshot:
            self._nodes = layout(snapshot.nodes, snapshot.edges, self.config)
            self._snapshot = snapshot
            self.computations += 1
            logger.debug(
                "layout_computed",
                app=snapshot.app_name,
                nodes=len(self._nodes),
                computations=self.computations,
            )
        return self._nodes

    def invalidate(self) -> None:
        self._snapshot = None
        self._nodes = []
