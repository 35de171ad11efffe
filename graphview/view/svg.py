"""
graphview/view/svg.py

SVG rendering of a laid-out graph.

Only positioned nodes are drawn.  An edge is drawn when both of its
endpoints are among the drawn nodes; dangling edges (unknown ids, or
endpoints hidden by filters) are skipped without error.
"""
from __future__ import annotations

from collections.abc import Sequence
from html import escape

from graphview.models.schemas.graph import GraphEdge, GraphNode, Position
from graphview.view.colors import EDGE_COLORS, edge_color, node_color
from graphview.view.highlight import Highlights
from graphview.view.viewport import Viewport

NODE_RADIUS = 30
DEFAULT_HEIGHT = 600

_ARROW_MARKER = (
    '<defs><marker id="arrowhead" markerWidth="10" markerHeight="10" refX="9" refY="3" orient="auto">'
    f'<polygon points="0 0, 10 3, 0 6" fill="{EDGE_COLORS["default"]}"/></marker></defs>'
)


def _fmt(value: float) -> str:
    return f"{value:g}"


def renderable_edges(nodes: Sequence[GraphNode], edges: Sequence[GraphEdge]) -> list[GraphEdge]:
    """Edges whose endpoints are both present and positioned."""
    placed = {node.id for node in nodes if node.position is not None}
    return [edge for edge in edges if edge.source_id in placed and edge.target_id in placed]


def _edge(edge: GraphEdge, source: Position, target: Position, highlighted: bool) -> str:
    x1, y1 = source.x, source.y
    x2, y2 = target.x, target.y
    stroke = EDGE_COLORS["highlight"] if highlighted else edge_color(edge.relationship)
    parts = [
        f'<g class="edge" data-id="{escape(edge.key)}">',
        f'<line x1="{_fmt(x1)}" y1="{_fmt(y1)}" x2="{_fmt(x2)}" y2="{_fmt(y2)}" '
        f'stroke="{stroke}" stroke-width="2" marker-end="url(#arrowhead)"/>',
    ]
    if edge.relationship:
        parts.append(
            f'<text x="{_fmt((x1 + x2) / 2)}" y="{_fmt((y1 + y2) / 2 - 5)}" '
            f'text-anchor="middle" font-size="10">{escape(edge.relationship)}</text>'
        )
    parts.append("</g>")
    return "".join(parts)


def _node(node: GraphNode, position: Position, highlights: Highlights) -> str:
    color = node_color(node.type.value, node.status)
    classes = " ".join(["node", f"node-{node.type.value}", *highlights.classes_for(node.id)])
    if color.glow:
        classes += " glow"
    x, y = position.x, position.y
    return (
        f'<g class="{classes}" data-id="{escape(node.id)}">'
        f'<circle cx="{_fmt(x)}" cy="{_fmt(y)}" r="{NODE_RADIUS}" fill="{color.fill}" '
        f'stroke="{color.stroke}" stroke-width="2"/>'
        f'<text x="{_fmt(x)}" y="{_fmt(y + NODE_RADIUS + 15)}" text-anchor="middle" '
        f'font-size="12">{escape(node.label)}</text>'
        f'<title>{escape(node.label)} ({escape(node.type.value)}): {escape(node.status or "unknown")}</title>'
        "</g>"
    )


def render_svg(
    nodes: Sequence[GraphNode],
    edges: Sequence[GraphEdge],
    *,
    highlights: Highlights | None = None,
    viewport: Viewport | None = None,
    height: int = DEFAULT_HEIGHT,
) -> str:
    """Render positioned *nodes* and the *edges* between them as an SVG document."""
    highlights = highlights or Highlights()
    viewport = viewport or Viewport()

    placed: dict[str, tuple[GraphNode, Position]] = {}
    for node in nodes:
        if node.position is not None:
            placed.setdefault(node.id, (node, node.position))
    body: list[str] = [_ARROW_MARKER]

    for edge in edges:
        source = placed.get(edge.source_id)
        target = placed.get(edge.target_id)
        if source is None or target is None:
            continue
        on_path = edge.source_id in highlights.critical and edge.target_id in highlights.critical
        body.append(_edge(edge, source[1], target[1], on_path))

    for node, position in placed.values():
        body.append(_node(node, position, highlights))

    return (
        f'<svg xmlns="http://www.w3.org/2000/svg" width="100%" height="{height}">'
        f'<g transform="{viewport.transform}">'
        + "".join(body)
        + "</g></svg>"
    )
