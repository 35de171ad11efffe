"""
graphview/view/text_view.py

Tree-shaped text rendering, an alternative to the spatial view.

The tree follows ``contains`` edges; every visible node without a visible
``contains`` parent becomes a root.  Roots are ordered spec, workflow,
step, resource, then everything else, keeping input order within a type.

Line format::

    ├── [Step 2/5] deploy-app (step) ⏱ 1.5s #4 [running] *changed

Markers: ``*critical``, ``*changed``, ``*match``.
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from graphview.models.schemas.graph import GraphEdge, GraphNode, StepMetadata, WorkflowMetadata
from graphview.view.filters import FilterState
from graphview.view.highlight import Highlights

CONTAINS = "contains"
EMPTY_MESSAGE = "No nodes to display"

_ROOT_ORDER = {"spec": 0, "workflow": 1, "step": 2, "resource": 3}


@dataclass
class TreeNode:
    node: GraphNode
    children: list[TreeNode] = field(default_factory=list)


def format_duration(duration_ms: float) -> str:
    if duration_ms < 1000:
        return f"{duration_ms:g}ms"
    return f"{duration_ms / 1000:.1f}s"


def build_tree(nodes: Sequence[GraphNode], edges: Sequence[GraphEdge]) -> list[TreeNode]:
    """Arrange *nodes* into a forest along ``contains`` edges."""
    tree_nodes: dict[str, TreeNode] = {}
    for node in nodes:
        tree_nodes.setdefault(node.id, TreeNode(node))

    has_parent: set[str] = set()
    for edge in edges:
        if edge.relationship != CONTAINS or edge.is_self_loop:
            continue
        parent = tree_nodes.get(edge.source_id)
        child = tree_nodes.get(edge.target_id)
        if parent is None or child is None or child.node.id in has_parent:
            continue
        parent.children.append(child)
        has_parent.add(child.node.id)

    roots = [tree for node_id, tree in tree_nodes.items() if node_id not in has_parent]

    # Containment cycles have no parentless member; promote the first
    # unreached node of each so nothing drops out of the tree.
    reached: set[str] = set()

    def mark(tree: TreeNode) -> None:
        stack = [tree]
        while stack:
            current = stack.pop()
            if current.node.id in reached:
                continue
            reached.add(current.node.id)
            stack.extend(current.children)

    for root in roots:
        mark(root)
    for node_id, tree in tree_nodes.items():
        if node_id not in reached:
            roots.append(tree)
            mark(tree)

    return sorted(roots, key=lambda tree: _ROOT_ORDER.get(tree.node.type.value, 99))


def _line(node: GraphNode, highlights: Highlights) -> str:
    parts: list[str] = []
    meta = node.metadata

    if isinstance(meta, StepMetadata) and meta.step_number and meta.total_steps:
        parts.append(f"[Step {meta.step_number}/{meta.total_steps}]")
    parts.append(f"{node.label} ({node.type.value})")
    if isinstance(meta, (StepMetadata, WorkflowMetadata)) and meta.duration_ms:
        parts.append(f"⏱ {format_duration(meta.duration_ms)}")
    if node.execution_order:
        parts.append(f"#{node.execution_order}")
    parts.append(f"[{node.status or 'unknown'}]")
    parts.extend(f"*{marker}" for marker in highlights.classes_for(node.id) if marker != "selected")
    return " ".join(parts)


def render_text(
    nodes: Sequence[GraphNode],
    edges: Sequence[GraphEdge],
    *,
    highlights: Highlights | None = None,
    filters: FilterState | None = None,
) -> str:
    """Render the graph as an indented tree.

    With *filters*, only visible nodes are listed and an active search adds
    a match count footer.
    """
    highlights = highlights or Highlights()
    shown = list(nodes) if filters is None else filters.visible_nodes(nodes)
    roots = build_tree(shown, edges)
    if not roots:
        return EMPTY_MESSAGE

    lines: list[str] = []
    visited: set[str] = set()

    def walk(tree: TreeNode, prefix: str, is_last: bool, is_root: bool) -> None:
        if tree.node.id in visited:
            return
        visited.add(tree.node.id)
        connector = "" if is_root else ("└── " if is_last else "├── ")
        lines.append(f"{prefix}{connector}{_line(tree.node, highlights)}")
        child_prefix = prefix if is_root else prefix + ("    " if is_last else "│   ")
        for index, child in enumerate(tree.children):
            walk(child, child_prefix, index == len(tree.children) - 1, False)

    for root in roots:
        walk(root, "", True, True)

    if filters is not None and filters.search:
        matches = sum(1 for node in nodes if filters.matches_search(node))
        lines.append("")
        lines.append(f'Search: "{filters.search}" - {matches} match(es)')

    return "\n".join(lines)
