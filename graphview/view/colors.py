"""
graphview/view/colors.py

Colour scheme for rendered graphs.  Status colours take precedence over
type colours; unknown statuses fall back to the node type.
"""
from __future__ import annotations

from typing import NamedTuple


class NodeColor(NamedTuple):
    fill: str
    stroke: str
    text: str = "#ffffff"
    glow: bool = False


NODE_COLORS: dict[str, NodeColor] = {
    "spec":     NodeColor("#8b5cf6", "#7c3aed"),
    "resource": NodeColor("#10b981", "#059669"),
    "provider": NodeColor("#f59e0b", "#d97706"),
    "workflow": NodeColor("#06b6d4", "#0891b2"),
    "step":     NodeColor("#3b82f6", "#2563eb"),
}
DEFAULT_NODE_COLOR = NodeColor("#6b7280", "#4b5563")

STATUS_COLORS: dict[str, NodeColor] = {
    "running":      NodeColor("#3b82f6", "#2563eb", glow=True),
    "provisioning": NodeColor("#3b82f6", "#2563eb", glow=True),
    "succeeded":    NodeColor("#10b981", "#059669"),
    "completed":    NodeColor("#10b981", "#059669"),
    "active":       NodeColor("#10b981", "#059669"),
    "failed":       NodeColor("#ef4444", "#dc2626"),
    "error":        NodeColor("#ef4444", "#dc2626"),
    "waiting":      NodeColor("#f59e0b", "#d97706"),
    "pending":      NodeColor("#f59e0b", "#d97706"),
    "requested":    NodeColor("#eab308", "#ca8a04"),
    "terminating":  NodeColor("#f97316", "#ea580c"),
    "terminated":   NodeColor("#71717a", "#52525b"),
}

EDGE_COLORS: dict[str, str] = {
    "default":   "#a1a1aa",
    "highlight": "#3b82f6",
    "error":     "#ef4444",
    "success":   "#10b981",
}


def node_color(node_type: str, status: str | None = None) -> NodeColor:
    if status and status.lower() in STATUS_COLORS:
        return STATUS_COLORS[status.lower()]
    return NODE_COLORS.get(node_type, DEFAULT_NODE_COLOR)


def edge_color(relationship: str | None = None) -> str:
    if relationship in ("error", "success"):
        return EDGE_COLORS[relationship]
    return EDGE_COLORS["default"]
