"""
graphview/view/export.py

Graph exports.

JSON and statistics exports are produced locally from the current
snapshot.  SVG, PNG, DOT and Mermaid are rendered by the platform via
``GET /graph/{app}/export?format=...``.
"""
from __future__ import annotations

import json
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from graphview.client.http import GraphApiClient
from graphview.models.schemas.graph import GraphSnapshot


class ExportFormat(str, Enum):
    JSON    = "json"
    STATS   = "stats"
    SVG     = "svg"
    PNG     = "png"
    DOT     = "dot"
    MERMAID = "mermaid"

    @property
    def is_local(self) -> bool:
        return self in (ExportFormat.JSON, ExportFormat.STATS)


_EXTENSIONS = {
    ExportFormat.JSON:    "json",
    ExportFormat.STATS:   "stats.json",
    ExportFormat.SVG:     "svg",
    ExportFormat.PNG:     "png",
    ExportFormat.DOT:     "dot",
    ExportFormat.MERMAID: "mmd",
}


@dataclass(frozen=True)
class ExportResult:
    content: bytes
    content_type: str
    filename: str


def export_filename(app_name: str, fmt: ExportFormat) -> str:
    return f"{app_name}-graph.{_EXTENSIONS[fmt]}"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def graph_json(app_name: str, snapshot: GraphSnapshot) -> dict[str, Any]:
    """Export document: ``{app, graph: {nodes, edges}, exportedAt}``."""
    graph = snapshot.model_dump(mode="json", include={"nodes", "edges"}, exclude_none=True)
    return {"app": app_name, "graph": graph, "exportedAt": _now()}


def graph_stats(snapshot: GraphSnapshot) -> dict[str, Any]:
    """Node counts by type and status, edge counts by relationship."""
    return {
        "totalNodes": len(snapshot.nodes),
        "totalEdges": len(snapshot.edges),
        "nodesByType": dict(Counter(node.type.value for node in snapshot.nodes)),
        "nodesByStatus": dict(Counter(node.status or "unknown" for node in snapshot.nodes)),
        "edgesByRelationship": dict(Counter(edge.relationship for edge in snapshot.edges)),
        "exportedAt": _now(),
    }


async def export_graph(
    api: GraphApiClient,
    app_name: str,
    snapshot: GraphSnapshot | None,
    fmt: ExportFormat,
) -> ExportResult:
    """Produce an export in *fmt*.

    Raises:
        ValueError: a local format was requested before any snapshot exists.
        GraphFetchError: the platform failed to render a server-side format.
    """
    filename = export_filename(app_name, fmt)
    if fmt.is_local:
        if snapshot is None:
            raise ValueError("No graph loaded to export.")
        document = graph_json(app_name, snapshot) if fmt is ExportFormat.JSON else graph_stats(snapshot)
        return ExportResult(
            content=json.dumps(document, indent=2).encode("utf-8"),
            content_type="application/json",
            filename=filename,
        )

    content, content_type = await api.export_graph(app_name, fmt.value)
    return ExportResult(content=content, content_type=content_type, filename=filename)
