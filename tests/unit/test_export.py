"""
tests/unit/test_export.py

Unit tests for graphview.view.export.

Coverage
--------
  - export_filename: "<app>-graph.<ext>" per format
  - graph_json: {app, graph: {nodes, edges}, exportedAt}
  - graph_stats: counts by type, status and relationship
  - export_graph: local formats built from the snapshot, no API call
  - export_graph: local format without a snapshot → ValueError
  - export_graph: server formats delegated to the API client
"""
from __future__ import annotations

import json
from unittest.mock import AsyncMock

import pytest

from graphview.errors import GraphFetchError
from graphview.models.schemas.graph import GraphEdge, GraphNode, GraphSnapshot
from graphview.view.export import ExportFormat, export_filename, export_graph, graph_json, graph_stats


def _snapshot() -> GraphSnapshot:
    return GraphSnapshot(
        app_name="shop",
        nodes=(
            GraphNode(id="spec", type="spec", status="active"),
            GraphNode(id="s1", type="step", status="running"),
            GraphNode(id="s2", type="step"),
        ),
        edges=(
            GraphEdge(source_id="spec", target_id="s1", relationship="contains"),
            GraphEdge(source_id="s1", target_id="s2"),
        ),
    )


@pytest.mark.parametrize(
    ("fmt", "filename"),
    [
        (ExportFormat.JSON, "shop-graph.json"),
        (ExportFormat.STATS, "shop-graph.stats.json"),
        (ExportFormat.SVG, "shop-graph.svg"),
        (ExportFormat.PNG, "shop-graph.png"),
        (ExportFormat.DOT, "shop-graph.dot"),
        (ExportFormat.MERMAID, "shop-graph.mmd"),
    ],
)
def test_export_filename(fmt: ExportFormat, filename: str) -> None:
    assert export_filename("shop", fmt) == filename


class TestLocalDocuments:
    def test_graph_json_shape(self) -> None:
        document = graph_json("shop", _snapshot())
        assert set(document) == {"app", "graph", "exportedAt"}
        assert document["app"] == "shop"
        assert [n["id"] for n in document["graph"]["nodes"]] == ["spec", "s1", "s2"]
        assert document["graph"]["edges"][0]["relationship"] == "contains"

    def test_graph_stats(self) -> None:
        stats = graph_stats(_snapshot())
        assert stats["totalNodes"] == 3
        assert stats["totalEdges"] == 2
        assert stats["nodesByType"] == {"spec": 1, "step": 2}
        assert stats["nodesByStatus"] == {"active": 1, "running": 1, "unknown": 1}
        assert stats["edgesByRelationship"] == {"contains": 1, "depends_on": 1}


class TestExportGraph:
    @pytest.mark.asyncio
    async def test_json_is_local(self) -> None:
        api = AsyncMock()
        result = await export_graph(api, "shop", _snapshot(), ExportFormat.JSON)
        api.export_graph.assert_not_awaited()
        assert result.content_type == "application/json"
        assert result.filename == "shop-graph.json"
        assert json.loads(result.content)["app"] == "shop"

    @pytest.mark.asyncio
    async def test_local_format_without_snapshot(self) -> None:
        with pytest.raises(ValueError):
            await export_graph(AsyncMock(), "shop", None, ExportFormat.STATS)

    @pytest.mark.asyncio
    async def test_server_format_delegates(self) -> None:
        api = AsyncMock()
        api.export_graph.return_value = (b"graph TD\n  a --> b", "text/plain")
        result = await export_graph(api, "shop", None, ExportFormat.MERMAID)
        api.export_graph.assert_awaited_once_with("shop", "mermaid")
        assert result.content.startswith(b"graph TD")
        assert result.filename == "shop-graph.mmd"

    @pytest.mark.asyncio
    async def test_server_failure_propagates(self) -> None:
        api = AsyncMock()
        api.export_graph.side_effect = GraphFetchError("bad gateway", status_code=502)
        with pytest.raises(GraphFetchError):
            await export_graph(api, "shop", _snapshot(), ExportFormat.PNG)
