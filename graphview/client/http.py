"""
graphview/client/http.py

Async REST client for the platform's graph endpoints.

    GET /graph/{app}                      snapshot
    GET /graph/{app}/critical-path        ordered critical path
    GET /graph/{app}/export?format=...    server-rendered export
    GET /graph/{app}/history?limit=N      workflow run history
    GET /graph/{app}/annotations          node annotations
    GET /graph/{app}/metrics              performance metrics
    GET /graph/{app}/workflow/{id}        workflow detail pane

Every failure (transport error, non-2xx, undecodable body) surfaces as
GraphFetchError so callers deal with a single exception type.
"""
from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx
import structlog
from pydantic import ValidationError

from graphview.client.session import Session
from graphview.errors import GraphFetchError
from graphview.models.schemas.graph import CriticalPath, GraphSnapshot
from graphview.models.schemas.insights import Annotation, PerformanceMetrics
from graphview.models.schemas.workflow import HistoryResponse, WorkflowExecutionDetail

logger = structlog.get_logger(__name__)


def _app_path(app_name: str) -> str:
    return f"/graph/{quote(app_name, safe='')}"


class GraphApiClient:
    """Async client for the platform graph REST API."""

    def __init__(
        self,
        session: Session,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._session = session
        self._timeout = httpx.Timeout(session.timeout, connect=10.0)
        self._transport = transport

    @property
    def session(self) -> Session:
        return self._session

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._session.api_url,
            timeout=self._timeout,
            headers=self._session.auth_headers(),
            transport=self._transport,
        )

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> httpx.Response:
        try:
            async with self._client() as client:
                response = await client.get(path, params=params)
        except httpx.HTTPError as exc:
            logger.warning("platform_request_failed", path=path, error=str(exc))
            raise GraphFetchError(f"Request to {path} failed: {exc}") from exc

        if response.is_error:
            logger.warning(
                "platform_request_rejected",
                path=path,
                status_code=response.status_code,
            )
            raise GraphFetchError(
                f"Request to {path} returned {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )
        return response

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        response = await self._get(path, params)
        try:
            return response.json()
        except ValueError as exc:
            raise GraphFetchError(f"Response from {path} is not valid JSON") from exc

    # ── Snapshot ─────────────────────────────────────────
    async def get_graph(self, app_name: str) -> GraphSnapshot:
        """Fetch the current graph snapshot for *app_name*."""
        data = await self._get_json(_app_path(app_name))
        if not isinstance(data, dict):
            raise GraphFetchError("Graph response is not a JSON object")
        try:
            snapshot = GraphSnapshot.model_validate(
                {
                    "app_name": app_name,
                    "nodes": data.get("nodes") or [],
                    "edges": data.get("edges") or [],
                }
            )
        except ValidationError as exc:
            raise GraphFetchError(f"Graph response failed validation: {exc.error_count()} error(s)") from exc
        logger.debug("graph_fetched", app=app_name, nodes=len(snapshot.nodes), edges=len(snapshot.edges))
        return snapshot

    # ── Critical path ────────────────────────────────────
    async def get_critical_path(self, app_name: str) -> CriticalPath:
        data = await self._get_json(f"{_app_path(app_name)}/critical-path")
        try:
            return CriticalPath.model_validate(data)
        except ValidationError as exc:
            raise GraphFetchError("Critical path response failed validation") from exc

    # ── Export ───────────────────────────────────────────
    async def export_graph(self, app_name: str, fmt: str) -> tuple[bytes, str]:
        """Return the raw export payload and its content type."""
        response = await self._get(f"{_app_path(app_name)}/export", params={"format": fmt})
        content_type = response.headers.get("content-type", "application/octet-stream")
        logger.debug("graph_exported", app=app_name, format=fmt, size=len(response.content))
        return response.content, content_type

    # ── Auxiliary panels ─────────────────────────────────
    async def get_history(self, app_name: str, limit: int = 20) -> HistoryResponse:
        data = await self._get_json(f"{_app_path(app_name)}/history", params={"limit": limit})
        try:
            return HistoryResponse.model_validate(data)
        except ValidationError as exc:
            raise GraphFetchError("History response failed validation") from exc

    async def get_annotations(self, app_name: str, node_id: str | None = None) -> list[Annotation]:
        params = {"node_id": node_id} if node_id else None
        data = await self._get_json(f"{_app_path(app_name)}/annotations", params=params)
        items = data.get("annotations", []) if isinstance(data, dict) else data
        try:
            return [Annotation.model_validate(item) for item in items or []]
        except ValidationError as exc:
            raise GraphFetchError("Annotations response failed validation") from exc

    async def get_metrics(self, app_name: str) -> PerformanceMetrics:
        data = await self._get_json(f"{_app_path(app_name)}/metrics")
        try:
            return PerformanceMetrics.model_validate(data)
        except ValidationError as exc:
            raise GraphFetchError("Metrics response failed validation") from exc

    async def get_workflow_details(self, app_name: str, workflow_id: int | str) -> WorkflowExecutionDetail:
        data = await self._get_json(f"{_app_path(app_name)}/workflow/{quote(str(workflow_id), safe='')}")
        try:
            return WorkflowExecutionDetail.model_validate(data)
        except ValidationError as exc:
            raise GraphFetchError("Workflow detail response failed validation") from exc
