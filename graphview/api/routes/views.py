"""
graphview/api/routes/views.py

Viewer endpoints, one mounted GraphView per application.

GET    /views/{app}                 laid-out, filtered graph (mounts on first use)
POST   /views/{app}/refresh         retry the snapshot fetch
GET    /views/{app}/svg             SVG rendering
GET    /views/{app}/text            text tree rendering
PUT    /views/{app}/filters         set one facet value on or off
POST   /views/{app}/filters/clear   re-enable every facet value, clear search
PUT    /views/{app}/search          set the search text
PUT    /views/{app}/critical-path   switch the critical path overlay
POST   /views/{app}/select/{node}   select a node and return its detail
GET    /views/{app}/export          json, stats, svg, png, dot or mermaid
GET    /views/{app}/history         recent workflow runs
GET    /views/{app}/annotations     node annotations, optionally for one node
GET    /views/{app}/metrics         workflow performance metrics
GET    /views/{app}/activity        change events received on the stream
DELETE /views/{app}                 unmount and close the stream

Mutating endpoints other than DELETE need a mounted view (404 otherwise).
"""
from __future__ import annotations

from dataclasses import fields as dataclass_fields

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from fastapi.responses import PlainTextResponse

from graphview.api.routes import mounted_view, require_api_key, view_for
from graphview.errors import GraphFetchError, UnknownApplication
from graphview.models.schemas.graph import GraphEvent
from graphview.models.schemas.insights import Annotation, PerformanceMetrics
from graphview.models.schemas.workflow import HistoryResponse
from graphview.models.schemas.view import (
    CriticalPathToggle,
    FilterUpdate,
    HighlightsOut,
    NodeDetailOut,
    RefreshResponse,
    SearchUpdate,
    ViewResponse,
)
from graphview.view.details import (
    NodeDetail,
    ResourceDetail,
    SpecDetail,
    StepDetail,
    WorkflowDetail,
)
from graphview.view.export import ExportFormat
from graphview.view.filters import Facet
from graphview.view.graph_view import GraphView
from graphview.view.registry import ViewRegistry, get_registry

logger = structlog.get_logger(__name__)

router = APIRouter()


def _view_response(view: GraphView) -> ViewResponse:
    model = view.render()
    return ViewResponse(
        app_name=model.app_name,
        load_state=model.load_state.value,
        connection=model.connection.value,
        error=model.error,
        generation=model.generation,
        total_nodes=model.total_nodes,
        total_edges=model.total_edges,
        nodes=model.nodes,
        edges=model.edges,
        highlights=HighlightsOut(
            critical=view.critical_path.path if view.critical_path.enabled else [],
            changed=sorted(model.highlights.changed),
            search=sorted(model.highlights.search),
            selected=model.highlights.selected,
        ),
        filters=view.filters.as_dict(),
        search=view.filters.search,
        critical_path_enabled=view.critical_path.enabled,
        activity=model.activity,
    )


def _detail_out(detail: NodeDetail) -> NodeDetailOut:
    fields = {
        f.name: getattr(detail, f.name)
        for f in dataclass_fields(detail)
        if f.name not in ("node", "execution")
    }
    if isinstance(detail, SpecDetail):
        kind = "spec"
    elif isinstance(detail, WorkflowDetail):
        kind = "workflow"
    elif isinstance(detail, StepDetail):
        kind = "step"
    elif isinstance(detail, ResourceDetail):
        kind = "resource"
    else:
        raise TypeError(f"Unhandled detail type: {type(detail).__name__}")

    execution = None
    if isinstance(detail, WorkflowDetail) and detail.execution is not None:
        execution = detail.execution.model_dump(mode="json")
    return NodeDetailOut(kind=kind, node=detail.node, fields=fields, execution=execution)


@router.get(
    "/{app_name}",
    response_model=ViewResponse,
    summary="Laid-out graph for an application",
)
async def get_view(
    _key: str = Depends(require_api_key),
    view: GraphView = Depends(view_for),
) -> ViewResponse:
    """Return positioned visible nodes, renderable edges and overlays.

    The first request for an application mounts it: the snapshot is
    fetched and the live stream started.  A failed fetch is reported in
    ``load_state`` / ``error`` rather than as an HTTP error.
    """
    response = _view_response(view)
    logger.info(
        "view_served",
        app=view.app_name,
        nodes=len(response.nodes),
        edges=len(response.edges),
        load_state=response.load_state,
    )
    return response


@router.post(
    "/{app_name}/refresh",
    response_model=RefreshResponse,
    summary="Retry the snapshot fetch",
)
async def refresh_view(
    _key: str = Depends(require_api_key),
    view: GraphView = Depends(mounted_view),
) -> RefreshResponse:
    ok = await view.refresh()
    return RefreshResponse(
        app_name=view.app_name,
        ok=ok,
        load_state=view.sync.load_state.value,
        error=view.sync.error,
    )


@router.get("/{app_name}/svg", summary="SVG rendering")
async def get_svg(
    _key: str = Depends(require_api_key),
    view: GraphView = Depends(view_for),
) -> Response:
    return Response(content=view.svg(), media_type="image/svg+xml")


@router.get("/{app_name}/text", response_class=PlainTextResponse, summary="Text tree rendering")
async def get_text(
    _key: str = Depends(require_api_key),
    view: GraphView = Depends(view_for),
) -> str:
    return view.text()


@router.put(
    "/{app_name}/filters",
    response_model=ViewResponse,
    summary="Set one facet value",
)
async def update_filter(
    body: FilterUpdate,
    _key: str = Depends(require_api_key),
    view: GraphView = Depends(mounted_view),
) -> ViewResponse:
    try:
        facet = Facet(body.facet)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Unknown facet '{body.facet}'.",
        ) from None
    view.set_filter(facet, body.value, body.enabled)
    logger.debug("view_filter_set", app=view.app_name, facet=facet.value, value=body.value, enabled=body.enabled)
    return _view_response(view)


@router.post(
    "/{app_name}/filters/clear",
    response_model=ViewResponse,
    summary="Clear filters and search",
)
async def clear_filters(
    _key: str = Depends(require_api_key),
    view: GraphView = Depends(mounted_view),
) -> ViewResponse:
    view.clear_filters()
    return _view_response(view)


@router.put(
    "/{app_name}/search",
    response_model=ViewResponse,
    summary="Set the search text",
)
async def update_search(
    body: SearchUpdate,
    _key: str = Depends(require_api_key),
    view: GraphView = Depends(mounted_view),
) -> ViewResponse:
    view.set_search(body.text)
    return _view_response(view)


@router.put(
    "/{app_name}/critical-path",
    response_model=ViewResponse,
    summary="Switch the critical path overlay",
)
async def toggle_critical_path(
    body: CriticalPathToggle,
    _key: str = Depends(require_api_key),
    view: GraphView = Depends(mounted_view),
) -> ViewResponse:
    await view.toggle_critical_path(body.enabled)
    return _view_response(view)


@router.post(
    "/{app_name}/select/{node_id}",
    response_model=NodeDetailOut | None,
    summary="Select a node",
)
async def select_node(
    node_id: str,
    _key: str = Depends(require_api_key),
    view: GraphView = Depends(mounted_view),
) -> NodeDetailOut | None:
    """Select *node_id* and return its detail pane, or null for providers."""
    try:
        detail = await view.select(node_id)
    except KeyError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Node {node_id} not found in {view.app_name}.",
        ) from None
    return _detail_out(detail) if detail is not None else None


@router.get("/{app_name}/export", summary="Export the graph")
async def export_view(
    fmt: ExportFormat = Query(default=ExportFormat.JSON, alias="format"),
    _key: str = Depends(require_api_key),
    view: GraphView = Depends(view_for),
) -> Response:
    try:
        result = await view.export(fmt)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except GraphFetchError as exc:
        logger.warning("view_export_failed", app=view.app_name, format=fmt.value, error=str(exc))
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Export failed: {exc}",
        ) from exc

    return Response(
        content=result.content,
        media_type=result.content_type,
        headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
    )


def _upstream_failure(view: GraphView, panel: str, exc: GraphFetchError) -> HTTPException:
    logger.warning("view_panel_fetch_failed", app=view.app_name, panel=panel, error=str(exc))
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail=f"Fetching {panel} failed: {exc}",
    )


@router.get(
    "/{app_name}/history",
    response_model=HistoryResponse,
    summary="Recent workflow runs",
)
async def get_history(
    limit: int = Query(default=20, ge=1, le=100),
    _key: str = Depends(require_api_key),
    view: GraphView = Depends(view_for),
) -> HistoryResponse:
    try:
        return await view.history(limit)
    except GraphFetchError as exc:
        raise _upstream_failure(view, "history", exc) from exc


@router.get(
    "/{app_name}/annotations",
    response_model=list[Annotation],
    summary="Node annotations",
)
async def get_annotations(
    node_id: str | None = Query(default=None),
    _key: str = Depends(require_api_key),
    view: GraphView = Depends(view_for),
) -> list[Annotation]:
    try:
        return await view.annotations(node_id)
    except GraphFetchError as exc:
        raise _upstream_failure(view, "annotations", exc) from exc


@router.get(
    "/{app_name}/metrics",
    response_model=PerformanceMetrics,
    summary="Workflow performance metrics",
)
async def get_metrics(
    _key: str = Depends(require_api_key),
    view: GraphView = Depends(view_for),
) -> PerformanceMetrics:
    try:
        return await view.metrics()
    except GraphFetchError as exc:
        raise _upstream_failure(view, "metrics", exc) from exc


@router.get(
    "/{app_name}/activity",
    response_model=list[GraphEvent],
    summary="Stream change events",
)
async def get_activity(
    _key: str = Depends(require_api_key),
    view: GraphView = Depends(view_for),
) -> list[GraphEvent]:
    """Change events from enveloped stream frames, oldest first."""
    return view.render().activity



@router.delete(
    "/{app_name}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Unmount a view",
)
async def delete_view(
    app_name: str,
    _key: str = Depends(require_api_key),
    registry: ViewRegistry = Depends(get_registry),
) -> Response:
    try:
        await registry.remove(app_name)
    except UnknownApplication as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
