"""
graphview/view/graph_view.py

One mounted application graph.

GraphView ties the pieces together:

    GraphSynchronizer   snapshot, load/connection state, buffered patches
    GraphStream         WebSocket task feeding the synchronizer
    LayoutCache         positions, recomputed only on a new snapshot
    FilterState         facet toggles and search
    Viewport            pan / zoom
    CriticalPathOverlay on-demand critical path
    selection           selected node id and its loaded detail
    side panels         run history, annotations, metrics (fetched on demand)

``render()`` builds a ``ViewModel`` from the current state without any I/O.
Interaction methods (filters, search, viewport, selection) never trigger a
layout pass; only a snapshot change does.

The stream task is cancelled on ``close()``, on ``switch_app()`` and when
leaving ``async with``.
"""
from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field

import structlog

from graphview.client.http import GraphApiClient
from graphview.client.session import Session
from graphview.client.stream import GraphStream
from graphview.layout.engine import LayoutCache, LayoutConfig
from graphview.models.schemas.graph import GraphEdge, GraphEvent, GraphNode
from graphview.models.schemas.insights import Annotation, PerformanceMetrics
from graphview.models.schemas.workflow import HistoryResponse
from graphview.sync.synchronizer import ConnectionState, GraphSynchronizer, LoadState
from graphview.view.details import NodeDetail, load_detail
from graphview.view.export import ExportFormat, ExportResult, export_graph
from graphview.view.filters import Facet, FilterState
from graphview.view.highlight import CriticalPathOverlay, Highlights
from graphview.view.svg import render_svg, renderable_edges
from graphview.view.text_view import render_text
from graphview.view.viewport import Viewport

logger = structlog.get_logger(__name__)

StreamFactory = Callable[[str], GraphStream]


@dataclass
class ViewModel:
    """Everything a renderer needs for one frame."""

    app_name: str
    nodes: list[GraphNode] = field(default_factory=list)
    edges: list[GraphEdge] = field(default_factory=list)
    highlights: Highlights = field(default_factory=Highlights)
    load_state: LoadState = LoadState.IDLE
    connection: ConnectionState = ConnectionState.CONNECTING
    error: str | None = None
    generation: int = 0
    total_nodes: int = 0
    total_edges: int = 0
    activity: list[GraphEvent] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.nodes


class GraphView:
    """Live, filterable, laid-out view of one application's graph."""

    def __init__(
        self,
        app_name: str,
        session: Session,
        *,
        api: GraphApiClient | None = None,
        stream_factory: StreamFactory | None = None,
        layout_config: LayoutConfig | None = None,
    ) -> None:
        self.session = session
        self.api = api or GraphApiClient(session)
        self._stream_factory = stream_factory or (lambda app: GraphStream(session, app))
        self._layout_config = layout_config
        self._stream_task: asyncio.Task[None] | None = None
        self._unsubscribe: Callable[[], None] | None = None
        self._reset(app_name)

    def _reset(self, app_name: str) -> None:
        self.app_name = app_name
        self.sync = GraphSynchronizer(app_name, self.api)
        self.layout_cache = LayoutCache(self._layout_config)
        self.filters = FilterState()
        self.viewport = Viewport()
        self.critical_path = CriticalPathOverlay(app_name)
        self.selected_id: str | None = None
        self.detail: NodeDetail | None = None

    # ── Lifecycle ────────────────────────────────────────
    @property
    def is_streaming(self) -> bool:
        return self._stream_task is not None and not self._stream_task.done()

    async def mount(self) -> bool:
        """Start the stream task and fetch the initial snapshot.

        Returns the outcome of the fetch.  A failed fetch leaves the view
        mounted in the error state; ``refresh()`` retries it.
        """
        self._unsubscribe = self.sync.subscribe(self._on_sync_change)
        stream = self._stream_factory(self.app_name)
        self._stream_task = asyncio.create_task(
            stream.run(self.sync.handle_raw, self.sync.set_connection),
            name=f"graph-stream-{self.app_name}",
        )
        self._stream_task.add_done_callback(self._on_stream_done)
        logger.info("graph_view_mounted", app=self.app_name)
        return await self.sync.load()

    async def refresh(self) -> bool:
        """Re-fetch the snapshot and, when shown, the critical path."""
        ok = await self.sync.retry()
        if ok:
            await self.critical_path.refresh(self.api)
        return ok

    async def close(self) -> None:
        """Cancel the stream task and drop listeners.  Safe to call twice."""
        task, self._stream_task = self._stream_task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.sync.set_connection(ConnectionState.CLOSED)
        logger.info("graph_view_closed", app=self.app_name)

    async def switch_app(self, app_name: str) -> bool:
        """Tear down the current application and mount *app_name*."""
        previous = self.app_name
        await self.close()
        self._reset(app_name)
        logger.info("graph_view_switched", previous=previous, app=app_name)
        return await self.mount()

    async def __aenter__(self) -> GraphView:
        await self.mount()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def _on_sync_change(self, sync: GraphSynchronizer) -> None:
        self.filters.observe(sync.snapshot)
        if self.selected_id is not None and sync.snapshot is not None:
            if self.selected_id not in sync.snapshot.node_by_id():
                self.selected_id = None
                self.detail = None

    def _on_stream_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("graph_stream_crashed", app=self.app_name, error=str(exc))
            self.sync.set_connection(ConnectionState.OFFLINE)

    # ── Interaction ──────────────────────────────────────
    def set_filter(self, facet: Facet, value: str, enabled: bool) -> None:
        self.filters.set(facet, value, enabled)

    def toggle_filter(self, facet: Facet, value: str) -> bool:
        return self.filters.toggle(facet, value)

    def clear_filters(self) -> None:
        self.filters.clear()

    def set_search(self, text: str) -> None:
        self.filters.set_search(text)

    async def toggle_critical_path(self, enabled: bool | None = None) -> bool:
        """Switch the overlay on or off; returns the new state."""
        target = (not self.critical_path.enabled) if enabled is None else enabled
        await self.critical_path.set_enabled(self.api, target)
        return target

    async def select(self, node_id: str | None) -> NodeDetail | None:
        """Select *node_id* and load its detail; ``None`` clears the selection."""
        if node_id is None:
            self.selected_id = None
            self.detail = None
            return None
        snapshot = self.sync.snapshot
        node = snapshot.node_by_id().get(node_id) if snapshot is not None else None
        if node is None:
            raise KeyError(node_id)
        self.selected_id = node_id
        self.detail = await load_detail(self.api, self.app_name, node)
        return self.detail

    async def export(self, fmt: ExportFormat) -> ExportResult:
        return await export_graph(self.api, self.app_name, self.sync.snapshot, fmt)

    # ── Side panels ──────────────────────────────────────
    # Fetched on demand; GraphFetchError propagates to the caller.
    async def history(self, limit: int = 20) -> HistoryResponse:
        return await self.api.get_history(self.app_name, limit)

    async def annotations(self, node_id: str | None = None) -> list[Annotation]:
        return await self.api.get_annotations(self.app_name, node_id)

    async def metrics(self) -> PerformanceMetrics:
        return await self.api.get_metrics(self.app_name)

    # ── Rendering ────────────────────────────────────────
    def highlights(self) -> Highlights:
        snapshot = self.sync.snapshot
        search: frozenset[str] = frozenset()
        if snapshot is not None and self.filters.search:
            search = frozenset(node.id for node in snapshot.nodes if self.filters.matches_search(node))
        return Highlights(
            critical=self.critical_path.node_ids,
            changed=frozenset(self.sync.changed_node_ids()),
            search=search,
            selected=self.selected_id,
        )

    def render(self) -> ViewModel:
        snapshot = self.sync.snapshot
        positioned = self.layout_cache.get(snapshot)
        visible = self.filters.visible_nodes(positioned)
        edges = renderable_edges(visible, snapshot.edges) if snapshot is not None else []
        return ViewModel(
            app_name=self.app_name,
            nodes=visible,
            edges=edges,
            highlights=self.highlights(),
            load_state=self.sync.load_state,
            connection=self.sync.connection,
            error=self.sync.error,
            generation=self.sync.generation,
            total_nodes=len(snapshot.nodes) if snapshot is not None else 0,
            total_edges=len(snapshot.edges) if snapshot is not None else 0,
            activity=list(self.sync.activity),
        )

    def svg(self) -> str:
        model = self.render()
        return render_svg(model.nodes, model.edges, highlights=model.highlights, viewport=self.viewport)

    def text(self) -> str:
        snapshot = self.sync.snapshot
        if snapshot is None:
            return render_text([], [])
        return render_text(
            snapshot.nodes,
            snapshot.edges,
            highlights=self.highlights(),
            filters=self.filters,
        )
