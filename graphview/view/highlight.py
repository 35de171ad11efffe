"""
graphview/view/highlight.py

Overlay sets drawn on top of the graph.

  critical   ordered node ids of the server-computed critical path
  changed    ids whose status differs from the previous generation
  search     ids whose name matches the search text
  selected   the node picked by the user, if any
"""
from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from graphview.client.http import GraphApiClient
from graphview.errors import GraphFetchError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Highlights:
    critical: frozenset[str] = frozenset()
    changed: frozenset[str] = frozenset()
    search: frozenset[str] = frozenset()
    selected: str | None = None

    def classes_for(self, node_id: str) -> list[str]:
        """Marker names for *node_id*, used as CSS classes and text markers."""
        classes: list[str] = []
        if node_id in self.critical:
            classes.append("critical")
        if node_id in self.changed:
            classes.append("changed")
        if node_id in self.search:
            classes.append("match")
        if node_id == self.selected:
            classes.append("selected")
        return classes


@dataclass
class CriticalPathOverlay:
    """On-demand critical path, fetched from the server when switched on."""

    app_name: str
    enabled: bool = False
    path: list[str] = field(default_factory=list)

    @property
    def node_ids(self) -> frozenset[str]:
        return frozenset(self.path) if self.enabled else frozenset()

    async def set_enabled(self, api: GraphApiClient, enabled: bool) -> None:
        self.enabled = enabled
        if not enabled:
            self.path = []
            return
        await self.refresh(api)

    async def refresh(self, api: GraphApiClient) -> None:
        if not self.enabled:
            return
        try:
            critical = await api.get_critical_path(self.app_name)
        except GraphFetchError as exc:
            logger.warning("critical_path_fetch_failed", app=self.app_name, error=str(exc))
            self.path = []
            return
        self.path = critical.node_ids
        logger.info("critical_path_loaded", app=self.app_name, nodes=len(self.path))
