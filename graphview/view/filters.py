"""
graphview/view/filters.py

Facet filters and free-text search over the current snapshot.

Each facet keeps a value → enabled map.  Values are discovered from the
snapshot (``observe``) and start out enabled.  A node is visible when it
passes every facet it has a value for and its name contains the search
text (case-insensitive).  Filtering never touches the snapshot or the
layout.
"""
from __future__ import annotations

from collections.abc import Callable, Iterable
from enum import Enum

from graphview.models.schemas.graph import (
    GraphEdge,
    GraphNode,
    GraphSnapshot,
    ProviderMetadata,
    ResourceMetadata,
)


class Facet(str, Enum):
    TYPE           = "type"
    STATUS         = "status"
    RESOURCE_TYPE  = "resource_type"
    PROVIDER       = "provider"
    RESOURCE_STATE = "resource_state"
    HEALTH_STATUS  = "health_status"


def _resource_field(name: str) -> Callable[[GraphNode], str | None]:
    def extract(node: GraphNode) -> str | None:
        if isinstance(node.metadata, ResourceMetadata):
            return getattr(node.metadata, name)
        return None
    return extract


def _provider(node: GraphNode) -> str | None:
    if isinstance(node.metadata, (ResourceMetadata, ProviderMetadata)):
        return node.metadata.provider_id
    return None


_EXTRACTORS: dict[Facet, Callable[[GraphNode], str | None]] = {
    Facet.TYPE:           lambda node: node.type.value,
    Facet.STATUS:         lambda node: node.status or None,
    Facet.RESOURCE_TYPE:  _resource_field("resource_type"),
    Facet.PROVIDER:       _provider,
    Facet.RESOURCE_STATE: _resource_field("resource_state"),
    Facet.HEALTH_STATUS:  _resource_field("health_status"),
}


def facet_value(facet: Facet, node: GraphNode) -> str | None:
    """The value *node* has for *facet*, or None when it does not apply."""
    return _EXTRACTORS[facet](node)


class FilterState:
    """Independent per-facet toggles plus a search string."""

    def __init__(self) -> None:
        self.facets: dict[Facet, dict[str, bool]] = {facet: {} for facet in Facet}
        self.search = ""

    def observe(self, snapshot: GraphSnapshot | None) -> int:
        """Add toggles for facet values not seen before; returns how many."""
        if snapshot is None:
            return 0
        added = 0
        for node in snapshot.nodes:
            for facet in Facet:
                value = facet_value(facet, node)
                if value is not None and value not in self.facets[facet]:
                    self.facets[facet][value] = True
                    added += 1
        return added

    def set(self, facet: Facet, value: str, enabled: bool) -> None:
        self.facets[facet][value] = enabled

    def toggle(self, facet: Facet, value: str) -> bool:
        """Flip one toggle and return its new state."""
        enabled = not self.facets[facet].get(value, True)
        self.facets[facet][value] = enabled
        return enabled

    def set_search(self, text: str) -> None:
        self.search = text.strip()

    def clear(self) -> None:
        """Re-enable every known toggle and drop the search text."""
        for values in self.facets.values():
            for value in values:
                values[value] = True
        self.search = ""

    @property
    def is_active(self) -> bool:
        if self.search:
            return True
        return any(not enabled for values in self.facets.values() for enabled in values.values())

    def matches_search(self, node: GraphNode) -> bool:
        if not self.search:
            return True
        return self.search.lower() in node.label.lower()

    def passes_facets(self, node: GraphNode) -> bool:
        for facet in Facet:
            value = facet_value(facet, node)
            if value is None:
                continue
            if not self.facets[facet].get(value, True):
                return False
        return True

    def is_visible(self, node: GraphNode) -> bool:
        return self.passes_facets(node) and self.matches_search(node)

    def visible_nodes(self, nodes: Iterable[GraphNode]) -> list[GraphNode]:
        return [node for node in nodes if self.is_visible(node)]

    def visible_edges(self, edges: Iterable[GraphEdge], visible_ids: set[str]) -> list[GraphEdge]:
        return [
            edge for edge in edges
            if edge.source_id in visible_ids and edge.target_id in visible_ids
        ]

    def as_dict(self) -> dict[str, dict[str, bool]]:
        return {facet.value: dict(values) for facet, values in self.facets.items()}
