from typing import Any

from pydantic import BaseModel, Field

from graphview.models.schemas.graph import GraphEdge, GraphEvent, GraphNode


class HighlightsOut(BaseModel):
    """Overlay sets applied to the rendered graph."""
    critical: list[str] = Field(default_factory=list)
    changed: list[str] = Field(default_factory=list)
    search: list[str] = Field(default_factory=list)
    selected: str | None = None


class ViewResponse(BaseModel):
    """Laid-out, filtered graph for one application."""
    app_name: str
    load_state: str
    connection: str
    error: str | None = None
    generation: int
    total_nodes: int
    total_edges: int
    nodes: list[GraphNode]
    edges: list[GraphEdge]
    highlights: HighlightsOut
    filters: dict[str, dict[str, bool]] = Field(default_factory=dict)
    search: str = ""
    critical_path_enabled: bool = False
    activity: list[GraphEvent] = Field(default_factory=list, description="Recent stream change events, oldest first")


class FilterUpdate(BaseModel):
    """Set one facet value on or off."""
    facet: str = Field(..., description="type, status, resource_type, provider, resource_state or health_status")
    value: str = Field(..., min_length=1)
    enabled: bool


class SearchUpdate(BaseModel):
    text: str = Field(default="", max_length=200)


class CriticalPathToggle(BaseModel):
    enabled: bool


class NodeDetailOut(BaseModel):
    """Detail pane content for the selected node."""
    kind: str = Field(..., description="spec, workflow, step, resource or none")
    node: GraphNode
    fields: dict[str, Any] = Field(default_factory=dict)
    execution: dict[str, Any] | None = None


class RefreshResponse(BaseModel):
    app_name: str
    ok: bool
    load_state: str
    error: str | None = None
