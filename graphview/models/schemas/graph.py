"""
graphview/models/schemas/graph.py

Graph data model shared by the synchronizer, layout engine and renderers.

Nodes carry a closed ``NodeType`` and a metadata variant picked by that
type.  The platform sends type-specific fields either inside ``metadata``
or at node top level (``step_number``, ``total_steps``, ``workflow_id``,
``duration_ms``); both are folded into the variant on validation.

All models are frozen: updates go through ``model_copy(update=...)`` so
every change yields a new object reference.
"""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class NodeType(str, Enum):
    """Closed set of node kinds in an application graph."""

    SPEC     = "spec"
    WORKFLOW = "workflow"
    STEP     = "step"
    RESOURCE = "resource"
    PROVIDER = "provider"


class StatusCategory(str, Enum):
    """Coarse status buckets used for colouring and summaries."""

    SUCCESS     = "success"
    IN_PROGRESS = "in_progress"
    FAILURE     = "failure"
    PENDING     = "pending"


_STATUS_CATEGORIES: dict[str, StatusCategory] = {
    "succeeded":    StatusCategory.SUCCESS,
    "completed":    StatusCategory.SUCCESS,
    "running":      StatusCategory.IN_PROGRESS,
    "provisioning": StatusCategory.IN_PROGRESS,
    "failed":       StatusCategory.FAILURE,
    "error":        StatusCategory.FAILURE,
}


def categorize_status(status: str | None) -> StatusCategory:
    """Map a free-form status string onto a StatusCategory."""
    if not status:
        return StatusCategory.PENDING
    return _STATUS_CATEGORIES.get(status.strip().lower(), StatusCategory.PENDING)


# ---------------------------------------------------------------------------
# Metadata variants
# ---------------------------------------------------------------------------

class _Metadata(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    created_at: datetime | None = None
    updated_at: datetime | None = None


class SpecMetadata(_Metadata):
    pass


class WorkflowMetadata(_Metadata):
    workflow_id: int | str | None = Field(
        default=None,
        validation_alias=AliasChoices("workflow_id", "workflow_execution_id"),
    )
    total_steps: int | None = None
    duration_ms: float | None = None


class StepMetadata(_Metadata):
    step_number: int | None = None
    total_steps: int | None = None
    duration_ms: float | None = None
    workflow_id: int | str | None = Field(
        default=None,
        validation_alias=AliasChoices("workflow_id", "workflow_execution_id"),
    )


class ResourceMetadata(_Metadata):
    resource_type: str | None = None
    provider_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("provider_id", "provider"),
    )
    resource_state: str | None = Field(
        default=None,
        validation_alias=AliasChoices("resource_state", "state"),
    )
    health_status: str | None = Field(
        default=None,
        validation_alias=AliasChoices("health_status", "health"),
    )


class ProviderMetadata(_Metadata):
    provider_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("provider_id", "provider"),
    )


NodeMetadata = SpecMetadata | WorkflowMetadata | StepMetadata | ResourceMetadata | ProviderMetadata

METADATA_MODELS: dict[NodeType, type[_Metadata]] = {
    NodeType.SPEC:     SpecMetadata,
    NodeType.WORKFLOW: WorkflowMetadata,
    NodeType.STEP:     StepMetadata,
    NodeType.RESOURCE: ResourceMetadata,
    NodeType.PROVIDER: ProviderMetadata,
}

# Keys the platform may put at node top level instead of inside metadata.
_FOLDED_KEYS = ("step_number", "total_steps", "workflow_id", "duration_ms", "created_at", "updated_at")


# ---------------------------------------------------------------------------
# Nodes and edges
# ---------------------------------------------------------------------------

class Position(BaseModel):
    """Layout position assigned by the layout engine."""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    layer: int


class GraphNode(BaseModel):
    """A node in an application graph."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    name: str = ""
    type: NodeType
    status: str = ""
    description: str = ""
    execution_order: int | None = None
    metadata: NodeMetadata = Field(default_factory=SpecMetadata)
    position: Position | None = None

    @model_validator(mode="before")
    @classmethod
    def _build_metadata(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        try:
            node_type = NodeType(data.get("type"))
        except ValueError:
            # Leave it to field validation to report the bad type.
            return data

        model = METADATA_MODELS[node_type]
        raw = data.get("metadata")
        if isinstance(raw, model):
            return data

        merged: dict[str, Any] = {}
        if isinstance(raw, BaseModel):
            merged.update(raw.model_dump(exclude_none=True))
        elif isinstance(raw, dict):
            merged.update(raw)
        for key in _FOLDED_KEYS:
            if data.get(key) is not None:
                merged.setdefault(key, data[key])

        return {**data, "metadata": model.model_validate(merged)}

    @property
    def label(self) -> str:
        """Display name, falling back to the id."""
        return self.name or self.id

    @property
    def status_category(self) -> StatusCategory:
        return categorize_status(self.status)


class GraphEdge(BaseModel):
    """A directed relationship between two nodes, referenced by id."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    id: str = ""
    source_id: str = Field(validation_alias=AliasChoices("source_id", "source", "from_node_id"))
    target_id: str = Field(validation_alias=AliasChoices("target_id", "target", "to_node_id"))
    relationship: str = Field(
        default="depends_on",
        validation_alias=AliasChoices("relationship", "type"),
    )
    description: str = ""

    @property
    def key(self) -> str:
        """Stable identifier, synthesised from the endpoints when ``id`` is empty."""
        return self.id or f"{self.source_id}->{self.target_id}"

    @property
    def is_self_loop(self) -> bool:
        return self.source_id == self.target_id


class GraphSnapshot(BaseModel):
    """One complete (nodes, edges) state of an application graph."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    app_name: str = ""
    nodes: tuple[GraphNode, ...] = ()
    edges: tuple[GraphEdge, ...] = ()
    fetched_at: datetime = Field(default_factory=_utcnow)

    def node_by_id(self) -> dict[str, GraphNode]:
        """Index nodes by id; the first occurrence wins on duplicates."""
        index: dict[str, GraphNode] = {}
        for node in self.nodes:
            index.setdefault(node.id, node)
        return index

    def status_map(self) -> dict[str, str]:
        return {node.id: node.status for node in self.nodes}

    @property
    def is_empty(self) -> bool:
        return not self.nodes


# ---------------------------------------------------------------------------
# Critical path
# ---------------------------------------------------------------------------

class CriticalPathNode(BaseModel):
    id: str
    name: str = ""
    type: str = ""
    duration_seconds: float = 0.0
    weight: float = 0.0


class CriticalPath(BaseModel):
    """Server-computed longest execution chain, used for highlighting only."""
    application: str = ""
    path: list[CriticalPathNode] = Field(default_factory=list)
    total_duration_seconds: float = 0.0
    node_count: int = 0

    @property
    def node_ids(self) -> list[str]:
        return [node.id for node in self.path]


# ---------------------------------------------------------------------------
# Activity events (enveloped stream messages)
# ---------------------------------------------------------------------------

class GraphEvent(BaseModel):
    """Change event attached to an enveloped stream message."""

    model_config = ConfigDict(extra="ignore")

    type: str
    timestamp: str = ""
    node_id: str | None = None
    node_name: str | None = None
    node_type: str | None = None
    old_state: str | None = None
    new_state: str | None = None
    edge_id: str | None = None
    edge_type: str | None = None
    from_node: str | None = None
    to_node: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
