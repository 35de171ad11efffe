"""
graphview/view/details.py

Detail pane content for a selected node.

``NodeDetail`` is a closed union over the four node kinds that have a
detail pane; provider nodes have none.  ``detail_for`` dispatches on
``NodeType`` and fails loudly if a new type is added without a branch.
Workflow details are enriched with the execution record from the
platform; the other kinds are built from the node alone.
"""
from __future__ import annotations

from dataclasses import dataclass

import structlog

from graphview.client.http import GraphApiClient
from graphview.errors import GraphFetchError
from graphview.models.schemas.graph import (
    GraphNode,
    NodeType,
    ResourceMetadata,
    StepMetadata,
    WorkflowMetadata,
)
from graphview.models.schemas.workflow import WorkflowExecutionDetail

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SpecDetail:
    node: GraphNode


@dataclass(frozen=True)
class WorkflowDetail:
    node: GraphNode
    workflow_id: int | str | None
    execution: WorkflowExecutionDetail | None = None


@dataclass(frozen=True)
class StepDetail:
    node: GraphNode
    step_number: int | None
    total_steps: int | None
    duration_ms: float | None


@dataclass(frozen=True)
class ResourceDetail:
    node: GraphNode
    resource_type: str | None
    provider_id: str | None
    resource_state: str | None
    health_status: str | None


NodeDetail = SpecDetail | WorkflowDetail | StepDetail | ResourceDetail


def workflow_id_for(node: GraphNode) -> int | str | None:
    """Workflow execution id from metadata, else the numeric suffix of a ``workflow-<n>`` id."""
    if isinstance(node.metadata, WorkflowMetadata) and node.metadata.workflow_id is not None:
        return node.metadata.workflow_id
    prefix, _, suffix = node.id.partition("-")
    if prefix == "workflow" and suffix.isdigit():
        return int(suffix)
    return None


def detail_for(node: GraphNode) -> NodeDetail | None:
    """Build the local detail record for *node*."""
    meta = node.metadata
    if node.type is NodeType.SPEC:
        return SpecDetail(node=node)
    if node.type is NodeType.WORKFLOW:
        return WorkflowDetail(node=node, workflow_id=workflow_id_for(node))
    if node.type is NodeType.STEP:
        step = meta if isinstance(meta, StepMetadata) else StepMetadata()
        return StepDetail(
            node=node,
            step_number=step.step_number,
            total_steps=step.total_steps,
            duration_ms=step.duration_ms,
        )
    if node.type is NodeType.RESOURCE:
        res = meta if isinstance(meta, ResourceMetadata) else ResourceMetadata()
        return ResourceDetail(
            node=node,
            resource_type=res.resource_type,
            provider_id=res.provider_id,
            resource_state=res.resource_state,
            health_status=res.health_status,
        )
    if node.type is NodeType.PROVIDER:
        return None
    raise ValueError(f"Unhandled node type: {node.type!r}")


async def load_detail(api: GraphApiClient, app_name: str, node: GraphNode) -> NodeDetail | None:
    """Build the detail record, fetching execution data for workflows.

    A failed workflow fetch still returns the local record with
    ``execution`` left empty.
    """
    detail = detail_for(node)
    if not isinstance(detail, WorkflowDetail) or detail.workflow_id is None:
        return detail

    try:
        execution = await api.get_workflow_details(app_name, detail.workflow_id)
    except GraphFetchError as exc:
        logger.warning(
            "workflow_detail_fetch_failed",
            app=app_name,
            node_id=node.id,
            workflow_id=str(detail.workflow_id),
            error=str(exc),
        )
        return detail

    return WorkflowDetail(node=node, workflow_id=detail.workflow_id, execution=execution)
