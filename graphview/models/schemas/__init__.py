from graphview.models.schemas.graph import (
    NodeType,
    StatusCategory,
    Position,
    GraphNode,
    GraphEdge,
    GraphSnapshot,
    CriticalPath,
    CriticalPathNode,
    GraphEvent,
)
from graphview.models.schemas.workflow import (
    WorkflowExecutionDetail,
    WorkflowStepExecution,
    HistoryResponse,
    HistorySnapshot,
)
from graphview.models.schemas.insights import Annotation, PerformanceMetrics, StepMetric
from graphview.models.schemas.view import (
    ViewResponse,
    HighlightsOut,
    FilterUpdate,
    SearchUpdate,
    CriticalPathToggle,
    NodeDetailOut,
    RefreshResponse,
)

__all__ = [
    "NodeType",
    "StatusCategory",
    "Position",
    "GraphNode",
    "GraphEdge",
    "GraphSnapshot",
    "CriticalPath",
    "CriticalPathNode",
    "GraphEvent",
    "WorkflowExecutionDetail",
    "WorkflowStepExecution",
    "HistoryResponse",
    "HistorySnapshot",
    "Annotation",
    "PerformanceMetrics",
    "StepMetric",
    "ViewResponse",
    "HighlightsOut",
    "FilterUpdate",
    "SearchUpdate",
    "CriticalPathToggle",
    "NodeDetailOut",
    "RefreshResponse",
]
