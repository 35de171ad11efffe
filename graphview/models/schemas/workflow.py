from datetime import datetime

from pydantic import BaseModel, Field


class WorkflowStepExecution(BaseModel):
    """One executed step of a workflow run."""
    id: int
    step_number: int
    step_name: str
    step_type: str = ""
    status: str
    started_at: datetime | None = None
    completed_at: datetime | None = None
    duration_ms: float | None = None
    error_message: str | None = None
    output_logs: str | None = None


class WorkflowExecutionDetail(BaseModel):
    """Workflow run details shown in the workflow detail pane."""
    id: int
    application_name: str
    workflow_name: str
    status: str
    started_at: datetime | None = None
    completed_at: datetime | None = None
    total_steps: int = 0
    error_message: str | None = None
    steps: list[WorkflowStepExecution] = Field(default_factory=list)


class HistorySnapshot(BaseModel):
    """Summary of a past workflow run for the history panel."""
    id: int
    workflow_name: str
    status: str
    started_at: datetime | None = None
    completed_at: datetime | None = None
    duration_seconds: float | None = None
    total_steps: int = 0
    completed_steps: int = 0
    failed_steps: int = 0


class HistoryResponse(BaseModel):
    application: str = ""
    snapshots: list[HistorySnapshot] = Field(default_factory=list)
    count: int = 0
