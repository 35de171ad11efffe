from datetime import datetime

from pydantic import BaseModel, Field


class Annotation(BaseModel):
    """A free-text note attached to a graph node."""
    id: int
    node_id: str
    node_name: str = ""
    annotation_text: str
    created_by: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None


class StepMetric(BaseModel):
    step_name: str
    step_type: str = ""
    execution_count: int = 0
    success_count: int = 0
    failure_count: int = 0
    success_rate_percent: float = 0.0
    average_duration_seconds: float = 0.0
    max_duration_seconds: float = 0.0


class TimeSeriesPoint(BaseModel):
    timestamp: datetime
    duration_seconds: float
    status: str


class PerformanceMetrics(BaseModel):
    """Aggregated execution metrics for an application's workflows."""
    application: str = ""
    total_executions: int = 0
    success_rate_percent: float = 0.0
    failure_rate_percent: float = 0.0
    average_duration_seconds: float = 0.0
    median_duration_seconds: float = 0.0
    min_duration_seconds: float = 0.0
    max_duration_seconds: float = 0.0
    step_metrics: list[StepMetric] = Field(default_factory=list)
    time_series_data: list[TimeSeriesPoint] = Field(default_factory=list)
