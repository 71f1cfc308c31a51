"""
Domain models for multi-agent audit aggregation.
"""

from pathlib import Path
from typing import List, Optional
from pydantic import BaseModel, Field

from agent_audit.packages.audit.models.execution_metrics import ExecutionMetrics
from agent_audit.packages.audit.models.tool_usage import ToolUsage


class AgentBundle(BaseModel):
    """A per-agent result directory discovered by name."""

    agent_slug: str
    run_id: str
    path: Optional[Path] = None


class PerAgentSummary(BaseModel):
    """Audit evidence and job result for one agent of a multi-agent run."""

    agent_slug: str
    display_name: str
    job_result: str
    metrics: Optional[ExecutionMetrics] = None
    tool_usage: Optional[ToolUsage] = None
    has_conversation: bool = False

    @property
    def cost_usd(self) -> float:
        if self.metrics and self.metrics.total_cost_usd is not None:
            return self.metrics.total_cost_usd
        return 0.0

    @property
    def duration_ms(self) -> int:
        if self.metrics and self.metrics.duration_ms is not None:
            return self.metrics.duration_ms
        return 0


class RunTotals(BaseModel):
    """Run-wide totals across all discovered agents."""

    total_agents: int = 0
    total_cost_usd: float = 0.0
    failed_agents: List[str] = Field(default_factory=list)
    successful_agents: int = 0
    total_duration_ms: int = 0

    @property
    def has_failures(self) -> bool:
        return len(self.failed_agents) > 0
