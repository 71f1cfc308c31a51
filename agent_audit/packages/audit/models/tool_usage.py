"""
Domain models for tool usage and permission issues.
"""

from typing import Dict, List
from pydantic import BaseModel, ConfigDict, Field


class PermissionIssue(BaseModel):
    """A tool permission problem recorded during execution."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    tool: str = ""
    issue_type: str = "restricted"
    message: str = ""
    # low/medium/high; older producers write error/warning
    severity: str = "medium"
    timestamp: str = ""


class ToolCallStats(BaseModel):
    """Call counts for a single tool."""

    model_config = ConfigDict(extra="ignore")

    calls: int = Field(0, ge=0)
    successes: int = Field(0, ge=0)
    failures: int = Field(0, ge=0)


class ToolUsage(BaseModel):
    """Tool usage summary for one agent run."""

    model_config = ConfigDict(extra="ignore")

    total_calls: int = Field(0, ge=0)
    by_tool: Dict[str, ToolCallStats] = Field(default_factory=dict)
    permission_issues: List[PermissionIssue] = Field(default_factory=list)
