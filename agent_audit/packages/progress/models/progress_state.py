"""
Domain models for progress comments on issues and pull requests.
"""

from typing import Dict, Optional
from pydantic import BaseModel, Field

from agent_audit.common.core.constants import ProgressStage, ProgressStatus


def _default_stages() -> Dict[ProgressStage, ProgressStatus]:
    return {
        ProgressStage.VALIDATION: ProgressStatus.SUCCESS,
        ProgressStage.CONTEXT: ProgressStatus.PENDING,
        ProgressStage.AGENT: ProgressStatus.PENDING,
        ProgressStage.OUTPUTS: ProgressStatus.PENDING,
        ProgressStage.COMPLETE: ProgressStatus.PENDING,
        ProgressStage.FAILED: ProgressStatus.PENDING,
    }


class ProgressState(BaseModel):
    """Stage statuses rendered into the progress comment."""

    agent_name: str
    workflow_run_id: str
    workflow_run_url: str
    stages: Dict[ProgressStage, ProgressStatus] = Field(default_factory=_default_stages)
    current_stage: ProgressStage = ProgressStage.CONTEXT
    error: Optional[str] = None
    final_comment: Optional[str] = None


class ProgressCommentRef(BaseModel):
    """Where the dispatcher created the progress comment."""

    comment_id: int
    issue_number: int


class DispatchContext(BaseModel):
    """Context handed over by the dispatcher workflow."""

    progress_comment: Optional[ProgressCommentRef] = None
    dispatcher_run_id: Optional[str] = None
    dispatcher_run_url: Optional[str] = None
