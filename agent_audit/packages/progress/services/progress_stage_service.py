"""
Progress stage: one progress comment update per invocation.
"""

import asyncio
from pathlib import Path
from typing import Optional

from agent_audit.common.core.constants import ProgressStage, ProgressStatus
from agent_audit.common.core.config import settings
from agent_audit.common.core.telemetry import get_logger, trace_span
from agent_audit.common.providers.issue_tracker import (
    IssueTrackerInterface,
    get_issue_tracker,
)
from agent_audit.packages.agents.services.agent_parser import parse_file
from agent_audit.packages.audit.models.run_context import RunContext
from agent_audit.packages.audit.models.stage_result import StageResult
from agent_audit.packages.progress.models.progress_state import DispatchContext
from agent_audit.packages.progress.services.progress_comment_service import (
    ProgressCommentService,
    read_final_comment,
    should_use_progress_comment,
)

logger = get_logger(__name__)


@trace_span
async def run_progress(
    agent_path: str | Path,
    run_context: RunContext,
    stage: ProgressStage,
    status: ProgressStatus,
    dispatch_context: DispatchContext,
    error: Optional[str] = None,
    final_comment_path: Optional[str | Path] = None,
    issue_tracker: Optional[IssueTrackerInterface] = None,
) -> StageResult:
    """
    Update the progress comment for one stage transition.

    Skipped when the agent cannot be loaded, has progress comments disabled,
    or the dispatcher did not create a comment. A readable
    ``final_comment_path`` replaces the stage table with the agent's own
    comment. Progress updates never fail the stage.
    """
    parsed = await asyncio.to_thread(parse_file, agent_path)
    if parsed.agent is None:
        logger.info(f"No usable agent definition at {agent_path}")
        return StageResult(skip_reason="Agent definition not loaded")

    agent = parsed.agent
    if not should_use_progress_comment(agent.triggers, agent.progress_comment):
        return StageResult(skip_reason="Progress comments disabled")

    if dispatch_context.progress_comment is None:
        logger.info("No progress comment info in dispatch context")
        return StageResult(skip_reason="No progress comment")

    final_comment = read_final_comment(final_comment_path) if final_comment_path else None

    try:
        service = ProgressCommentService(
            issue_tracker or get_issue_tracker(settings.issue_tracker)
        )
    except ValueError as e:
        logger.warning(f"Issue tracker not configured: {e}")
        return StageResult(skip_reason="Issue tracker not configured")

    result = await service.update_progress(
        agent.name,
        run_context.run_id,
        stage,
        status,
        dispatch_context,
        error=error,
        final_comment=final_comment,
        workflow_run_url=run_context.run_url,
    )

    outputs = {"progress-status": str(result.status)}
    if result.sent:
        outputs["comment-url"] = result.reference
    return StageResult(outputs=outputs, skip_reason=result.skip_reason)
