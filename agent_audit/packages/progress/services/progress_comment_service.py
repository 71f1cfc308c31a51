"""
Progress comment updates for issues and pull requests.

The dispatcher creates one comment per (run id, agent name), identified by a
hidden marker. Each stage transition re-renders it. The stage state is
embedded in the comment as a hidden blob, so a later update starts from what
was actually shown rather than from defaults.
"""

import base64
import binascii
import json
import re
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from agent_audit.common.core.constants import ProgressStage, ProgressStatus
from agent_audit.common.core.telemetry import get_logger, trace_span
from agent_audit.common.providers.issue_tracker import (
    IssueComment,
    IssueTrackerInterface,
)
from agent_audit.packages.audit.models.notification import NotificationResult
from agent_audit.packages.progress.models.progress_state import (
    DispatchContext,
    ProgressState,
)

logger = get_logger(__name__)

PROGRESS_MARKER_PREFIX = "<!-- repo-agents-progress:"
PROGRESS_STATE_PREFIX = "<!-- repo-agents-progress-state:"
MARKER_SUFFIX = " -->"

_STATE_PATTERN = re.compile(
    re.escape(PROGRESS_STATE_PREFIX) + r"(?P<blob>[A-Za-z0-9+/=]+)" + re.escape(MARKER_SUFFIX)
)

STATUS_EMOJI = {
    ProgressStatus.PENDING: "⏳",
    ProgressStatus.RUNNING: "🔄",
    ProgressStatus.SUCCESS: "✅",
    ProgressStatus.FAILED: "❌",
    ProgressStatus.SKIPPED: "⏭️",
}

STAGE_LABELS = {
    ProgressStage.VALIDATION: "Validation",
    ProgressStage.CONTEXT: "Context",
    ProgressStage.AGENT: "Agent",
    ProgressStage.OUTPUTS: "Outputs",
    ProgressStage.COMPLETE: "Complete",
    ProgressStage.FAILED: "Failed",
}

# Stages shown as table rows
DISPLAY_ORDER = [
    ProgressStage.VALIDATION,
    ProgressStage.CONTEXT,
    ProgressStage.AGENT,
    ProgressStage.OUTPUTS,
]

# Order used to advance current_stage after a success
ADVANCE_ORDER = DISPLAY_ORDER + [ProgressStage.COMPLETE]


def progress_marker(run_id: str, agent_name: str) -> str:
    return f"{PROGRESS_MARKER_PREFIX}{run_id}:{agent_name}{MARKER_SUFFIX}"


def should_use_progress_comment(
    triggers: Mapping[str, Any], explicit_setting: Optional[bool] = None
) -> bool:
    """Explicit setting wins; otherwise enabled for issue and PR triggers."""
    if explicit_setting is not None:
        return explicit_setting
    return "issues" in triggers or "pull_request" in triggers


def create_initial_progress_state(
    agent_name: str, workflow_run_id: str, workflow_run_url: str, has_context: bool
) -> ProgressState:
    state = ProgressState(
        agent_name=agent_name,
        workflow_run_id=workflow_run_id,
        workflow_run_url=workflow_run_url,
        current_stage=ProgressStage.CONTEXT if has_context else ProgressStage.AGENT,
    )
    if not has_context:
        state.stages[ProgressStage.CONTEXT] = ProgressStatus.SKIPPED
    return state


def update_progress_state(
    state: ProgressState,
    stage: ProgressStage,
    status: ProgressStatus,
    error: Optional[str] = None,
) -> ProgressState:
    """Return a new state with ``stage`` set to ``status``."""
    stages = {**state.stages, stage: status}
    updates = {"stages": stages}

    if status == ProgressStatus.RUNNING:
        updates["current_stage"] = stage
    elif status == ProgressStatus.SUCCESS and stage in ADVANCE_ORDER:
        for next_stage in ADVANCE_ORDER[ADVANCE_ORDER.index(stage) + 1 :]:
            if stages.get(next_stage) != ProgressStatus.SKIPPED:
                updates["current_stage"] = next_stage
                break
    elif status == ProgressStatus.FAILED:
        updates["current_stage"] = ProgressStage.FAILED
        updates["error"] = error

    return state.model_copy(update=updates)


def set_final_comment(state: ProgressState, comment: str) -> ProgressState:
    """Replace the stage table with closing text."""
    return state.model_copy(
        update={"final_comment": comment, "current_stage": ProgressStage.COMPLETE}
    )


def encode_state(state: ProgressState) -> str:
    blob = base64.b64encode(state.model_dump_json().encode("utf-8")).decode("ascii")
    return f"{PROGRESS_STATE_PREFIX}{blob}{MARKER_SUFFIX}"


def parse_progress_state(body: str) -> Optional[ProgressState]:
    """Recover the state embedded in a rendered comment, if any."""
    match = _STATE_PATTERN.search(body or "")
    if not match:
        return None
    try:
        raw = base64.b64decode(match.group("blob"), validate=True)
        return ProgressState.model_validate_json(raw)
    except (binascii.Error, ValueError, ValidationError) as e:
        logger.warning(f"Ignoring unreadable progress state: {e}")
        return None


def format_progress_comment(state: ProgressState) -> str:
    marker = progress_marker(state.workflow_run_id, state.agent_name)
    hidden = f"{marker}\n{encode_state(state)}"

    if state.final_comment:
        return f"{hidden}\n{state.final_comment}"

    rows = [
        f"| {STAGE_LABELS[stage]} | {STATUS_EMOJI[state.stages[stage]]} |"
        for stage in DISPLAY_ORDER
        if stage in state.stages
    ]

    if (
        state.current_stage == ProgressStage.FAILED
        or state.stages.get(state.current_stage) == ProgressStatus.FAILED
    ):
        header = f"### ❌ Agent: {state.agent_name}"
    elif state.current_stage == ProgressStage.COMPLETE:
        header = f"### ✅ Agent: {state.agent_name}"
    else:
        header = f"### 🤖 Agent: {state.agent_name}"

    table = "\n".join(["| Stage | Status |", "|-------|--------|", *rows])
    error_section = f"\n\n> **Error:** {state.error}" if state.error else ""
    footer = f"*[View workflow run]({state.workflow_run_url})*"

    return f"{hidden}\n{header}\n\n{table}\n{error_section}\n\n---\n{footer}"


def read_final_comment(path: str | Path) -> Optional[str]:
    """Read the agent-authored closing comment from its add-comment output."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError):
        return None
    if not isinstance(data, dict):
        return None
    body = data.get("body")
    return body if isinstance(body, str) and body else None


class ProgressCommentService:
    """Updates the progress comment for one stage transition."""

    def __init__(self, issue_tracker: IssueTrackerInterface):
        self.issue_tracker = issue_tracker

    async def find_progress_comment(
        self, issue_number: int, run_id: str, agent_name: str
    ) -> Optional[IssueComment]:
        marker = progress_marker(run_id, agent_name)
        comments = await self.issue_tracker.list_issue_comments(issue_number)
        return next((c for c in comments if marker in c.body), None)

    @trace_span
    async def update_progress(
        self,
        agent_name: str,
        run_id: str,
        stage: ProgressStage,
        status: ProgressStatus,
        dispatch_context: DispatchContext,
        error: Optional[str] = None,
        final_comment: Optional[str] = None,
        workflow_run_url: Optional[str] = None,
    ) -> NotificationResult:
        """
        Set a stage status on the progress comment, or replace it with a final comment.

        Args:
            agent_name: Display name of the agent
            run_id: Run id the comment marker was created with
            stage: Stage that changed
            status: New status of the stage
            dispatch_context: Dispatcher context with the comment reference
            error: Error text recorded when the stage failed
            final_comment: Closing text that replaces the stage table
            workflow_run_url: Link shown in the footer when state is rebuilt

        Returns:
            NotificationResult; skipped when there is no comment to update
        """
        ref = dispatch_context.progress_comment
        if ref is None:
            logger.info("No progress comment info in dispatch context")
            return NotificationResult.skipped("No progress comment in dispatch context")

        try:
            existing = await self.find_progress_comment(
                ref.issue_number, run_id, agent_name
            )
            if existing is None:
                logger.info(
                    f"Progress comment for {agent_name} ({run_id}) not found on #{ref.issue_number}"
                )
                return NotificationResult.skipped("Progress comment not found")

            state = parse_progress_state(existing.body)
            if state is None:
                state = create_initial_progress_state(
                    agent_name,
                    run_id,
                    workflow_run_url or dispatch_context.dispatcher_run_url or "",
                    has_context=True,
                )

            if final_comment:
                state = set_final_comment(state, final_comment)
            else:
                state = update_progress_state(state, stage, status, error)

            updated = await self.issue_tracker.update_comment(
                ref.comment_id, format_progress_comment(state)
            )
            logger.info(f"Updated progress comment: {stage} -> {status}")
            return NotificationResult.ok(updated.html_url or str(ref.comment_id))
        except Exception as e:
            logger.warning(f"Failed to update progress comment: {e}")
            return NotificationResult.failed(str(e))
