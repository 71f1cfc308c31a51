from typing import Optional

from agent_audit.common.core.telemetry import get_logger, trace_span
from agent_audit.common.providers.issue_tracker import IssueTrackerInterface
from agent_audit.packages.agents.models.agent_definition import AuditConfig
from agent_audit.packages.audit.models.audit_data import FailureInfo
from agent_audit.packages.audit.models.notification import NotificationResult
from agent_audit.packages.audit.models.run_context import RunContext
from agent_audit.packages.audit.services.report_renderer import render_issue_body

logger = get_logger(__name__)


def issue_title(agent_name: str) -> str:
    return f"{agent_name}: Agent Execution Failed"


def issue_search_string(agent_name: str) -> str:
    return f"{agent_name} failure"


class NotificationDispatcher:
    """Creates or updates the failure issue for an agent.

    One open issue per (label, agent) is the dedup key: repeated failures add a
    comment to it instead of opening another issue. Tracker errors never
    propagate; they come back as a failed NotificationResult.
    """

    def __init__(self, issue_tracker: IssueTrackerInterface):
        self.issue_tracker = issue_tracker

    @trace_span
    async def notify(
        self,
        agent_name: str,
        audit_config: AuditConfig,
        report: str,
        failure_info: FailureInfo,
        run_context: RunContext,
        error_message: Optional[str] = None,
    ) -> NotificationResult:
        """
        Create a failure issue, or comment on the existing one.

        Args:
            agent_name: Display name of the failed agent
            audit_config: Labels and assignees from the agent definition
            report: Rendered audit report
            failure_info: Classifier verdict
            run_context: Workflow run being audited
            error_message: Most specific error text available, if any

        Returns:
            NotificationResult with the issue URL on success
        """
        body = render_issue_body(
            agent_name, run_context, report, failure_info, error_message
        )
        label = audit_config.dedup_label

        try:
            existing = await self.issue_tracker.find_open_issue(
                label, issue_search_string(agent_name)
            )

            if existing is not None:
                logger.info(f"Adding comment to existing issue #{existing.number}")
                await self.issue_tracker.add_issue_comment(existing.number, body)
                return NotificationResult.ok(
                    existing.url or run_context.issue_url(existing.number)
                )

            logger.info("Creating new failure issue")
            created = await self.issue_tracker.create_issue(
                title=issue_title(agent_name),
                body=body,
                labels=audit_config.labels,
                assignees=audit_config.assignees,
            )
            return NotificationResult.ok(
                created.url or run_context.issue_url(created.number)
            )
        except Exception as e:
            logger.error(f"Failed to create/update failure issue: {e}")
            return NotificationResult.failed(str(e))
