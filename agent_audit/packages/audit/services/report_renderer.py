"""
Markdown rendering for audit reports, failure issues and run summaries.

Sections are only emitted when their backing evidence exists, so a report
never carries an empty heading.
"""

from typing import List, Optional

from agent_audit.common.core.constants import JobResult
from agent_audit.packages.audit.models.audit_data import AuditData, FailureInfo
from agent_audit.packages.audit.models.execution_metrics import ExecutionMetrics
from agent_audit.packages.audit.models.job_statuses import is_failed_job_result
from agent_audit.packages.audit.models.run_context import RunContext
from agent_audit.packages.audit.models.summary import PerAgentSummary, RunTotals
from agent_audit.packages.audit.models.tool_usage import PermissionIssue
from agent_audit.packages.audit.models.validation import (
    OutputValidationResult,
    ValidationStatus,
)

NOT_AVAILABLE = "N/A"

# (substring, remediation), first match wins
REMEDIATION_HINTS = [
    ("oauth", "Refresh the CLAUDE_CODE_OAUTH_TOKEN secret or configure ANTHROPIC_API_KEY."),
    ("token", "Refresh the CLAUDE_CODE_OAUTH_TOKEN secret or configure ANTHROPIC_API_KEY."),
    (
        "rate limit",
        "Wait for the rate limit to reset, or increase rate_limit_minutes in the agent config.",
    ),
    ("permission", "Check the agent's permissions configuration and GitHub token scopes."),
]


def format_job_result(result: Optional[str]) -> str:
    if not result:
        return f"- {NOT_AVAILABLE}"
    if result == JobResult.SUCCESS:
        return f"[OK] {result}"
    if result == JobResult.SKIPPED:
        return f"[SKIP] {result}"
    return f"[FAIL] {result}"


def format_check(passed: bool) -> str:
    return "[OK] Passed" if passed else "[FAIL] Failed"


def _or_na(value) -> str:
    return NOT_AVAILABLE if value is None else str(value)


def _header(agent_name: str, run_context: RunContext) -> List[str]:
    return [
        "# Agent Execution Audit Report",
        "",
        f"**Agent:** {agent_name}",
        f"**Workflow Run:** [{run_context.run_id}]({run_context.run_url})",
        f"**Triggered by:** @{run_context.actor}",
        f"**Event:** {run_context.event_name}",
        f"**Timestamp:** {run_context.iso_timestamp}",
        "",
    ]


def _job_results_section(run_context: RunContext) -> List[str]:
    statuses = run_context.job_statuses
    lines = ["## Job Results", "", "| Job | Result |", "|-----|--------|"]
    lines.append(f"| agent | {format_job_result(statuses.agent)} |")
    if statuses.collect_context:
        lines.append(f"| collect-context | {format_job_result(statuses.collect_context)} |")
    if statuses.execute_outputs:
        lines.append(f"| execute-outputs | {format_job_result(statuses.execute_outputs)} |")
    lines.append("")
    return lines


def _metrics_section(metrics: ExecutionMetrics) -> List[str]:
    cost = (
        f"${metrics.total_cost_usd}"
        if metrics.total_cost_usd is not None
        else NOT_AVAILABLE
    )
    duration = (
        f"{metrics.duration_ms}ms" if metrics.duration_ms is not None else NOT_AVAILABLE
    )
    return [
        "## Execution Metrics",
        "",
        "| Metric | Value |",
        "|--------|-------|",
        f"| Cost | {cost} |",
        f"| Turns | {_or_na(metrics.num_turns)} |",
        f"| Duration | {duration} |",
        f"| Session | `{_or_na(metrics.session_id)}` |",
        "",
    ]


def _validation_section(status: ValidationStatus) -> List[str]:
    return [
        "## Validation Results",
        "",
        "| Check | Status |",
        "|-------|--------|",
        f"| Secrets | {format_check(status.secrets_check)} |",
        f"| User Authorization | {format_check(status.user_authorization)} |",
        f"| Labels | {format_check(status.labels_check)} |",
        f"| Rate Limit | {format_check(status.rate_limit_check)} |",
        "",
    ]


def _permission_issues_section(issues: List[PermissionIssue]) -> List[str]:
    lines = ["## Permission Issues", ""]
    for issue in issues:
        lines.append(f"- **[{issue.severity.upper()}]** {issue.issue_type}: {issue.message}")
    lines.append("")
    return lines


def _output_results_section(results: List[OutputValidationResult]) -> List[str]:
    lines = [
        "## Output Execution",
        "",
        "| Output Type | Status | Details |",
        "|-------------|--------|---------|",
    ]
    for result in results:
        status = "[OK] Success" if result.success else "[FAIL] Failed"
        lines.append(f"| {result.output_type} | {status} | {result.error or '-'} |")
    lines.append("")
    return lines


def render(
    agent_name: str,
    run_context: RunContext,
    audit_data: AuditData,
    failure_info: FailureInfo,
) -> str:
    """
    Render the audit report for one agent run.

    Args:
        agent_name: Display name of the agent
        run_context: Workflow run being audited
        audit_data: Evidence collected from previous stages
        failure_info: Verdict from the failure classifier

    Returns:
        Markdown report text
    """
    lines = _header(agent_name, run_context)
    lines.extend(_job_results_section(run_context))

    if audit_data.metrics is not None:
        lines.extend(_metrics_section(audit_data.metrics))

    if audit_data.validation_status is not None:
        lines.extend(_validation_section(audit_data.validation_status))

    if audit_data.permission_issues:
        lines.extend(_permission_issues_section(audit_data.permission_issues))

    if audit_data.output_results:
        lines.extend(_output_results_section(audit_data.output_results))

    if failure_info.has_failures:
        lines.extend(["## Errors", ""])
        lines.extend(f"- {reason}" for reason in failure_info.reasons)
        lines.append("")

    return "\n".join(lines)


def remediation_hint(message: Optional[str]) -> Optional[str]:
    """Suggest a fix for well-known error messages."""
    if not message:
        return None
    lowered = message.lower()
    for needle, hint in REMEDIATION_HINTS:
        if needle in lowered:
            return hint
    return None


def render_issue_body(
    agent_name: str,
    run_context: RunContext,
    report: str,
    failure_info: FailureInfo,
    error_message: Optional[str] = None,
) -> str:
    """Render the body used both for new failure issues and follow-up comments."""
    summary = "\n".join(f"- {reason}" for reason in failure_info.reasons)
    hint = remediation_hint(error_message) or remediation_hint(
        failure_info.reasons[0] if failure_info.reasons else None
    )

    lines = [
        "## Agent Failure Report",
        "",
        f"The **{agent_name}** agent encountered failures during execution.",
        "",
        "### Workflow Details",
        f"- **Run ID:** [{run_context.run_id}]({run_context.run_url})",
        f"- **Triggered by:** @{run_context.actor}",
        f"- **Event:** {run_context.event_name}",
        f"- **Time:** {run_context.iso_timestamp}",
        "",
        "### Failure Summary",
        summary,
        "",
    ]
    if error_message:
        lines.extend([f"> **{error_message}**", ""])
    if hint:
        lines.extend([f"**Fix:** {hint}", ""])

    lines.extend(
        [
            "---",
            "",
            "<details>",
            "<summary>Full Audit Report</summary>",
            "",
            report,
            "",
            "</details>",
            "",
            "---",
            "",
            "*This issue was automatically created by the agent audit system.*",
        ]
    )
    return "\n".join(lines)


def render_run_summary(
    summaries: List[PerAgentSummary], totals: RunTotals, run_context: RunContext
) -> str:
    """Render the combined Markdown summary for a multi-agent run."""
    lines = [
        "# Agent Execution Summary",
        "",
        "| Metric | Value |",
        "|--------|-------|",
        f"| Agents Executed | {totals.total_agents} |",
        f"| Total Cost | ${totals.total_cost_usd:.4f} |",
        f"| Failures | {len(totals.failed_agents)} |",
        "",
    ]

    if summaries:
        lines.extend(
            [
                "## Agent Results",
                "",
                "| Agent | Status | Cost | Turns | Duration |",
                "|-------|--------|------|-------|----------|",
            ]
        )
        for summary in summaries:
            status = "FAIL" if is_failed_job_result(summary.job_result) else "OK"
            turns = summary.metrics.num_turns if summary.metrics else None
            lines.append(
                f"| {summary.display_name} | {status} | ${summary.cost_usd:.4f} "
                f"| {_or_na(turns)} | {round(summary.duration_ms / 1000)}s |"
            )
        lines.append("")

    if totals.failed_agents:
        lines.extend(["## Failures", ""])
        for summary in summaries:
            if not is_failed_job_result(summary.job_result):
                continue
            lines.append(f"### {summary.display_name}")
            lines.append("")
            lines.append(f"- **Job result**: {summary.job_result}")
            if summary.metrics is not None and summary.metrics.is_error:
                lines.append("- **Error**: Claude execution returned an error")
            issues = summary.tool_usage.permission_issues if summary.tool_usage else []
            if issues:
                lines.append(f"- **Permission issues**: {len(issues)}")
            lines.append("")

    lines.extend(["---", f"[View Workflow Run]({run_context.run_url})", ""])
    return "\n".join(lines)
