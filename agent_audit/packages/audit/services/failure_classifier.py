"""
Failure classification for a single agent run.

Rules are evaluated in a fixed order and each contributes at most one reason.
The order is surfaced verbatim in reports and issues:

1. rate-limited runs short-circuit to "no failures"
2. agent job failure
3. execute-outputs job failure
4. permission issues
5. Claude execution error
6. output validation failures
"""

from typing import List

from agent_audit.packages.audit.models.audit_data import AuditData, FailureInfo
from agent_audit.packages.audit.models.job_statuses import (
    JobStatuses,
    is_failed_job_result,
)


def classify(job_statuses: JobStatuses, audit_data: AuditData) -> FailureInfo:
    """
    Merge job statuses and collected evidence into a failure verdict.

    Args:
        job_statuses: Job results from the workflow
        audit_data: Evidence collected from previous stages

    Returns:
        FailureInfo with reasons in rule order
    """
    if job_statuses.rate_limited:
        return FailureInfo()

    reasons: List[str] = []

    if is_failed_job_result(job_statuses.agent):
        reasons.append(f"Agent execution failed ({job_statuses.agent})")

    if is_failed_job_result(job_statuses.execute_outputs):
        reasons.append(f"Output execution failed ({job_statuses.execute_outputs})")

    if audit_data.permission_issues:
        reasons.append(
            f"Permission/validation issues detected ({len(audit_data.permission_issues)})"
        )

    if audit_data.metrics is not None and audit_data.metrics.is_error:
        reasons.append("Claude execution returned an error")

    failed_outputs = [r.output_type for r in audit_data.output_results if not r.success]
    if failed_outputs:
        reasons.append(f"Output validation failed for: {', '.join(failed_outputs)}")

    return FailureInfo.from_reasons(reasons)
