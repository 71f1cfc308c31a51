from typing import Optional
from pydantic import BaseModel

from agent_audit.common.core.constants import JobResult


class JobStatuses(BaseModel):
    """Status of each job in the agent workflow, passed to the audit stage."""

    agent: Optional[str] = None
    execute_outputs: Optional[str] = None
    collect_context: Optional[str] = None
    # Rate-limited runs are skipped on purpose, not failed
    rate_limited: bool = False


def is_failed_job_result(result: Optional[str]) -> bool:
    """A present job result that is neither success nor skipped counts as a failure."""
    if not result:
        return False
    return result not in (JobResult.SUCCESS, JobResult.SKIPPED)
