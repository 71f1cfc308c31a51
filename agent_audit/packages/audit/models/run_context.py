from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel, Field

from agent_audit.common.core.config import Settings
from agent_audit.packages.audit.models.job_statuses import JobStatuses


class RunContext(BaseModel):
    """Workflow run the audit is reporting on.

    Link generation reads from here instead of the process environment so
    tests can inject every value.
    """

    server_url: str = "https://github.com"
    repository: str
    run_id: str
    actor: str = ""
    event_name: str = ""
    job_statuses: JobStatuses = Field(default_factory=JobStatuses)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    run_number: int = 0
    run_attempt: int = 1
    workflow_name: str = "AI Agents"
    ref: Optional[str] = None
    sha: Optional[str] = None

    @property
    def run_url(self) -> str:
        return f"{self.server_url}/{self.repository}/actions/runs/{self.run_id}"

    @property
    def iso_timestamp(self) -> str:
        return self.timestamp.isoformat().replace("+00:00", "Z")

    def issue_url(self, issue_number: int) -> str:
        return f"{self.server_url}/{self.repository}/issues/{issue_number}"

    @classmethod
    def from_settings(
        cls, settings: Settings, job_statuses: Optional[JobStatuses] = None
    ) -> "RunContext":
        """Build the run context from GitHub Actions environment settings."""
        return cls(
            server_url=settings.github_server_url,
            repository=settings.github_repository,
            run_id=settings.github_run_id,
            actor=settings.github_actor,
            event_name=settings.github_event_name,
            job_statuses=job_statuses or JobStatuses(),
            run_number=settings.github_run_number,
            run_attempt=settings.github_run_attempt,
            workflow_name=settings.github_workflow,
            ref=settings.github_ref,
            sha=settings.github_sha,
        )
