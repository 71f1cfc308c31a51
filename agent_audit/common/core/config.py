from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

from agent_audit.common.core.constants import IssueTrackerType


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # GitHub Actions run environment
    github_server_url: str = "https://github.com"
    github_api_url: str = "https://api.github.com"
    github_repository: str = ""
    github_run_id: str = ""
    github_run_number: int = 0
    github_run_attempt: int = 1
    github_actor: str = ""
    github_event_name: str = ""
    github_workflow: str = "AI Agents"
    github_ref: Optional[str] = None
    github_sha: Optional[str] = None

    # Token used for issue and comment calls
    github_token: Optional[str] = None
    github_request_timeout_seconds: float = 30.0

    # Files the runner reads stage outputs from
    github_output: Optional[str] = None
    github_step_summary: Optional[str] = None

    # JSON mapping of job name -> {"result": ...} from the workflow needs context
    job_results: Optional[str] = None

    # Record locations
    audit_data_dir: str = "/tmp/audit-data"
    audit_output_dir: str = "/tmp/audit"
    audit_bundles_dir: str = "/tmp/all-audits"
    outputs_dir: str = "/tmp/outputs"

    issue_tracker: IssueTrackerType = IssueTrackerType.GITHUB

    # OpenTelemetry
    otel_service_name: str = "agent-audit"
    otel_exporter_otlp_endpoint: Optional[str] = None
    otel_exporter_otlp_headers: Optional[str] = None

    log_level: str = "INFO"

    @property
    def run_url(self) -> str:
        """Construct the workflow run URL from components."""
        return f"{self.github_server_url}/{self.github_repository}/actions/runs/{self.github_run_id}"


settings = Settings()
