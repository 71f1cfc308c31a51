import json
from datetime import datetime, timezone
from pathlib import Path

import pytest
from unittest.mock import AsyncMock

from agent_audit.common.providers.issue_tracker import (
    IssueComment,
    IssueReference,
    IssueTrackerInterface,
)
from agent_audit.packages.audit.models.job_statuses import JobStatuses
from agent_audit.packages.audit.models.run_context import RunContext


@pytest.fixture
def run_context():
    """Create a run context with fixed values for link generation."""
    return RunContext(
        server_url="https://github.com",
        repository="acme/widgets",
        run_id="12345",
        actor="octocat",
        event_name="issues",
        job_statuses=JobStatuses(agent="success"),
        timestamp=datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc),
        run_number=7,
        workflow_name="AI Agents",
    )


@pytest.fixture
def mock_issue_tracker():
    """Create a mock issue tracker instance for testing."""
    tracker = AsyncMock(spec=IssueTrackerInterface)
    tracker.find_open_issue = AsyncMock(return_value=None)
    tracker.create_issue = AsyncMock(
        return_value=IssueReference(
            number=42, url="https://github.com/acme/widgets/issues/42"
        )
    )
    tracker.add_issue_comment = AsyncMock(return_value=IssueComment(id=1))
    tracker.list_issue_comments = AsyncMock(return_value=[])
    tracker.update_comment = AsyncMock(
        return_value=IssueComment(
            id=99, html_url="https://github.com/acme/widgets/issues/5#issuecomment-99"
        )
    )
    return tracker


@pytest.fixture
def write_json():
    """Write a JSON document, creating parent directories."""

    def _write(path: Path, data) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def agent_file(tmp_path):
    """Write an agent definition file and return its path."""

    def _agent(frontmatter: str, body: str = "Triage new issues.") -> Path:
        path = tmp_path / "agents" / "agent.md"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(f"---\n{frontmatter}\n---\n{body}\n", encoding="utf-8")
        return path

    return _agent
