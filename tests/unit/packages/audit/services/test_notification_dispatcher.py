import pytest
from unittest.mock import AsyncMock

from agent_audit.common.core.exceptions import IssueTrackerError
from agent_audit.common.providers.issue_tracker import IssueReference
from agent_audit.packages.agents.models.agent_definition import AuditConfig
from agent_audit.packages.audit.models.audit_data import FailureInfo
from agent_audit.packages.audit.models.notification import NotificationStatus
from agent_audit.packages.audit.services.notification_dispatcher import (
    NotificationDispatcher,
)


class TestNotificationDispatcher:
    """Test failure issue creation and deduplication."""

    @pytest.fixture
    def dispatcher(self, mock_issue_tracker):
        """Create dispatcher backed by the mock tracker."""
        return NotificationDispatcher(mock_issue_tracker)

    @pytest.fixture
    def failure_info(self):
        return FailureInfo.from_reasons(["Agent execution failed (failure)"])

    @pytest.mark.asyncio
    async def test_creates_issue_when_none_open(
        self, dispatcher, mock_issue_tracker, failure_info, run_context
    ):
        """Test issue creation with default label."""
        result = await dispatcher.notify(
            "Issue Triage", AuditConfig(), "report", failure_info, run_context
        )

        assert result.sent
        assert result.reference == "https://github.com/acme/widgets/issues/42"
        mock_issue_tracker.find_open_issue.assert_awaited_once_with(
            "agent-failure", "Issue Triage failure"
        )
        kwargs = mock_issue_tracker.create_issue.await_args.kwargs
        assert kwargs["title"] == "Issue Triage: Agent Execution Failed"
        assert kwargs["labels"] == ["agent-failure"]
        assert kwargs["assignees"] == []
        assert "## Agent Failure Report" in kwargs["body"]
        mock_issue_tracker.add_issue_comment.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_comments_on_existing_issue(
        self, dispatcher, mock_issue_tracker, failure_info, run_context
    ):
        """Test that re-notifying comments instead of creating."""
        mock_issue_tracker.find_open_issue = AsyncMock(
            return_value=IssueReference(number=7, url="")
        )
        config = AuditConfig(labels=["bot-failure", "triage"], assignees=["alice"])

        result = await dispatcher.notify(
            "Issue Triage", config, "report", failure_info, run_context
        )

        assert result.sent
        assert result.reference == "https://github.com/acme/widgets/issues/7"
        mock_issue_tracker.find_open_issue.assert_awaited_once_with(
            "bot-failure", "Issue Triage failure"
        )
        mock_issue_tracker.add_issue_comment.assert_awaited_once()
        assert mock_issue_tracker.add_issue_comment.await_args.args[0] == 7
        mock_issue_tracker.create_issue.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_search_error_returns_failed(
        self, dispatcher, mock_issue_tracker, failure_info, run_context
    ):
        """Test that tracker errors are returned, not raised."""
        mock_issue_tracker.find_open_issue = AsyncMock(
            side_effect=IssueTrackerError("GitHub API returned 403")
        )

        result = await dispatcher.notify(
            "Agent", AuditConfig(), "report", failure_info, run_context
        )

        assert result.status == NotificationStatus.FAILED
        assert "403" in result.error
        mock_issue_tracker.create_issue.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_error_returns_failed(
        self, dispatcher, mock_issue_tracker, failure_info, run_context
    ):
        """Test failure during issue creation."""
        mock_issue_tracker.create_issue = AsyncMock(side_effect=IssueTrackerError("boom"))

        result = await dispatcher.notify(
            "Agent", AuditConfig(), "report", failure_info, run_context
        )

        assert result.status == NotificationStatus.FAILED
        assert result.error == "boom"

    @pytest.mark.asyncio
    async def test_comment_error_does_not_create_issue(
        self, dispatcher, mock_issue_tracker, failure_info, run_context
    ):
        """Test that a failed comment on an existing issue is returned, not retried."""
        mock_issue_tracker.find_open_issue = AsyncMock(
            return_value=IssueReference(number=7, url="")
        )
        mock_issue_tracker.add_issue_comment = AsyncMock(
            side_effect=IssueTrackerError("GitHub API returned 502")
        )

        result = await dispatcher.notify(
            "Agent", AuditConfig(), "report", failure_info, run_context
        )

        assert result.status == NotificationStatus.FAILED
        assert "502" in result.error
        mock_issue_tracker.add_issue_comment.assert_awaited_once()
        mock_issue_tracker.create_issue.assert_not_awaited()
