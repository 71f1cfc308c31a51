from abc import ABC, abstractmethod
from typing import List, Optional

from .models import IssueComment, IssueReference


class IssueTrackerInterface(ABC):
    """Interface for issue trackers that receive failure notifications."""

    @abstractmethod
    async def find_open_issue(
        self, label: str, search: str
    ) -> Optional[IssueReference]:
        """
        Find the first open issue carrying a label and matching a search string.

        Args:
            label: Label the issue must carry
            search: Free-text search string

        Returns:
            The matching issue, or None if there is none

        Raises:
            IssueTrackerError: If the tracker request fails
        """
        pass

    @abstractmethod
    async def create_issue(
        self,
        title: str,
        body: str,
        labels: Optional[List[str]] = None,
        assignees: Optional[List[str]] = None,
    ) -> IssueReference:
        """
        Create a new issue.

        Args:
            title: Issue title
            body: Markdown body
            labels: Labels to apply
            assignees: Users to assign

        Returns:
            The created issue

        Raises:
            IssueTrackerError: If the tracker request fails
        """
        pass

    @abstractmethod
    async def add_issue_comment(self, issue_number: int, body: str) -> IssueComment:
        """Add a comment to an existing issue."""
        pass

    @abstractmethod
    async def list_issue_comments(self, issue_number: int) -> List[IssueComment]:
        """List comments on an issue or pull request."""
        pass

    @abstractmethod
    async def update_comment(self, comment_id: int, body: str) -> IssueComment:
        """Replace the body of an existing comment."""
        pass
