from .interface import IssueTrackerInterface
from .models import IssueComment, IssueReference
from .github_provider import GitHubIssueTracker
from .factory import get_issue_tracker

__all__ = [
    "IssueTrackerInterface",
    "IssueComment",
    "IssueReference",
    "GitHubIssueTracker",
    "get_issue_tracker",
]
