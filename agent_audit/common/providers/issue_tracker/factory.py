from agent_audit.common.core.constants import IssueTrackerType
from .interface import IssueTrackerInterface
from .github_provider import GitHubIssueTracker


def get_issue_tracker(
    tracker_type: str = IssueTrackerType.GITHUB,
) -> IssueTrackerInterface:
    """
    Get issue tracker instance.

    Args:
        tracker_type: Type of tracker ('github'). Defaults to 'github'.

    Returns:
        An instance of the requested issue tracker.
    """
    tracker_type = tracker_type.lower()

    match tracker_type:
        case IssueTrackerType.GITHUB:
            return GitHubIssueTracker()
        case _:
            raise ValueError(f"Unknown issue tracker type: {tracker_type}")
