from typing import Any, Dict, List, Optional

import httpx

from agent_audit.common.core.config import settings
from agent_audit.common.core.exceptions import IssueTrackerError
from agent_audit.common.core.telemetry import get_logger, trace_span
from .interface import IssueTrackerInterface
from .models import IssueComment, IssueReference

logger = get_logger(__name__)


class GitHubIssueTracker(IssueTrackerInterface):
    """GitHub REST implementation of the issue tracker.

    Each call is a single request with no retry; transport errors and
    non-2xx responses are raised as IssueTrackerError.
    """

    def __init__(
        self,
        repository: Optional[str] = None,
        token: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.repository = repository or settings.github_repository
        self.token = token if token is not None else settings.github_token
        self.api_url = (api_url or settings.github_api_url).rstrip("/")
        self.timeout = timeout or settings.github_request_timeout_seconds
        self.transport = transport

        if not self.repository or "/" not in self.repository:
            raise ValueError(
                f"Repository must be in owner/repo format, got: {self.repository!r}"
            )

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        try:
            async with httpx.AsyncClient(
                base_url=self.api_url,
                headers=self._headers(),
                timeout=self.timeout,
                transport=self.transport,
            ) as client:
                response = await client.request(method, path, params=params, json=json)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise IssueTrackerError(
                f"GitHub API {method} {path} returned {e.response.status_code}: {e.response.text}"
            ) from e
        except httpx.HTTPError as e:
            raise IssueTrackerError(f"GitHub API {method} {path} failed: {e}") from e

        if not response.content:
            return {}
        return response.json()

    @trace_span
    async def find_open_issue(
        self, label: str, search: str
    ) -> Optional[IssueReference]:
        query = f'repo:{self.repository} is:issue is:open label:"{label}" {search}'
        logger.info(f"Searching for open issue: {query}")

        data = await self._request(
            "GET", "/search/issues", params={"q": query, "per_page": 1}
        )
        items = data.get("items") or []
        if not items:
            return None

        first = items[0]
        return IssueReference(number=first["number"], url=first.get("html_url", ""))

    @trace_span
    async def create_issue(
        self,
        title: str,
        body: str,
        labels: Optional[List[str]] = None,
        assignees: Optional[List[str]] = None,
    ) -> IssueReference:
        payload: Dict[str, Any] = {"title": title, "body": body}
        if labels:
            payload["labels"] = labels
        if assignees:
            payload["assignees"] = assignees

        data = await self._request(
            "POST", f"/repos/{self.repository}/issues", json=payload
        )
        return IssueReference(number=data["number"], url=data.get("html_url", ""))

    @trace_span
    async def add_issue_comment(self, issue_number: int, body: str) -> IssueComment:
        data = await self._request(
            "POST",
            f"/repos/{self.repository}/issues/{issue_number}/comments",
            json={"body": body},
        )
        return IssueComment.model_validate(data)

    @trace_span
    async def list_issue_comments(self, issue_number: int) -> List[IssueComment]:
        data = await self._request(
            "GET",
            f"/repos/{self.repository}/issues/{issue_number}/comments",
            params={"per_page": 100},
        )
        return [IssueComment.model_validate(item) for item in data or []]

    @trace_span
    async def update_comment(self, comment_id: int, body: str) -> IssueComment:
        data = await self._request(
            "PATCH",
            f"/repos/{self.repository}/issues/comments/{comment_id}",
            json={"body": body},
        )
        return IssueComment.model_validate(data)
