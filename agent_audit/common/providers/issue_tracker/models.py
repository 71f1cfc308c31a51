from pydantic import BaseModel


class IssueReference(BaseModel):
    """Issue returned by the tracker."""

    number: int
    url: str


class IssueComment(BaseModel):
    """Comment on an issue or pull request."""

    id: int
    body: str = ""
    html_url: str = ""
