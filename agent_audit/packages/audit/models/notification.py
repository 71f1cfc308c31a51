from enum import StrEnum
from typing import Optional, Self

from pydantic import BaseModel


class NotificationStatus(StrEnum):
    SENT = "sent"
    SKIPPED = "skipped"
    FAILED = "failed"


class NotificationResult(BaseModel):
    """Outcome of an issue or comment notification.

    External errors are carried here instead of raised, so callers only log.
    """

    status: NotificationStatus
    reference: Optional[str] = None
    error: Optional[str] = None
    skip_reason: Optional[str] = None

    @classmethod
    def ok(cls, reference: str) -> Self:
        return cls(status=NotificationStatus.SENT, reference=reference)

    @classmethod
    def skipped(cls, reason: str) -> Self:
        return cls(status=NotificationStatus.SKIPPED, skip_reason=reason)

    @classmethod
    def failed(cls, error: str) -> Self:
        return cls(status=NotificationStatus.FAILED, error=error)

    @property
    def sent(self) -> bool:
        return self.status == NotificationStatus.SENT
