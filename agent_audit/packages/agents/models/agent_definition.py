"""
Domain models for agent definitions.
"""

from enum import StrEnum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from agent_audit.common.core.constants import DEFAULT_FAILURE_LABEL


class AuditConfig(BaseModel):
    """Failure-notification settings of an agent."""

    model_config = ConfigDict(extra="ignore")

    create_issues: bool = True
    labels: List[str] = Field(default_factory=lambda: [DEFAULT_FAILURE_LABEL])
    assignees: List[str] = Field(default_factory=list)

    @property
    def dedup_label(self) -> str:
        return self.labels[0] if self.labels else DEFAULT_FAILURE_LABEL


class AgentDefinition(BaseModel):
    """Agent entity as far as auditing is concerned."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = Field(..., min_length=1)
    triggers: Dict[str, Any] = Field(default_factory=dict, alias="on")
    audit: AuditConfig = Field(default_factory=AuditConfig)
    progress_comment: Optional[bool] = None

    @field_validator("triggers", mode="before")
    @classmethod
    def normalize_triggers(cls, value):
        # `on: issues` and `on: [issues, pull_request]` name events without config
        if value is None:
            return {}
        if isinstance(value, str):
            return {value: None}
        if isinstance(value, list):
            return {str(event): None for event in value}
        return value


class DiagnosticSeverity(StrEnum):
    ERROR = "error"
    WARNING = "warning"


class ParseDiagnostic(BaseModel):
    field: str
    message: str
    severity: DiagnosticSeverity = DiagnosticSeverity.ERROR


class ParseResult(BaseModel):
    agent: Optional[AgentDefinition] = None
    errors: List[ParseDiagnostic] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return self.agent is None or any(
            e.severity == DiagnosticSeverity.ERROR for e in self.errors
        )
