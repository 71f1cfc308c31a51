"""
Domain models for evidence collected from previous pipeline stages.
"""

from pathlib import Path
from typing import List, Optional
from pydantic import BaseModel, Field

from agent_audit.common.core.constants import (
    METRICS_FILE,
    OUTPUTS_DIR,
    PERMISSION_ISSUES_FILE,
    VALIDATION_STATUS_FILE,
)
from agent_audit.packages.audit.models.execution_metrics import ExecutionMetrics
from agent_audit.packages.audit.models.tool_usage import PermissionIssue
from agent_audit.packages.audit.models.validation import (
    OutputValidationResult,
    ValidationStatus,
)


class RecordLocations(BaseModel):
    """Fixed record slots written by earlier stages."""

    validation_status: Path
    permission_issues: Path
    metrics: Path
    outputs_dir: Path

    @classmethod
    def under(cls, base_dir: str | Path) -> "RecordLocations":
        base = Path(base_dir)
        return cls(
            validation_status=base / VALIDATION_STATUS_FILE,
            permission_issues=base / PERMISSION_ISSUES_FILE,
            metrics=base / METRICS_FILE,
            outputs_dir=base / OUTPUTS_DIR,
        )


class AuditData(BaseModel):
    """Evidence for one agent run. Any stage may not have run, so every
    record is independently optional."""

    validation_status: Optional[ValidationStatus] = None
    permission_issues: List[PermissionIssue] = Field(default_factory=list)
    metrics: Optional[ExecutionMetrics] = None
    output_results: List[OutputValidationResult] = Field(default_factory=list)


class FailureInfo(BaseModel):
    """Failure verdict. Reason order is shown verbatim in reports and issues."""

    has_failures: bool = False
    reasons: List[str] = Field(default_factory=list)

    @classmethod
    def from_reasons(cls, reasons: List[str]) -> "FailureInfo":
        return cls(has_failures=len(reasons) > 0, reasons=reasons)
