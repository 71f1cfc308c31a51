from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field


class ValidationStatus(BaseModel):
    """Pre-flight check results, only present when pre-flight ran in this run."""

    model_config = ConfigDict(extra="ignore")

    secrets_check: bool
    user_authorization: bool
    labels_check: bool
    rate_limit_check: bool


class OutputValidationResult(BaseModel):
    """Result of executing one configured output action."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    output_type: str = Field(..., alias="outputType")
    success: bool
    error: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
