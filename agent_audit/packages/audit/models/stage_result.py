from typing import Dict, List, Optional
from pydantic import BaseModel, Field


class Artifact(BaseModel):
    """File or directory to upload after the stage completes."""

    name: str
    path: str


class StageResult(BaseModel):
    """Result returned by each pipeline stage.

    Audit stages always report success; failure information travels in
    ``outputs`` so the audit itself never fails the workflow.
    """

    success: bool = True
    outputs: Dict[str, str] = Field(default_factory=dict)
    artifacts: List[Artifact] = Field(default_factory=list)
    skip_reason: Optional[str] = None
