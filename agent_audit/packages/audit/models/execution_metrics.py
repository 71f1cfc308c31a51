"""
Domain models for agent execution metrics.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class ExecutionMetrics(BaseModel):
    """Metrics written once per agent run by the execution stage.

    Every field except ``is_error`` may be missing from a partially written
    record; the renderer falls back per field.
    """

    model_config = ConfigDict(extra="ignore")

    total_cost_usd: Optional[float] = Field(None, ge=0, description="API cost in USD")
    num_turns: Optional[int] = Field(None, ge=0, description="Conversation turn count")
    duration_ms: Optional[int] = Field(None, ge=0, description="Total execution time")
    duration_api_ms: Optional[int] = Field(None, ge=0, description="API-only time")
    session_id: Optional[str] = None
    is_error: bool = False
    input_tokens: Optional[int] = None
    output_tokens: Optional[int] = None
    result: Optional[str] = Field(None, description="Final agent response text")
