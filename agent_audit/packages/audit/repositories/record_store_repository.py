"""
Reads partial-result records left behind by earlier pipeline stages.

A record that is missing, undecodable or fails validation is treated as
absent evidence. Nothing here raises for a bad record.
"""

import asyncio
import json
from pathlib import Path
from typing import List, Optional, Type, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from agent_audit.common.core.constants import (
    BUNDLE_CONVERSATION_FILE,
    BUNDLE_METRICS_FILE,
    BUNDLE_TOOL_USAGE_FILE,
    RECORD_EXTENSION,
)
from agent_audit.common.core.telemetry import get_logger, trace_span
from agent_audit.packages.audit.models.audit_data import AuditData, RecordLocations
from agent_audit.packages.audit.models.execution_metrics import ExecutionMetrics
from agent_audit.packages.audit.models.summary import AgentBundle
from agent_audit.packages.audit.models.tool_usage import PermissionIssue, ToolUsage
from agent_audit.packages.audit.models.validation import (
    OutputValidationResult,
    ValidationStatus,
)

logger = get_logger(__name__)

ModelVar = TypeVar("ModelVar", bound=BaseModel)

_permission_issues_adapter = TypeAdapter(List[PermissionIssue])


class BundleRecords(BaseModel):
    """Records found in a single agent bundle."""

    metrics: Optional[ExecutionMetrics] = None
    tool_usage: Optional[ToolUsage] = None
    has_conversation: bool = False


def read_json_file(path: Path) -> Optional[object]:
    """Read and decode a JSON file, returning None if it is missing or invalid."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        return None
    except (OSError, ValueError) as e:
        logger.warning(f"Ignoring unreadable record {path}: {e}")
        return None


def read_record(path: Path, model: Type[ModelVar]) -> Optional[ModelVar]:
    """Read a JSON record into a model, or None if absent or invalid."""
    data = read_json_file(path)
    if data is None:
        return None
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Ignoring invalid {model.__name__} record {path}: {e}")
        return None


def read_permission_issues(path: Path) -> List[PermissionIssue]:
    data = read_json_file(path)
    if data is None:
        return []
    try:
        return _permission_issues_adapter.validate_python(data)
    except ValidationError as e:
        logger.warning(f"Ignoring invalid permission issues record {path}: {e}")
        return []


def read_output_results(outputs_dir: Path) -> List[OutputValidationResult]:
    """Read output validation results from a directory (non-recursive).

    Files are read in name order so results are collected deterministically.
    """
    results = []
    try:
        entries = sorted(outputs_dir.iterdir(), key=lambda p: p.name)
    except OSError:
        return results

    for entry in entries:
        if entry.suffix != RECORD_EXTENSION or not entry.is_file():
            continue
        result = read_record(entry, OutputValidationResult)
        if result is not None:
            results.append(result)
    return results


class RecordStoreRepository:
    """Repository over the fixed record slots and per-agent bundles."""

    def __init__(self, locations: RecordLocations):
        self.locations = locations

    @trace_span
    async def read(self) -> AuditData:
        """
        Read every record slot concurrently.

        Returns:
            AuditData with absent slots left empty
        """
        validation_status, permission_issues, metrics, output_results = (
            await asyncio.gather(
                asyncio.to_thread(
                    read_record, self.locations.validation_status, ValidationStatus
                ),
                asyncio.to_thread(
                    read_permission_issues, self.locations.permission_issues
                ),
                asyncio.to_thread(
                    read_record, self.locations.metrics, ExecutionMetrics
                ),
                asyncio.to_thread(read_output_results, self.locations.outputs_dir),
            )
        )

        logger.info(
            "Collected audit data: "
            f"validation={'yes' if validation_status else 'no'}, "
            f"permission_issues={len(permission_issues)}, "
            f"metrics={'yes' if metrics else 'no'}, "
            f"output_results={len(output_results)}"
        )

        return AuditData(
            validation_status=validation_status,
            permission_issues=permission_issues,
            metrics=metrics,
            output_results=output_results,
        )

    @staticmethod
    async def read_bundle(bundle: AgentBundle) -> BundleRecords:
        """Read metrics and tool usage from one agent bundle."""
        metrics, tool_usage = await asyncio.gather(
            asyncio.to_thread(
                read_record, bundle.path / BUNDLE_METRICS_FILE, ExecutionMetrics
            ),
            asyncio.to_thread(
                read_record, bundle.path / BUNDLE_TOOL_USAGE_FILE, ToolUsage
            ),
        )
        if metrics is None:
            logger.info(f"No metrics found for {bundle.agent_slug}")

        return BundleRecords(
            metrics=metrics,
            tool_usage=tool_usage,
            has_conversation=(bundle.path / BUNDLE_CONVERSATION_FILE).exists(),
        )
