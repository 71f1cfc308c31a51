from enum import StrEnum


class JobResult(StrEnum):
    """Job results reported by the workflow runner."""

    SUCCESS = "success"
    FAILURE = "failure"
    CANCELLED = "cancelled"
    SKIPPED = "skipped"


class IssueTrackerType(StrEnum):
    """Issue tracker backends."""

    GITHUB = "github"


class ProgressStage(StrEnum):
    """Pipeline stages shown on the progress comment."""

    VALIDATION = "validation"
    CONTEXT = "context"
    AGENT = "agent"
    OUTPUTS = "outputs"
    COMPLETE = "complete"
    FAILED = "failed"


class ProgressStatus(StrEnum):
    """Status of a single pipeline stage."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


DEFAULT_FAILURE_LABEL = "agent-failure"

# Bundle artifacts are uploaded as agent-{slug}-audit-{run_id}
BUNDLE_NAME_PREFIX = "agent-"
BUNDLE_NAME_INFIX = "-audit-"

# Record file names, relative to their slot directory
VALIDATION_STATUS_FILE = "validation/validation-status.json"
PERMISSION_ISSUES_FILE = "validation/permission-issues.json"
METRICS_FILE = "metrics/metrics.json"
OUTPUTS_DIR = "outputs"
RECORD_EXTENSION = ".json"

BUNDLE_METRICS_FILE = "metrics.json"
BUNDLE_TOOL_USAGE_FILE = "tool-usage.json"
BUNDLE_CONVERSATION_FILE = "conversation.jsonl"

MANIFEST_SCHEMA_VERSION = "1.0.0"
