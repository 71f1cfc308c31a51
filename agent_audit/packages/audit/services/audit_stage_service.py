"""
Audit stage orchestration.

Wraps the reader, classifier, renderer and dispatcher into the single-agent
``audit`` stage, and the aggregator into the multi-agent ``audit-report``
stage. Both always return a successful StageResult: audit findings travel in
the outputs and never fail the workflow.
"""

import asyncio
import json
from pathlib import Path
from typing import Callable, Mapping, Optional

from agent_audit.common.core.exceptions import AgentDefinitionParseError
from agent_audit.common.core.config import settings
from agent_audit.common.core.telemetry import get_logger, trace_span
from agent_audit.common.providers.issue_tracker import get_issue_tracker
from agent_audit.packages.agents.services.agent_parser import load_agent_definition
from agent_audit.packages.audit.models.audit_data import AuditData, RecordLocations
from agent_audit.packages.audit.models.run_context import RunContext
from agent_audit.packages.audit.models.stage_result import Artifact, StageResult
from agent_audit.packages.audit.repositories.record_store_repository import (
    RecordStoreRepository,
)
from agent_audit.packages.audit.services import (
    failure_classifier,
    report_renderer,
    totals_aggregator,
)
from agent_audit.packages.audit.services.notification_dispatcher import (
    NotificationDispatcher,
)

logger = get_logger(__name__)

REPORT_FILE = "report.md"
SUMMARY_FILE = "summary.md"
MANIFEST_FILE = "manifest.json"
PER_AGENT_DIR = "per-agent"


def format_bool(value: bool) -> str:
    return "true" if value else "false"


def format_cost(total: float) -> str:
    """Format a cost sum without float noise, e.g. ``0.0045``."""
    if not total:
        return "0"
    return f"{total:.10g}"


def _error_message(audit_data: AuditData) -> Optional[str]:
    metrics = audit_data.metrics
    if metrics is not None and metrics.is_error and metrics.result:
        return metrics.result
    return None


def _write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def _write_json(path: Path, data) -> None:
    _write_text(path, json.dumps(data, indent=2) + "\n")


@trace_span
async def run_audit(
    agent_path: str | Path,
    run_context: RunContext,
    locations: RecordLocations,
    output_dir: str | Path,
    dispatcher_factory: Optional[Callable[[], NotificationDispatcher]] = None,
) -> StageResult:
    """
    Audit a single agent run.

    Args:
        agent_path: Agent definition file
        run_context: Workflow run being audited, including job statuses
        locations: Record slots written by earlier stages
        output_dir: Directory the report is written to
        dispatcher_factory: Builds the notification dispatcher; defaults to
            one backed by the configured issue tracker

    Returns:
        StageResult with ``has-failures`` and, when an issue was filed,
        ``issue-url``
    """
    try:
        agent = await asyncio.to_thread(load_agent_definition, agent_path)
    except AgentDefinitionParseError as e:
        logger.error(str(e))
        return StageResult(
            outputs={"has-failures": format_bool(True), "parse-error": format_bool(True)}
        )

    if run_context.job_statuses.rate_limited:
        logger.info(f"Agent {agent.name} was rate limited, skipping audit")
        return StageResult(
            outputs={"has-failures": format_bool(False)},
            skip_reason="Agent was rate limited",
        )

    audit_data = await RecordStoreRepository(locations).read()
    failure_info = failure_classifier.classify(run_context.job_statuses, audit_data)
    report = report_renderer.render(agent.name, run_context, audit_data, failure_info)

    result = StageResult(
        outputs={"has-failures": format_bool(failure_info.has_failures)}
    )

    report_path = Path(output_dir) / REPORT_FILE
    try:
        await asyncio.to_thread(_write_text, report_path, report)
        logger.info(f"Audit report written to {report_path}")
        result.artifacts.append(Artifact(name="audit-report", path=str(report_path)))
    except OSError as e:
        logger.error(f"Failed to write audit report {report_path}: {e}")

    if not failure_info.has_failures:
        logger.info("No failures detected")
        return result

    for reason in failure_info.reasons:
        logger.warning(f"Failure: {reason}")

    if not agent.audit.create_issues:
        logger.info("Issue creation disabled for this agent")
        result.skip_reason = "Issue creation disabled"
        return result

    try:
        if dispatcher_factory is None:
            dispatcher = NotificationDispatcher(get_issue_tracker(settings.issue_tracker))
        else:
            dispatcher = dispatcher_factory()
    except ValueError as e:
        logger.error(f"Issue tracker not configured: {e}")
        result.skip_reason = "Issue tracker not configured"
        return result

    notification = await dispatcher.notify(
        agent.name,
        agent.audit,
        report,
        failure_info,
        run_context,
        _error_message(audit_data),
    )
    if notification.sent:
        result.outputs["issue-url"] = notification.reference
    else:
        logger.warning(f"Failure notification not sent: {notification.error}")

    return result


@trace_span
async def run_audit_report(
    run_context: RunContext,
    bundles_dir: str | Path,
    job_results: Mapping[str, str],
    output_dir: str | Path,
    step_summary_path: Optional[str | Path] = None,
) -> StageResult:
    """
    Aggregate every agent bundle of a multi-agent run.

    Writes ``per-agent/{slug}.json``, ``manifest.json`` and ``summary.md``
    under ``output_dir``, and appends the summary to the CI step summary
    when a path is given.
    """
    summaries, totals = await totals_aggregator.aggregate(bundles_dir, job_results)
    output = Path(output_dir)
    summary_md = report_renderer.render_run_summary(summaries, totals, run_context)

    result = StageResult(
        outputs={
            "has-failures": format_bool(totals.has_failures),
            "failed-agents": json.dumps(totals.failed_agents),
            "total-agents": str(totals.total_agents),
            "total-cost": format_cost(totals.total_cost_usd),
        },
    )

    try:
        for summary in summaries:
            await asyncio.to_thread(
                _write_json,
                output / PER_AGENT_DIR / f"{summary.agent_slug}.json",
                totals_aggregator.build_agent_manifest(summary, run_context),
            )
        await asyncio.to_thread(
            _write_json,
            output / MANIFEST_FILE,
            totals_aggregator.build_combined_manifest(summaries, totals, run_context),
        )
        await asyncio.to_thread(_write_text, output / SUMMARY_FILE, summary_md)
        result.artifacts.append(Artifact(name="audit-manifest", path=str(output)))
    except OSError as e:
        logger.error(f"Failed to write audit manifests to {output}: {e}")

    if step_summary_path:
        try:
            with open(step_summary_path, "a", encoding="utf-8") as f:
                f.write(summary_md)
        except OSError as e:
            logger.error(f"Failed to append step summary {step_summary_path}: {e}")

    return result
