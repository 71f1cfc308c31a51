"""
Totals aggregation across per-agent result bundles (multi-agent mode).
"""

import asyncio
import json
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from agent_audit.common.core.constants import JobResult, MANIFEST_SCHEMA_VERSION
from agent_audit.common.core.telemetry import get_logger, trace_span
from agent_audit.packages.audit.models.job_statuses import is_failed_job_result
from agent_audit.packages.audit.models.run_context import RunContext
from agent_audit.packages.audit.models.summary import (
    AgentBundle,
    PerAgentSummary,
    RunTotals,
)
from agent_audit.packages.audit.repositories.bundle_repository import discover_bundles
from agent_audit.packages.audit.repositories.record_store_repository import (
    RecordStoreRepository,
)

logger = get_logger(__name__)


def display_name_from_slug(slug: str) -> str:
    """Convert an agent slug such as ``issue-triage`` to ``Issue Triage``."""
    words = [word for word in re.split(r"[-_]+", slug) if word]
    return " ".join(word[0].upper() + word[1:] for word in words)


def job_result_key(agent_slug: str) -> str:
    return f"agent-{agent_slug}"


def parse_job_results(raw: Optional[str]) -> Dict[str, str]:
    """
    Parse the workflow's job results JSON into job name -> result.

    Accepts both ``{"agent-x": {"result": "failure"}}`` and
    ``{"agent-x": "failure"}``. Invalid JSON yields an empty mapping.
    """
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except ValueError as e:
        logger.warning(f"Ignoring invalid job results JSON: {e}")
        return {}
    if not isinstance(data, dict):
        return {}

    results = {}
    for job_name, value in data.items():
        if isinstance(value, dict):
            result = value.get("result")
        else:
            result = value
        if isinstance(result, str):
            results[job_name] = result
    return results


def resolve_job_result(agent_slug: str, job_results: Mapping[str, str]) -> str:
    """Job result for an agent; a missing entry counts as success."""
    result = job_results.get(job_result_key(agent_slug))
    if result is None:
        logger.warning(
            f"No job result for {job_result_key(agent_slug)}, assuming {JobResult.SUCCESS}"
        )
        return JobResult.SUCCESS
    return result


def compute_totals(summaries: List[PerAgentSummary]) -> RunTotals:
    """Sum costs and collect failed agents, preserving discovery order."""
    # One entry per failed bundle, so the count always matches the failed jobs
    failed_agents = [
        s.display_name for s in summaries if is_failed_job_result(s.job_result)
    ]

    return RunTotals(
        total_agents=len(summaries),
        total_cost_usd=sum(s.cost_usd for s in summaries),
        failed_agents=failed_agents,
        successful_agents=sum(
            1 for s in summaries if not is_failed_job_result(s.job_result)
        ),
        total_duration_ms=sum(s.duration_ms for s in summaries),
    )


async def _summarize_bundle(
    bundle: AgentBundle, job_results: Mapping[str, str]
) -> PerAgentSummary:
    records = await RecordStoreRepository.read_bundle(bundle)
    return PerAgentSummary(
        agent_slug=bundle.agent_slug,
        display_name=display_name_from_slug(bundle.agent_slug),
        job_result=resolve_job_result(bundle.agent_slug, job_results),
        metrics=records.metrics,
        tool_usage=records.tool_usage,
        has_conversation=records.has_conversation,
    )


@trace_span
async def aggregate(
    bundles_dir: str | Path, job_results_by_agent: Mapping[str, str]
) -> Tuple[List[PerAgentSummary], RunTotals]:
    """
    Summarize every agent bundle in a directory.

    Args:
        bundles_dir: Directory holding ``agent-{slug}-audit-{run_id}`` bundles
        job_results_by_agent: Job name (``agent-{slug}``) -> job result

    Returns:
        Per-agent summaries in discovery order, and run-wide totals
    """
    bundles = discover_bundles(bundles_dir)
    summaries = list(
        await asyncio.gather(
            *(_summarize_bundle(bundle, job_results_by_agent) for bundle in bundles)
        )
    )
    totals = compute_totals(summaries)

    logger.info(
        f"Aggregated {totals.total_agents} agents: "
        f"{len(totals.failed_agents)} failed, total cost ${totals.total_cost_usd:.4f}"
    )
    return summaries, totals


def build_agent_manifest(
    summary: PerAgentSummary, run_context: RunContext
) -> Dict[str, Any]:
    """Build the JSON manifest persisted for one agent."""
    metrics = summary.metrics
    failed = is_failed_job_result(summary.job_result)
    errored = bool(metrics and metrics.is_error)
    tool_usage = summary.tool_usage

    return {
        "schema_version": MANIFEST_SCHEMA_VERSION,
        "audit_id": f"{run_context.run_id}-{summary.agent_slug}",
        "generated_at": run_context.iso_timestamp,
        "metadata": {
            "agent_name": summary.display_name,
            "agent_slug": summary.agent_slug,
            "workflow": {
                "run_id": run_context.run_id,
                "run_number": run_context.run_number,
                "run_attempt": run_context.run_attempt,
                "workflow_name": run_context.workflow_name,
                "workflow_url": run_context.run_url,
                "job_name": job_result_key(summary.agent_slug),
            },
            "trigger": {
                "event_name": run_context.event_name,
                "actor": run_context.actor,
                "repository": run_context.repository,
                "ref": run_context.ref,
                "sha": run_context.sha,
            },
        },
        "execution": {
            "job_result": summary.job_result,
            "success": not failed and not errored,
            "session_id": metrics.session_id if metrics else None,
            "metrics": {
                "total_cost_usd": summary.cost_usd,
                "num_turns": (metrics.num_turns or 0) if metrics else 0,
                "duration_ms": summary.duration_ms,
                "duration_api_ms": (metrics.duration_api_ms or 0) if metrics else 0,
            },
            "conversation_file": "conversation.jsonl" if summary.has_conversation else None,
            "tool_usage": (
                tool_usage.model_dump() if tool_usage else {
                    "total_calls": 0,
                    "by_tool": {},
                    "permission_issues": [],
                }
            ),
            "result": metrics.result if metrics else None,
        },
        "failures": {"has_failures": failed},
    }


def build_combined_manifest(
    summaries: List[PerAgentSummary], totals: RunTotals, run_context: RunContext
) -> Dict[str, Any]:
    return {
        "schema_version": MANIFEST_SCHEMA_VERSION,
        "generated_at": run_context.iso_timestamp,
        "workflow_run_id": run_context.run_id,
        "workflow_run_url": run_context.run_url,
        "agents": [build_agent_manifest(s, run_context) for s in summaries],
        "summary": {
            "total_agents": totals.total_agents,
            "successful_agents": totals.successful_agents,
            "failed_agents": len(totals.failed_agents),
            "total_cost_usd": totals.total_cost_usd,
            "total_duration_ms": totals.total_duration_ms,
        },
    }
