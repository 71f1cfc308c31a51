import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Mapping, Optional

from pydantic import ValidationError

from agent_audit.common.core.config import settings
from agent_audit.common.core.constants import ProgressStage, ProgressStatus
from agent_audit.common.core.telemetry import get_logger
from agent_audit.packages.audit.models.audit_data import RecordLocations
from agent_audit.packages.audit.models.job_statuses import JobStatuses
from agent_audit.packages.audit.models.run_context import RunContext
from agent_audit.packages.audit.models.stage_result import StageResult
from agent_audit.packages.audit.services.audit_stage_service import (
    run_audit,
    run_audit_report,
)
from agent_audit.packages.audit.services.totals_aggregator import parse_job_results
from agent_audit.packages.progress.models.progress_state import (
    DispatchContext,
    ProgressCommentRef,
)
from agent_audit.packages.progress.services.progress_stage_service import (
    run_progress,
)

logger = get_logger(__name__)


def parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("true", "1", "yes"):
        return True
    if lowered in ("false", "0", "no", ""):
        return False
    raise argparse.ArgumentTypeError(f"Expected true or false, got: {value}")


def setup_cli(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Setup CLI arguments and return parsed args."""
    parser = argparse.ArgumentParser(
        prog="agent-audit", description="Agent workflow audit stages"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Log level (default: from settings)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    audit = subparsers.add_parser("audit", help="Audit a single agent run")
    audit.add_argument("--agent", required=True, help="Agent definition file")
    audit.add_argument("--agent-result", default=None, help="Agent job result")
    audit.add_argument(
        "--execute-outputs-result", default=None, help="execute-outputs job result"
    )
    audit.add_argument(
        "--collect-context-result", default=None, help="collect-context job result"
    )
    audit.add_argument(
        "--rate-limited",
        type=parse_bool,
        nargs="?",
        const=True,
        default=False,
        help="Agent was skipped by the rate limit",
    )
    audit.add_argument(
        "--data-dir",
        default=settings.audit_data_dir,
        help=f"Record directory (default: {settings.audit_data_dir})",
    )
    audit.add_argument(
        "--output-dir",
        default=settings.audit_output_dir,
        help=f"Report directory (default: {settings.audit_output_dir})",
    )

    report = subparsers.add_parser(
        "audit-report", help="Aggregate all agent bundles of a multi-agent run"
    )
    report.add_argument(
        "--bundles-dir",
        default=settings.audit_bundles_dir,
        help=f"Bundle directory (default: {settings.audit_bundles_dir})",
    )
    report.add_argument(
        "--job-results",
        default=settings.job_results,
        help="Job results JSON (default: JOB_RESULTS)",
    )
    report.add_argument(
        "--output-dir",
        default=settings.audit_output_dir,
        help=f"Manifest and summary directory (default: {settings.audit_output_dir})",
    )

    progress = subparsers.add_parser("progress", help="Update the progress comment")
    progress.add_argument("--agent", required=True, help="Agent definition file")
    progress.add_argument(
        "--stage",
        required=True,
        choices=[s.value for s in ProgressStage],
        help="Stage that changed",
    )
    progress.add_argument(
        "--status",
        required=True,
        choices=[s.value for s in ProgressStatus],
        help="New stage status",
    )
    progress.add_argument("--error", default=None, help="Error for failed stages")
    progress.add_argument(
        "--final-comment",
        default=None,
        help="add-comment.json written by the agent, replaces the stage table",
    )
    progress.add_argument("--comment-id", type=int, default=None)
    progress.add_argument("--issue-number", type=int, default=None)
    progress.add_argument(
        "--dispatch-context", default=None, help="Dispatch context JSON file"
    )

    return parser.parse_args(argv)


def load_dispatch_context(args: argparse.Namespace) -> DispatchContext:
    """Dispatch context from a JSON file, overridden by explicit comment flags."""
    context = DispatchContext()
    if args.dispatch_context:
        path = Path(args.dispatch_context)
        if path.exists():
            try:
                context = DispatchContext.model_validate_json(
                    path.read_text(encoding="utf-8")
                )
            except ValidationError as e:
                logger.warning(f"Ignoring invalid dispatch context {path}: {e}")
        else:
            logger.info(f"No dispatch context at {path}")

    if args.comment_id is not None and args.issue_number is not None:
        context.progress_comment = ProgressCommentRef(
            comment_id=args.comment_id, issue_number=args.issue_number
        )
    return context


def write_outputs(outputs: Mapping[str, str], output_file: Optional[str]) -> None:
    """Append ``key=value`` lines to the GITHUB_OUTPUT file."""
    for key, value in outputs.items():
        logger.info(f"Output {key}={value}")
    if not output_file:
        return
    with open(output_file, "a", encoding="utf-8") as f:
        for key, value in outputs.items():
            f.write(f"{key}={value}\n")


async def run_stage(args: argparse.Namespace) -> StageResult:
    match args.command:
        case "audit":
            job_statuses = JobStatuses(
                agent=args.agent_result,
                execute_outputs=args.execute_outputs_result,
                collect_context=args.collect_context_result,
                rate_limited=args.rate_limited,
            )
            return await run_audit(
                args.agent,
                RunContext.from_settings(settings, job_statuses),
                RecordLocations.under(args.data_dir),
                args.output_dir,
            )
        case "audit-report":
            return await run_audit_report(
                RunContext.from_settings(settings),
                args.bundles_dir,
                parse_job_results(args.job_results),
                args.output_dir,
                settings.github_step_summary,
            )
        case "progress":
            return await run_progress(
                args.agent,
                RunContext.from_settings(settings),
                ProgressStage(args.stage),
                ProgressStatus(args.status),
                load_dispatch_context(args),
                error=args.error,
                final_comment_path=args.final_comment,
            )
        case _:
            raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point with command-line argument support."""
    args = setup_cli(argv)
    if args.log_level:
        logging.getLogger().setLevel(args.log_level)

    try:
        result = asyncio.run(run_stage(args))
    except Exception as e:
        # Audit outcomes never fail the workflow
        logger.exception(f"Stage {args.command} failed: {e}")
        return 0

    if result.skip_reason:
        logger.info(f"Stage skipped: {result.skip_reason}")
    for artifact in result.artifacts:
        logger.info(f"Artifact {artifact.name}: {artifact.path}")

    write_outputs(result.outputs, settings.github_output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
