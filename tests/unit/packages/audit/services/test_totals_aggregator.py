import pytest

from agent_audit.packages.audit.models.execution_metrics import ExecutionMetrics
from agent_audit.packages.audit.models.summary import PerAgentSummary
from agent_audit.packages.audit.services.totals_aggregator import (
    aggregate,
    build_agent_manifest,
    build_combined_manifest,
    compute_totals,
    display_name_from_slug,
    parse_job_results,
    resolve_job_result,
)


class TestTotalsAggregator:
    """Test multi-agent totals aggregation."""

    @pytest.fixture
    def bundles_dir(self, tmp_path, write_json):
        """Create three agent bundles with metrics."""
        root = tmp_path / "all-audits"
        write_json(
            root / "agent-issue-triage-audit-100" / "metrics.json",
            {"total_cost_usd": 0.001, "num_turns": 3, "duration_ms": 1000},
        )
        write_json(
            root / "agent-code-review-audit-100" / "metrics.json",
            {"total_cost_usd": 0.002, "is_error": True, "duration_ms": 500},
        )
        write_json(
            root / "agent-docs-audit-100" / "metrics.json",
            {"total_cost_usd": 0.0015},
        )
        (root / "agent-docs-audit-100" / "conversation.jsonl").write_text("{}\n")
        (root / "unrelated-dir").mkdir()
        (root / "agent-notes.txt").write_text("not a bundle")
        return root

    @pytest.mark.asyncio
    async def test_empty_directory(self, tmp_path):
        """Test that a missing bundles directory yields no agents."""
        summaries, totals = await aggregate(tmp_path / "missing", {})

        assert summaries == []
        assert totals.total_agents == 0
        assert totals.total_cost_usd == 0.0
        assert totals.has_failures is False

    @pytest.mark.asyncio
    async def test_aggregates_all_bundles(self, bundles_dir):
        """Test totals over N bundles."""
        job_results = {
            "agent-issue-triage": "success",
            "agent-code-review": "failure",
            "agent-docs": "skipped",
        }

        summaries, totals = await aggregate(bundles_dir, job_results)

        assert totals.total_agents == 3
        assert totals.total_cost_usd == pytest.approx(0.0045)
        assert totals.failed_agents == ["Code Review"]
        assert totals.successful_agents == 2
        assert totals.total_duration_ms == 1500
        assert [s.agent_slug for s in summaries] == ["code-review", "docs", "issue-triage"]
        assert summaries[1].has_conversation is True

    @pytest.mark.asyncio
    async def test_bundle_without_metrics(self, tmp_path):
        """Test that a bundle without metrics counts with zero cost."""
        (tmp_path / "agent-empty-audit-1").mkdir()

        summaries, totals = await aggregate(tmp_path, {})

        assert totals.total_agents == 1
        assert totals.total_cost_usd == 0.0
        assert summaries[0].metrics is None
        assert summaries[0].job_result == "success"

    def test_failed_agents_not_deduplicated(self):
        """Test that each failed bundle is listed."""
        summaries = [
            PerAgentSummary(agent_slug="a", display_name="Same", job_result="failure"),
            PerAgentSummary(agent_slug="a", display_name="Same", job_result="cancelled"),
        ]

        totals = compute_totals(summaries)

        assert totals.failed_agents == ["Same", "Same"]

    def test_display_name_from_slug(self):
        """Test slug to display name conversion."""
        assert display_name_from_slug("issue-triage") == "Issue Triage"
        assert display_name_from_slug("code_review-bot") == "Code Review Bot"

    def test_parse_job_results_shapes(self):
        """Test both job result JSON shapes and invalid input."""
        raw = '{"agent-a": {"result": "failure"}, "agent-b": "success", "agent-c": 3}'

        assert parse_job_results(raw) == {"agent-a": "failure", "agent-b": "success"}
        assert parse_job_results("not json") == {}
        assert parse_job_results(None) == {}

    def test_missing_job_result_defaults_to_success(self):
        """Test default for agents absent from job results."""
        assert resolve_job_result("ghost", {}) == "success"


class TestManifests:
    """Test manifest construction."""

    def test_agent_manifest(self, run_context):
        """Test per-agent manifest fields."""
        summary = PerAgentSummary(
            agent_slug="triage",
            display_name="Triage",
            job_result="failure",
            metrics=ExecutionMetrics(total_cost_usd=0.5, session_id="s1", result="done"),
            has_conversation=True,
        )

        manifest = build_agent_manifest(summary, run_context)

        assert manifest["schema_version"] == "1.0.0"
        assert manifest["audit_id"] == "12345-triage"
        assert manifest["metadata"]["workflow"]["job_name"] == "agent-triage"
        assert manifest["execution"]["success"] is False
        assert manifest["execution"]["session_id"] == "s1"
        assert manifest["execution"]["metrics"]["total_cost_usd"] == 0.5
        assert manifest["execution"]["conversation_file"] == "conversation.jsonl"
        assert manifest["execution"]["tool_usage"]["total_calls"] == 0
        assert manifest["failures"]["has_failures"] is True

    def test_combined_manifest(self, run_context):
        """Test combined manifest summary block."""
        summaries = [
            PerAgentSummary(agent_slug="a", display_name="A", job_result="success"),
            PerAgentSummary(agent_slug="b", display_name="B", job_result="failure"),
        ]
        totals = compute_totals(summaries)

        manifest = build_combined_manifest(summaries, totals, run_context)

        assert manifest["workflow_run_id"] == "12345"
        assert len(manifest["agents"]) == 2
        assert manifest["summary"] == {
            "total_agents": 2,
            "successful_agents": 1,
            "failed_agents": 1,
            "total_cost_usd": 0.0,
            "total_duration_ms": 0,
        }
