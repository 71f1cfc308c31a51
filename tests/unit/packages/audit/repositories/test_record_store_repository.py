import pytest

from agent_audit.packages.audit.models.audit_data import RecordLocations
from agent_audit.packages.audit.models.summary import AgentBundle
from agent_audit.packages.audit.repositories.record_store_repository import (
    RecordStoreRepository,
    read_output_results,
)


class TestRecordStoreRepository:
    """Test reading partial-result records."""

    @pytest.mark.asyncio
    async def test_missing_directory_reads_as_empty(self, tmp_path):
        """Test that absent records are absent evidence."""
        repo = RecordStoreRepository(RecordLocations.under(tmp_path / "missing"))

        data = await repo.read()

        assert data.validation_status is None
        assert data.permission_issues == []
        assert data.metrics is None
        assert data.output_results == []

    @pytest.mark.asyncio
    async def test_reads_all_slots(self, tmp_path, write_json):
        """Test reading every record slot."""
        write_json(
            tmp_path / "validation" / "validation-status.json",
            {
                "secrets_check": True,
                "user_authorization": True,
                "labels_check": False,
                "rate_limit_check": True,
            },
        )
        write_json(
            tmp_path / "validation" / "permission-issues.json",
            [{"tool": "Bash", "message": "denied", "severity": "high"}],
        )
        write_json(
            tmp_path / "metrics" / "metrics.json",
            {"total_cost_usd": 0.1, "num_turns": 2, "is_error": False},
        )
        write_json(
            tmp_path / "outputs" / "add-comment.json",
            {"outputType": "add-comment", "success": True},
        )

        data = await RecordStoreRepository(RecordLocations.under(tmp_path)).read()

        assert data.validation_status.labels_check is False
        assert data.permission_issues[0].tool == "Bash"
        assert data.metrics.total_cost_usd == 0.1
        assert data.output_results[0].output_type == "add-comment"

    @pytest.mark.asyncio
    async def test_malformed_records_are_ignored(self, tmp_path, write_json):
        """Test that undecodable or invalid records are treated as absent."""
        metrics = tmp_path / "metrics" / "metrics.json"
        metrics.parent.mkdir(parents=True)
        metrics.write_text("{not json")
        write_json(tmp_path / "validation" / "validation-status.json", {"secrets_check": True})
        write_json(tmp_path / "validation" / "permission-issues.json", {"not": "a list"})

        data = await RecordStoreRepository(RecordLocations.under(tmp_path)).read()

        assert data.metrics is None
        assert data.validation_status is None
        assert data.permission_issues == []

    def test_output_results_skip_non_json_and_subdirectories(self, tmp_path, write_json):
        """Test non-recursive, JSON-only, name-ordered output scanning."""
        outputs = tmp_path / "outputs"
        write_json(outputs / "b.json", {"outputType": "b", "success": False})
        write_json(outputs / "a.json", {"outputType": "a", "success": True})
        write_json(outputs / "nested" / "c.json", {"outputType": "c", "success": True})
        (outputs / "notes.txt").write_text("ignored")
        (outputs / "broken.json").write_text("[")

        results = read_output_results(outputs)

        assert [r.output_type for r in results] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_read_bundle(self, tmp_path, write_json):
        """Test reading metrics and tool usage from a bundle."""
        bundle_dir = tmp_path / "agent-x-audit-1"
        write_json(bundle_dir / "metrics.json", {"total_cost_usd": 0.2})
        write_json(
            bundle_dir / "tool-usage.json",
            {"total_calls": 3, "by_tool": {"Read": {"calls": 3, "successes": 3}}},
        )

        records = await RecordStoreRepository.read_bundle(
            AgentBundle(agent_slug="x", run_id="1", path=bundle_dir)
        )

        assert records.metrics.total_cost_usd == 0.2
        assert records.tool_usage.by_tool["Read"].calls == 3
        assert records.has_conversation is False
