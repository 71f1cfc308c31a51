import pytest

from agent_audit.common.core.exceptions import UnrecognizedBundleNameError
from agent_audit.packages.audit.repositories.bundle_repository import (
    discover_bundles,
    parse_bundle_name,
)


class TestBundleRepository:
    """Test bundle naming and discovery."""

    def test_parse_bundle_name(self):
        """Test slug and run id extraction."""
        bundle = parse_bundle_name("agent-issue-triage-audit-98765")

        assert bundle.agent_slug == "issue-triage"
        assert bundle.run_id == "98765"

    def test_slug_containing_audit(self):
        """Test that the last run id segment wins."""
        bundle = parse_bundle_name("agent-audit-helper-audit-5")

        assert bundle.agent_slug == "audit-helper"
        assert bundle.run_id == "5"

    @pytest.mark.parametrize(
        "name", ["issue-triage-audit-1", "agent-triage-audit-", "agent--audit-abc"]
    )
    def test_unrecognized_names(self, name):
        """Test that malformed names raise."""
        with pytest.raises(UnrecognizedBundleNameError):
            parse_bundle_name(name)

    def test_discover_skips_files_and_unrecognized(self, tmp_path):
        """Test discovery filters and ordering."""
        (tmp_path / "agent-b-audit-1").mkdir()
        (tmp_path / "agent-a-audit-1").mkdir()
        (tmp_path / "misc").mkdir()
        (tmp_path / "agent-c-audit-1").write_text("file, not a directory")

        bundles = discover_bundles(tmp_path)

        assert [b.agent_slug for b in bundles] == ["a", "b"]
        assert bundles[0].path == tmp_path / "agent-a-audit-1"

    def test_discover_missing_directory(self, tmp_path):
        """Test that a missing directory has no bundles."""
        assert discover_bundles(tmp_path / "nope") == []
