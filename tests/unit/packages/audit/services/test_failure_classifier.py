from agent_audit.packages.audit.models.audit_data import AuditData
from agent_audit.packages.audit.models.execution_metrics import ExecutionMetrics
from agent_audit.packages.audit.models.job_statuses import JobStatuses
from agent_audit.packages.audit.models.tool_usage import PermissionIssue
from agent_audit.packages.audit.models.validation import OutputValidationResult
from agent_audit.packages.audit.services.failure_classifier import classify


class TestFailureClassifier:
    """Test failure classification rules."""

    def test_no_evidence_has_no_failures(self):
        """Test that an empty run is not a failure."""
        info = classify(JobStatuses(), AuditData())

        assert info.has_failures is False
        assert info.reasons == []

    def test_success_and_skipped_are_not_failures(self):
        """Test that success and skipped job results are ignored."""
        info = classify(
            JobStatuses(agent="success", execute_outputs="skipped"), AuditData()
        )

        assert info.has_failures is False

    def test_rate_limited_overrides_all_evidence(self):
        """Test that a rate-limited run never reports failures."""
        audit_data = AuditData(
            metrics=ExecutionMetrics(is_error=True),
            permission_issues=[PermissionIssue(tool="Bash", message="denied")],
        )

        info = classify(
            JobStatuses(agent="failure", rate_limited=True), audit_data
        )

        assert info.has_failures is False
        assert info.reasons == []

    def test_reasons_follow_rule_order(self):
        """Test that every rule contributes one reason in fixed order."""
        audit_data = AuditData(
            metrics=ExecutionMetrics(is_error=True),
            permission_issues=[
                PermissionIssue(tool="Bash", message="denied"),
                PermissionIssue(tool="Write", message="denied"),
            ],
            output_results=[
                OutputValidationResult(output_type="add-comment", success=False),
                OutputValidationResult(output_type="add-label", success=True),
                OutputValidationResult(output_type="create-pr", success=False),
            ],
        )

        info = classify(
            JobStatuses(agent="failure", execute_outputs="cancelled"), audit_data
        )

        assert info.has_failures is True
        assert info.reasons == [
            "Agent execution failed (failure)",
            "Output execution failed (cancelled)",
            "Permission/validation issues detected (2)",
            "Claude execution returned an error",
            "Output validation failed for: add-comment, create-pr",
        ]

    def test_error_metrics_alone_is_failure(self):
        """Test that an errored execution fails even when jobs succeeded."""
        info = classify(
            JobStatuses(agent="success"),
            AuditData(metrics=ExecutionMetrics(is_error=True)),
        )

        assert info.reasons == ["Claude execution returned an error"]
