"""Tests for the instrumentation planner."""
import pytest

from glass_verifier.instrumentation import plan, summarize_instrumentation
from glass_verifier.models import (
    ClauseCategory,
    InsertionPoint,
    InstrumentationPlan,
    VerificationLevel,
)
from glass_verifier.verifier import verify


class TestPlan:
    """Tests for plan()."""

    def test_one_check_per_instrumented_assertion(self, auth_unit):
        result = verify(auth_unit, None)
        instrumentation = plan(auth_unit, result)

        instrumented = [a for a in result.assertions if a.level == VerificationLevel.INSTRUMENTED]
        assert len(instrumentation.checks) == len(instrumented)
        assert [c.assertion_text for c in instrumentation.checks] == [
            a.assertion_text for a in instrumented
        ]
        assert all(c.level == VerificationLevel.INSTRUMENTED for c in instrumentation.checks)

    def test_no_checks_for_proven_or_failed(self, unit_factory):
        unit = unit_factory(
            "test.proven",
            "function f(input) { return input.x; }",
            requires=["input.x is Number", "input.y is Number"],
            fails={"NetworkError": "retry"},
        )
        instrumentation = plan(unit, verify(unit, None))

        assert instrumentation.checks == ()
        assert instrumentation.unit_id == "test.proven"

    def test_system_precondition_is_pre_check(self, unit_factory):
        unit = unit_factory(
            "test.system",
            requires=["system.database is Active"],
            on_success=["audit_log appended"],
            invariants=["state correctly updated"],
        )
        instrumentation = plan(unit, verify(unit, None))

        assert len(instrumentation.pre_checks) == 1
        pre = instrumentation.pre_checks[0]
        assert "system" in pre.assertion_text
        assert pre.insertion_point == InsertionPoint.PRE
        assert pre.guard_expression == "require: system.database is Active"
        assert pre.error_message == "Precondition violated in test.system: system.database is Active"

        post = instrumentation.post_checks
        assert [c.category for c in post] == [
            ClauseCategory.SUCCESS_GUARANTEE,
            ClauseCategory.INVARIANT,
        ]
        assert post[0].guard_expression == "ensure on success: audit_log appended"
        assert post[1].error_message.startswith("Invariant violated in test.system")

    def test_failure_guarantee_guard(self, unit_factory):
        unit = unit_factory("test.failure", on_failure=["no session created"])
        check = plan(unit, verify(unit, None)).checks[0]

        assert check.guard_expression == "ensure on failure: no session created"
        assert check.error_message.startswith("Postcondition violated")

    def test_mismatched_result_raises(self, unit_factory):
        unit = unit_factory("test.a")
        other = unit_factory("test.b")

        with pytest.raises(ValueError, match="test.b"):
            plan(unit, verify(other, None))

    def test_to_dict(self, unit_factory):
        unit = unit_factory("test.dict", requires=["system.cache is Warm"])
        data = plan(unit, verify(unit, None)).to_dict()

        assert data["unit_id"] == "test.dict"
        assert data["checks"][0]["insertion_point"] == "pre"
        assert data["checks"][0]["level"] == "INSTRUMENTED"


class TestSummarizeInstrumentation:
    """Tests for summarize_instrumentation()."""

    def test_empty_plan(self):
        summary = summarize_instrumentation(InstrumentationPlan(unit_id="test.empty"))
        assert summary == "test.empty: No runtime instrumentation needed"

    def test_lists_checks(self, unit_factory):
        unit = unit_factory(
            "test.summary",
            requires=["system.database is Active"],
            on_success=["result is Valid"],
        )
        summary = summarize_instrumentation(plan(unit, verify(unit, None)))

        assert summary.splitlines() == [
            "test.summary: 2 runtime check(s)",
            "  [PRE] system.database is Active",
            "  [POST] result is Valid",
        ]
