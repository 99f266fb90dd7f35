"""Tests for result summaries."""
from glass_verifier.models import Advisory, VerificationStatus
from glass_verifier.report import (
    blocking_units,
    format_result,
    format_summary,
    summarize_results,
)
from glass_verifier.verifier import verify


def _results(unit_factory):
    good = unit_factory(
        "a.good",
        "function a(input) { return input.x; }",
        requires=["input.x is N", "system.db is Up"],
    )
    bad = unit_factory(
        "b.bad",
        "function b() { return 1; }",
        requires=["input.y is N"],
        fails={"NetworkError": "retry", "Timeout": "retry"},
    )
    advised = unit_factory(
        "c.advised",
        "function c() {}",
        advisories=["fail-open policy", "needs review"],
    )
    return {u.id: verify(u, None) for u in (good, bad, advised)}


class TestSummarizeResults:
    """Tests for summarize_results()."""

    def test_counts(self, unit_factory):
        summary = summarize_results(_results(unit_factory))

        assert summary.total_units == 3
        assert summary.proven_units == 2
        assert summary.failed_units == 1
        assert summary.total_assertions == 5
        assert summary.failed_assertions == 3
        assert summary.advisories == 2
        assert summary.assertions_by_level == {
            "PROVEN": 4,
            "INSTRUMENTED": 1,
            "TESTED": 0,
            "UNVERIFIABLE": 0,
        }
        assert not summary.all_proven

    def test_empty_batch(self):
        summary = summarize_results({})
        assert summary.total_units == 0
        assert summary.all_proven
        assert summary.to_dict()["assertions_by_level"]["PROVEN"] == 0

    def test_blocking_units(self, unit_factory):
        assert blocking_units(_results(unit_factory)) == ["b.bad"]


class TestFormatting:
    """Tests for terminal output."""

    def test_proven(self, unit_factory):
        results = _results(unit_factory)
        assert format_result(results["a.good"]) == "+ a.good: PROVEN (2/2 assertions)"

    def test_failed(self, unit_factory):
        result = _results(unit_factory)["b.bad"]
        assert result.status == VerificationStatus.FAILED
        assert format_result(result) == "x b.bad: FAILED (3/3 assertions failed)"

    def test_failed_verbose(self, unit_factory):
        lines = format_result(_results(unit_factory)["b.bad"], verbose=True).splitlines()

        assert len(lines) == 4
        assert lines[1] == "    - input.y is N: input field 'y' not referenced in implementation"
        assert lines[2] == "    - NetworkError: not found in implementation"

    def test_advisories(self, unit_factory):
        result = _results(unit_factory)["c.advised"]
        assert result.advisories[0] == Advisory(description="fail-open policy")
        assert format_result(result) == "! c.advised: PROVEN with 2 advisory"

    def test_summary_line(self, unit_factory):
        summary = summarize_results(_results(unit_factory))
        assert format_summary(summary) == "Summary: 2/3 units verified, 2 advisories"

    def test_summary_line_without_advisories(self, unit_factory):
        results = _results(unit_factory)
        del results["c.advised"]
        assert format_summary(summarize_results(results)) == "Summary: 1/2 units verified"
