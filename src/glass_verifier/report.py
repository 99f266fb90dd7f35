"""Summaries of verification results for terminals and emission gating."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from glass_verifier.models import VerificationLevel, VerificationResult


@dataclass
class VerificationSummary:
    """Aggregate counts over a batch of verification results."""

    total_units: int = 0
    proven_units: int = 0
    failed_units: int = 0
    total_assertions: int = 0
    failed_assertions: int = 0
    assertions_by_level: dict[str, int] = field(default_factory=dict)
    advisories: int = 0

    @property
    def all_proven(self) -> bool:
        return self.failed_units == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_units": self.total_units,
            "proven_units": self.proven_units,
            "failed_units": self.failed_units,
            "total_assertions": self.total_assertions,
            "failed_assertions": self.failed_assertions,
            "assertions_by_level": dict(self.assertions_by_level),
            "advisories": self.advisories,
        }


def summarize_results(results: dict[str, VerificationResult]) -> VerificationSummary:
    """Count units, assertions and advisories across a batch."""
    summary = VerificationSummary(
        assertions_by_level={level.value: 0 for level in VerificationLevel},
    )
    for result in results.values():
        summary.total_units += 1
        if result.passed:
            summary.proven_units += 1
        else:
            summary.failed_units += 1
        summary.advisories += len(result.advisories)
        for assertion in result.assertions:
            summary.total_assertions += 1
            summary.assertions_by_level[assertion.level.value] += 1
            if not assertion.passed:
                summary.failed_assertions += 1
    return summary


def blocking_units(results: dict[str, VerificationResult]) -> list[str]:
    """Units whose failed verification must block code emission."""
    return sorted(unit_id for unit_id, result in results.items() if not result.passed)


def format_result(result: VerificationResult, verbose: bool = False) -> str:
    """One status line per unit, plus failed assertions when verbose."""
    total = len(result.assertions)
    failed = result.failed_assertions

    if failed:
        lines = [
            f"x {result.unit_id}: FAILED ({len(failed)}/{total} assertions failed)"
        ]
        if verbose:
            lines.extend(f"    - {a.assertion_text}: {a.message}" for a in failed)
        return "\n".join(lines)

    if result.advisories:
        return f"! {result.unit_id}: PROVEN with {len(result.advisories)} advisory"
    return f"+ {result.unit_id}: PROVEN ({total}/{total} assertions)"


def format_summary(summary: VerificationSummary) -> str:
    line = f"Summary: {summary.proven_units}/{summary.total_units} units verified"
    if summary.advisories:
        line += f", {summary.advisories} advisories"
    return line
