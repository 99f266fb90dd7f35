"""Instrumentation planner - runtime checks for what static analysis left open.

For every INSTRUMENTED assertion the planner describes one runtime check:
where it goes (before or after the unit runs), the guard it enforces, and
the message raised when the guard fails. The plan is descriptive data;
weaving it into emitted code is the emitter's job.
"""

from __future__ import annotations

import structlog

from glass_verifier.models import (
    Check,
    ClauseCategory,
    InsertionPoint,
    InstrumentationPlan,
    Unit,
    VerificationAssertion,
    VerificationLevel,
    VerificationResult,
)

logger = structlog.get_logger()

_GUARD_PREFIX = {
    ClauseCategory.INPUT_PRECONDITION: "require",
    ClauseCategory.SYSTEM_PRECONDITION: "require",
    ClauseCategory.PRECONDITION: "require",
    ClauseCategory.SUCCESS_GUARANTEE: "ensure on success",
    ClauseCategory.FAILURE_GUARANTEE: "ensure on failure",
    ClauseCategory.INVARIANT: "invariant",
}

_VIOLATION_LABEL = {
    ClauseCategory.INPUT_PRECONDITION: "Precondition",
    ClauseCategory.SYSTEM_PRECONDITION: "Precondition",
    ClauseCategory.PRECONDITION: "Precondition",
    ClauseCategory.SUCCESS_GUARANTEE: "Postcondition",
    ClauseCategory.FAILURE_GUARANTEE: "Postcondition",
    ClauseCategory.INVARIANT: "Invariant",
}


def needs_instrumentation(assertion: VerificationAssertion) -> bool:
    """Only passing INSTRUMENTED assertions get a runtime check."""
    return assertion.level == VerificationLevel.INSTRUMENTED and assertion.passed


def build_check(unit_id: str, assertion: VerificationAssertion) -> Check:
    """Describe the runtime check covering one assertion."""
    category = assertion.category
    insertion = InsertionPoint.PRE if category.is_precondition else InsertionPoint.POST
    prefix = _GUARD_PREFIX.get(category, "assert")
    label = _VIOLATION_LABEL.get(category, "Assertion")

    return Check(
        assertion_text=assertion.assertion_text,
        category=category,
        level=assertion.level,
        insertion_point=insertion,
        guard_expression=f"{prefix}: {assertion.assertion_text}",
        error_message=f"{label} violated in {unit_id}: {assertion.assertion_text}",
    )


def plan(unit: Unit, result: VerificationResult) -> InstrumentationPlan:
    """Plan runtime checks for the unverified assertions of ``result``.

    Raises:
        ValueError: If ``result`` was produced for a different unit.
    """
    if result.unit_id != unit.id:
        raise ValueError(
            f"Verification result for '{result.unit_id}' does not belong to unit '{unit.id}'"
        )

    checks = tuple(
        build_check(unit.id, assertion)
        for assertion in result.assertions
        if needs_instrumentation(assertion)
    )

    logger.debug(
        "Instrumentation planned",
        unit_id=unit.id,
        pre=sum(1 for c in checks if c.insertion_point == InsertionPoint.PRE),
        post=sum(1 for c in checks if c.insertion_point == InsertionPoint.POST),
    )
    return InstrumentationPlan(unit_id=unit.id, checks=checks)


def summarize_instrumentation(instrumentation: InstrumentationPlan) -> str:
    """Human-readable summary of a plan, one line per check."""
    if not instrumentation.checks:
        return f"{instrumentation.unit_id}: No runtime instrumentation needed"

    lines = [f"{instrumentation.unit_id}: {len(instrumentation.checks)} runtime check(s)"]
    for check in instrumentation.checks:
        tag = "[PRE]" if check.insertion_point == InsertionPoint.PRE else "[POST]"
        lines.append(f"  {tag} {check.assertion_text}")
    return "\n".join(lines)
