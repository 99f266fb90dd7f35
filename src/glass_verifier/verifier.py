"""Contract verifier - checks one unit's implementation against its contract.

``verify`` is a pure function of a unit and its semantic model: it never
mutates the unit, performs no I/O, and produces identical results for
identical inputs. ``verify_one`` and ``verify_all`` add model building on
top, sharing an AnalysisContext across a batch.
"""

from __future__ import annotations

from pathlib import Path

import structlog

from glass_verifier.classifier import (
    ClauseEvidence,
    ClauseStrategy,
    ContractSection,
    classify_clause,
    get_default_strategies,
)
from glass_verifier.config import AnalysisConfig
from glass_verifier.models import (
    ClauseCategory,
    Unit,
    VerificationAssertion,
    VerificationResult,
    VerificationStatus,
)
from glass_verifier.semantic.base import SemanticModel
from glass_verifier.semantic.context import AnalysisContext, default_context

logger = structlog.get_logger()


class ContractVerifier:
    """Verifies units clause by clause using pluggable strategies.

    Example:
        >>> verifier = ContractVerifier()
        >>> result = verifier.verify(unit, model)
        >>> result.status
        <VerificationStatus.PROVEN: 'PROVEN'>
    """

    def __init__(
        self,
        strategies: list[ClauseStrategy] | None = None,
        config: AnalysisConfig | None = None,
    ) -> None:
        self._strategies = list(strategies) if strategies is not None else get_default_strategies()
        self.config = config or AnalysisConfig()

    def register_strategy(self, strategy: ClauseStrategy) -> None:
        """Register a strategy, taking precedence over existing ones."""
        self._strategies.insert(0, strategy)

    def verify(self, unit: Unit, model: SemanticModel | None) -> VerificationResult:
        """Verify every clause of ``unit`` against ``model``.

        Produces exactly one assertion per requires / on_success /
        on_failure / invariants entry and per declared failure mode, in
        that order. The unit passes iff every assertion passes.
        """
        evidence = ClauseEvidence(
            source=unit.implementation_text,
            model=model,
            config=self.config,
        )
        contract = unit.contract

        sections = [
            (ContractSection.REQUIRES, [c.description for c in contract.requires]),
            (ContractSection.ON_SUCCESS, [c.description for c in contract.on_success]),
            (ContractSection.ON_FAILURE, [c.description for c in contract.on_failure]),
            (ContractSection.INVARIANTS, [c.description for c in contract.invariants]),
            (ContractSection.FAILS, [f.error_type for f in contract.fails]),
        ]

        assertions: list[VerificationAssertion] = []
        for section, texts in sections:
            for text in texts:
                category = classify_clause(text, section)
                assertions.append(self._evaluate(text, category, evidence))

        status = (
            VerificationStatus.PROVEN
            if all(a.passed for a in assertions)
            else VerificationStatus.FAILED
        )

        logger.debug(
            "Unit verified",
            unit_id=unit.id,
            status=status.value,
            assertions=len(assertions),
            failed=sum(1 for a in assertions if not a.passed),
            text_only=model is None,
        )

        return VerificationResult(
            unit_id=unit.id,
            status=status,
            assertions=tuple(assertions),
            advisories=contract.advisories,
        )

    def _evaluate(
        self,
        text: str,
        category: ClauseCategory,
        evidence: ClauseEvidence,
    ) -> VerificationAssertion:
        for strategy in self._strategies:
            if strategy.can_evaluate(category):
                return strategy.evaluate(text, category, evidence)
        # Every category has a default strategy; only a custom strategy
        # list can leave one uncovered.
        raise LookupError(f"No strategy registered for clause category: {category.value}")


def verify(
    unit: Unit,
    model: SemanticModel | None,
    config: AnalysisConfig | None = None,
) -> VerificationResult:
    """Verify a unit against an already-built semantic model."""
    return ContractVerifier(config=config).verify(unit, model)


def verify_one(
    unit: Unit,
    project_root: Path | str | None = None,
    context: AnalysisContext | None = None,
) -> VerificationResult:
    """Build the unit's semantic model and verify it."""
    context = context or default_context()
    if project_root is not None:
        context.configure(project_root)
    model = context.build_model(unit)
    return ContractVerifier(config=context.config).verify(unit, model)


def verify_all(
    units: list[Unit],
    project_root: Path | str,
    context: AnalysisContext | None = None,
) -> dict[str, VerificationResult]:
    """Verify a batch of units sharing one analysis context.

    A unit that fails to parse is verified text-only; it never stops the
    rest of the batch.
    """
    context = context or default_context()
    context.configure(project_root)

    verifier = ContractVerifier(config=context.config)
    models = context.build_models(units)
    results = {unit.id: verifier.verify(unit, models[unit.id]) for unit in units}

    failed = sorted(uid for uid, r in results.items() if not r.passed)
    logger.info(
        "Verification complete",
        units=len(results),
        failed=len(failed),
        failed_units=failed,
        degraded=sum(1 for m in models.values() if m is None),
    )
    return results
