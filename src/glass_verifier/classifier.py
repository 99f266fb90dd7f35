"""Assertion classifier: maps contract clauses to verification strategies.

Each clause is classified by the contract section it lives in and by its
lexical prefix, then handed to the strategy for its category. Strategies
always apply the text-level check and use the semantic model, when one
is available, as additional evidence. A missing model (unparseable
source, unsupported language) never raises; every strategy branches on
it explicitly.

Rules, by category:

  input_precondition   ``input.<field> ...`` - PROVEN, passes iff the field
                       is referenced (parameter member access, destructured
                       parameter, or whole-word text match)
  system_precondition  ``system.<dep> ...`` - INSTRUMENTED, passes
  precondition         any other requires text - INSTRUMENTED, passes
  success/failure      INSTRUMENTED, passes; ``result is T`` is PROVEN when
  guarantee            a top-level function declares T in its return type
  invariant            exposure clauses are PROVEN (fail iff the sensitive
                       name reaches a logging call); without a clean model
                       a name the text cannot account for is INSTRUMENTED;
                       memory-lifetime and other invariants are INSTRUMENTED
  failure_mode         PROVEN, passes iff the error type appears as a whole
                       word in the implementation text
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum

from glass_verifier import patterns
from glass_verifier.config import AnalysisConfig
from glass_verifier.models import (
    ClauseCategory,
    VerificationAssertion,
    VerificationLevel,
)
from glass_verifier.semantic.base import SemanticModel


class ContractSection(str, Enum):
    """Contract section a clause was declared in."""

    REQUIRES = "requires"
    ON_SUCCESS = "on_success"
    ON_FAILURE = "on_failure"
    INVARIANTS = "invariants"
    FAILS = "fails"


INPUT_PREFIX = "input."
SYSTEM_PREFIX = "system."


def classify_clause(text: str, section: ContractSection) -> ClauseCategory:
    """Infer the category of a clause from its section and lexical prefix."""
    if section == ContractSection.REQUIRES:
        stripped = text.strip()
        if stripped.startswith(INPUT_PREFIX):
            return ClauseCategory.INPUT_PRECONDITION
        if stripped.startswith(SYSTEM_PREFIX):
            return ClauseCategory.SYSTEM_PRECONDITION
        return ClauseCategory.PRECONDITION
    if section == ContractSection.ON_SUCCESS:
        return ClauseCategory.SUCCESS_GUARANTEE
    if section == ContractSection.ON_FAILURE:
        return ClauseCategory.FAILURE_GUARANTEE
    if section == ContractSection.INVARIANTS:
        return ClauseCategory.INVARIANT
    return ClauseCategory.FAILURE_MODE


@dataclass(frozen=True)
class ClauseEvidence:
    """Everything a strategy may inspect for one unit."""

    source: str
    model: SemanticModel | None
    config: AnalysisConfig = field(default_factory=AnalysisConfig)


class ClauseStrategy(ABC):
    """Strategy for verifying clauses of one or more categories."""

    @abstractmethod
    def can_evaluate(self, category: ClauseCategory) -> bool:
        """Check if this strategy handles the given category."""
        pass

    @abstractmethod
    def evaluate(
        self,
        text: str,
        category: ClauseCategory,
        evidence: ClauseEvidence,
    ) -> VerificationAssertion:
        """Verify one clause and return its assertion."""
        pass

    def _assertion(
        self,
        text: str,
        category: ClauseCategory,
        passed: bool,
        level: VerificationLevel,
        message: str,
    ) -> VerificationAssertion:
        return VerificationAssertion(
            assertion_text=text,
            category=category,
            passed=passed,
            level=level,
            message=message,
        )


class InputPreconditionStrategy(ClauseStrategy):
    """``input.<field>`` clauses: the field must be read by the implementation."""

    def can_evaluate(self, category: ClauseCategory) -> bool:
        return category == ClauseCategory.INPUT_PRECONDITION

    def evaluate(self, text, category, evidence):
        subject = patterns.clause_subject(text) or ""
        path = subject[len(INPUT_PREFIX):] if subject.startswith(INPUT_PREFIX) else subject
        field_name = patterns.leaf(path) if path else ""

        if not field_name:
            return self._assertion(text, category, False, VerificationLevel.PROVEN,
                                   "no input field named in precondition")

        if evidence.model is not None:
            found = self._model_reference(path, field_name, evidence.model)
            if found:
                return self._assertion(text, category, True, VerificationLevel.PROVEN,
                                       f"input field '{field_name}' {found}")

        if patterns.contains_word(evidence.source, field_name):
            return self._assertion(text, category, True, VerificationLevel.PROVEN,
                                   f"input field '{field_name}' referenced in implementation text")

        return self._assertion(text, category, False, VerificationLevel.PROVEN,
                               f"input field '{field_name}' not referenced in implementation")

    def _model_reference(self, path: str, field_name: str, model: SemanticModel) -> str | None:
        for fn in model.functions:
            for param in fn.parameters:
                if f"{param.name}.{path}" in model.member_paths:
                    return f"read as {param.name}.{path} in {fn.name}()"
                for key, local in param.destructured:
                    if key == field_name and local in model.identifiers:
                        return f"destructured from a parameter of {fn.name}() and used"
        return None


class SystemPreconditionStrategy(ClauseStrategy):
    """External dependencies cannot be checked from local syntax."""

    def can_evaluate(self, category: ClauseCategory) -> bool:
        return category == ClauseCategory.SYSTEM_PRECONDITION

    def evaluate(self, text, category, evidence):
        return self._assertion(text, category, True, VerificationLevel.INSTRUMENTED,
                               "external dependency, checked at runtime")


class GuaranteeStrategy(ClauseStrategy):
    """Guarantees and generic preconditions, deferred to runtime checks."""

    def can_evaluate(self, category: ClauseCategory) -> bool:
        return category in (
            ClauseCategory.PRECONDITION,
            ClauseCategory.SUCCESS_GUARANTEE,
            ClauseCategory.FAILURE_GUARANTEE,
        )

    def evaluate(self, text, category, evidence):
        if category != ClauseCategory.PRECONDITION and evidence.model is not None:
            type_name = patterns.result_type(text)
            if type_name:
                for fn in evidence.model.functions:
                    if fn.return_type and patterns.contains_word(fn.return_type, type_name):
                        return self._assertion(
                            text, category, True, VerificationLevel.PROVEN,
                            f"{fn.name}() declares return type {fn.return_type}",
                        )

        return self._assertion(text, category, True, VerificationLevel.INSTRUMENTED,
                               "not statically provable, checked at runtime")


class InvariantStrategy(ClauseStrategy):
    """Exposure invariants are checked syntactically; the rest at runtime."""

    def can_evaluate(self, category: ClauseCategory) -> bool:
        return category == ClauseCategory.INVARIANT

    def evaluate(self, text, category, evidence):
        if patterns.is_exposure_clause(text):
            subject = patterns.exposure_subject(text)
            if subject is None:
                return self._assertion(text, category, True, VerificationLevel.INSTRUMENTED,
                                       "no sensitive identifier named, checked at runtime")
            return self._exposure(text, category, patterns.leaf(subject), evidence)

        if patterns.is_memory_clause(text):
            return self._assertion(text, category, True, VerificationLevel.INSTRUMENTED,
                                   "memory lifetime cannot be checked syntactically")

        return self._assertion(text, category, True, VerificationLevel.INSTRUMENTED,
                               "not statically provable, checked at runtime")

    def _exposure(self, text, category, name, evidence):
        # A recovered tree may have lost the very call that leaks the value
        if evidence.model is None or not evidence.model.parse_ok:
            return self._text_exposure(text, category, name, evidence)

        config = evidence.config
        safe_use = False
        for call in evidence.model.calls:
            if name not in call.arguments:
                continue
            if patterns.is_sink_callee(call.callee, config.log_sinks):
                return self._assertion(text, category, False, VerificationLevel.PROVEN,
                                       f"'{name}' passed to {call.callee}() on line {call.line}")
            if patterns.is_safe_callee(call.callee, config.safe_calls):
                safe_use = True

        if safe_use:
            return self._assertion(text, category, True, VerificationLevel.PROVEN,
                                   f"'{name}' only used in comparison or hashing calls")
        return self._assertion(text, category, True, VerificationLevel.PROVEN,
                               f"'{name}' not passed to any logging call")

    def _text_exposure(self, text, category, name, evidence):
        source = evidence.source
        config = evidence.config

        if patterns.text_logs_word(source, name, config.log_sinks):
            return self._assertion(text, category, False, VerificationLevel.PROVEN,
                                   f"'{name}' passed to a logging call")
        if not patterns.contains_word(source, name):
            return self._assertion(text, category, True, VerificationLevel.PROVEN,
                                   f"'{name}' not referenced in implementation")
        if patterns.word_only_in_calls(source, name, config.safe_calls):
            return self._assertion(text, category, True, VerificationLevel.PROVEN,
                                   f"'{name}' only used in comparison or hashing calls")
        # Referenced outside any recognisable call; text alone cannot rule out a leak
        return self._assertion(text, category, True, VerificationLevel.INSTRUMENTED,
                               f"'{name}' referenced without a semantic model, checked at runtime")


class FailureModeStrategy(ClauseStrategy):
    """Every declared failure mode must be named in the implementation."""

    def can_evaluate(self, category: ClauseCategory) -> bool:
        return category == ClauseCategory.FAILURE_MODE

    def evaluate(self, text, category, evidence):
        if not patterns.contains_word(evidence.source, text):
            return self._assertion(text, category, False, VerificationLevel.PROVEN,
                                   "not found in implementation")

        message = "referenced in implementation"
        if evidence.model is not None and text in evidence.model.handled_error_types:
            message = "referenced in implementation (tested in an error handler)"
        return self._assertion(text, category, True, VerificationLevel.PROVEN, message)


def get_default_strategies() -> list[ClauseStrategy]:
    """Strategies covering every clause category."""
    return [
        InputPreconditionStrategy(),
        SystemPreconditionStrategy(),
        GuaranteeStrategy(),
        InvariantStrategy(),
        FailureModeStrategy(),
    ]
