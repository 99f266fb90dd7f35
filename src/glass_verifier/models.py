"""Core data models for the Glass contract verifier."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ============================================================================
# Enums
# ============================================================================


class TargetLanguage(str, Enum):
    """Language an implementation module is written in."""

    TYPESCRIPT = "typescript"
    JAVASCRIPT = "javascript"
    PYTHON = "python"
    RUST = "rust"


class ClauseCategory(str, Enum):
    """Category a contract clause is classified into."""

    INPUT_PRECONDITION = "input_precondition"
    SYSTEM_PRECONDITION = "system_precondition"
    PRECONDITION = "precondition"  # Generic requires text
    SUCCESS_GUARANTEE = "success_guarantee"
    FAILURE_GUARANTEE = "failure_guarantee"
    INVARIANT = "invariant"
    FAILURE_MODE = "failure_mode"

    @property
    def is_precondition(self) -> bool:
        return self in (
            ClauseCategory.INPUT_PRECONDITION,
            ClauseCategory.SYSTEM_PRECONDITION,
            ClauseCategory.PRECONDITION,
        )


class VerificationLevel(str, Enum):
    """Confidence with which an assertion was verified."""

    PROVEN = "PROVEN"  # Syntactically conclusive
    INSTRUMENTED = "INSTRUMENTED"  # Deferred to a runtime check
    TESTED = "TESTED"  # Covered by generated tests
    UNVERIFIABLE = "UNVERIFIABLE"  # Requires human judgment


class VerificationStatus(str, Enum):
    """Overall status of a verified unit."""

    PROVEN = "PROVEN"
    FAILED = "FAILED"


class InsertionPoint(str, Enum):
    """Where a runtime check is woven into emitted code."""

    PRE = "pre"
    POST = "post"


# ============================================================================
# Contract models
# ============================================================================


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class Clause(_Frozen):
    """A single free-text assertion inside a contract section."""

    description: str

    def __str__(self) -> str:
        return self.description


class FailureMode(_Frozen):
    """A declared failure mode and how it is handled."""

    error_type: str
    handling_strategy: str = ""


class Advisory(_Frozen):
    """A decision flagged for human review. Never verified."""

    description: str
    resolved: bool = False


def _coerce_clauses(value: Any) -> Any:
    if value is None:
        return ()
    if isinstance(value, (list, tuple)):
        return tuple(
            {"description": item} if isinstance(item, str) else item for item in value
        )
    return value


class Contract(_Frozen):
    """Machine-checkable contract of a unit."""

    requires: tuple[Clause, ...] = ()
    on_success: tuple[Clause, ...] = ()
    on_failure: tuple[Clause, ...] = ()
    invariants: tuple[Clause, ...] = ()
    fails: tuple[FailureMode, ...] = ()
    advisories: tuple[Advisory, ...] = ()

    @field_validator("requires", "on_success", "on_failure", "invariants", mode="before")
    @classmethod
    def _clauses_from_strings(cls, value: Any) -> Any:
        return _coerce_clauses(value)

    @field_validator("fails", mode="before")
    @classmethod
    def _fails_from_mapping(cls, value: Any) -> Any:
        # Accept the spec-file shorthand {ErrorType: "handling"}
        if isinstance(value, dict):
            return tuple(
                {"error_type": error_type, "handling_strategy": handling}
                for error_type, handling in value.items()
            )
        if value is None:
            return ()
        return value

    @field_validator("advisories", mode="before")
    @classmethod
    def _advisories_from_strings(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, (list, tuple)):
            return tuple(
                {"description": item} if isinstance(item, str) else item for item in value
            )
        return value

    @property
    def clause_count(self) -> int:
        """Number of assertions verification must produce for this contract."""
        return (
            len(self.requires)
            + len(self.on_success)
            + len(self.on_failure)
            + len(self.invariants)
            + len(self.fails)
        )


class Unit(_Frozen):
    """One spec + implementation pairing under verification.

    Produced by the upstream spec parser and never mutated afterwards.
    """

    id: str
    purpose: str = ""
    contract: Contract = Field(default_factory=Contract)
    implementation_text: str = ""
    implementation_path: str | None = None
    language: TargetLanguage = TargetLanguage.TYPESCRIPT


# ============================================================================
# Verification results
# ============================================================================


class VerificationAssertion(_Frozen):
    """Outcome of verifying one clause or failure mode."""

    assertion_text: str
    category: ClauseCategory
    passed: bool
    level: VerificationLevel
    message: str

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class VerificationResult(_Frozen):
    """Result of verifying a single unit."""

    unit_id: str
    status: VerificationStatus
    assertions: tuple[VerificationAssertion, ...] = ()
    advisories: tuple[Advisory, ...] = ()

    @property
    def passed(self) -> bool:
        return self.status == VerificationStatus.PROVEN

    @property
    def failed_assertions(self) -> list[VerificationAssertion]:
        return [a for a in self.assertions if not a.passed]

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class Check(_Frozen):
    """A runtime check the emitter weaves into output code."""

    assertion_text: str
    category: ClauseCategory
    level: VerificationLevel
    insertion_point: InsertionPoint
    guard_expression: str
    error_message: str


class InstrumentationPlan(_Frozen):
    """Runtime checks covering assertions static analysis could not prove."""

    unit_id: str
    checks: tuple[Check, ...] = ()

    @property
    def pre_checks(self) -> list[Check]:
        return [c for c in self.checks if c.insertion_point == InsertionPoint.PRE]

    @property
    def post_checks(self) -> list[Check]:
        return [c for c in self.checks if c.insertion_point == InsertionPoint.POST]

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")
