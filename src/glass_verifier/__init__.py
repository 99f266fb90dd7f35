"""Glass Verifier - contract verification for Glass units.

Decides, clause by clause, whether an implementation module structurally
satisfies its declared contract, and plans runtime checks for whatever
cannot be proven statically.
"""

from glass_verifier.classifier import ContractSection, classify_clause
from glass_verifier.config import AnalysisConfig, load_analysis_config, parse_config
from glass_verifier.exceptions import (
    ConfigError,
    GlassVerifierError,
    UnsupportedLanguageError,
)
from glass_verifier.instrumentation import plan, summarize_instrumentation
from glass_verifier.models import (
    Advisory,
    Check,
    Clause,
    ClauseCategory,
    Contract,
    FailureMode,
    InsertionPoint,
    InstrumentationPlan,
    TargetLanguage,
    Unit,
    VerificationAssertion,
    VerificationLevel,
    VerificationResult,
    VerificationStatus,
)
from glass_verifier.report import (
    VerificationSummary,
    blocking_units,
    format_result,
    format_summary,
    summarize_results,
)
from glass_verifier.semantic import (
    AnalysisContext,
    SemanticModel,
    default_context,
    reset_analysis_cache,
)
from glass_verifier.verifier import ContractVerifier, verify, verify_all, verify_one

__version__ = "0.1.0"

__all__ = [
    # Verification
    "ContractVerifier",
    "verify",
    "verify_one",
    "verify_all",
    "classify_clause",
    "ContractSection",
    # Instrumentation
    "plan",
    "summarize_instrumentation",
    # Analysis context
    "AnalysisContext",
    "SemanticModel",
    "default_context",
    "reset_analysis_cache",
    # Configuration
    "AnalysisConfig",
    "load_analysis_config",
    "parse_config",
    # Models
    "Advisory",
    "Check",
    "Clause",
    "ClauseCategory",
    "Contract",
    "FailureMode",
    "InsertionPoint",
    "InstrumentationPlan",
    "TargetLanguage",
    "Unit",
    "VerificationAssertion",
    "VerificationLevel",
    "VerificationResult",
    "VerificationStatus",
    # Reporting
    "VerificationSummary",
    "blocking_units",
    "format_result",
    "format_summary",
    "summarize_results",
    # Errors
    "ConfigError",
    "GlassVerifierError",
    "UnsupportedLanguageError",
]
