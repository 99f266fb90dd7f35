"""Shared fixtures for verifier tests."""

from typing import Any

import pytest

from glass_verifier.models import Contract, TargetLanguage, Unit
from glass_verifier.semantic.context import AnalysisContext, reset_analysis_cache


def make_unit(
    unit_id: str,
    implementation: str = "// stub",
    language: TargetLanguage = TargetLanguage.TYPESCRIPT,
    **contract: Any,
) -> Unit:
    """Build a minimal unit; keyword arguments become contract sections."""
    return Unit(
        id=unit_id,
        purpose=f"Test unit {unit_id}",
        contract=Contract(**contract),
        implementation_text=implementation,
        language=language,
    )


@pytest.fixture
def unit_factory():
    return make_unit


@pytest.fixture
def context(tmp_path) -> AnalysisContext:
    """Isolated analysis context rooted in an empty project directory."""
    return AnalysisContext(project_root=tmp_path)


@pytest.fixture(autouse=True)
def reset_default_context():
    """Keep the process-wide context from leaking between tests."""
    reset_analysis_cache()
    yield
    reset_analysis_cache()


AUTH_IMPLEMENTATION = """export async function authenticateUser(input: { email: string; password: string }) {
  try {
    const user = await findUser(input.email);
    if (!user) throw new Error("InvalidCredentials");
    const valid = await comparePassword(input.password, user.passwordHash);
    if (!valid) throw new Error("InvalidCredentials");
    const session = await createSession(user.id);
    await logAuthAttempt(user.id, true);
    return { success: true, session };
  } catch (error) {
    if (error instanceof DatabaseUnavailable) {
      throw new Error("ServiceUnavailable");
    }
    if (error instanceof SessionStoreUnavailable) {
      throw new Error("ServiceUnavailable");
    }
    if (error instanceof RateLimitExceeded) {
      throw new Error("RateLimited");
    }
    throw new Error("UnexpectedError");
  }
}"""


@pytest.fixture
def auth_unit() -> Unit:
    """The authenticate_user example unit with a complete contract."""
    return make_unit(
        "auth.authenticate_user",
        AUTH_IMPLEMENTATION,
        requires=[
            "input.email is String",
            "input.password is String",
            "system.database is Active",
            "system.session_store is Active",
        ],
        on_success=[
            "result is AuthSuccess",
            "result.session is ValidSession",
            "result.session.userId == verified_user.id",
            "audit_log appended with AuthAttempt(success: true)",
        ],
        on_failure=[
            "result is AuthFailure",
            "result.reason in [InvalidCredentials, AccountLocked, RateLimited, ServiceUnavailable]",
            "no session created",
            "audit_log appended with AuthAttempt(success: false)",
        ],
        invariants=[
            "user.password_hash never exposed in output or logs",
            "user.password_hash never held in memory after comparison",
            "rate_limit.state correctly updated",
        ],
        fails={
            "DatabaseUnavailable": "retry(3) then Error(ServiceUnavailable)",
            "SessionStoreUnavailable": "retry(3) then Error(ServiceUnavailable)",
            "RateLimitExceeded": "Error(RateLimited, lockout: remaining_seconds)",
            "UnexpectedError": "Error(ServiceUnavailable), alert(ops-team)",
        },
        advisories=["rate_limit_login uses fail-open policy (see unit for details)"],
    )
