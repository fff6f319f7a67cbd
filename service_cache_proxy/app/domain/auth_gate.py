"""
Authorization gate for guarded proxy endpoints.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, TYPE_CHECKING

from fastapi import Request

from shared.errors import (
    AuthCredentialInvalid,
    AuthCredentialMissing,
    AuthServiceUnavailable,
    ExternalServiceError,
)
from shared.logging import get_logger

from ..adapters.session_client import SessionClient

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


class AuthOutcome(str, Enum):
    AUTHORIZED = "authorized"
    UNAUTHORIZED = "unauthorized"
    VALIDATION_SERVICE_ERROR = "validation_service_error"


@dataclass(frozen=True)
class AuthDecision:
    """Per-request decision; never cached or persisted."""

    outcome: AuthOutcome
    reason: Optional[str] = None
    upstream_status: Optional[int] = None
    credential_missing: bool = False

    @property
    def allowed(self) -> bool:
        return self.outcome is AuthOutcome.AUTHORIZED

    @classmethod
    def authorized(cls) -> "AuthDecision":
        return cls(AuthOutcome.AUTHORIZED)

    @classmethod
    def missing_credential(cls) -> "AuthDecision":
        return cls(AuthOutcome.UNAUTHORIZED, reason=MISSING_CREDENTIAL, credential_missing=True)

    @classmethod
    def unauthorized(cls, reason: str, upstream_status: Optional[int] = None) -> "AuthDecision":
        return cls(AuthOutcome.UNAUTHORIZED, reason=reason, upstream_status=upstream_status)

    @classmethod
    def service_error(cls, reason: str) -> "AuthDecision":
        return cls(AuthOutcome.VALIDATION_SERVICE_ERROR, reason=reason)


MISSING_CREDENTIAL = "missing credential"
INVALID_CREDENTIAL = "invalid credential"
VALIDATION_REJECTED = "validation service rejected credential"


class AuthorizationGate:
    """Validates caller credentials against the session endpoint."""

    def __init__(self, session_client: SessionClient, *, metrics: Optional["MetricsCollector"] = None):
        self.session_client = session_client
        self.metrics = metrics
        self.logger = get_logger("cache_proxy.auth_gate")

    async def authorize(self, credential: Optional[str]) -> AuthDecision:
        """Decide whether ``credential`` may reach the cache-aside engine."""
        decision = await self._decide(credential)
        if self.metrics:
            self.metrics.record_auth_decision(decision.outcome.value)
        return decision

    async def _decide(self, credential: Optional[str]) -> AuthDecision:
        if not credential:
            return AuthDecision.missing_credential()

        try:
            check = await self.session_client.check_session(credential)
        except ExternalServiceError as exc:
            self.logger.error("Session validation unavailable", error=exc.message)
            return AuthDecision.service_error(exc.message)

        if not check.ok:
            return AuthDecision.unauthorized(VALIDATION_REJECTED, upstream_status=check.status_code)
        if not check.logged_in:
            return AuthDecision.unauthorized(INVALID_CREDENTIAL)
        return AuthDecision.authorized()

    async def enforce(self, request: Request) -> str:
        """
        Authorize the request or raise the matching error.

        Returns the credential so the caller can forward it upstream.
        """
        credential = request.headers.get("Authorization")
        decision = await self.authorize(credential)
        if decision.allowed:
            return credential  # type: ignore[return-value]

        self.logger.warning(
            "Request denied",
            path=request.url.path,
            outcome=decision.outcome.value,
            reason=decision.reason,
            upstream_status=decision.upstream_status,
        )
        raise decision_to_error(decision)


def decision_to_error(decision: AuthDecision) -> Exception:
    """Map a non-authorized decision to the error that renders its response."""
    if decision.outcome is AuthOutcome.VALIDATION_SERVICE_ERROR:
        return AuthServiceUnavailable(details={"reason": decision.reason})
    if decision.credential_missing:
        return AuthCredentialMissing()
    details = {}
    if decision.upstream_status is not None:
        details["upstream_status"] = decision.upstream_status
        return AuthCredentialInvalid("Session validation service returned an error", details=details)
    return AuthCredentialInvalid("Invalid token or session validation failed", details=details)
