"""
Session validation client for the authorization gate.
"""

from dataclasses import dataclass
from typing import Optional

import httpx

from shared.errors import ExternalServiceError
from shared.logging import get_logger


@dataclass(frozen=True)
class SessionCheck:
    """Outcome of a call to the session validation endpoint."""

    status_code: int
    logged_in: bool = False

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class SessionClient:
    """Asks the upstream API whether a credential belongs to a live session."""

    def __init__(self, api_host: str, session_path: str = "/users/is-login", decision_field: str = "data"):
        self.session_url = f"{api_host.rstrip('/')}{session_path}"
        self.decision_field = decision_field
        self.logger = get_logger("cache_proxy.session_client")

    async def check_session(self, authorization: str) -> SessionCheck:
        """
        Forward ``authorization`` to the session endpoint.

        A non-2xx answer is returned as-is for the caller to judge. Transport
        failures and 2xx bodies that are not a JSON object raise
        ExternalServiceError.
        """
        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(
                    self.session_url,
                    headers={"Authorization": authorization},
                )
        except httpx.HTTPError as exc:
            self.logger.error("Session validation request failed", error=str(exc))
            raise ExternalServiceError(
                service="session_service",
                message="unreachable",
                details={"error": str(exc)},
            ) from exc

        if not response.is_success:
            self.logger.info("Session validation rejected", status_code=response.status_code)
            return SessionCheck(status_code=response.status_code)

        body = self._parse_body(response)
        return SessionCheck(
            status_code=response.status_code,
            logged_in=body.get(self.decision_field) is True,
        )

    def _parse_body(self, response: httpx.Response) -> dict:
        try:
            body: Optional[object] = response.json()
        except ValueError as exc:
            self.logger.error("Session validation returned malformed body", error=str(exc))
            raise ExternalServiceError(
                service="session_service",
                message="malformed response",
                details={"status_code": response.status_code},
            ) from exc

        if not isinstance(body, dict):
            raise ExternalServiceError(
                service="session_service",
                message="malformed response",
                details={"status_code": response.status_code},
            )
        return body
