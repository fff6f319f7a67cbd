"""
Upstream API client for the cache proxy.
"""

from typing import Dict, Optional, Sequence, Tuple

import httpx

from shared.errors import UpstreamFetchError
from shared.logging import get_logger


class UpstreamClient:
    """Fetches raw payloads from the origin API. One attempt per call, no retries."""

    def __init__(self, api_host: str):
        self.base_url = api_host.rstrip('/')
        self.logger = get_logger("cache_proxy.upstream_client")

    def build_url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    async def fetch(
        self,
        path: str,
        params: Optional[Sequence[Tuple[str, str]]] = None,
        authorization: Optional[str] = None,
    ) -> str:
        """
        GET ``{api_host}{path}`` and return the body as text.

        The Authorization header is forwarded only when the caller supplied one.
        Non-2xx statuses and transport errors both raise UpstreamFetchError.
        """
        url = self.build_url(path)
        headers: Dict[str, str] = {}
        if authorization:
            headers["Authorization"] = authorization

        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(url, params=list(params or []), headers=headers)
        except httpx.HTTPError as exc:
            self.logger.error("Upstream request failed", url=url, error=str(exc))
            raise UpstreamFetchError(
                f"Failed to fetch from original API. {exc}",
                details={"url": url},
            ) from exc

        if not response.is_success:
            self.logger.error(
                "Upstream returned error status",
                url=url,
                status_code=response.status_code,
            )
            raise UpstreamFetchError(
                f"Failed to fetch from original API. Status: {response.status_code}",
                status_code=response.status_code,
                details={"url": url},
            )

        self.logger.debug("Upstream payload retrieved", url=url, size=len(response.content))
        return response.text
