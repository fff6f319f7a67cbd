"""
Cache-aside engine: store lookup, upstream fallback, store population.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple, TYPE_CHECKING

from shared.errors import UpstreamFetchError
from shared.logging import get_logger

from .cache_keys import QueryParams, derive_cache_key, normalize_query
from .expiration import ExpirationWindow, compute_expiration
from .kv_store import KeyValueStore

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from ..adapters.upstream_client import UpstreamClient
    from ..endpoints.catalog import EndpointConfig
    from shared.metrics import MetricsCollector


SOURCE_STORE = "store"
SOURCE_UPSTREAM = "upstream"


@dataclass(frozen=True)
class CachedResponse:
    """Payload plus the freshness window advertised to the client."""

    payload: str
    max_age_seconds: int
    source: str
    cache_key: str

    @property
    def cache_control(self) -> str:
        return f"public, max-age={self.max_age_seconds}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CacheAsideEngine:
    """Serves endpoint payloads from the store, falling back to the upstream API."""

    def __init__(
        self,
        store: KeyValueStore,
        upstream: "UpstreamClient",
        *,
        buffer_factor: float = 1.3,
        key_prefix: str = "cache_proxy",
        metrics: Optional["MetricsCollector"] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        if buffer_factor <= 1.0:
            raise ValueError("buffer_factor must be greater than 1")
        self.store = store
        self.upstream = upstream
        self.buffer_factor = buffer_factor
        self.key_prefix = key_prefix
        self.metrics = metrics
        self.clock = clock
        self.logger = get_logger("cache_proxy.engine")

    def cache_key(self, endpoint: "EndpointConfig", query_params: QueryParams) -> str:
        return derive_cache_key(endpoint.path, query_params, endpoint.key_mode, prefix=self.key_prefix)

    def upstream_params(self, endpoint: "EndpointConfig", query_params: QueryParams) -> List[Tuple[str, str]]:
        """Query sent upstream: forwarded client params, then the endpoint's fixed params."""
        fixed = dict(endpoint.upstream_params)
        params: List[Tuple[str, str]] = []
        if endpoint.forward_query:
            params.extend(pair for pair in normalize_query(query_params) if pair[0] not in fixed)
        params.extend(endpoint.upstream_params)
        return params

    async def serve(
        self,
        endpoint: "EndpointConfig",
        query_params: QueryParams = (),
        authorization: Optional[str] = None,
    ) -> CachedResponse:
        """
        Return the payload for ``endpoint``.

        Raises UpstreamFetchError when the store misses and the upstream
        fetch fails; nothing is written in that case. Store errors propagate
        as StoreUnavailableError.
        """
        cache_key = self.cache_key(endpoint, query_params)

        cached = await self.store.get(cache_key)
        # An empty string is a valid cached payload; only None is a miss.
        if cached is not None:
            self._record_lookup(endpoint, hit=True)
            self.logger.debug("Store hit", endpoint=endpoint.path, key=cache_key)
            window = self._window(endpoint)
            return CachedResponse(
                payload=cached,
                max_age_seconds=self._client_max_age(endpoint, window),
                source=SOURCE_STORE,
                cache_key=cache_key,
            )

        self._record_lookup(endpoint, hit=False)
        self.logger.debug("Store miss", endpoint=endpoint.path, key=cache_key)

        try:
            payload = await self.upstream.fetch(
                endpoint.path,
                params=self.upstream_params(endpoint, query_params),
                authorization=authorization,
            )
        except UpstreamFetchError:
            self._record_fetch(endpoint, success=False)
            raise
        self._record_fetch(endpoint, success=True)

        window = self._window(endpoint)
        await self.store.put(cache_key, payload, window.store_expiration)

        return CachedResponse(
            payload=payload,
            max_age_seconds=self._client_max_age(endpoint, window),
            source=SOURCE_UPSTREAM,
            cache_key=cache_key,
        )

    def _window(self, endpoint: "EndpointConfig") -> ExpirationWindow:
        return compute_expiration(endpoint.policy, self.clock(), buffer_factor=self.buffer_factor)

    @staticmethod
    def _client_max_age(endpoint: "EndpointConfig", window: ExpirationWindow) -> int:
        if endpoint.edge_max_age_seconds is None:
            return window.client_freshness_seconds
        return min(endpoint.edge_max_age_seconds, window.client_freshness_seconds)

    def _record_lookup(self, endpoint: "EndpointConfig", hit: bool) -> None:
        if self.metrics:
            self.metrics.record_cache_lookup(endpoint.path, hit)

    def _record_fetch(self, endpoint: "EndpointConfig", success: bool) -> None:
        if self.metrics:
            self.metrics.record_upstream_fetch(endpoint.path, success)
