"""
Read-through cache proxy service.
"""

from typing import Dict, Optional

from fastapi import Request
from fastapi.responses import PlainTextResponse

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config
from service_cache_proxy.app.adapters.session_client import SessionClient
from service_cache_proxy.app.adapters.upstream_client import UpstreamClient
from service_cache_proxy.app.caching.engine import CacheAsideEngine
from service_cache_proxy.app.caching.kv_store import KeyValueStore, RedisKeyValueStore
from service_cache_proxy.app.domain.auth_gate import AuthorizationGate
from service_cache_proxy.app.endpoints.catalog import EndpointCatalog, EndpointConfig


SERVICE_NAME = "cache_proxy"
SERVICE_PORT = 8000


class CacheProxyService(BaseService):
    """Cache proxy service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        store: Optional[KeyValueStore] = None,
        upstream_client: Optional[UpstreamClient] = None,
        session_client: Optional[SessionClient] = None,
        catalog: Optional[EndpointCatalog] = None,
    ):
        super().__init__(SERVICE_NAME, SERVICE_PORT, config=config)

        self.store = store or RedisKeyValueStore(self.config.redis_url)
        self.upstream_client = upstream_client or UpstreamClient(self.config.api_host)
        self.session_client = session_client or SessionClient(
            self.config.api_host,
            session_path=self.config.session_path,
            decision_field=self.config.session_decision_field,
        )
        self.catalog = catalog or EndpointCatalog(self.config.endpoints_file)

        self.engine = CacheAsideEngine(
            self.store,
            self.upstream_client,
            buffer_factor=self.config.rolling_buffer_factor,
            key_prefix=self.config.key_prefix,
            metrics=self.metrics,
        )
        self.auth_gate = AuthorizationGate(self.session_client, metrics=self.metrics)

        @self.app.on_event("shutdown")
        async def _shutdown():
            await self.store.close()

        self._setup_proxy_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.proxy_service = self

    def _setup_proxy_routes(self):
        """Register one GET route per catalog endpoint."""
        for endpoint in self.catalog.endpoints():
            self.app.add_api_route(
                endpoint.path,
                self._make_handler(endpoint),
                methods=["GET"],
                name=f"proxy:{endpoint.path}",
                response_class=PlainTextResponse,
            )
            self.logger.info(
                "Registered proxied endpoint",
                path=endpoint.path,
                policy=type(endpoint.policy).__name__,
                key_mode=endpoint.key_mode.value,
                requires_auth=endpoint.requires_auth,
            )

    def _make_handler(self, endpoint: EndpointConfig):
        async def handler(request: Request) -> PlainTextResponse:
            authorization = None
            if endpoint.requires_auth:
                authorization = await self.auth_gate.enforce(request)

            result = await self.engine.serve(
                endpoint,
                request.query_params.multi_items(),
                authorization=authorization,
            )
            return PlainTextResponse(
                result.payload,
                status_code=200,
                headers={"Cache-Control": result.cache_control},
            )

        handler.__name__ = f"proxy_{endpoint.path.strip('/').replace('/', '_') or 'root'}"
        return handler

    async def _check_dependencies(self) -> Dict[str, str]:
        return {"redis": "ok" if await self.store.ping() else "error"}


def create_app(config: Optional[ServiceConfig] = None, **overrides):
    """Create FastAPI application."""
    service = CacheProxyService(config or get_config(SERVICE_NAME, SERVICE_PORT), **overrides)
    return service.app


if __name__ == "__main__":
    service = CacheProxyService()
    service.run()
