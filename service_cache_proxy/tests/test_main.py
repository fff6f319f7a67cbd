"""
Route-level tests for the cache proxy service.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from service_cache_proxy.app.adapters.session_client import SessionCheck, SessionClient
from service_cache_proxy.app.adapters.upstream_client import UpstreamClient
from service_cache_proxy.app.caching.expiration import StoreExpiration
from service_cache_proxy.app.caching.kv_store import KeyValueStore
from service_cache_proxy.app.endpoints.catalog import EndpointCatalog
from service_cache_proxy.app.main import create_app
from shared.config import get_config
from shared.errors import ExternalServiceError, StoreUnavailableError, UpstreamFetchError


@pytest.fixture
def store():
    store = AsyncMock(spec=KeyValueStore)
    store.get.return_value = None
    store.ping.return_value = True
    return store


@pytest.fixture
def upstream():
    upstream = MagicMock(spec=UpstreamClient)
    upstream.fetch = AsyncMock(return_value="fresh-body")
    return upstream


@pytest.fixture
def session_client():
    client = MagicMock(spec=SessionClient)
    client.check_session = AsyncMock(return_value=SessionCheck(status_code=200, logged_in=True))
    return client


@pytest.fixture
def client(store, upstream, session_client):
    config = get_config(
        "cache_proxy",
        8000,
        api_host="http://upstream.test",
        allowed_origins="https://app.example.com",
    )
    app = create_app(config, store=store, upstream_client=upstream, session_client=session_client)
    return TestClient(app)


@pytest.fixture
def service(client):
    return client.app.state.proxy_service


def test_store_hit_served_without_upstream(client, store, upstream):
    store.get.return_value = "cached-body"

    response = client.get("/market/momentum/range/1")

    assert response.status_code == 200
    assert response.text == "cached-body"
    assert response.headers["Cache-Control"] == "public, max-age=10800"
    upstream.fetch.assert_not_called()
    store.put.assert_not_called()


def test_store_miss_fetches_and_populates(client, store, upstream):
    response = client.get("/market/momentum/range/1")

    assert response.status_code == 200
    assert response.text == "fresh-body"
    assert response.headers["Cache-Control"] == "public, max-age=10800"
    store.put.assert_awaited_once_with(
        "cache_proxy:data:/market/momentum/range/1",
        "fresh-body",
        StoreExpiration(ttl_seconds=14040),
    )


def test_upstream_failure_returns_500_plain_text(client, store, upstream):
    upstream.fetch.side_effect = UpstreamFetchError(
        "Failed to fetch from original API. Status: 503", status_code=503
    )

    response = client.get("/market/momentum/range/1")

    assert response.status_code == 500
    assert response.text.startswith("Error fetching data:")
    assert "503" in response.text
    store.put.assert_not_called()


def test_store_failure_returns_500(client, store, upstream):
    store.get.side_effect = StoreUnavailableError()

    response = client.get("/market/momentum/range/1")

    assert response.status_code == 500
    assert response.json()["code"] == "STORE_UNAVAILABLE"
    upstream.fetch.assert_not_called()


def test_guarded_endpoint_without_credential_is_401(client, store, upstream, session_client):
    response = client.get("/market/momentum/range/3")

    assert response.status_code == 401
    body = response.json()
    assert body["error"] == "Unauthorized"
    assert body["code"] == "AUTH_CREDENTIAL_MISSING"
    session_client.check_session.assert_not_called()
    store.get.assert_not_called()
    store.put.assert_not_called()
    upstream.fetch.assert_not_called()


def test_guarded_endpoint_never_reaches_engine_without_credential(client, service):
    service.engine.serve = AsyncMock()

    response = client.get("/market/momentum/range/7")

    assert response.status_code == 401
    service.engine.serve.assert_not_called()


def test_guarded_endpoint_forwards_credential(client, upstream, session_client):
    response = client.get("/market/momentum/range/3", headers={"Authorization": "Bearer token-1"})

    assert response.status_code == 200
    assert response.headers["Cache-Control"] == "public, max-age=72000"
    session_client.check_session.assert_awaited_once_with("Bearer token-1")
    upstream.fetch.assert_awaited_once_with(
        "/market/momentum/range/3", params=[], authorization="Bearer token-1"
    )


def test_guarded_endpoint_invalid_session(client, store, session_client):
    session_client.check_session.return_value = SessionCheck(status_code=200, logged_in=False)

    response = client.get("/market/momentum/range/30", headers={"Authorization": "Bearer stale"})

    assert response.status_code == 401
    assert response.json()["code"] == "AUTH_CREDENTIAL_INVALID"
    store.get.assert_not_called()


def test_guarded_endpoint_validation_service_down(client, store, session_client):
    session_client.check_session.side_effect = ExternalServiceError("session_service", "unreachable")

    response = client.get("/market/momentum/range/30", headers={"Authorization": "Bearer token-1"})

    assert response.status_code == 500
    assert response.json()["code"] == "AUTH_SERVICE_UNAVAILABLE"
    store.get.assert_not_called()


def test_query_sensitive_endpoint_forwards_query(client, store, upstream):
    response = client.get("/market/metrics?symbol=2330")

    assert response.status_code == 200
    upstream.fetch.assert_awaited_once_with(
        "/market/metrics", params=[("symbol", "2330"), ("days", "60")], authorization=None
    )
    stored_key, _, expiration = store.put.await_args.args
    assert stored_key == "cache_proxy:data:/market/metrics?symbol=2330"
    assert expiration.at_unix_seconds is not None


def test_request_id_echoed(client, store):
    store.get.return_value = "cached-body"

    response = client.get("/market/momentum/range/1", headers={"X-Request-ID": "req-42"})

    assert response.headers["X-Request-ID"] == "req-42"


def test_health_reports_store(client, store):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["dependencies"] == {"redis": "ok"}

    store.ping.return_value = False
    response = client.get("/health")
    assert response.status_code == 503
    assert response.json()["status"] == "error"


def test_metrics_exposed(client, store):
    store.get.return_value = "cached-body"
    client.get("/market/momentum/range/1")

    response = client.get("/metrics")

    assert response.status_code == 200
    assert "cache_lookups_total" in response.text


def test_cors_allows_configured_origin(client, store):
    store.get.return_value = "cached-body"

    allowed = client.get("/market/momentum/range/1", headers={"Origin": "https://app.example.com"})
    denied = client.get("/market/momentum/range/1", headers={"Origin": "https://evil.example.com"})

    assert allowed.headers["access-control-allow-origin"] == "https://app.example.com"
    assert "access-control-allow-origin" not in denied.headers


def test_hourly_endpoint_from_custom_catalog(tmp_path, store, upstream, session_client):
    path = tmp_path / "endpoints.json"
    path.write_text(
        '{"endpoints": [{"path": "/quotes/hourly", "policy": {"type": "rolling", "duration_seconds": 3600}}]}'
    )
    config = get_config("cache_proxy", 8000, api_host="http://upstream.test")
    app = create_app(
        config,
        store=store,
        upstream_client=upstream,
        session_client=session_client,
        catalog=EndpointCatalog(path),
    )

    response = TestClient(app).get("/quotes/hourly")

    assert response.text == "fresh-body"
    assert response.headers["Cache-Control"] == "public, max-age=3600"
    store.put.assert_awaited_once_with(
        "cache_proxy:data:/quotes/hourly",
        "fresh-body",
        StoreExpiration(ttl_seconds=4680),
    )
    assert TestClient(app).get("/market/momentum/range/1").status_code == 404


def test_configured_catalog_file_missing_fails_startup(tmp_path, store, upstream, session_client):
    config = get_config(
        "cache_proxy",
        8000,
        api_host="http://upstream.test",
        endpoints_file=str(tmp_path / "absent.json"),
    )

    with pytest.raises(ValueError):
        create_app(config, store=store, upstream_client=upstream, session_client=session_client)
