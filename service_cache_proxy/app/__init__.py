"""
Read-through cache proxy package.

The proxy fronts an upstream data API:
- Authorization: guarded endpoints validate the caller's session upstream
- Caching: cache-aside reads against Redis with per-endpoint expiration
- Upstream: single-attempt fetches on store miss, never retried

Structure:
- app.main: FastAPI app, route registration, and wiring.
- app.adapters: HTTP clients for the upstream API and session endpoint.
- app.caching: Expiration policies, key derivation, store adapter, engine.
- app.domain: Authorization gate.
- app.endpoints: Per-endpoint configuration catalog.
"""
