"""
Per-endpoint cache configuration and the JSON catalog loader.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union
import json

from ..caching.cache_keys import KeyMode
from ..caching.expiration import DailyFixedPolicy, ExpirationPolicy, RollingPolicy


DEFAULT_DATA_FILE = Path(__file__).resolve().parent / "data" / "endpoints.json"


@dataclass(frozen=True)
class EndpointConfig:
    """Static cache configuration for one logical endpoint."""

    path: str
    policy: ExpirationPolicy
    key_mode: KeyMode = KeyMode.PATH_ONLY
    forward_query: bool = False
    upstream_params: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)
    requires_auth: bool = False
    edge_max_age_seconds: Optional[int] = None

    def __post_init__(self) -> None:
        if not isinstance(self.path, str) or not self.path.startswith("/"):
            raise ValueError(f"endpoint path must start with '/': {self.path!r}")
        # Route templates would match many request paths under one key.
        if "{" in self.path or "}" in self.path:
            raise ValueError(f"endpoint path must be literal, not a template: {self.path!r}")
        # Forwarded queries change the upstream body, so they must be part of the key.
        if self.forward_query and self.key_mode != KeyMode.QUERY_SENSITIVE:
            raise ValueError(
                f"endpoint {self.path} forwards the query but its key ignores it; "
                "use key_mode 'query_sensitive'"
            )
        if self.edge_max_age_seconds is not None:
            if isinstance(self.edge_max_age_seconds, bool) or not isinstance(self.edge_max_age_seconds, int):
                raise ValueError("edge_max_age_seconds must be an integer")
            if self.edge_max_age_seconds < 0:
                raise ValueError("edge_max_age_seconds must not be negative")

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "EndpointConfig":
        """Build an endpoint definition from a catalog entry."""
        if not isinstance(payload, dict):
            raise ValueError(f"endpoint entry must be an object: {payload!r}")
        try:
            path = payload["path"]
            policy = parse_policy(payload["policy"])
        except KeyError as exc:
            raise ValueError(f"endpoint entry missing field {exc.args[0]!r}: {payload!r}") from exc

        upstream_params = payload.get("upstream_params") or {}
        if not isinstance(upstream_params, dict):
            raise ValueError(f"upstream_params must be an object: {upstream_params!r}")

        return cls(
            path=path,
            policy=policy,
            key_mode=KeyMode(payload.get("key_mode", KeyMode.PATH_ONLY.value)),
            forward_query=bool(payload.get("forward_query", False)),
            upstream_params=tuple((str(k), str(v)) for k, v in upstream_params.items()),
            requires_auth=bool(payload.get("requires_auth", False)),
            edge_max_age_seconds=payload.get("edge_max_age_seconds"),
        )


def parse_policy(payload: Dict[str, Any]) -> ExpirationPolicy:
    """Parse a ``{"type": "rolling"|"daily_fixed", ...}`` policy descriptor."""
    if not isinstance(payload, dict):
        raise ValueError(f"policy must be an object: {payload!r}")

    policy_type = payload.get("type")
    try:
        if policy_type == "rolling":
            return RollingPolicy(duration_seconds=int(payload["duration_seconds"]))
        if policy_type == "daily_fixed":
            return DailyFixedPolicy(utc_hour=int(payload["utc_hour"]))
    except (KeyError, TypeError) as exc:
        raise ValueError(f"invalid {policy_type} policy: {payload!r}") from exc
    raise ValueError(f"unknown policy type: {policy_type!r}")


class EndpointCatalog:
    """
    Loads endpoint definitions from JSON.

    The file is expected to look like ``{"endpoints": [{...}, ...]}``. With
    no path the bundled catalog is used; an explicit path that is missing or
    malformed is a startup error.
    """

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        self._path = Path(config_path) if config_path else DEFAULT_DATA_FILE
        self._endpoints = self._load()

    def endpoints(self) -> List[EndpointConfig]:
        return list(self._endpoints)

    def get(self, path: str) -> Optional[EndpointConfig]:
        for endpoint in self._endpoints:
            if endpoint.path == path:
                return endpoint
        return None

    def _load(self) -> List[EndpointConfig]:
        if not self._path.is_file():
            raise ValueError(f"endpoint catalog not found: {self._path}")
        with self._path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)

        entries = payload.get("endpoints") if isinstance(payload, dict) else None
        if not isinstance(entries, list):
            raise ValueError(f"endpoint catalog at {self._path} must contain an 'endpoints' list")

        endpoints = [EndpointConfig.from_dict(entry) for entry in entries]
        seen = set()
        for endpoint in endpoints:
            if endpoint.path in seen:
                raise ValueError(f"duplicate endpoint path in catalog: {endpoint.path}")
            seen.add(endpoint.path)
        return endpoints
