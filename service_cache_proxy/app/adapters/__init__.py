"""
Adapters package for the cache proxy.

HTTP client wrappers for the upstream API and its session validation
endpoint. Adapters own base URLs and request shapes and map failures to
shared errors. Neither adapter retries.
"""

from .session_client import SessionClient, SessionCheck
from .upstream_client import UpstreamClient

__all__ = [
    "SessionClient",
    "SessionCheck",
    "UpstreamClient",
]
