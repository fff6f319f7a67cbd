"""
Cache key derivation for proxied endpoints.
"""

from enum import Enum
from typing import Iterable, Mapping, Tuple, Union
from urllib.parse import urlencode

QueryParams = Union[Mapping[str, str], Iterable[Tuple[str, str]]]


class KeyMode(str, Enum):
    """Whether query parameters take part in the cache key."""

    PATH_ONLY = "path_only"
    QUERY_SENSITIVE = "query_sensitive"


def normalize_query(query_params: QueryParams) -> Tuple[Tuple[str, str], ...]:
    """Return query pairs sorted so parameter order never changes the key."""
    items = query_params.items() if isinstance(query_params, Mapping) else query_params
    return tuple(sorted((str(key), str(value)) for key, value in items))


def derive_cache_key(
    endpoint: str,
    query_params: QueryParams,
    mode: KeyMode,
    *,
    prefix: str = "cache_proxy",
) -> str:
    """
    Build the store key for a logical endpoint.

    Path-only endpoints ignore the query entirely. Query-sensitive endpoints
    append the sorted, url-encoded query so distinct parameter sets map to
    distinct keys and reordering the same set does not.
    """
    key = f"{prefix}:data:{endpoint}"
    if mode == KeyMode.QUERY_SENSITIVE:
        pairs = normalize_query(query_params)
        if pairs:
            key = f"{key}?{urlencode(pairs)}"
    return key
