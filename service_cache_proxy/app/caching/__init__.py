"""
Proxy caching package.

Cache-aside primitives: expiration policies, cache key derivation, the
key-value store adapter and the engine tying them together. Entries are
only ever expired by the store; there is no explicit invalidation.
"""

from .cache_keys import KeyMode, derive_cache_key
from .engine import CacheAsideEngine, CachedResponse
from .expiration import DailyFixedPolicy, RollingPolicy, compute_expiration
from .kv_store import KeyValueStore, RedisKeyValueStore

__all__ = [
    "KeyMode",
    "derive_cache_key",
    "CacheAsideEngine",
    "CachedResponse",
    "DailyFixedPolicy",
    "RollingPolicy",
    "compute_expiration",
    "KeyValueStore",
    "RedisKeyValueStore",
]
