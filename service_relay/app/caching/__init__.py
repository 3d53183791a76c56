"""
Relay caching package.

Holds the in-memory response cache and the policy deciding which upstream
bodies it may keep. The cache is built once per service and injected into
the forwarder; nothing here is module-global.
"""

from .policy import CacheabilityPolicy, cache_control_headers, extension_from_url
from .response_cache import CachedResponse, CacheEntry, ResponseCache

__all__ = [
    "CacheabilityPolicy",
    "CachedResponse",
    "CacheEntry",
    "ResponseCache",
    "cache_control_headers",
    "extension_from_url",
]
