"""
Cacheability rules and HTTP cache headers.
"""

from typing import Dict, FrozenSet, Iterable, TYPE_CHECKING, Union

import httpx

from ..units import SizeLike, parse_size

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from ..config import CacheConfig


DEFAULT_IMAGE_TYPES = ("png", "jpg", "jpeg", "gif", "svg", "webp", "bmp", "ico")
DEFAULT_MIN_SIZE = "8MB"


def normalize_extension(extension: str) -> str:
    return extension.lower().lstrip(".")


class CacheabilityPolicy:
    """Global allow-list plus minimum body size."""

    def __init__(self, allowed_types: Iterable[str] = DEFAULT_IMAGE_TYPES, min_size: SizeLike = DEFAULT_MIN_SIZE):
        self.allowed_types: FrozenSet[str] = frozenset(normalize_extension(t) for t in allowed_types)
        self.min_size = parse_size(min_size)

    @classmethod
    def from_config(cls, cache_config: "CacheConfig") -> "CacheabilityPolicy":
        return cls(cache_config.image_types, cache_config.min_size)

    def is_cacheable(self, extension: str, byte_length: int) -> bool:
        return normalize_extension(extension) in self.allowed_types and byte_length >= self.min_size


def extension_from_url(url: Union[httpx.URL, str]) -> str:
    """Text after the last dot of the URL path, lowercased; empty if none."""
    path = httpx.URL(str(url)).path
    if "." not in path:
        return ""
    return path.rsplit(".", 1)[1].lower()


def cache_control_headers(max_age_seconds: int) -> Dict[str, str]:
    """Headers attached to every served body."""
    return {
        "Cache-Control": f"public, max-age={max_age_seconds}",
        "CDN-Cache-Control": f"max-age={max_age_seconds}",
    }
