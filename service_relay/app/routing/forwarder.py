"""
Request forwarding: route, redirect or relay, and cache coordination.
"""

import time
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple, TYPE_CHECKING

from shared.logging import get_logger
from shared.errors import NoRouteMatch, UpstreamError
from ..adapters.upstream_client import UpstreamClient
from ..caching.policy import CacheabilityPolicy, extension_from_url
from ..caching.response_cache import CACHE_TYPE, ResponseCache
from ..config import RelayConfig
from ..units import format_size
from .rules import (
    build_redirect_location,
    match_rule,
    resolve_target,
    sanitize_path,
    wants_raw,
    with_query,
)

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


DEFAULT_CONTENT_TYPE = "application/octet-stream"
BODYLESS_METHODS = {"GET", "HEAD"}


@dataclass
class RelayRequest:
    """Transport-neutral view of an inbound request."""

    method: str
    path: str
    query: List[Tuple[str, str]] = field(default_factory=list)
    headers: List[Tuple[str, str]] = field(default_factory=list)
    body: Optional[bytes] = None


@dataclass
class RelayResult:
    """Terminal outcome of a relayed request."""

    status_code: int
    body: bytes = b""
    content_type: Optional[str] = None
    location: Optional[str] = None
    source: str = "upstream"

    @property
    def is_redirect(self) -> bool:
        return self.location is not None


class Forwarder:
    """Matches a request to a proxy rule and serves it."""

    def __init__(
        self,
        config: RelayConfig,
        cache: ResponseCache,
        policy: CacheabilityPolicy,
        upstream: UpstreamClient,
        *,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.config = config
        self.cache = cache
        self.policy = policy
        self.upstream = upstream
        self.metrics = metrics
        self.logger = get_logger("relay.forwarder")

    @property
    def cache_enabled(self) -> bool:
        return self.config.cache.enabled

    def cache_key(self, request: RelayRequest) -> str:
        """Cache slot for a request; the path alone unless configured otherwise."""
        if self.config.cache.key_includes_query and request.query:
            return f"{request.path}?{'&'.join(f'{k}={v}' for k, v in request.query)}"
        return request.path

    async def forward(self, request: RelayRequest) -> RelayResult:
        """Serve ``request``; raises NoRouteMatch, UpstreamError or TransportFailure."""
        self.logger.info("Relay request", path=request.path, method=request.method)

        matched = match_rule(self.config.proxies, request.path)
        if matched is None:
            self.logger.info("No proxy rule matched", path=request.path)
            raise NoRouteMatch(request.path)
        rule, residual = matched

        sanitized = sanitize_path(residual)
        target_url = resolve_target(rule, sanitized)
        self.logger.debug("Resolved target", prefix=rule.prefix, target_url=str(target_url))

        if wants_raw(request.query):
            location = build_redirect_location(rule, sanitized, target_url, request.query)
            self.logger.info("Raw redirect", path=request.path, location=location)
            self._count("redirects_total", prefix=rule.prefix)
            return RelayResult(status_code=302, location=location, source="redirect")

        key = self.cache_key(request)
        if self.cache_enabled:
            cached = self.cache.get(key)
            if cached is not None:
                self.logger.info("Cache hit", key=key, size=format_size(len(cached.data)))
                self._count("cache_hits_total", cache_type=CACHE_TYPE)
                return RelayResult(
                    status_code=200,
                    body=cached.data,
                    content_type=cached.content_type,
                    source="cache",
                )
            self._count("cache_misses_total", cache_type=CACHE_TYPE)

        upstream_url = with_query(target_url, request.query)
        body = request.body if request.method.upper() not in BODYLESS_METHODS else None

        start_time = time.time()
        response = await self.upstream.fetch(
            request.method,
            upstream_url,
            self._outbound_headers(request.headers),
            body,
        )
        if self.metrics:
            self.metrics.observe_histogram(
                "upstream_request_duration_seconds",
                time.time() - start_time,
                prefix=rule.prefix
            )
        self._count("upstream_requests_total", prefix=rule.prefix, status_code=str(response.status_code))

        if not response.is_success:
            self.logger.info(
                "Upstream returned failure status",
                url=str(upstream_url),
                status_code=response.status_code
            )
            raise UpstreamError(response.status_code, response.reason_phrase, str(upstream_url))

        content = response.content
        content_type = response.headers.get("content-type") or DEFAULT_CONTENT_TYPE
        extension = extension_from_url(target_url)

        if self.cache_enabled and self.policy.is_cacheable(extension, len(content)):
            stored = self.cache.set(
                key,
                content,
                content_type,
                len(content),
                ttl=self.config.cache.max_time_seconds * 1000,
            )
            if stored:
                self.logger.info("Cached response", key=key, size=format_size(len(content)))
                self._count("cache_stores_total", cache_type=CACHE_TYPE)

        return RelayResult(status_code=200, body=content, content_type=content_type)

    def _outbound_headers(self, headers: Sequence[Tuple[str, str]]) -> List[Tuple[str, str]]:
        return [(key, value) for key, value in headers if key.lower() != "host"]

    def _count(self, metric_name: str, **labels: str) -> None:
        if self.metrics:
            self.metrics.increment_counter(metric_name, **labels)
