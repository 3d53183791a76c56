"""
Content relay gateway service.
"""

from typing import Optional

import httpx
from fastapi import Request
from fastapi.responses import PlainTextResponse, RedirectResponse, Response, JSONResponse

from shared.base_service import BaseService
from shared.config import ServiceConfig
from shared.errors import NoRouteMatch, TransportFailure, UpstreamError
from .adapters.upstream_client import UpstreamClient
from .caching.policy import CacheabilityPolicy, cache_control_headers
from .caching.response_cache import ResponseCache
from .config import RelayConfig, load_relay_config
from .routing.forwarder import BODYLESS_METHODS, Forwarder, RelayRequest
from .static import build_status_payload, load_statics

SERVICE_NAME = "relay"
DEFAULT_PORT = 3000
STATUS_ENDPOINT = "/list"
RELAY_ROUTE = "/{relay_path:path}"


def encoded_path(request: Request) -> str:
    """Request path exactly as sent, percent-escapes intact."""
    raw_path = request.scope.get("raw_path")
    if raw_path is None:
        return request.url.path
    return raw_path.decode("latin-1").split("?", 1)[0]


class RelayService(BaseService):
    """Prefix-routed relay with an in-memory response cache."""

    def __init__(
        self,
        relay_config: Optional[RelayConfig] = None,
        *,
        settings: Optional[ServiceConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        cache: Optional[ResponseCache] = None,
    ):
        super().__init__(SERVICE_NAME, DEFAULT_PORT, config=settings)
        self.relay_config = relay_config or load_relay_config(self.config.config_file)

        cache_config = self.relay_config.cache
        self.cache = cache if cache is not None else ResponseCache(cache_config.capacity, metrics=self.metrics)
        self.policy = CacheabilityPolicy.from_config(cache_config)
        self.upstream = UpstreamClient(transport=transport)
        self.forwarder = Forwarder(
            self.relay_config,
            self.cache,
            self.policy,
            self.upstream,
            metrics=self.metrics,
        )

        self.max_age_seconds = cache_config.max_time_seconds
        self.cache_headers = cache_control_headers(self.max_age_seconds)
        self.statics = load_statics(self.config.static_dir)

        self._setup_relay_error_handlers()
        self._setup_static_routes()
        # Registered last: everything not claimed above is relayed.
        self._setup_relay_route()

        self._log_startup_summary()
        self.app.state.relay_service = self

    def _log_startup_summary(self):
        cache_config = self.relay_config.cache
        self.logger.info(
            "Relay configured",
            title=self.relay_config.title,
            cache_enabled=cache_config.enabled,
            cache_min_size=str(cache_config.min_size),
            cache_max_time=str(cache_config.max_time),
            cache_capacity=str(cache_config.capacity),
            cache_types=",".join(cache_config.image_types),
            proxies=[f"{rule.prefix} -> {rule.target}" for rule in self.relay_config.proxies],
        )

    def _setup_relay_error_handlers(self):
        """Relay failures answer plain text, never internal details."""

        @self.app.exception_handler(NoRouteMatch)
        async def no_route_handler(request: Request, exc: NoRouteMatch):
            return PlainTextResponse("Not Found", status_code=404)

        @self.app.exception_handler(UpstreamError)
        async def upstream_error_handler(request: Request, exc: UpstreamError):
            self.metrics.record_error("upstream_status")
            return PlainTextResponse(exc.reason, status_code=exc.status_code)

        @self.app.exception_handler(TransportFailure)
        async def transport_failure_handler(request: Request, exc: TransportFailure):
            self.metrics.record_error("transport_failure")
            return PlainTextResponse("Internal Server Error", status_code=500)

    def _setup_static_routes(self):
        """Set up home page, icon, status and log routes."""

        @self.app.get(STATUS_ENDPOINT)
        async def status_page(request: Request):
            """Service status and visible proxy rules."""
            payload = build_status_payload(
                self.relay_config,
                str(request.base_url),
                self.cache.stats(),
            )
            return JSONResponse(payload, headers=self.cache_headers)

        @self.app.get("/favicon.ico")
        async def favicon():
            if self.statics.favicon is None:
                return PlainTextResponse("Not Found", status_code=404)
            return Response(
                content=self.statics.favicon,
                media_type="image/x-icon",
                headers=self.cache_headers,
            )

        @self.app.get("/")
        async def home_page():
            if self.statics.index_html is None:
                return PlainTextResponse("Service Unavailable", status_code=503)
            return Response(
                content=self.statics.index_html,
                media_type="text/html; charset=utf-8",
                headers=self.cache_headers,
            )

        @self.app.get("/logs")
        async def recent_logs():
            """Recent log lines, oldest first."""
            return PlainTextResponse(self.log_buffer.render())

    def _setup_relay_route(self):
        """Catch-all relay route."""

        async def relay(request: Request):
            relay_request = RelayRequest(
                method=request.method,
                path=encoded_path(request),
                query=request.query_params.multi_items(),
                headers=request.headers.items(),
                body=await request.body() if request.method not in BODYLESS_METHODS else None,
            )

            try:
                result = await self.forwarder.forward(relay_request)
            except (NoRouteMatch, UpstreamError, TransportFailure):
                raise
            except Exception as e:
                self.logger.error("Relay request failed", path=relay_request.path, error=str(e), exc_info=True)
                self.metrics.record_error("relay_internal")
                return PlainTextResponse("Internal Server Error", status_code=500)

            if result.is_redirect:
                return RedirectResponse(result.location, status_code=result.status_code)

            headers = {"Content-Type": result.content_type, **self.cache_headers}
            headers["X-Relay-Cache"] = "HIT" if result.source == "cache" else "MISS"
            return Response(content=result.body, status_code=result.status_code, headers=headers)

        # No method list: every verb, including extension methods, is relayed.
        self.app.add_route(RELAY_ROUTE, relay, include_in_schema=False)


def create_app(relay_config: Optional[RelayConfig] = None, **kwargs):
    """Create FastAPI application."""
    service = RelayService(relay_config, **kwargs)
    return service.app


def main():
    service = RelayService()
    service.run(host=service.relay_config.host, port=service.relay_config.port)


if __name__ == "__main__":
    main()
