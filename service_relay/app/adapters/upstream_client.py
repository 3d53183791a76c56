"""
Upstream HTTP client for the relay.
"""

from typing import Optional, Sequence, Tuple

import httpx

from shared.logging import get_logger
from shared.errors import TransportFailure


class UpstreamClient:
    """Issues the single outbound request of a relayed call.

    No timeout and no retry: a slow upstream keeps the request open until it
    answers or the transport gives up.
    """

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._transport = transport
        self.logger = get_logger("relay.upstream")

    async def fetch(
        self,
        method: str,
        url: httpx.URL,
        headers: Sequence[Tuple[str, str]],
        body: Optional[bytes] = None,
    ) -> httpx.Response:
        """Send the request and return the fully read response."""
        try:
            async with httpx.AsyncClient(
                transport=self._transport,
                timeout=None,
                follow_redirects=True,
            ) as client:
                response = await client.request(method, url, headers=list(headers), content=body)
        except httpx.HTTPError as exc:
            self.logger.error(
                "Upstream transport failure",
                url=str(url),
                method=method,
                error=str(exc),
                error_type=type(exc).__name__
            )
            raise TransportFailure(str(url), str(exc)) from exc

        self.logger.debug(
            "Upstream response received",
            url=str(url),
            status_code=response.status_code,
            bytes=len(response.content)
        )
        return response
