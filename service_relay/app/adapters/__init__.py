"""
Outbound adapters for the relay service.

- UpstreamClient: the httpx call made for a relayed request.
"""

from .upstream_client import UpstreamClient

__all__ = ["UpstreamClient"]
