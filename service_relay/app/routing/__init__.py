"""
Relay routing package.

- rules: prefix matching, path sanitization, target and redirect URLs.
- forwarder: the per-request decision between 404, redirect, cache and upstream.
"""

from .forwarder import Forwarder, RelayRequest, RelayResult

__all__ = ["Forwarder", "RelayRequest", "RelayResult"]
