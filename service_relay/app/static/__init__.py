"""
Static pages of the relay: home page, icon and the ``/list`` status document.
"""

from .loader import StaticAssets, load_statics
from .status import build_status_payload

__all__ = ["StaticAssets", "build_status_payload", "load_statics"]
