"""
Static assets served by the relay.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from shared.logging import get_logger

logger = get_logger("relay.static")

INDEX_FILE = "index.html"
FAVICON_FILE = "favicon.ico"


@dataclass(frozen=True)
class StaticAssets:
    index_html: Optional[str] = None
    favicon: Optional[bytes] = None


def _read(path: Path, binary: bool) -> Optional[Union[str, bytes]]:
    try:
        return path.read_bytes() if binary else path.read_text(encoding="utf-8")
    except OSError as exc:
        logger.warning("Static asset unavailable", path=str(path), error=str(exc))
        return None


def load_statics(static_dir: Union[str, Path]) -> StaticAssets:
    """Read the home page and icon once; missing files stay None."""
    base = Path(static_dir)
    return StaticAssets(
        index_html=_read(base / INDEX_FILE, binary=False),
        favicon=_read(base / FAVICON_FILE, binary=True),
    )
