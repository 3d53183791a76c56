"""
Human-readable status document served at ``/list``.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from ..config import RelayConfig

SECONDS_PER_DAY = 86400


def parse_establish_time(value: Optional[str]) -> Optional[datetime]:
    """Parse ``YYYY/MM/DD/HH/mm``; None when absent or malformed."""
    if not value:
        return None
    try:
        year, month, day, hour, minute = (int(part) for part in value.split("/"))
        return datetime(year, month, day, hour, minute)
    except ValueError:
        return None


def format_establish_time(value: Optional[str]) -> str:
    established = parse_establish_time(value)
    if established is None:
        return "not set"
    return established.strftime("%Y-%m-%d %H:%M")


def calculate_uptime(value: Optional[str], now: Optional[datetime] = None) -> str:
    """Time since establishment as ``3d 4h 12m``; minutes always shown."""
    established = parse_establish_time(value)
    if established is None:
        return "establish time not set"

    elapsed = int(((now or datetime.now()) - established).total_seconds())
    days, remainder = divmod(max(elapsed, 0), SECONDS_PER_DAY)
    hours, remainder = divmod(remainder, 3600)
    minutes = remainder // 60

    parts = []
    if days > 0:
        parts.append(f"{days}d")
    if hours > 0:
        parts.append(f"{hours}h")
    parts.append(f"{minutes}m")
    return " ".join(parts)


def build_status_payload(
    config: RelayConfig,
    base_url: str,
    cache_stats: Dict[str, Any],
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Service summary plus every visible proxy rule with usage examples."""
    base_url = base_url.rstrip("/")
    return {
        "status": "running",
        "version": "1.0.0",
        "uptime": calculate_uptime(config.establish_time, now),
        "established": format_establish_time(config.establish_time),
        "cache_days": config.cache.max_time_seconds // SECONDS_PER_DAY,
        "service": {
            "title": config.title,
            "description": config.description,
            "footer": config.footer,
        },
        "cache": {
            "enabled": config.cache.enabled,
            **cache_stats,
        },
        "proxies": [
            {
                "prefix": rule.prefix,
                "target": rule.target,
                "description": rule.description or "no description",
                "raw_redirect": rule.raw_redirect or "uses target URL",
                "examples": {
                    "proxy": f"{base_url}{rule.prefix}",
                    "redirect": f"{base_url}{rule.prefix}?raw=true",
                },
            }
            for rule in config.proxies
            if rule.visible
        ],
    }
