"""
Unit tests for the status document helpers.
"""

from datetime import datetime

from service_relay.app.config import ProxyRule, RelayConfig
from service_relay.app.static.status import build_status_payload, calculate_uptime, format_establish_time


def test_uptime_with_days_and_hours():
    now = datetime(2025, 1, 15, 10, 30)

    assert calculate_uptime("2025/01/13/08/00", now) == "2d 2h 30m"


def test_uptime_minutes_only():
    now = datetime(2025, 1, 13, 8, 5)

    assert calculate_uptime("2025/01/13/08/00", now) == "5m"


def test_uptime_not_set():
    assert calculate_uptime(None) == "establish time not set"
    assert calculate_uptime("garbage") == "establish time not set"


def test_format_establish_time():
    assert format_establish_time("2025/01/13/08/00") == "2025-01-13 08:00"
    assert format_establish_time(None) == "not set"


def test_payload_defaults_for_rule_metadata():
    config = RelayConfig(proxies=[ProxyRule(prefix="/a", target="https://a.example/")])

    payload = build_status_payload(config, "http://relay.local/", {"entries": 0})

    proxy = payload["proxies"][0]
    assert proxy["description"] == "no description"
    assert proxy["raw_redirect"] == "uses target URL"
    assert proxy["examples"]["proxy"] == "http://relay.local/a"
    assert payload["cache_days"] == 1
    assert payload["cache"] == {"enabled": False, "entries": 0}
