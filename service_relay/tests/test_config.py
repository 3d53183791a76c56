"""
Unit tests for relay configuration loading.
"""

import json

import pytest
from pydantic import ValidationError

from service_relay.app.config import FALLBACK_CONFIG, CacheConfig, ProxyRule, RelayConfig, load_relay_config


@pytest.fixture
def config_file(tmp_path):
    """Write a config file and return its path."""

    def _write(payload) -> str:
        path = tmp_path / "index_config.json"
        text = payload if isinstance(payload, str) else json.dumps(payload)
        path.write_text(text, encoding="utf-8")
        return str(path)

    return _write


class TestLoadRelayConfig:
    """Test cases for load_relay_config."""

    def test_camel_case_file(self, config_file):
        """Test the JSON shape with camelCase keys."""
        path = config_file({
            "title": "Mirror",
            "establishTime": "2025/01/13/08/00",
            "port": 8080,
            "cache": {
                "enabled": True,
                "minSize": "1KB",
                "maxTime": "3600S",
                "imageTypes": ["PNG", ".webp"],
            },
            "proxies": [
                {"prefix": "/gh/", "target": "https://raw.example/", "rawRedirect": "https://gh.example/{path}"},
                {"prefix": "/hidden/", "target": "https://hidden.example/", "visible": False},
            ],
        })

        config = load_relay_config(path)

        assert config.title == "Mirror"
        assert config.establish_time == "2025/01/13/08/00"
        assert config.port == 8080
        assert config.cache.enabled is True
        assert config.cache.min_size_bytes == 1024
        assert config.cache.max_time_seconds == 3600
        assert config.cache.image_types == ["png", "webp"]
        assert [rule.prefix for rule in config.proxies] == ["/gh/", "/hidden/"]
        assert config.proxies[0].raw_redirect == "https://gh.example/{path}"
        assert config.proxies[1].visible is False

    def test_missing_file_uses_fallback(self, tmp_path):
        config = load_relay_config(tmp_path / "absent.json")

        assert config is FALLBACK_CONFIG
        assert config.proxies == []

    def test_invalid_json_uses_fallback(self, config_file):
        fallback = RelayConfig(title="fallback")

        config = load_relay_config(config_file("{not json"), fallback)

        assert config is fallback

    def test_invalid_size_rejected(self, config_file):
        """Test malformed sizes abort loading instead of falling back."""
        path = config_file({"cache": {"enabled": True, "minSize": "8 MB"}, "proxies": []})

        with pytest.raises(ValidationError):
            load_relay_config(path)

    def test_invalid_duration_rejected(self, config_file):
        path = config_file({"cache": {"maxTime": "1 day"}, "proxies": []})

        with pytest.raises(ValidationError):
            load_relay_config(path)

    def test_relative_target_rejected(self, config_file):
        path = config_file({"proxies": [{"prefix": "/x", "target": "/relative/path"}]})

        with pytest.raises(ValidationError):
            load_relay_config(path)

    def test_empty_prefix_rejected(self):
        with pytest.raises(ValidationError):
            ProxyRule(prefix="", target="https://origin.example/")


class TestCacheConfig:
    """Test cases for CacheConfig defaults."""

    def test_defaults(self):
        config = CacheConfig()

        assert config.enabled is False
        assert config.min_size_bytes == 8 * 1024 * 1024
        assert config.max_time_seconds == 86400
        assert config.capacity_bytes == 1024 * 1024 * 1024
        assert config.image_types == ["png", "jpg", "jpeg", "gif", "svg", "webp", "bmp", "ico"]
        assert config.key_includes_query is False

    def test_numeric_values(self):
        """Test numeric sizes and durations pass through."""
        config = CacheConfig(minSize=2048, maxTime=120)

        assert config.min_size_bytes == 2048
        assert config.max_time_seconds == 120

    def test_missing_cache_section_disables_cache(self):
        assert RelayConfig.model_validate({"proxies": []}).cache.enabled is False
