"""
Relay configuration file models and loader.

The JSON file uses camelCase keys (``rawRedirect``, ``minSize``...); models
accept either the alias or the field name.
"""

import json
from pathlib import Path
from typing import List, Optional, Union

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator

from shared.logging import get_logger
from .caching.policy import DEFAULT_IMAGE_TYPES, DEFAULT_MIN_SIZE, normalize_extension
from .caching.response_cache import DEFAULT_CAPACITY
from .units import parse_duration_seconds, parse_size

logger = get_logger("relay.config")

DEFAULT_MAX_TIME = "86400S"


class ProxyRule(BaseModel):
    """Maps a path prefix to an upstream base URL."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    prefix: str = Field(min_length=1)
    target: str
    raw_redirect: Optional[str] = Field(default=None, alias="rawRedirect")
    description: Optional[str] = None
    visible: bool = True

    @field_validator("target")
    @classmethod
    def _target_is_absolute(cls, value: str) -> str:
        try:
            url = httpx.URL(value)
        except httpx.InvalidURL as exc:
            raise ValueError(f"invalid target URL {value!r}: {exc}") from exc
        if not url.is_absolute_url:
            raise ValueError(f"target must be an absolute URL, got {value!r}")
        return value


class CacheConfig(BaseModel):
    """Global cache policy."""

    model_config = ConfigDict(populate_by_name=True)

    enabled: bool = False
    min_size: Union[int, str] = Field(default=DEFAULT_MIN_SIZE, alias="minSize")
    max_time: Union[int, str] = Field(default=DEFAULT_MAX_TIME, alias="maxTime")
    image_types: List[str] = Field(default_factory=lambda: list(DEFAULT_IMAGE_TYPES), alias="imageTypes")
    capacity: Union[int, str] = DEFAULT_CAPACITY
    key_includes_query: bool = Field(default=False, alias="keyIncludesQuery")

    @field_validator("min_size", "capacity")
    @classmethod
    def _valid_size(cls, value: Union[int, str]) -> Union[int, str]:
        parse_size(value)
        return value

    @field_validator("max_time")
    @classmethod
    def _valid_duration(cls, value: Union[int, str]) -> Union[int, str]:
        parse_duration_seconds(value)
        return value

    @field_validator("image_types")
    @classmethod
    def _normalize_types(cls, value: List[str]) -> List[str]:
        return [normalize_extension(item) for item in value]

    @property
    def min_size_bytes(self) -> int:
        return parse_size(self.min_size)

    @property
    def capacity_bytes(self) -> int:
        return parse_size(self.capacity)

    @property
    def max_time_seconds(self) -> int:
        return parse_duration_seconds(self.max_time)


class RelayConfig(BaseModel):
    """Everything read from the relay configuration file."""

    model_config = ConfigDict(populate_by_name=True)

    title: str = "Content Relay"
    description: str = "Multi-origin content relay"
    footer: str = ""
    establish_time: Optional[str] = Field(default=None, alias="establishTime")
    port: Optional[int] = None
    host: Optional[str] = None
    cache: CacheConfig = Field(default_factory=CacheConfig)
    proxies: List[ProxyRule] = Field(default_factory=list)


FALLBACK_CONFIG = RelayConfig()


def load_relay_config(path: Union[str, Path], fallback: Optional[RelayConfig] = None) -> RelayConfig:
    """Read and validate the configuration file.

    An unreadable or non-JSON file yields ``fallback``. A file that parses but
    does not validate raises ``pydantic.ValidationError``.
    """
    fallback = fallback if fallback is not None else FALLBACK_CONFIG
    config_path = Path(path)
    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.error(
            "Failed to load relay config, using fallback",
            path=str(config_path),
            error=str(exc)
        )
        return fallback

    config = RelayConfig.model_validate(raw)
    logger.info("Relay config loaded", path=str(config_path), proxies=len(config.proxies))
    return config
