"""
Prefix rule matching and URL construction for the relay.
"""

import re
from typing import Iterable, List, Optional, Sequence, Tuple

import httpx

from ..config import ProxyRule

QueryItems = Sequence[Tuple[str, str]]

PATH_PLACEHOLDER = "{path}"
RAW_PARAM = "raw"

_SLASH_RUN = re.compile(r"/+")


def match_rule(rules: Iterable[ProxyRule], path: str) -> Optional[Tuple[ProxyRule, str]]:
    """First rule whose prefix starts ``path``, with the residual path.

    Declaration order decides; a later, longer prefix never wins.
    """
    for rule in rules:
        if path.startswith(rule.prefix):
            return rule, path[len(rule.prefix):]
    return None


def sanitize_path(residual: str) -> str:
    """Canonical relative path: no leading slashes, no pipes, single slashes."""
    cleaned = residual.lstrip("/")
    cleaned = cleaned.replace("|", "")
    return _SLASH_RUN.sub("/", cleaned)


def resolve_target(rule: ProxyRule, sanitized_path: str) -> httpx.URL:
    """Resolve the sanitized path against the rule's base URL."""
    return httpx.URL(rule.target).join(sanitized_path)


def with_query(url: httpx.URL, query: QueryItems) -> httpx.URL:
    """Append query pairs, keeping any the URL already carries."""
    if not query:
        return url
    params = url.params
    for key, value in query:
        params = params.add(key, value)
    return url.copy_with(params=params)


def wants_raw(query: QueryItems) -> bool:
    """True when the first ``raw`` parameter is exactly ``"true"``."""
    for key, value in query:
        if key == RAW_PARAM:
            return value == "true"
    return False


def build_redirect_location(
    rule: ProxyRule,
    sanitized_path: str,
    target_url: httpx.URL,
    query: QueryItems,
) -> str:
    """Redirect target for raw mode, carrying every parameter except ``raw``."""
    if rule.raw_redirect:
        location = rule.raw_redirect.replace(PATH_PLACEHOLDER, sanitized_path, 1)
    else:
        location = str(target_url)

    forwarded: List[Tuple[str, str]] = [(key, value) for key, value in query if key != RAW_PARAM]
    if forwarded:
        separator = "&" if "?" in location else "?"
        location += separator + str(httpx.QueryParams(forwarded))
    return location
