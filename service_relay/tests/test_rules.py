"""
Unit tests for prefix rule matching and URL construction.
"""

import httpx
import pytest

from service_relay.app.config import ProxyRule
from service_relay.app.routing.rules import (
    build_redirect_location,
    match_rule,
    resolve_target,
    sanitize_path,
    wants_raw,
    with_query,
)


def rule(prefix: str, target: str = "https://origin.example/", **kwargs) -> ProxyRule:
    return ProxyRule(prefix=prefix, target=target, **kwargs)


class TestMatchRule:
    """Test cases for match_rule."""

    def test_first_match_wins_over_longer_prefix(self):
        """Test declared order decides, not specificity."""
        rules = [rule("/a", "https://a.example/"), rule("/ab", "https://ab.example/")]

        matched, residual = match_rule(rules, "/ab/x")

        assert matched.prefix == "/a"
        assert residual == "b/x"

    def test_later_rule_matches_when_earlier_does_not(self):
        rules = [rule("/img"), rule("/css")]

        matched, residual = match_rule(rules, "/css/site.css")

        assert matched.prefix == "/css"
        assert residual == "/site.css"

    def test_no_match(self):
        assert match_rule([rule("/img")], "/unknown/x") is None

    def test_prefix_is_literal(self):
        """Test that no path-segment boundary is required."""
        matched, residual = match_rule([rule("/img")], "/images/a.png")

        assert matched.prefix == "/img"
        assert residual == "ages/a.png"

    def test_empty_rules(self):
        assert match_rule([], "/anything") is None


class TestSanitizePath:
    """Test cases for sanitize_path."""

    @pytest.mark.parametrize(
        "residual, expected",
        [
            ("//a/|b///c", "a/b/c"),
            ("/photo.png", "photo.png"),
            ("", ""),
            ("///", ""),
            ("a||b", "ab"),
            ("a//b//", "a/b/"),
        ],
    )
    def test_sanitize(self, residual, expected):
        assert sanitize_path(residual) == expected

    def test_full_path_under_root_prefix(self):
        """Test the residual of //a/|b///c under prefix /."""
        _, residual = match_rule([rule("/")], "//a/|b///c")

        assert sanitize_path(residual) == "a/b/c"


class TestResolveTarget:
    """Test cases for resolve_target."""

    def test_relative_resolution(self):
        url = resolve_target(rule("/img"), "photo.png")

        assert str(url) == "https://origin.example/photo.png"

    def test_base_with_path(self):
        url = resolve_target(rule("/npm", "https://cdn.example/npm/"), "pkg/index.js")

        assert str(url) == "https://cdn.example/npm/pkg/index.js"

    def test_base_without_trailing_slash_replaces_last_segment(self):
        """Test standard relative-URL semantics."""
        url = resolve_target(rule("/x", "https://cdn.example/npm"), "pkg.js")

        assert str(url) == "https://cdn.example/pkg.js"

    def test_empty_path_is_base(self):
        url = resolve_target(rule("/x", "https://cdn.example/npm/"), "")

        assert str(url) == "https://cdn.example/npm/"


class TestQueryHandling:
    """Test cases for query helpers."""

    def test_with_query_appends(self):
        url = with_query(httpx.URL("https://origin.example/a.png?v=1"), [("w", "200"), ("w", "300")])

        assert url.params.multi_items() == [("v", "1"), ("w", "200"), ("w", "300")]

    def test_with_query_no_params(self):
        url = httpx.URL("https://origin.example/a.png")

        assert with_query(url, []) == url

    @pytest.mark.parametrize(
        "query, expected",
        [
            ([("raw", "true")], True),
            ([("raw", "True")], False),
            ([("raw", "1")], False),
            ([], False),
            ([("w", "1"), ("raw", "true")], True),
            ([("raw", "false"), ("raw", "true")], False),
        ],
    )
    def test_wants_raw(self, query, expected):
        assert wants_raw(query) is expected


class TestBuildRedirectLocation:
    """Test cases for build_redirect_location."""

    def test_target_url_with_other_params(self):
        target = httpx.URL("https://origin.example/photo.png")

        location = build_redirect_location(rule("/img"), "photo.png", target, [("raw", "true"), ("w", "200")])

        assert location == "https://origin.example/photo.png?w=200"

    def test_only_raw_param(self):
        target = httpx.URL("https://origin.example/photo.png")

        location = build_redirect_location(rule("/img"), "photo.png", target, [("raw", "true")])

        assert location == "https://origin.example/photo.png"

    def test_template(self):
        redirect_rule = rule("/gh", raw_redirect="https://github.com/{path}")
        target = resolve_target(redirect_rule, "user/repo/file.md")

        location = build_redirect_location(redirect_rule, "user/repo/file.md", target, [("raw", "true")])

        assert location == "https://github.com/user/repo/file.md"

    def test_template_with_existing_query_uses_ampersand(self):
        redirect_rule = rule("/gh", raw_redirect="https://mirror.example/get?file={path}")
        target = resolve_target(redirect_rule, "a.png")

        location = build_redirect_location(redirect_rule, "a.png", target, [("raw", "true"), ("x", "1")])

        assert location == "https://mirror.example/get?file=a.png&x=1"

    def test_template_accepts_camel_case_alias(self):
        redirect_rule = ProxyRule.model_validate(
            {"prefix": "/gh", "target": "https://origin.example/", "rawRedirect": "https://m.example/{path}"}
        )

        assert redirect_rule.raw_redirect == "https://m.example/{path}"
