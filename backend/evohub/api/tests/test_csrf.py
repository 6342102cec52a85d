"""Unit tests for the same-origin and double-submit CSRF checks."""

import pytest
from starlette.requests import Request

from evohub.api.csrf import (
    allowed_origins_for,
    normalize_origin,
    verify_csrf_token,
    verify_same_origin,
)
from evohub.core.exceptions import PermissionException


def _request(method: str = "POST", headers: dict | None = None, host: str = "api.evohub.io"):
    raw = [(b"host", host.encode())]
    for name, value in (headers or {}).items():
        raw.append((name.lower().encode(), value.encode()))
    scope = {
        "type": "http",
        "method": method,
        "scheme": "https",
        "path": "/api/ai-image/charges",
        "query_string": b"",
        "headers": raw,
        "server": (host, 443),
    }
    return Request(scope)


class TestNormalizeOrigin:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("https://App.Evohub.io/some/path?q=1", "https://app.evohub.io"),
            ("http://localhost:3000", "http://localhost:3000"),
            ("evohub.io", "https://evohub.io"),
            ("  https://evohub.io/  ", "https://evohub.io"),
        ],
    )
    def test_reduces_to_scheme_and_host(self, raw, expected):
        assert normalize_origin(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "https://"])
    def test_unusable_values(self, raw):
        assert normalize_origin(raw) is None


class TestSameOrigin:
    def test_safe_methods_skip_check(self):
        verify_same_origin(_request("GET"))

    def test_same_host_allowed(self):
        verify_same_origin(_request(headers={"Origin": "https://api.evohub.io"}))

    def test_referer_fallback(self):
        request = _request(headers={"Referer": "https://api.evohub.io/dashboard"})
        verify_same_origin(request)

    def test_configured_origin_allowed(self):
        request = _request(headers={"Origin": "https://app.evohub.io"})
        verify_same_origin(request, configured=["https://app.evohub.io"])

    def test_route_extra_origin_allowed(self):
        request = _request("DELETE", headers={"Origin": "https://admin.evohub.io"})
        verify_same_origin(request, extra=("admin.evohub.io",))

    def test_missing_origin_rejected(self):
        with pytest.raises(PermissionException, match="Missing Origin/Referer header"):
            verify_same_origin(_request())

    def test_foreign_origin_rejected(self):
        request = _request(headers={"Origin": "https://evil.example"})
        with pytest.raises(PermissionException, match="Origin not allowed"):
            verify_same_origin(request, configured=["https://app.evohub.io"])

    def test_allowed_list_is_deduplicated(self):
        allowed = allowed_origins_for(
            _request(), ["https://api.evohub.io", "https://app.evohub.io"], ["app.evohub.io"]
        )
        assert allowed == ["https://api.evohub.io", "https://app.evohub.io"]


class TestCsrfToken:
    def test_matching_token(self):
        request = _request(headers={"X-CSRF-Token": "abc", "Cookie": "csrf_token=abc"})
        verify_csrf_token(request)

    @pytest.mark.parametrize(
        "headers",
        [
            {"X-CSRF-Token": "abc", "Cookie": "csrf_token=abd"},
            {"X-CSRF-Token": "abc"},
            {"Cookie": "csrf_token=abc"},
            {},
        ],
    )
    def test_mismatch_rejected(self, headers):
        with pytest.raises(PermissionException, match="Invalid CSRF token"):
            verify_csrf_token(_request(headers=headers))
