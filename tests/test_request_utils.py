"""Tests for request metadata helpers."""

from starlette.requests import Request

from intranet.core.request import get_client_ip, parse_user_agent, request_metadata

CHROME_WINDOWS = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0 Safari/537.36"
EDGE_WINDOWS = CHROME_WINDOWS + " Edg/120.0"
SAFARI_IPHONE = "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 Version/17.0 Mobile/15E148 Safari/604.1"
FIREFOX_ANDROID = "Mozilla/5.0 (Android 14; Mobile; rv:121.0) Gecko/121.0 Firefox/121.0"


def _request(headers: dict, client=("10.0.0.9", 5000)) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
        "client": client,
    }
    return Request(scope)


def test_parse_user_agent_desktop_chrome():
    assert parse_user_agent(CHROME_WINDOWS) == {"browser": "Chrome", "os": "Windows", "device_type": "desktop"}


def test_parse_user_agent_prefers_edge_over_chrome():
    assert parse_user_agent(EDGE_WINDOWS)["browser"] == "Edge"


def test_parse_user_agent_mobile():
    assert parse_user_agent(SAFARI_IPHONE) == {"browser": "Safari", "os": "iOS", "device_type": "mobile"}
    assert parse_user_agent(FIREFOX_ANDROID) == {"browser": "Firefox", "os": "Android", "device_type": "mobile"}


def test_parse_user_agent_empty():
    assert parse_user_agent(None) == {}
    assert parse_user_agent("") == {}


def test_client_ip_takes_first_forwarded_address():
    request = _request({"X-Forwarded-For": "203.0.113.5, 10.0.0.1"})
    assert get_client_ip(request) == "203.0.113.5"


def test_client_ip_skips_invalid_header_values():
    request = _request({"X-Forwarded-For": "unknown", "X-Real-IP": "198.51.100.7"})
    assert get_client_ip(request) == "198.51.100.7"


def test_client_ip_falls_back_to_peer():
    assert get_client_ip(_request({})) == "10.0.0.9"
    assert get_client_ip(_request({}, client=None)) is None


def test_request_metadata_truncates_user_agent():
    meta = request_metadata(_request({"User-Agent": "x" * 800}))
    assert len(meta["user_agent"]) == 500
    assert request_metadata(None) == {"ip_address": None, "user_agent": None}
