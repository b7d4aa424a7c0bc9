"""Request metadata helpers for audit logging."""

import ipaddress
from typing import Any, Dict, Optional

from fastapi import Request

# Checked in order; the first header holding a valid address wins
IP_HEADERS = (
    "x-forwarded-for",
    "x-real-ip",
    "x-client-ip",
    "cf-connecting-ip",
    "x-forwarded",
    "forwarded-for",
)


def _valid_ip(value: str) -> bool:
    try:
        ipaddress.ip_address(value)
    except ValueError:
        return False
    return True


def get_client_ip(request: Request) -> Optional[str]:
    for header in IP_HEADERS:
        value = request.headers.get(header)
        if not value:
            continue
        candidate = value.split(",")[0].strip()
        if _valid_ip(candidate):
            return candidate
    if request.client and _valid_ip(request.client.host):
        return request.client.host
    return None


def parse_user_agent(user_agent: Optional[str]) -> Dict[str, str]:
    """Coarse browser / os / device classification of a User-Agent string."""
    if not user_agent:
        return {}

    info: Dict[str, str] = {}

    # Edge and Chrome both advertise "Chrome"; Chrome also advertises "Safari"
    if "Edg" in user_agent:
        info["browser"] = "Edge"
    elif "Chrome" in user_agent:
        info["browser"] = "Chrome"
    elif "Firefox" in user_agent:
        info["browser"] = "Firefox"
    elif "Safari" in user_agent:
        info["browser"] = "Safari"

    if "Windows" in user_agent:
        info["os"] = "Windows"
    elif "Android" in user_agent:
        info["os"] = "Android"
    elif "iPhone" in user_agent or "iPad" in user_agent or "iOS" in user_agent:
        info["os"] = "iOS"
    elif "Mac OS" in user_agent:
        info["os"] = "macOS"
    elif "Linux" in user_agent:
        info["os"] = "Linux"

    if "Tablet" in user_agent or "iPad" in user_agent:
        info["device_type"] = "tablet"
    elif "Mobile" in user_agent:
        info["device_type"] = "mobile"
    else:
        info["device_type"] = "desktop"

    return info


def request_metadata(request: Optional[Request]) -> Dict[str, Any]:
    """ip_address / user_agent pair for ActivityLog rows."""
    if request is None:
        return {"ip_address": None, "user_agent": None}
    user_agent = request.headers.get("user-agent")
    return {
        "ip_address": get_client_ip(request),
        "user_agent": user_agent[:500] if user_agent else None,
    }
