"""Success envelope shared by every JSON route."""

from typing import Any, Dict, Optional


def ok(data: Any = None, pagination: Optional[Dict[str, Any]] = None, message: Optional[str] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True, "data": data}
    if pagination is not None:
        body["pagination"] = pagination
    if message:
        body["message"] = message
    return body
