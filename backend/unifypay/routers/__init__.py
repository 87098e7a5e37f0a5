from typing import Any, Optional


def envelope(data: Any, count: Optional[int] = None) -> dict:
    """Successful response body: ``{"success": true, "data": ..., "count": n}``."""
    body = {"success": True, "data": data}
    if count is not None:
        body["count"] = count
    return body
