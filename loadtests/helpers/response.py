"""Response error extraction for load test observability.

Parses Orders API error responses into human-readable messages.
Handles two response shapes:

- Pydantic validation (422): {"detail": [{"loc": [...], "msg": "...", "type": "..."}]}
- Order errors (400/404/409/500): {"error": "msg"}
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from requests import Response

MAX_DETAIL_LENGTH = 300


def extract_error_detail(response: Response) -> str:
    """Extract a compact error message for Locust failure messages and log lines."""
    try:
        body = response.json()
    except ValueError:
        text = getattr(response, "text", "") or ""
        return text[:MAX_DETAIL_LENGTH] or "(empty response body)"

    if not isinstance(body, dict):
        return str(body)[:MAX_DETAIL_LENGTH]

    if isinstance(body.get("detail"), list):
        parts = []
        for err in body["detail"]:
            loc = ".".join(str(p) for p in err.get("loc", []))
            msg = err.get("msg", str(err))
            parts.append(f"{loc}: {msg}" if loc else msg)
        return " | ".join(parts)

    if "error" in body:
        return str(body["error"])

    return str(body)[:MAX_DETAIL_LENGTH]
