"""Response error extraction for load test observability.

Storefront errors all share one shape::

    {"error": {"type": "...", "reason": "...", "message": "...", "details": {...}}}
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from requests import Response


def extract_error_detail(response: Response) -> str:
    """Compact ``reason: message`` string for Locust failure messages and log lines."""
    try:
        body = response.json()
    except ValueError:
        text = getattr(response, "text", "") or ""
        return text[:300] or "(empty response body)"

    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        detail = f"{error.get('reason', '?')}: {error.get('message', '')}"
        if error.get("details"):
            detail += f" {error['details']}"
        return detail[:300]

    return str(body)[:300]
