"""
HTTP helpers.

This module centralizes the minimal HTTP client logic used by the record-store client.

Design goals:
- Small surface area (one JSON request helper).
- Deterministic defaults (timeout + User-Agent).
- Raise on non-2xx so callers can decide how to fail.
"""

from __future__ import annotations

from typing import Any

import httpx


DEFAULT_USER_AGENT = "hotspotmap/0.1.0 (+https://local)"


def request_json(
    method: str,
    url: str,
    *,
    params: dict[str, Any] | None = None,
    json_body: Any = None,
    headers: dict[str, str] | None = None,
    timeout_seconds: float = 15,
    transport: httpx.BaseTransport | None = None,
) -> Any:
    """Send a request and return the decoded JSON body (None for an empty body).

    Raises:
        httpx.HTTPError: On transport errors or non-2xx status codes.
        ValueError: If the response body is not valid JSON.
    """
    request_headers = {"User-Agent": DEFAULT_USER_AGENT, "Accept": "application/json"}
    if headers:
        request_headers.update(headers)

    with httpx.Client(timeout=timeout_seconds, transport=transport) as client:
        resp = client.request(method, url, params=params, json=json_body, headers=request_headers)
        resp.raise_for_status()
        if not resp.content:
            return None
        return resp.json()
