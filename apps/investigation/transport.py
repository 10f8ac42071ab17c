"""
Blocking JSON-over-HTTP helper shared by the http capability drivers.

Drivers call request_json() through asyncio.to_thread so the event loop
keeps serving other investigations while a lookup is in flight.
"""

from __future__ import annotations

import json
import urllib.request
from typing import Any

USER_AGENT = "NHIInvestigation/1.0"


def request_json(
    url: str,
    method: str = "GET",
    payload: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    timeout: float = 30,
) -> Any:
    """
    Send a request and decode the JSON response body.

    Raises:
        urllib.error.HTTPError: Non-2xx response.
        urllib.error.URLError: Connection problems.
        json.JSONDecodeError: Response body is not JSON.
    """
    request_headers = {
        "Accept": "application/json",
        "User-Agent": USER_AGENT,
    }
    data = None
    if payload is not None:
        data = json.dumps(payload).encode("utf-8")
        request_headers["Content-Type"] = "application/json"
    request_headers.update(headers or {})

    request = urllib.request.Request(url, data=data, headers=request_headers, method=method)
    with urllib.request.urlopen(request, timeout=timeout) as response:
        body = response.read().decode("utf-8")
    return json.loads(body)
