"""HTTP response helpers shared by the web and token strategies."""

from __future__ import annotations

import httpx


def extract_error_message(response: httpx.Response) -> str:
    """Extract a meaningful error message from an HTTP response.

    Args:
        response: HTTP response with error status

    Returns:
        Extracted error message
    """
    status = response.status_code

    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        for key in ("error", "message", "detail", "msg", "error_description"):
            if key not in body:
                continue
            value = body[key]
            if isinstance(value, str):
                return value
            elif isinstance(value, dict):
                # Some APIs nest the message
                for nested_key in ("message", "description"):
                    if nested_key in value:
                        return str(value[nested_key])

    text = response.text.strip()
    if text and len(text) < 200:
        return text

    return f"HTTP {status}"


def get_retry_after_delay(response: httpx.Response, default_delay: float = 1.0) -> float:
    """Get the delay from a Retry-After header.

    Args:
        response: HTTP response
        default_delay: Default delay if header is missing/invalid

    Returns:
        Delay in seconds
    """
    retry_after = response.headers.get("Retry-After")
    if not retry_after:
        return default_delay

    try:
        return float(retry_after)
    except ValueError:
        # HTTP-date form is not honored
        return default_delay
