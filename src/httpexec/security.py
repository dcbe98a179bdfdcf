"""Security helpers shared by the builder and transports."""

from __future__ import annotations

from typing import Mapping
from urllib.parse import urlsplit

from .exceptions import InvalidOption

SENSITIVE_HEADERS = {
    "authorization",
    "proxy-authorization",
    "cookie",
    "x-api-key",
}


def sanitize_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Return headers with sensitive values redacted for logging."""
    redacted: dict[str, str] = {}
    for key, value in headers.items():
        if key.lower() in SENSITIVE_HEADERS:
            redacted[key] = "[REDACTED]"
        else:
            redacted[key] = value
    return redacted


def validate_base_uri(uri: str) -> None:
    """Reject base URIs that cannot prefix a relative target."""
    if "\x00" in uri:
        raise InvalidOption("Invalid base_uri")
    try:
        parsed = urlsplit(uri)
    except ValueError as exc:
        raise InvalidOption(f"Invalid base_uri: {uri!r}", cause=exc) from exc
    if not parsed.scheme or not parsed.netloc:
        raise InvalidOption("base_uri must include scheme and host")
    if parsed.scheme not in {"http", "https"}:
        raise InvalidOption(f"Unsupported base_uri scheme: {parsed.scheme}")
