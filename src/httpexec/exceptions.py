"""Errors raised while building, sending and decoding requests."""

from __future__ import annotations

from typing import Any, Mapping


class HttpExecError(Exception):
    """Base exception for all httpexec failures."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: object = None,
        headers: Mapping[str, str] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.headers = dict(headers) if headers is not None else {}
        self.cause = cause

    def __str__(self) -> str:
        if self.status_code is None:
            return str(self.args[0])
        return f"{self.status_code}: {self.args[0]}"


class RedirectionTooDeep(HttpExecError):
    """Raised when the redirect budget is exhausted or was never positive."""


class UnsupportedMethod(HttpExecError):
    """Raised for HTTP methods other than GET, POST, PUT and DELETE."""


class InvalidOption(HttpExecError):
    """Raised when a request option has the wrong shape."""


class HTTPError(HttpExecError):
    """Raised for responses that are neither successful nor redirects.

    ``decoded_body`` holds the best-effort decoded body, or ``None`` when the
    body was empty or could not be decoded.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: object = None,
        decoded_body: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code, body=body, headers=headers)
        self.decoded_body = decoded_body


class ClientError(HTTPError):
    """Raised for 4xx responses."""


class ServerError(HTTPError):
    """Raised for 5xx responses."""


class ParseError(HttpExecError):
    """Raised when a response body cannot be decoded with its format."""

    def __init__(
        self,
        message: str,
        *,
        format: str | None = None,
        body: object = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, body=body, cause=cause)
        self.format = format


class TransportError(HttpExecError):
    """Raised for transport-level failures like DNS, TCP, TLS and timeouts."""
