"""HTTP transport capability backed by httpx."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Protocol
from urllib.parse import urlsplit, urlunsplit

import httpx

from .exceptions import TransportError
from .security import sanitize_headers

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class StatusClass(Enum):
    SUCCESS = "success"
    REDIRECTION = "redirection"
    ERROR = "error"

    @classmethod
    def from_status(cls, status_code: int) -> "StatusClass":
        if 200 <= status_code < 300:
            return cls.SUCCESS
        if 300 <= status_code < 400:
            return cls.REDIRECTION
        return cls.ERROR


@dataclass(frozen=True)
class PreparedRequest:
    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes | None = None
    use_tls: bool = False
    proxy: str | None = None
    timeout: float | None = None

    @property
    def transport_url(self) -> str:
        """URL with the scheme upgraded to https when TLS is selected."""
        parsed = urlsplit(self.url)
        if self.use_tls and parsed.scheme == "http":
            return urlunsplit(parsed._replace(scheme="https"))
        return self.url


@dataclass(frozen=True)
class ResponseEnvelope:
    status_code: int
    headers: httpx.Headers
    body: str | None = None
    status_class: StatusClass = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", httpx.Headers(self.headers))
        object.__setattr__(self, "status_class", StatusClass.from_status(self.status_code))

    @classmethod
    def from_httpx(cls, response: httpx.Response) -> "ResponseEnvelope":
        return cls(
            status_code=response.status_code,
            headers=response.headers,
            body=response.text if response.content else None,
        )

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "")

    @property
    def location(self) -> str | None:
        return self.headers.get("location")


class Transport(Protocol):
    def send(self, prepared: PreparedRequest) -> ResponseEnvelope: ...

    def basic_auth_header(self, username: str, password: str) -> str: ...


class AsyncTransport(Protocol):
    async def send(self, prepared: PreparedRequest) -> ResponseEnvelope: ...

    def basic_auth_header(self, username: str, password: str) -> str: ...


def basic_auth_header(username: str, password: str) -> str:
    """Compute the Authorization value httpx attaches for basic auth."""
    request = httpx.Request("GET", "http://localhost")
    next(httpx.BasicAuth(username, password).auth_flow(request))
    return request.headers["Authorization"]


def _log_send(prepared: PreparedRequest, url: str) -> None:
    logger.debug(
        "Sending %s %s tls=%s headers=%s",
        prepared.method,
        url,
        prepared.use_tls,
        sanitize_headers(prepared.headers),
    )


class _BaseHttpxTransport:
    def __init__(self, *, timeout: float = DEFAULT_TIMEOUT, verify: bool = True) -> None:
        self.timeout = timeout
        self.verify = verify

    def basic_auth_header(self, username: str, password: str) -> str:
        return basic_auth_header(username, password)

    def _timeout(self, prepared: PreparedRequest) -> float:
        return prepared.timeout if prepared.timeout is not None else self.timeout

    def _client_kwargs(self, prepared: PreparedRequest) -> dict[str, object]:
        return {
            "proxy": prepared.proxy,
            "timeout": self._timeout(prepared),
            "follow_redirects": False,
            "trust_env": False,
            "verify": self.verify,
        }

    def _request_kwargs(self, prepared: PreparedRequest, url: str) -> dict[str, object]:
        return {
            "method": prepared.method,
            "url": url,
            "headers": dict(prepared.headers),
            "content": prepared.body,
            "timeout": self._timeout(prepared),
            "follow_redirects": False,
        }


class HttpxTransport(_BaseHttpxTransport):
    """Synchronous transport.

    An injected ``httpx.Client`` is used as-is for every send; otherwise a
    short-lived client honouring the request's proxy is created per send.
    """

    def __init__(
        self,
        *,
        httpx_client: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        verify: bool = True,
    ) -> None:
        super().__init__(timeout=timeout, verify=verify)
        self._httpx = httpx_client

    def send(self, prepared: PreparedRequest) -> ResponseEnvelope:
        url = prepared.transport_url
        _log_send(prepared, url)
        try:
            if self._httpx is not None:
                response = self._httpx.request(**self._request_kwargs(prepared, url))
            else:
                with httpx.Client(**self._client_kwargs(prepared)) as client:
                    response = client.request(**self._request_kwargs(prepared, url))
        except httpx.TimeoutException as exc:
            raise TransportError("Request timed out", cause=exc) from exc
        except (httpx.TransportError, httpx.InvalidURL) as exc:
            raise TransportError(f"Transport error: {exc}", cause=exc) from exc
        logger.debug("Received %s from %s", response.status_code, url)
        return ResponseEnvelope.from_httpx(response)


class AsyncHttpxTransport(_BaseHttpxTransport):
    """Asynchronous transport, same contract as :class:`HttpxTransport`."""

    def __init__(
        self,
        *,
        httpx_client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        verify: bool = True,
    ) -> None:
        super().__init__(timeout=timeout, verify=verify)
        self._httpx = httpx_client

    async def send(self, prepared: PreparedRequest) -> ResponseEnvelope:
        url = prepared.transport_url
        _log_send(prepared, url)
        try:
            if self._httpx is not None:
                response = await self._httpx.request(**self._request_kwargs(prepared, url))
            else:
                async with httpx.AsyncClient(**self._client_kwargs(prepared)) as client:
                    response = await client.request(**self._request_kwargs(prepared, url))
        except httpx.TimeoutException as exc:
            raise TransportError("Request timed out", cause=exc) from exc
        except (httpx.TransportError, httpx.InvalidURL) as exc:
            raise TransportError(f"Transport error: {exc}", cause=exc) from exc
        logger.debug("Received %s from %s", response.status_code, url)
        return ResponseEnvelope.from_httpx(response)
