"""Clients that share default options across requests."""

from __future__ import annotations

import os
from typing import Any, Mapping

import httpx

from .decoders import DecoderRegistry
from .request import AsyncRequest, Request
from .request_options import RequestOptions, merge_options
from .security import validate_base_uri
from .signing import Signer
from .transport import AsyncHttpxTransport, AsyncTransport, HttpxTransport, Transport


class _BaseClient:
    base_uri_env_var = "HTTPEXEC_BASE_URI"

    def __init__(
        self,
        *,
        base_uri: str | None = None,
        headers: Mapping[str, str] | None = None,
        default_params: Mapping[str, Any] | None = None,
        format: str | None = None,
        basic_auth: Mapping[str, str] | None = None,
        signed_auth: Mapping[str, str] | None = None,
        redirect_limit: int | None = None,
        timeout: float | None = None,
        signer: Signer | None = None,
        registry: DecoderRegistry | None = None,
    ) -> None:
        base_uri = base_uri or os.getenv(self.base_uri_env_var)
        if base_uri:
            validate_base_uri(base_uri)
        self.defaults = RequestOptions(
            base_uri=base_uri or None,
            headers=dict(headers) if headers is not None else None,
            default_params=dict(default_params or {}),
            format=format,
            basic_auth=basic_auth,
            signed_auth=signed_auth,
            redirect_limit=redirect_limit,
            timeout=timeout,
        )
        self.signer = signer
        self.registry = registry

    def options(self, **overrides: Any) -> RequestOptions:
        """Per-request options layered over the client defaults."""
        return merge_options(self.defaults, overrides)


class Client(_BaseClient):
    """Synchronous client."""

    def __init__(
        self,
        *,
        transport: Transport | None = None,
        httpx_client: httpx.Client | None = None,
        **defaults: Any,
    ) -> None:
        super().__init__(**defaults)
        self._httpx = httpx_client
        self.transport = transport or HttpxTransport(httpx_client=httpx_client)

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._httpx is not None:
            self._httpx.close()

    def request(self, method: str, target: str, **options: Any) -> Any:
        return Request(
            method,
            target,
            self.options(**options),
            transport=self.transport,
            signer=self.signer,
            registry=self.registry,
        ).perform()

    def get(self, target: str, **options: Any) -> Any:
        return self.request("GET", target, **options)

    def post(self, target: str, **options: Any) -> Any:
        return self.request("POST", target, **options)

    def put(self, target: str, **options: Any) -> Any:
        return self.request("PUT", target, **options)

    def delete(self, target: str, **options: Any) -> Any:
        return self.request("DELETE", target, **options)


class AsyncClient(_BaseClient):
    """Asynchronous client."""

    def __init__(
        self,
        *,
        transport: AsyncTransport | None = None,
        httpx_client: httpx.AsyncClient | None = None,
        **defaults: Any,
    ) -> None:
        super().__init__(**defaults)
        self._httpx = httpx_client
        self.transport = transport or AsyncHttpxTransport(httpx_client=httpx_client)

    async def __aenter__(self) -> "AsyncClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._httpx is not None:
            await self._httpx.aclose()

    async def request(self, method: str, target: str, **options: Any) -> Any:
        return await AsyncRequest(
            method,
            target,
            self.options(**options),
            transport=self.transport,
            signer=self.signer,
            registry=self.registry,
        ).perform()

    async def get(self, target: str, **options: Any) -> Any:
        return await self.request("GET", target, **options)

    async def post(self, target: str, **options: Any) -> Any:
        return await self.request("POST", target, **options)

    async def put(self, target: str, **options: Any) -> Any:
        return await self.request("PUT", target, **options)

    async def delete(self, target: str, **options: Any) -> Any:
        return await self.request("DELETE", target, **options)


def get(target: str, **options: Any) -> Any:
    return Client().get(target, **options)


def post(target: str, **options: Any) -> Any:
    return Client().post(target, **options)


def put(target: str, **options: Any) -> Any:
    return Client().put(target, **options)


def delete(target: str, **options: Any) -> Any:
    return Client().delete(target, **options)
