"""Send a request, follow redirects and decode the final response."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from .builder import build, validate
from .decoders import DEFAULT_REGISTRY, DecoderRegistry
from .descriptor import RequestDescriptor
from .exceptions import ClientError, HTTPError, ParseError, RedirectionTooDeep, ServerError
from .request_options import RequestOptions
from .signing import OAuth1Signer, Signer
from .transport import (
    AsyncHttpxTransport,
    AsyncTransport,
    HttpxTransport,
    PreparedRequest,
    ResponseEnvelope,
    StatusClass,
    Transport,
)

logger = logging.getLogger(__name__)


class _BaseRequest:
    def __init__(
        self,
        method: str,
        target: str,
        options: RequestOptions | None = None,
        *,
        signer: Signer | None = None,
        registry: DecoderRegistry | None = None,
    ) -> None:
        self.descriptor = RequestDescriptor.create(method, target, options)
        self.signer = signer or OAuth1Signer()
        self.registry = registry or DEFAULT_REGISTRY

    @property
    def format(self) -> str | None:
        return self.descriptor.options.format

    @property
    def uri(self) -> str:
        return self.descriptor.uri

    def _prepare(self, descriptor: RequestDescriptor, transport: Transport | AsyncTransport) -> PreparedRequest:
        validate(descriptor)
        return build(descriptor, transport, self.signer)

    def _response_format(self, envelope: ResponseEnvelope) -> str | None:
        return self.format or self.registry.sniff(envelope.content_type)

    def _next_hop(self, descriptor: RequestDescriptor, envelope: ResponseEnvelope) -> RequestDescriptor | None:
        """Return the descriptor to resend to, or None when ``envelope`` is final."""
        if envelope.status_class is not StatusClass.REDIRECTION or not envelope.location:
            return None
        if descriptor.redirect_limit - 1 <= 0:
            raise RedirectionTooDeep(
                "HTTP redirects too deep",
                status_code=envelope.status_code,
                headers=envelope.headers,
            )
        logger.debug(
            "Following %s redirect from %s to %s (%d left)",
            envelope.status_code,
            descriptor.uri,
            envelope.location,
            descriptor.redirect_limit - 1,
        )
        return descriptor.redirected(envelope.location)

    def _finish(self, envelope: ResponseEnvelope) -> Any:
        fmt = self._response_format(envelope)
        if envelope.status_class is StatusClass.SUCCESS:
            return self.registry.decode(envelope.body, fmt)
        raise self._http_error(envelope, fmt)

    def _http_error(self, envelope: ResponseEnvelope, fmt: str | None) -> HTTPError:
        decoded = None
        try:
            decoded = self.registry.decode(envelope.body, fmt)
        except ParseError as exc:
            logger.warning("Could not decode %s error body: %s", envelope.status_code, exc)

        status_code = envelope.status_code
        message = httpx.codes.get_reason_phrase(status_code) or "request failed"
        if 400 <= status_code < 500:
            error_cls: type[HTTPError] = ClientError
        elif status_code >= 500:
            error_cls = ServerError
        else:
            error_cls = HTTPError
        return error_cls(
            message,
            status_code=status_code,
            body=envelope.body,
            decoded_body=decoded,
            headers=envelope.headers,
        )


class Request(_BaseRequest):
    """A single synchronous request and its redirect chain."""

    def __init__(
        self,
        method: str,
        target: str,
        options: RequestOptions | None = None,
        *,
        transport: Transport | None = None,
        signer: Signer | None = None,
        registry: DecoderRegistry | None = None,
    ) -> None:
        super().__init__(method, target, options, signer=signer, registry=registry)
        self.transport = transport or HttpxTransport()

    def perform(self) -> Any:
        descriptor = self.descriptor
        while True:
            envelope = self.transport.send(self._prepare(descriptor, self.transport))
            self.descriptor = descriptor
            next_hop = self._next_hop(descriptor, envelope)
            if next_hop is None:
                return self._finish(envelope)
            descriptor = next_hop


class AsyncRequest(_BaseRequest):
    """Asynchronous counterpart of :class:`Request`."""

    def __init__(
        self,
        method: str,
        target: str,
        options: RequestOptions | None = None,
        *,
        transport: AsyncTransport | None = None,
        signer: Signer | None = None,
        registry: DecoderRegistry | None = None,
    ) -> None:
        super().__init__(method, target, options, signer=signer, registry=registry)
        self.transport = transport or AsyncHttpxTransport()

    async def perform(self) -> Any:
        descriptor = self.descriptor
        while True:
            envelope = await self.transport.send(self._prepare(descriptor, self.transport))
            self.descriptor = descriptor
            next_hop = self._next_hop(descriptor, envelope)
            if next_hop is None:
                return self._finish(envelope)
            descriptor = next_hop
