"""OAuth 1.0 request signing with a consumer key and no token."""

from __future__ import annotations

import base64
import hashlib
import hmac
import secrets
import time
from typing import Callable, Iterable, Protocol
from urllib.parse import parse_qsl, quote, urlsplit, urlunsplit

from .descriptor import DEFAULT_PORTS
from .exceptions import InvalidOption


class Signer(Protocol):
    def sign(
        self,
        method: str,
        request_uri: str,
        consumer_key: str,
        consumer_secret: str,
        signature_method: str = "HMAC-SHA1",
        body_params: Iterable[tuple[str, str]] | None = None,
    ) -> str: ...


def percent_encode(value: str) -> str:
    return quote(str(value), safe="~")


def base_string_uri(uri: str) -> str:
    parsed = urlsplit(uri)
    scheme = parsed.scheme.lower()
    host = (parsed.hostname or "").lower()
    port = parsed.port
    netloc = host if port is None or DEFAULT_PORTS.get(scheme) == port else f"{host}:{port}"
    return urlunsplit((scheme, netloc, parsed.path or "/", "", ""))


def normalize_parameters(params: Iterable[tuple[str, str]]) -> str:
    encoded = sorted((percent_encode(key), percent_encode(value)) for key, value in params)
    return "&".join(f"{key}={value}" for key, value in encoded)


def signature_base_string(method: str, uri: str, params: Iterable[tuple[str, str]]) -> str:
    return "&".join(
        (
            method.upper(),
            percent_encode(base_string_uri(uri)),
            percent_encode(normalize_parameters(params)),
        )
    )


class OAuth1Signer:
    """Compute OAuth 1.0 ``Authorization`` header values.

    Supports HMAC-SHA1, HMAC-SHA256 and PLAINTEXT signatures. ``nonce`` and
    ``clock`` can be replaced to produce deterministic headers.
    """

    digests = {"HMAC-SHA1": hashlib.sha1, "HMAC-SHA256": hashlib.sha256}

    def __init__(
        self,
        *,
        nonce: Callable[[], str] | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._nonce = nonce or (lambda: secrets.token_hex(16))
        self._clock = clock or time.time

    def oauth_parameters(self, consumer_key: str, signature_method: str) -> dict[str, str]:
        return {
            "oauth_consumer_key": consumer_key,
            "oauth_nonce": self._nonce(),
            "oauth_signature_method": signature_method,
            "oauth_timestamp": str(int(self._clock())),
            "oauth_version": "1.0",
        }

    def signature(
        self,
        method: str,
        request_uri: str,
        consumer_secret: str,
        signature_method: str,
        params: Iterable[tuple[str, str]],
    ) -> str:
        # no token, so the token secret half of the key is empty
        key = f"{percent_encode(consumer_secret)}&"
        if signature_method == "PLAINTEXT":
            return key
        digest = self.digests.get(signature_method)
        if digest is None:
            raise InvalidOption(f"Unsupported signature method: {signature_method}")
        base = signature_base_string(method, request_uri, params)
        raw = hmac.new(key.encode(), base.encode(), digest).digest()
        return base64.b64encode(raw).decode()

    def sign(
        self,
        method: str,
        request_uri: str,
        consumer_key: str,
        consumer_secret: str,
        signature_method: str = "HMAC-SHA1",
        body_params: Iterable[tuple[str, str]] | None = None,
    ) -> str:
        oauth_params = self.oauth_parameters(consumer_key, signature_method)
        params = list(oauth_params.items())
        params.extend(parse_qsl(urlsplit(request_uri).query, keep_blank_values=True))
        if body_params:
            params.extend(body_params)
        oauth_params["oauth_signature"] = self.signature(
            method, request_uri, consumer_secret, signature_method, params
        )
        fields = ", ".join(f'{percent_encode(key)}="{percent_encode(value)}"' for key, value in oauth_params.items())
        return f"OAuth {fields}"
