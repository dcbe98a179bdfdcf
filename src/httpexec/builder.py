"""Turn a request descriptor into a transport-ready request."""

from __future__ import annotations

from typing import Any, Mapping
from urllib.parse import parse_qsl, urlsplit

import httpx
from pydantic import ValidationError

from .descriptor import SUPPORTED_METHODS, RequestDescriptor, encode_params
from .exceptions import InvalidOption, RedirectionTooDeep, UnsupportedMethod
from .models import BasicCredentials, SignedCredentials, basic_credentials, signed_credentials
from .request_options import RequestOptions
from .security import validate_base_uri
from .signing import Signer
from .transport import PreparedRequest, Transport

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def _normalize_headers(headers: Mapping[str, Any] | None) -> dict[str, str]:
    if not headers:
        return {}
    clean: dict[str, str] = {}
    for key, value in headers.items():
        clean[str(key)] = str(value)
    return clean


def _basic(options: RequestOptions) -> BasicCredentials | None:
    if options.basic_auth is None:
        return None
    try:
        return basic_credentials(options.basic_auth)
    except ValidationError as exc:
        raise InvalidOption(f"basic_auth is invalid: {exc}", cause=exc) from exc


def _signed(options: RequestOptions) -> SignedCredentials | None:
    if options.signed_auth is None:
        return None
    try:
        return signed_credentials(options.signed_auth)
    except ValidationError as exc:
        raise InvalidOption(f"signed_auth is invalid: {exc}", cause=exc) from exc


def validate(descriptor: RequestDescriptor) -> None:
    """Fail fast on anything that would make the request unsendable."""
    options = descriptor.options
    if descriptor.redirect_limit <= 0:
        raise RedirectionTooDeep("HTTP redirects too deep")
    if descriptor.method not in SUPPORTED_METHODS:
        raise UnsupportedMethod("only GET, POST, PUT and DELETE methods are supported")
    if options.headers is not None and not isinstance(options.headers, Mapping):
        raise InvalidOption("headers must be a mapping")
    if options.basic_auth is not None and not isinstance(options.basic_auth, Mapping):
        raise InvalidOption("basic_auth must be a mapping")
    if descriptor.is_post and options.query is not None and not isinstance(options.query, Mapping):
        raise InvalidOption("query must be a mapping if using HTTP POST")
    if options.signed_auth is not None and not isinstance(options.signed_auth, Mapping):
        raise InvalidOption("signed_auth must be a mapping")
    if options.base_uri:
        validate_base_uri(options.base_uri)
    if not urlsplit(descriptor.uri).scheme:
        raise InvalidOption(f"target {descriptor.uri!r} is relative and no base_uri is set")
    _basic(options)
    _signed(options)


def _body(descriptor: RequestDescriptor) -> tuple[bytes | None, bool]:
    """Return the encoded body and whether it is form data."""
    body = descriptor.options.body
    if body:
        if isinstance(body, Mapping):
            return encode_params(body).encode(), True
        if isinstance(body, bytes):
            return body, False
        return str(body).encode(), False
    form = descriptor.form_query
    if form is not None:
        return encode_params(form).encode(), True
    return None, False


def build(descriptor: RequestDescriptor, transport: Transport, signer: Signer) -> PreparedRequest:
    options = descriptor.options
    body, is_form = _body(descriptor)

    headers = httpx.Headers()
    if is_form:
        headers["Content-Type"] = FORM_CONTENT_TYPE
    headers.update(_normalize_headers(options.headers))

    # basic first so a signed header wins when both are configured
    basic = _basic(options)
    if basic is not None:
        headers["Authorization"] = transport.basic_auth_header(basic.username, basic.password)
    signed = _signed(options)
    if signed is not None:
        body_params = parse_qsl(body.decode(), keep_blank_values=True) if is_form and body else None
        headers["Authorization"] = signer.sign(
            descriptor.method,
            descriptor.uri,
            signed.key,
            signed.secret,
            signed.method,
            body_params,
        )

    return PreparedRequest(
        method=descriptor.method,
        url=descriptor.uri,
        headers=headers,
        body=body,
        use_tls=descriptor.use_tls,
        proxy=options.proxy,
        timeout=options.timeout,
    )
