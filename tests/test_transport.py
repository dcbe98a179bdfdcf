from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from httpexec.exceptions import TransportError
from httpexec.transport import (
    AsyncHttpxTransport,
    HttpxTransport,
    PreparedRequest,
    ResponseEnvelope,
    StatusClass,
    basic_auth_header,
)


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        (200, StatusClass.SUCCESS),
        (204, StatusClass.SUCCESS),
        (301, StatusClass.REDIRECTION),
        (307, StatusClass.REDIRECTION),
        (404, StatusClass.ERROR),
        (503, StatusClass.ERROR),
        (101, StatusClass.ERROR),
    ],
)
def test_status_class_is_decided_from_status(status: int, expected: StatusClass) -> None:
    assert ResponseEnvelope(status, {}).status_class is expected


def test_envelope_headers_are_case_insensitive() -> None:
    envelope = ResponseEnvelope(302, {"LOCATION": "/foo", "content-TYPE": "text/xml"})
    assert envelope.location == "/foo"
    assert envelope.content_type == "text/xml"


def test_basic_auth_header() -> None:
    assert basic_auth_header("foobar", "secret") == "Basic Zm9vYmFyOnNlY3JldA=="


def test_transport_url_upgrades_scheme_for_tls() -> None:
    prepared = PreparedRequest("GET", "http://foo.com:443/x", use_tls=True)
    assert prepared.transport_url == "https://foo.com:443/x"
    assert PreparedRequest("GET", "http://foo.com/x").transport_url == "http://foo.com/x"


def test_send_forwards_method_headers_and_body() -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(201, headers={"Content-Type": "application/json"}, json={"id": 1})

    transport = HttpxTransport(httpx_client=httpx.Client(transport=httpx.MockTransport(handler)))
    envelope = transport.send(
        PreparedRequest("PUT", "http://foo.com/items/1", headers={"X-Trace": "abc"}, body=b"a=1")
    )

    assert envelope.status_code == 201
    assert envelope.status_class is StatusClass.SUCCESS
    assert json.loads(envelope.body) == {"id": 1}
    assert captured[0].method == "PUT"
    assert captured[0].headers["X-Trace"] == "abc"
    assert captured[0].content == b"a=1"


def test_send_does_not_follow_redirects_itself() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(302, headers={"Location": "/elsewhere"})

    client = httpx.Client(transport=httpx.MockTransport(handler), follow_redirects=True)
    envelope = HttpxTransport(httpx_client=client).send(PreparedRequest("GET", "http://foo.com/"))

    assert envelope.status_class is StatusClass.REDIRECTION
    assert envelope.location == "/elsewhere"
    assert envelope.body is None


def test_timeouts_become_transport_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("too slow", request=request)

    transport = HttpxTransport(httpx_client=httpx.Client(transport=httpx.MockTransport(handler)))
    with pytest.raises(TransportError, match="timed out"):
        transport.send(PreparedRequest("GET", "http://foo.com/"))


def test_async_send() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="pong")

    async def run() -> ResponseEnvelope:
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await AsyncHttpxTransport(httpx_client=client).send(PreparedRequest("GET", "http://foo.com/ping"))

    envelope = asyncio.run(run())
    assert envelope.status_code == 200
    assert envelope.body == "pong"


def test_async_network_errors_become_transport_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    async def run() -> None:
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            await AsyncHttpxTransport(httpx_client=client).send(PreparedRequest("GET", "http://foo.com/"))

    with pytest.raises(TransportError):
        asyncio.run(run())
