from __future__ import annotations

import httpx
import pytest
from fakes import RecordingTransport, ok, redirect

from httpexec.decoders import DecoderRegistry, default_registry
from httpexec.exceptions import (
    ClientError,
    HTTPError,
    InvalidOption,
    ParseError,
    RedirectionTooDeep,
    ServerError,
    TransportError,
    UnsupportedMethod,
)
from httpexec.request import Request
from httpexec.request_options import RequestOptions
from httpexec.transport import HttpxTransport, ResponseEnvelope


def _request(transport, method: str = "GET", target: str = "http://foo.com/foobar", **options) -> Request:
    options.setdefault("format", "xml")
    return Request(method, target, RequestOptions(**options), transport=transport)


def test_format_returns_configured_format() -> None:
    request = Request("GET", "http://api.foo.com/v1", RequestOptions(format="xml"))
    assert request.format == "xml"


@pytest.mark.parametrize("method", ["GET", "POST", "PUT", "DELETE"])
def test_redirects_are_followed_transparently(method: str) -> None:
    transport = RecordingTransport(redirect("/foo"), ok("<hash><foo>bar</foo></hash>"))

    result = _request(transport, method, body="payload").perform()

    assert result == {"hash": {"foo": "bar"}}
    assert len(transport.sent) == 2
    assert transport.sent[1].url == "http://foo.com/foo"
    assert transport.sent[1].method == method
    assert transport.sent[1].body == b"payload"


def test_infinite_redirect_stops_after_redirect_limit_sends() -> None:
    transport = RecordingTransport(redirect("/foo"))

    with pytest.raises(RedirectionTooDeep):
        _request(transport, redirect_limit=5).perform()

    assert len(transport.sent) == 5


def test_redirect_cycle_is_bounded() -> None:
    transport = RecordingTransport(redirect("/a"), redirect("/b"), redirect("/a"))

    with pytest.raises(RedirectionTooDeep):
        _request(transport, redirect_limit=3).perform()

    assert [prepared.url for prepared in transport.sent] == [
        "http://foo.com/foobar",
        "http://foo.com/a",
        "http://foo.com/b",
    ]


@pytest.mark.parametrize("options", [{"no_follow": True}, {"redirect_limit": 0}, {"redirect_limit": -1}])
def test_non_positive_budget_fails_before_any_send(options: dict) -> None:
    transport = RecordingTransport(ok("<a>1</a>"))

    with pytest.raises(RedirectionTooDeep):
        _request(transport, **options).perform()

    assert transport.sent == []


def test_unsupported_method_fails_before_any_send() -> None:
    transport = RecordingTransport(ok("<a>1</a>"))
    with pytest.raises(UnsupportedMethod):
        _request(transport, "PATCH").perform()
    assert transport.sent == []


def test_post_with_string_query_fails() -> None:
    transport = RecordingTransport(ok("<a>1</a>"))
    with pytest.raises(InvalidOption):
        _request(transport, "POST", target="http://api.foo.com/v1", query="astring").perform()
    assert transport.sent == []


@pytest.mark.parametrize("body", [None, ""])
def test_empty_responses_are_not_parsed(body: str | None) -> None:
    transport = RecordingTransport(ok(body, status=204))
    assert _request(transport).perform() is None


def test_format_is_sniffed_from_content_type() -> None:
    transport = RecordingTransport(ok('{"a": [1, 2]}', "application/json; charset=utf-8"))
    assert _request(transport, format=None).perform() == {"a": [1, 2]}


def test_unknown_content_type_returns_raw_body() -> None:
    transport = RecordingTransport(ok("<p>hi</p>", "text/html"))
    assert _request(transport, format=None).perform() == "<p>hi</p>"


def test_parse_error_on_success_propagates() -> None:
    transport = RecordingTransport(ok("<broken>"))
    with pytest.raises(ParseError):
        _request(transport).perform()


def test_client_error_carries_decoded_body() -> None:
    transport = RecordingTransport(ok('{"error": "missing"}', "application/json", status=404))

    with pytest.raises(ClientError) as excinfo:
        _request(transport, format=None).perform()

    error = excinfo.value
    assert error.status_code == 404
    assert error.body == '{"error": "missing"}'
    assert error.decoded_body == {"error": "missing"}
    assert len(transport.sent) == 1


def test_error_body_decode_failure_is_swallowed() -> None:
    transport = RecordingTransport(ok("<html>oops", status=500))

    with pytest.raises(ServerError) as excinfo:
        _request(transport).perform()

    assert excinfo.value.status_code == 500
    assert excinfo.value.body == "<html>oops"
    assert excinfo.value.decoded_body is None


def test_redirect_without_location_is_an_error() -> None:
    transport = RecordingTransport(ResponseEnvelope(304, {}))

    with pytest.raises(HTTPError) as excinfo:
        _request(transport).perform()

    assert excinfo.value.status_code == 304
    assert len(transport.sent) == 1


def test_redirect_keeps_query_options_on_the_new_target() -> None:
    transport = RecordingTransport(redirect("/next"), ok("<a>1</a>"))

    _request(transport, query={"page": 2}).perform()

    assert transport.sent[1].url == "http://foo.com/next?page=2"


def test_final_descriptor_reflects_last_hop() -> None:
    transport = RecordingTransport(redirect("https://bar.com/final"), ok("<a>1</a>"))
    request = _request(transport)

    request.perform()

    assert request.uri == "https://bar.com/final"
    assert request.descriptor.redirect_limit == 4


def test_transport_errors_propagate_without_retry() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    transport = HttpxTransport(httpx_client=httpx.Client(transport=httpx.MockTransport(handler)))

    with pytest.raises(TransportError) as excinfo:
        Request("GET", "http://foo.com/foobar", transport=transport).perform()

    assert isinstance(excinfo.value.cause, httpx.ConnectError)
    assert len(calls) == 1


def test_end_to_end_over_httpx_follows_redirect() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        if request.url.path == "/start":
            return httpx.Response(302, headers={"Location": "/done"})
        return httpx.Response(
            200,
            headers={"Content-Type": "text/xml"},
            text="<hash><foo>bar</foo></hash>",
        )

    transport = HttpxTransport(httpx_client=httpx.Client(transport=httpx.MockTransport(handler)))
    result = Request("GET", "http://foo.com/start", transport=transport).perform()

    assert result == {"hash": {"foo": "bar"}}
    assert seen == ["http://foo.com/start", "http://foo.com/done"]


@pytest.mark.parametrize(
    ("target", "scheme"),
    [("http://foo.com:443/x", "https"), ("http://foo.com:80/x", "http"), ("http://foo.com/x", "http")],
)
def test_tls_is_selected_by_port(target: str, scheme: str) -> None:
    seen: list[httpx.URL] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url)
        return httpx.Response(200, text="ok")

    transport = HttpxTransport(httpx_client=httpx.Client(transport=httpx.MockTransport(handler)))
    assert Request("GET", target, transport=transport).perform() == "ok"
    assert seen[0].scheme == scheme


def _failing_registry() -> DecoderRegistry:
    def broken(body: str) -> dict:
        raise KeyError("root")

    registry = default_registry()
    registry.register("custom", broken, "application/custom")
    return registry


def test_failing_decoder_on_success_raises_parse_error() -> None:
    transport = RecordingTransport(ok("payload", "application/custom"))
    request = Request("GET", "http://foo.com/x", transport=transport, registry=_failing_registry())

    with pytest.raises(ParseError) as excinfo:
        request.perform()
    assert isinstance(excinfo.value.cause, KeyError)


def test_failing_decoder_on_error_response_still_raises_http_error() -> None:
    transport = RecordingTransport(ok("payload", "application/custom", status=500))
    request = Request("GET", "http://foo.com/x", transport=transport, registry=_failing_registry())

    with pytest.raises(ServerError) as excinfo:
        request.perform()
    assert excinfo.value.body == "payload"
    assert excinfo.value.decoded_body is None


def test_deep_xml_error_body_is_decoded() -> None:
    body = "<a>" * 3000 + "x" + "</a>" * 3000
    transport = RecordingTransport(ok(body, "text/xml", status=500))

    with pytest.raises(ServerError) as excinfo:
        Request("GET", "http://foo.com/x", transport=transport).perform()
    assert isinstance(excinfo.value.decoded_body, dict)
