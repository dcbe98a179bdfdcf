"""Request descriptors: the method, target and options of one request."""

from __future__ import annotations

from dataclasses import dataclass, replace
from functools import cached_property
from typing import Any, Mapping
from urllib.parse import SplitResult, quote_plus, urljoin, urlsplit, urlunsplit

from .exceptions import InvalidOption
from .request_options import RequestOptions

SUPPORTED_METHODS = frozenset({"GET", "POST", "PUT", "DELETE"})
DEFAULT_PORTS = {"http": 80, "https": 443}
TLS_PORT = 443


def encode_params(params: Mapping[str, Any]) -> str:
    """Serialize a mapping as a form-encoded string.

    Nested mappings become ``key[sub]=value`` pairs and sequences become
    repeated ``key[]=value`` pairs.
    """
    pairs: list[tuple[str, Any]] = []
    for key, value in params.items():
        pairs.extend(_flatten(str(key), value))
    return "&".join(f"{quote_plus(key, safe='[]')}={_encode_value(value)}" for key, value in pairs)


def _flatten(key: str, value: Any) -> list[tuple[str, Any]]:
    if isinstance(value, Mapping):
        flattened: list[tuple[str, Any]] = []
        for sub_key, sub_value in value.items():
            flattened.extend(_flatten(f"{key}[{sub_key}]", sub_value))
        return flattened
    if isinstance(value, (list, tuple)):
        flattened = []
        for item in value:
            flattened.extend(_flatten(f"{key}[]", item))
        return flattened
    return [(key, value)]


def _encode_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return quote_plus(str(value))


def parse_target(target: Any) -> SplitResult:
    if not isinstance(target, str):
        raise InvalidOption(f"target must be a string, got {type(target).__name__}")
    if "\x00" in target:
        raise InvalidOption("Invalid target characters")
    try:
        return urlsplit(target)
    except ValueError as exc:
        raise InvalidOption(f"Invalid target URI: {target!r}", cause=exc) from exc


def compose_query(existing: str, default_params: Mapping[str, Any] | None, query: Any) -> str | None:
    parts: list[str] = []
    if existing:
        parts.append(existing)

    default_params = default_params or {}
    if isinstance(query, Mapping):
        merged = dict(default_params)
        merged.update(query)
        parts.append(encode_params(merged))
    else:
        if default_params:
            parts.append(encode_params(default_params))
        if query:
            parts.append(query.decode() if isinstance(query, bytes) else str(query))

    parts = [part for part in parts if part]
    return "&".join(parts) if parts else None


@dataclass(frozen=True)
class RequestDescriptor:
    """One hop of a request. Redirects produce a new descriptor."""

    method: str
    target: SplitResult
    options: RequestOptions
    redirect_limit: int

    @classmethod
    def create(cls, method: str, target: str, options: RequestOptions | None = None) -> "RequestDescriptor":
        options = options or RequestOptions()
        return cls(
            method=str(method).upper(),
            target=parse_target(target),
            options=options,
            redirect_limit=options.resolve_redirect_limit(),
        )

    @property
    def is_post(self) -> bool:
        return self.method == "POST"

    @property
    def form_query(self) -> dict[str, Any] | None:
        """Query mapping sent as the form body of a POST."""
        if self.is_post and isinstance(self.options.query, Mapping):
            return dict(self.options.query)
        return None

    @cached_property
    def uri(self) -> str:
        target = self.target
        if not target.scheme and self.options.base_uri:
            target = parse_target(f"{self.options.base_uri}{target.geturl()}")
        query = None if self.form_query is not None else self.options.query
        composed = compose_query(target.query, self.options.default_params, query)
        return urlunsplit(target._replace(query=composed or ""))

    @property
    def port(self) -> int | None:
        parsed = urlsplit(self.uri)
        try:
            port = parsed.port
        except ValueError as exc:
            raise InvalidOption(f"Invalid port in {self.uri!r}", cause=exc) from exc
        return port if port is not None else DEFAULT_PORTS.get(parsed.scheme)

    @property
    def use_tls(self) -> bool:
        return self.port == TLS_PORT or urlsplit(self.uri).scheme == "https"

    def redirected(self, location: str) -> "RequestDescriptor":
        """Return the next hop towards ``location`` with one less redirect."""
        return replace(
            self,
            target=parse_target(urljoin(self.uri, location)),
            redirect_limit=self.redirect_limit - 1,
        )
