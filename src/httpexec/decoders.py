"""Response body decoders keyed by format tag."""

from __future__ import annotations

import json
import xml.etree.ElementTree as ET
from typing import Any, Callable, Iterator

from .exceptions import ParseError

XML = "xml"
JSON = "json"

ALLOWED_FORMATS: dict[str, str] = {
    XML: "text/xml",
    JSON: "application/json",
}

CONTENT_KEY = "__content__"

Decoder = Callable[[str], Any]


def xml_to_dict(body: str | bytes) -> dict[str, Any]:
    """Convert an XML document into nested dicts, lists and strings.

    Attributes become plain keys; a tag repeated among siblings becomes a
    list; text next to attributes or children is kept under ``__content__``.
    Namespace URIs are stripped from tag names.
    """
    root = ET.fromstring(body)
    converted: dict[int, Any] = {}
    # post-order walk: children are converted before their parent
    stack: list[tuple[ET.Element, bool]] = [(root, False)]
    while stack:
        element, expanded = stack.pop()
        if not expanded:
            stack.append((element, True))
            stack.extend((child, False) for child in element)
            continue
        children = [(child.tag, converted.pop(id(child))) for child in element]
        converted[id(element)] = _element_to_value(element, children)
    return {_strip_ns(root.tag): converted[id(root)]}


def _strip_ns(tag: str) -> str:
    if tag.startswith("{"):
        return tag.split("}", 1)[1]
    return tag


def _element_to_value(element: ET.Element, children: list[tuple[str, Any]]) -> dict[str, Any] | str | None:
    result: dict[str, Any] = {}

    for name, value in element.attrib.items():
        if name.startswith("xmlns"):
            continue
        result[_strip_ns(name)] = value

    grouped: dict[str, list[Any]] = {}
    for tag, value in children:
        grouped.setdefault(_strip_ns(tag), []).append(value)
    for tag, values in grouped.items():
        result[tag] = values if len(values) > 1 else values[0]

    text = (element.text or "").strip()
    if text:
        if not result:
            return text
        result[CONTENT_KEY] = text

    return result or None


def json_loads(body: str | bytes) -> Any:
    return json.loads(body)


class DecoderRegistry:
    """Ordered registry of format tags, MIME substrings and decoders."""

    def __init__(self) -> None:
        self._decoders: dict[str, Decoder] = {}
        self._mimetypes: dict[str, str] = {}

    def register(self, tag: str, decoder: Decoder, mime: str | None = None) -> None:
        self._decoders[tag] = decoder
        if mime:
            self._mimetypes[tag] = mime

    def __contains__(self, tag: object) -> bool:
        return tag in self._decoders

    def formats(self) -> Iterator[tuple[str, str]]:
        return iter(self._mimetypes.items())

    def sniff(self, content_type: str | None) -> str | None:
        """Return the first format whose MIME substring is in ``content_type``."""
        if not content_type:
            return None
        for tag, mime in self._mimetypes.items():
            if mime in content_type:
                return tag
        return None

    def decode(self, body: str | bytes | None, format: str | None) -> Any:
        if body is None or len(body) == 0:
            return None
        decoder = self._decoders.get(format) if format else None
        if decoder is None:
            return body
        try:
            return decoder(body)
        except Exception as exc:
            raise ParseError(f"Could not decode {format} body: {exc}", format=format, body=body, cause=exc) from exc


def default_registry() -> DecoderRegistry:
    registry = DecoderRegistry()
    registry.register(XML, xml_to_dict, ALLOWED_FORMATS[XML])
    registry.register(JSON, json_loads, ALLOWED_FORMATS[JSON])
    return registry


DEFAULT_REGISTRY = default_registry()
