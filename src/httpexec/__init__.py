"""Configurable HTTP request executor with bounded redirects and format-aware decoding."""

from .client import AsyncClient, Client, delete, get, post, put
from .decoders import ALLOWED_FORMATS, DEFAULT_REGISTRY, JSON, XML, DecoderRegistry, xml_to_dict
from .descriptor import SUPPORTED_METHODS, RequestDescriptor, encode_params
from .exceptions import (
    ClientError,
    HTTPError,
    HttpExecError,
    InvalidOption,
    ParseError,
    RedirectionTooDeep,
    ServerError,
    TransportError,
    UnsupportedMethod,
)
from .request import AsyncRequest, Request
from .request_options import DEFAULT_REDIRECT_LIMIT, RequestOptions
from .signing import OAuth1Signer
from .transport import (
    AsyncHttpxTransport,
    HttpxTransport,
    PreparedRequest,
    ResponseEnvelope,
    StatusClass,
)

__all__ = [
    "ALLOWED_FORMATS",
    "AsyncClient",
    "AsyncHttpxTransport",
    "AsyncRequest",
    "Client",
    "ClientError",
    "DEFAULT_REDIRECT_LIMIT",
    "DEFAULT_REGISTRY",
    "DecoderRegistry",
    "HTTPError",
    "HttpExecError",
    "HttpxTransport",
    "InvalidOption",
    "JSON",
    "OAuth1Signer",
    "ParseError",
    "PreparedRequest",
    "RedirectionTooDeep",
    "Request",
    "RequestDescriptor",
    "RequestOptions",
    "ResponseEnvelope",
    "SUPPORTED_METHODS",
    "ServerError",
    "StatusClass",
    "TransportError",
    "UnsupportedMethod",
    "XML",
    "delete",
    "encode_params",
    "get",
    "post",
    "put",
    "xml_to_dict",
]
