"""Per-request options for the request executor."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Mapping

DEFAULT_REDIRECT_LIMIT = 5


@dataclass(frozen=True)
class RequestOptions:
    base_uri: str | None = None
    query: Mapping[str, Any] | str | None = None
    default_params: Mapping[str, Any] = field(default_factory=dict)
    body: Mapping[str, Any] | str | bytes | None = None
    headers: Mapping[str, str] | None = None
    basic_auth: Mapping[str, str] | None = None
    signed_auth: Mapping[str, str] | None = None
    format: str | None = None
    redirect_limit: int | None = None
    no_follow: bool = False
    http_proxyaddr: str | None = None
    http_proxyport: int | None = None
    timeout: float | None = None

    def resolve_redirect_limit(self) -> int:
        if self.redirect_limit is not None:
            return int(self.redirect_limit)
        return 0 if self.no_follow else DEFAULT_REDIRECT_LIMIT

    @property
    def proxy(self) -> str | None:
        if not self.http_proxyaddr:
            return None
        proxy = self.http_proxyaddr
        if "://" not in proxy:
            proxy = f"http://{proxy}"
        if self.http_proxyport:
            proxy = f"{proxy}:{self.http_proxyport}"
        return proxy


_OPTION_NAMES = frozenset(f.name for f in fields(RequestOptions))


def merge_options(defaults: RequestOptions | None, overrides: Mapping[str, Any]) -> RequestOptions:
    """Layer keyword overrides over ``defaults``.

    ``headers`` and ``default_params`` are merged key by key when both sides
    are mappings; every other option is replaced.
    """
    unknown = set(overrides) - _OPTION_NAMES
    if unknown:
        raise TypeError(f"Unknown request options: {', '.join(sorted(unknown))}")

    base = defaults or RequestOptions()
    values = {f.name: getattr(base, f.name) for f in fields(RequestOptions)}
    for key, value in overrides.items():
        current = values.get(key)
        if key in {"headers", "default_params"} and isinstance(current, Mapping) and isinstance(value, Mapping):
            merged = dict(current)
            merged.update(value)
            values[key] = merged
            continue
        values[key] = value
    return RequestOptions(**values)
